"""Adjustment recalculation for line items and shipments.

Line items and shipments own their adjustment sub-totals. When they carry
adjustments, those sub-totals are re-derived from the adjustments; when they
carry none, the recorded sub-totals are left as the tax calculator wrote
them.
"""

from decimal import Decimal
from typing import Any, Iterable

from order_engine.core.logging import get_logger
from order_engine.database.base import ZERO
from order_engine.database.models.adjustment import Adjustment
from order_engine.services.orders.enums import AdjustmentKind

logger = get_logger(__name__)


def sum_adjustments(adjustments: Iterable[Adjustment], *kinds: AdjustmentKind) -> Decimal:
    """Sum eligible adjustment amounts, optionally restricted to some kinds."""
    return sum(
        (
            adjustment.amount
            for adjustment in adjustments
            if adjustment.eligible and (not kinds or adjustment.kind in kinds)
        ),
        ZERO,
    )


class AdjustableTotalsUpdater:
    """Re-derives the adjustment sub-totals of one line item or shipment."""

    def __init__(self, adjustable: Any):
        self.adjustable = adjustable

    def update(self) -> None:
        adjustable = self.adjustable
        adjustments = list(adjustable.adjustments)
        if not adjustments:
            return

        for adjustment in adjustments:
            adjustment.update(adjustable)

        promo_total = sum_adjustments(adjustments, AdjustmentKind.PROMOTION)
        additional_tax_total = sum_adjustments(adjustments, AdjustmentKind.ADDITIONAL_TAX)
        included_tax_total = sum_adjustments(adjustments, AdjustmentKind.INCLUDED_TAX)
        manual_total = sum_adjustments(adjustments, AdjustmentKind.MANUAL)

        adjustable.promo_total = promo_total
        adjustable.additional_tax_total = additional_tax_total
        adjustable.included_tax_total = included_tax_total
        adjustable.adjustment_total = promo_total + additional_tax_total + manual_total

        logger.debug(
            "Adjustable totals recalculated",
            adjustable=type(adjustable).__name__,
            adjustable_id=str(adjustable.id),
            adjustment_total=str(adjustable.adjustment_total),
        )


def recalculate_adjustments(order: Any) -> None:
    """
    Recompute every live adjustment of the order.

    Order-level adjustments are computed against the order; line items and
    shipments re-derive their own sub-totals.

    Args:
        order: Order whose adjustments are recalculated
    """
    for adjustment in order.adjustments:
        adjustment.update(order)

    for line_item in order.line_items:
        AdjustableTotalsUpdater(line_item).update()

    for shipment in order.shipments:
        AdjustableTotalsUpdater(shipment).update()
