"""
Adjustment model for monetary deltas on orders, line items and shipments.

An adjustment is attached to exactly one adjustable: the order itself, one of
its line items, or one of its shipments. Its kind is a tagged enum so a tax
amount is either additional or included, never both.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional, Protocol, Union

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_engine.core.logging import get_logger
from order_engine.database.base import ZERO, BaseModel
from order_engine.services.orders.enums import AdjustmentKind

if TYPE_CHECKING:
    from order_engine.database.models.line_item import LineItem
    from order_engine.database.models.order import Order
    from order_engine.database.models.shipment import Shipment

    Adjustable = Union[Order, LineItem, Shipment]

logger = get_logger(__name__)


class AdjustmentSource(Protocol):
    """Computes the amount of the adjustments it created."""

    def compute_amount(self, adjustable: Any) -> Decimal:
        ...


class Adjustment(BaseModel):
    """
    Signed monetary delta attached to an order, line item or shipment.

    Attributes:
        amount: Signed amount, negative for discounts
        label: Human-readable description
        kind: Promotion, additional tax, included tax or manual
        eligible: Whether the adjustment currently applies
        finalized: Finalized adjustments keep their amount
        source: Optional live calculator, not persisted
    """

    __tablename__ = "adjustments"
    __transient_defaults__ = {
        "amount": ZERO,
        "kind": AdjustmentKind.MANUAL,
        "eligible": True,
        "finalized": False,
    }

    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    line_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("line_items.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    shipment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("shipments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Signed adjustment amount",
    )

    label: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    kind: Mapped[AdjustmentKind] = mapped_column(
        SQLEnum(AdjustmentKind, name="adjustment_kind", create_constraint=True),
        nullable=False,
        default=AdjustmentKind.MANUAL,
        index=True,
    )

    eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    order: Mapped[Optional["Order"]] = relationship(
        "Order",
        back_populates="adjustments",
    )

    line_item: Mapped[Optional["LineItem"]] = relationship(
        "LineItem",
        back_populates="adjustments",
    )

    shipment: Mapped[Optional["Shipment"]] = relationship(
        "Shipment",
        back_populates="adjustments",
    )

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN order_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN line_item_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN shipment_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_adjustments_single_adjustable",
        ),
    )

    source = None

    def __init__(self, source: Optional[AdjustmentSource] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.source = source

    @property
    def adjustable(self) -> Optional["Adjustable"]:
        """The order, line item or shipment this adjustment applies to."""
        return self.line_item or self.shipment or self.order

    def update(self, adjustable: Optional["Adjustable"] = None) -> Decimal:
        """
        Recompute the amount from the live source.

        Finalized adjustments and adjustments without a source keep their
        recorded amount.

        Args:
            adjustable: Object to compute against, defaults to the owner

        Returns:
            The adjustment amount after the update
        """
        if self.finalized or self.source is None:
            return self.amount

        target = adjustable if adjustable is not None else self.adjustable
        if target is None:
            return self.amount

        amount = self.source.compute_amount(target)
        if amount != self.amount:
            logger.debug(
                "Adjustment amount recomputed",
                adjustment_id=str(self.id),
                kind=AdjustmentKind(self.kind).value,
                from_amount=str(self.amount),
                to_amount=str(amount),
            )
            self.amount = amount
        return self.amount
