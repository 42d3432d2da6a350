"""
Test suite for adjustment recalculation on line items and shipments.
"""

from decimal import Decimal

from order_engine.database.models import Adjustment, LineItem, Order, Shipment
from order_engine.services.orders.adjustments import (
    AdjustableTotalsUpdater,
    recalculate_adjustments,
    sum_adjustments,
)
from order_engine.services.orders.enums import AdjustmentKind
from order_engine.services.promotions.calculators import (
    CreateAdjustment,
    FlatPercentItemTotal,
    FlatRate,
)


class TestSumAdjustments:
    """Test summing eligible adjustments by kind."""

    def test_filters_by_kind_and_eligibility(self) -> None:
        adjustments = [
            Adjustment(kind=AdjustmentKind.PROMOTION, amount=Decimal("-1.00")),
            Adjustment(kind=AdjustmentKind.PROMOTION, amount=Decimal("-4.00"), eligible=False),
            Adjustment(kind=AdjustmentKind.ADDITIONAL_TAX, amount=Decimal("0.70")),
        ]

        assert sum_adjustments(adjustments, AdjustmentKind.PROMOTION) == Decimal("-1.00")
        assert sum_adjustments(adjustments) == Decimal("-0.30")

    def test_empty(self) -> None:
        assert sum_adjustments([]) == Decimal("0.00")


class TestAdjustableTotalsUpdater:
    """Test re-deriving line item and shipment sub-totals."""

    def test_line_item_without_adjustments_keeps_recorded_totals(self) -> None:
        line_item = LineItem(price=Decimal("10.00"), adjustment_total=Decimal("1.00"))

        AdjustableTotalsUpdater(line_item).update()

        assert line_item.adjustment_total == Decimal("1.00")

    def test_line_item_promotion_is_recomputed(self) -> None:
        line_item = LineItem(price=Decimal("20.00"), quantity=2)
        action = CreateAdjustment("Quarter off", FlatPercentItemTotal(25))
        action.create_adjustment(line_item)
        line_item.quantity = 4

        AdjustableTotalsUpdater(line_item).update()

        assert line_item.promo_total == Decimal("-20.00")
        assert line_item.adjustment_total == Decimal("-20.00")

    def test_shipment_taxes(self) -> None:
        shipment = Shipment(cost=Decimal("8.00"))
        shipment.adjustments.append(
            Adjustment(kind=AdjustmentKind.ADDITIONAL_TAX, amount=Decimal("0.64"))
        )
        shipment.adjustments.append(
            Adjustment(kind=AdjustmentKind.INCLUDED_TAX, amount=Decimal("0.50"))
        )

        AdjustableTotalsUpdater(shipment).update()

        assert shipment.additional_tax_total == Decimal("0.64")
        assert shipment.included_tax_total == Decimal("0.50")
        assert shipment.adjustment_total == Decimal("0.64")


class TestAdjustmentUpdate:
    """Test recomputing a single adjustment from its source."""

    def test_without_source_keeps_amount(self) -> None:
        adjustment = Adjustment(kind=AdjustmentKind.MANUAL, amount=Decimal("-3.00"))

        assert adjustment.update(Order()) == Decimal("-3.00")

    def test_finalized_keeps_amount(self) -> None:
        order = Order(item_total=Decimal("100.00"))
        adjustment = Adjustment(
            source=CreateAdjustment("Five off", FlatRate(5)),
            kind=AdjustmentKind.PROMOTION,
            amount=Decimal("-2.00"),
            finalized=True,
        )

        assert adjustment.update(order) == Decimal("-2.00")

    def test_defaults_to_owning_adjustable(self) -> None:
        line_item = LineItem(price=Decimal("12.00"))
        adjustment = Adjustment(
            source=CreateAdjustment("Five off", FlatRate(5)),
            kind=AdjustmentKind.PROMOTION,
        )
        line_item.adjustments.append(adjustment)

        assert adjustment.adjustable is line_item
        assert adjustment.update() == Decimal("-5.00")


class TestRecalculateAdjustments:
    """Test recalculating every adjustment of an order."""

    def test_order_level_adjustment_uses_order(self) -> None:
        order = Order(item_total=Decimal("50.00"))
        adjustment = Adjustment(
            source=CreateAdjustment("10% off", FlatPercentItemTotal(10)),
            kind=AdjustmentKind.PROMOTION,
        )
        order.adjustments.append(adjustment)

        recalculate_adjustments(order)

        assert adjustment.amount == Decimal("-5.00")
        assert order.all_adjustments == [adjustment]
