"""
Test suite for the order aggregate models.

Tests cover construction defaults, derived properties and cascading
deletes of owned collections.
"""

from decimal import Decimal

from sqlalchemy import func, select

from order_engine.database.models import (
    Adjustment,
    LineItem,
    Order,
    Payment,
    Refund,
    Shipment,
)
from order_engine.services.orders.enums import (
    AdjustmentKind,
    OrderState,
    PaymentState,
    PaymentStatus,
)


class TestConstructionDefaults:
    """Test values available before the first flush."""

    def test_order_defaults(self) -> None:
        order = Order()

        assert order.id is not None
        assert order.state == OrderState.CART
        assert order.total == Decimal("0.00")
        assert order.item_count == 0
        assert order.payment_state is None
        assert order.shipment_state is None
        assert order.line_items == []

    def test_explicit_values_win(self) -> None:
        line_item = LineItem(price=Decimal("3.00"), quantity=5)

        assert line_item.quantity == 5
        assert line_item.amount == Decimal("15.00")

    def test_to_dict(self) -> None:
        order = Order(number="R600000001")

        data = order.to_dict(exclude={"created_at", "updated_at"})

        assert data["number"] == "R600000001"
        assert data["id"] == str(order.id)
        assert "created_at" not in data


class TestOrderProperties:
    """Test derived order properties."""

    def test_completed_and_canceled(self) -> None:
        order = Order()
        assert not order.completed
        assert not order.canceled

        order.complete()
        assert order.completed
        assert order.state == OrderState.COMPLETE

        order.cancel()
        assert order.canceled

    def test_backordered(self) -> None:
        order = Order()
        order.shipments.append(Shipment())
        assert not order.backordered

        order.shipments.append(Shipment(backordered=True))
        assert order.backordered

    def test_refund_total(self) -> None:
        order = Order()
        payment = Payment(amount=Decimal("50.00"), state=PaymentStatus.COMPLETED)
        payment.refunds.append(Refund(amount=Decimal("5.00")))
        payment.refunds.append(Refund(amount=Decimal("2.50")))
        order.payments.append(payment)

        assert order.refund_total == Decimal("7.50")
        assert payment.net_amount == Decimal("42.50")

    def test_outstanding_balance(self) -> None:
        order = Order(total=Decimal("30.00"), payment_total=Decimal("10.00"))
        assert order.outstanding_balance == Decimal("20.00")

        order.cancel()
        assert order.outstanding_balance == Decimal("-10.00")

    def test_paid(self) -> None:
        order = Order()
        assert not order.paid

        order.payment_state = PaymentState.CREDIT_OWED
        assert order.paid

        order.payment_state = PaymentState.BALANCE_DUE
        assert not order.paid

    def test_payment_validity(self) -> None:
        assert Payment(state=PaymentStatus.VOID).is_valid
        assert not Payment(state=PaymentStatus.FAILED).is_valid
        assert not Payment(state=PaymentStatus.INVALID).is_valid

    def test_all_adjustments(self) -> None:
        order = Order()
        line_item = LineItem(price=Decimal("10.00"))
        shipment = Shipment()
        order.line_items.append(line_item)
        order.shipments.append(shipment)
        order_adjustment = Adjustment(kind=AdjustmentKind.MANUAL)
        item_adjustment = Adjustment(kind=AdjustmentKind.ADDITIONAL_TAX)
        shipment_adjustment = Adjustment(kind=AdjustmentKind.INCLUDED_TAX)
        order.adjustments.append(order_adjustment)
        line_item.adjustments.append(item_adjustment)
        shipment.adjustments.append(shipment_adjustment)

        assert order.all_adjustments == [
            order_adjustment,
            item_adjustment,
            shipment_adjustment,
        ]
        assert item_adjustment.adjustable is line_item
        assert shipment_adjustment.adjustable is shipment
        assert order_adjustment.adjustable is order


class TestCascade:
    """Test that the order owns its collections."""

    def test_deleting_order_deletes_owned_records(self, db_session) -> None:
        order = Order(number="R700000001")
        line_item = LineItem(price=Decimal("10.00"))
        line_item.adjustments.append(
            Adjustment(kind=AdjustmentKind.ADDITIONAL_TAX, amount=Decimal("0.80"))
        )
        order.line_items.append(line_item)
        payment = Payment(amount=Decimal("10.80"), state=PaymentStatus.COMPLETED)
        payment.refunds.append(Refund(amount=Decimal("1.00")))
        order.payments.append(payment)
        order.shipments.append(Shipment())
        db_session.add(order)
        db_session.flush()

        db_session.delete(order)
        db_session.flush()

        for model in (Order, LineItem, Adjustment, Payment, Refund, Shipment):
            count = db_session.scalar(select(func.count()).select_from(model))
            assert count == 0, model.__name__
