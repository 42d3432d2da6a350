"""
Pytest configuration and shared test fixtures.

Provides engine settings, transient order aggregates, an order updater and
an in-memory SQLite session for tests that exercise persistence.
"""

from decimal import Decimal
from typing import Callable, Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from order_engine.core.config import Settings
from order_engine.database.models import Base, LineItem, Order, Payment, Refund, Shipment
from order_engine.services.orders.enums import PaymentStatus, ShipmentStatus
from order_engine.services.orders.updater import OrderUpdater


@pytest.fixture
def settings() -> Settings:
    """
    Engine settings isolated from the developer's .env file.

    Returns:
        Settings with default policies
    """
    return Settings(_env_file=None)


@pytest.fixture
def order() -> Order:
    """Create an empty transient order in the cart state."""
    return Order(number="R100000001")


@pytest.fixture
def updater(order: Order, settings: Settings) -> OrderUpdater:
    """Create an updater for the transient order."""
    return OrderUpdater(order, settings=settings)


@pytest.fixture
def add_line_item(order: Order) -> Callable[..., LineItem]:
    """
    Factory attaching line items to the order.

    Example:
        def test_items(add_line_item):
            add_line_item(price="10.00", quantity=2)
    """

    def _add(price="10.00", quantity: int = 1, **kwargs) -> LineItem:
        line_item = LineItem(price=Decimal(str(price)), quantity=quantity, **kwargs)
        order.line_items.append(line_item)
        return line_item

    return _add


@pytest.fixture
def add_shipment(order: Order) -> Callable[..., Shipment]:
    """Factory attaching shipments to the order."""

    def _add(cost="0.00", state=ShipmentStatus.PENDING, **kwargs) -> Shipment:
        shipment = Shipment(cost=Decimal(str(cost)), state=state, **kwargs)
        order.shipments.append(shipment)
        return shipment

    return _add


@pytest.fixture
def add_payment(order: Order) -> Callable[..., Payment]:
    """Factory attaching payments, optionally refunded, to the order."""

    def _add(amount="0.00", state=PaymentStatus.COMPLETED, refund=None) -> Payment:
        payment = Payment(amount=Decimal(str(amount)), state=state)
        if refund is not None:
            payment.refunds.append(Refund(amount=Decimal(str(refund)), reason="Return"))
        order.payments.append(payment)
        return payment

    return _add


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """
    In-memory SQLite session with the order engine schema.

    Yields:
        Session bound to a fresh database
    """
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()
