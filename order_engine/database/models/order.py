"""
Order model holding the aggregate reconciled by the order updater.

This module defines the Order model: the checkout lifecycle state, the
derived monetary totals, the derived payment and shipment states, and the
owned collections of line items, payments, shipments, adjustments and state
changes. Every owned collection cascades deletes from the order.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum as SQLEnum, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_engine.database.base import ZERO, BaseModel
from order_engine.services.orders.enums import (
    OrderState,
    PaymentState,
    ShipmentState,
)

if TYPE_CHECKING:
    from order_engine.database.models.adjustment import Adjustment
    from order_engine.database.models.line_item import LineItem
    from order_engine.database.models.payment import Payment
    from order_engine.database.models.shipment import Shipment
    from order_engine.database.models.state_change import StateChange


def _money_column(comment: str) -> Mapped[Decimal]:
    return mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=ZERO,
        comment=comment,
    )


class Order(BaseModel):
    """
    Order aggregate with derived totals and lifecycle states.

    The derived attributes (totals, payment_state, shipment_state) are
    written only by OrderUpdater and are always recomputed from the owned
    collections.

    Attributes:
        number: Human-readable order number
        user_id: Customer who owns the order
        state: Checkout lifecycle state
        completed_at: When checkout completed, None while incomplete
        item_total: Sum of line item price times quantity
        item_count: Sum of line item quantities
        shipment_total: Sum of shipment costs
        adjustment_total: Sum of non-included adjustments
        additional_tax_total: Tax charged on top of prices
        included_tax_total: Tax already contained in prices
        promo_total: Sum of promotion adjustments (negative for discounts)
        payment_total: Net amount of counted payments
        total: Amount the customer owes for the order
        payment_state: Derived payment state
        shipment_state: Derived shipment state
    """

    __tablename__ = "orders"
    __transient_defaults__ = {
        "state": OrderState.CART,
        "item_count": 0,
        "item_total": ZERO,
        "shipment_total": ZERO,
        "adjustment_total": ZERO,
        "additional_tax_total": ZERO,
        "included_tax_total": ZERO,
        "promo_total": ZERO,
        "payment_total": ZERO,
        "total": ZERO,
    }

    number: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        unique=True,
        comment="Human-readable order number",
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
        comment="Customer who owns the order",
    )

    state: Mapped[OrderState] = mapped_column(
        SQLEnum(OrderState, name="order_state", create_constraint=True),
        nullable=False,
        default=OrderState.CART,
        index=True,
        comment="Checkout lifecycle state",
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When checkout completed",
    )

    # Derived totals
    item_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Sum of line item quantities",
    )
    item_total: Mapped[Decimal] = _money_column("Sum of line item amounts")
    shipment_total: Mapped[Decimal] = _money_column("Sum of shipment costs")
    adjustment_total: Mapped[Decimal] = _money_column("Sum of adjustments")
    additional_tax_total: Mapped[Decimal] = _money_column("Additional tax")
    included_tax_total: Mapped[Decimal] = _money_column("Included tax")
    promo_total: Mapped[Decimal] = _money_column("Sum of promotion adjustments")
    payment_total: Mapped[Decimal] = _money_column("Net counted payments")
    total: Mapped[Decimal] = _money_column("Order total")

    # Derived states
    payment_state: Mapped[Optional[PaymentState]] = mapped_column(
        SQLEnum(PaymentState, name="order_payment_state", create_constraint=True),
        nullable=True,
        index=True,
        comment="Derived payment state",
    )

    shipment_state: Mapped[Optional[ShipmentState]] = mapped_column(
        SQLEnum(ShipmentState, name="order_shipment_state", create_constraint=True),
        nullable=True,
        index=True,
        comment="Derived shipment state",
    )

    # Relationships
    line_items: Mapped[list["LineItem"]] = relationship(
        "LineItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    payments: Mapped[list["Payment"]] = relationship(
        "Payment",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    shipments: Mapped[list["Shipment"]] = relationship(
        "Shipment",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    adjustments: Mapped[list["Adjustment"]] = relationship(
        "Adjustment",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    state_changes: Mapped[list["StateChange"]] = relationship(
        "StateChange",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="StateChange.created_at",
    )

    __table_args__ = (
        Index("ix_orders_state_completed", "state", "completed_at"),
    )

    @property
    def completed(self) -> bool:
        """Check if checkout has completed."""
        return self.completed_at is not None

    @property
    def canceled(self) -> bool:
        """Check if the order was canceled."""
        return self.state == OrderState.CANCELED

    @property
    def backordered(self) -> bool:
        """Check if any shipment waits on stock that is not available."""
        return any(shipment.backordered for shipment in self.shipments)

    @property
    def paid(self) -> bool:
        """Check if the derived payment state is settled."""
        return self.payment_state is not None and PaymentState(
            self.payment_state
        ).is_settled

    @property
    def refund_total(self) -> Decimal:
        """Sum of refunds recorded against all of the order's payments."""
        return sum(
            (payment.refund_total for payment in self.payments),
            ZERO,
        )

    @property
    def outstanding_balance(self) -> Decimal:
        """
        Amount still owed by the customer.

        A canceled order owes nothing, so everything collected is owed
        back. Negative values mean the customer is owed money.
        """
        if self.canceled:
            return -self.payment_total
        return self.total - self.payment_total

    @property
    def all_adjustments(self) -> list["Adjustment"]:
        """Order-level, line item and shipment adjustments together."""
        adjustments = list(self.adjustments)
        for line_item in self.line_items:
            adjustments.extend(line_item.adjustments)
        for shipment in self.shipments:
            adjustments.extend(shipment.adjustments)
        return adjustments

    def complete(self, completed_at: Optional[datetime] = None) -> None:
        """Mark checkout as completed."""
        self.state = OrderState.COMPLETE
        self.completed_at = completed_at or datetime.now(timezone.utc)

    def cancel(self) -> None:
        """Mark the order as canceled."""
        self.state = OrderState.CANCELED

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, number={self.number!r}, "
            f"state={self.state}, total={self.total})>"
        )
