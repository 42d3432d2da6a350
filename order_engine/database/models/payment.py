"""
Payment and refund models.

Payments are recorded by the host application; the order engine only reads
their amount, state and refunds when deriving payment_total and the order's
payment state. Gateway communication happens elsewhere.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_engine.database.base import ZERO, BaseModel
from order_engine.services.orders.enums import PaymentStatus

if TYPE_CHECKING:
    from order_engine.database.models.order import Order


class Payment(BaseModel):
    """
    Payment recorded against an order.

    Attributes:
        amount: Amount captured or attempted
        state: Lifecycle state of the payment
        refunds: Refunds issued against this payment
    """

    __tablename__ = "payments"
    __transient_defaults__ = {
        "amount": ZERO,
        "state": PaymentStatus.CHECKOUT,
    }

    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Payment amount",
    )

    state: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name="payment_status", create_constraint=True),
        nullable=False,
        default=PaymentStatus.CHECKOUT,
        index=True,
        comment="Payment lifecycle state",
    )

    order: Mapped[Optional["Order"]] = relationship(
        "Order",
        back_populates="payments",
    )

    refunds: Mapped[list["Refund"]] = relationship(
        "Refund",
        back_populates="payment",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def is_valid(self) -> bool:
        """Check if the payment is neither failed nor invalid."""
        return PaymentStatus(self.state).is_valid

    @property
    def is_completed(self) -> bool:
        return self.state == PaymentStatus.COMPLETED

    @property
    def refund_total(self) -> Decimal:
        """Sum of refunds issued against this payment."""
        return sum((refund.amount for refund in self.refunds), ZERO)

    @property
    def net_amount(self) -> Decimal:
        """Amount kept after refunds."""
        return self.amount - self.refund_total


class Refund(BaseModel):
    """
    Refund issued against a payment.
    """

    __tablename__ = "refunds"
    __transient_defaults__ = {"amount": ZERO}

    payment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("payments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Refunded amount",
    )

    reason: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    payment: Mapped[Optional[Payment]] = relationship(
        "Payment",
        back_populates="refunds",
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_refunds_amount_non_negative"),
    )
