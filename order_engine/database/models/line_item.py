"""
Line item model for order entries.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_engine.database.base import ZERO, BaseModel

if TYPE_CHECKING:
    from order_engine.database.models.adjustment import Adjustment
    from order_engine.database.models.order import Order


class LineItem(BaseModel):
    """
    One order entry for a variant at a given price and quantity.

    The adjustment sub-totals are owned by the line item and re-derived from
    its own adjustments whenever it has any.
    """

    __tablename__ = "line_items"
    __transient_defaults__ = {
        "quantity": 1,
        "price": ZERO,
        "adjustment_total": ZERO,
        "additional_tax_total": ZERO,
        "included_tax_total": ZERO,
        "promo_total": ZERO,
    }

    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    sku: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="Variant stock keeping unit",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Unit price",
    )

    adjustment_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=ZERO
    )
    additional_tax_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=ZERO
    )
    included_tax_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=ZERO
    )
    promo_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=ZERO
    )

    order: Mapped[Optional["Order"]] = relationship(
        "Order",
        back_populates="line_items",
    )

    adjustments: Mapped[list["Adjustment"]] = relationship(
        "Adjustment",
        back_populates="line_item",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_line_items_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_line_items_price_non_negative"),
    )

    @property
    def amount(self) -> Decimal:
        """Price times quantity, before adjustments."""
        return self.price * self.quantity

    @property
    def item_total(self) -> Decimal:
        """Amount promotion calculators apply percentages to."""
        return self.amount
