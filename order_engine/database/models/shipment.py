"""
Shipment and shipping rate models.

A shipment is a fulfillment unit of an order with its own cost and state.
Rates are quoted by an external shipping-rate estimator; the shipment keeps
the quotes it was given and charges the selected one.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, object_session, relationship

from order_engine.core.config import get_settings
from order_engine.core.logging import get_logger
from order_engine.database.base import ZERO, BaseModel
from order_engine.services.orders.enums import ShipmentStatus

if TYPE_CHECKING:
    from order_engine.database.models.adjustment import Adjustment
    from order_engine.database.models.order import Order
    from order_engine.services.shipping.rates import ShippingRateEstimator

logger = get_logger(__name__)


class Shipment(BaseModel):
    """
    Fulfillment unit of an order.

    Attributes:
        number: Human-readable shipment number
        cost: Charged shipping cost
        state: Shipment lifecycle state
        backordered: Whether any unit waits on unavailable stock
        shipping_rates: Rates quoted for this shipment
    """

    __tablename__ = "shipments"
    __transient_defaults__ = {
        "cost": ZERO,
        "state": ShipmentStatus.PENDING,
        "backordered": False,
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

    number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Charged shipping cost",
    )

    state: Mapped[ShipmentStatus] = mapped_column(
        SQLEnum(ShipmentStatus, name="shipment_status", create_constraint=True),
        nullable=False,
        default=ShipmentStatus.PENDING,
        index=True,
    )

    backordered: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
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
        back_populates="shipments",
    )

    shipping_rates: Mapped[list["ShippingRate"]] = relationship(
        "ShippingRate",
        back_populates="shipment",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    adjustments: Mapped[list["Adjustment"]] = relationship(
        "Adjustment",
        back_populates="shipment",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_shipments_cost_non_negative"),
    )

    @property
    def shipped(self) -> bool:
        return self.state == ShipmentStatus.SHIPPED

    @property
    def selected_shipping_rate(self) -> Optional["ShippingRate"]:
        return next((rate for rate in self.shipping_rates if rate.selected), None)

    @property
    def item_total(self) -> Decimal:
        """Amount promotion calculators apply percentages to."""
        return self.cost

    def refresh_rates(
        self, estimator: Optional["ShippingRateEstimator"] = None
    ) -> list["ShippingRate"]:
        """
        Replace the quoted rates with fresh quotes from the estimator.

        Shipped shipments keep their rates. The previously selected rate is
        re-selected by name when it is quoted again, otherwise the cheapest
        quote is selected.

        Args:
            estimator: Shipping-rate collaborator, None keeps current rates

        Returns:
            The shipment's rates after the refresh
        """
        if self.shipped or estimator is None:
            return list(self.shipping_rates)

        previous = self.selected_shipping_rate
        previous_name = previous.name if previous is not None else None

        quotes = list(estimator.shipping_rates(self))
        self.shipping_rates.clear()
        rates = [ShippingRate(name=quote.name, cost=quote.cost) for quote in quotes]

        if rates:
            chosen = next(
                (rate for rate in rates if rate.name == previous_name),
                min(rates, key=lambda rate: rate.cost),
            )
            chosen.selected = True

        self.shipping_rates.extend(rates)

        logger.debug(
            "Shipping rates refreshed",
            shipment_id=str(self.id),
            rates_count=len(rates),
            previous_rate=previous_name,
        )
        return rates

    def update_amounts(self) -> None:
        """Charge the cost of the selected rate, if any."""
        rate = self.selected_shipping_rate
        if rate is not None and rate.cost != self.cost:
            self.cost = rate.cost

    def determine_state(
        self, order: "Order", auto_capture_on_dispatch: Optional[bool] = None
    ) -> ShipmentStatus:
        """
        Derive this shipment's state from the order it belongs to.

        Args:
            order: Owning order
            auto_capture_on_dispatch: Allow dispatch before payment,
                defaults to the configured policy

        Returns:
            New shipment state
        """
        if auto_capture_on_dispatch is None:
            auto_capture_on_dispatch = get_settings().auto_capture_on_dispatch

        if order.canceled:
            return ShipmentStatus.CANCELED
        if not order.completed or self.backordered:
            return ShipmentStatus.PENDING
        if self.shipped:
            return ShipmentStatus.SHIPPED
        if order.paid or auto_capture_on_dispatch:
            return ShipmentStatus.READY
        return ShipmentStatus.PENDING

    def update(
        self, order: "Order", auto_capture_on_dispatch: Optional[bool] = None
    ) -> ShipmentStatus:
        """
        Re-derive the shipment state and persist the shipment.

        Persistence goes through the session the shipment is attached to;
        any error raised by the session propagates to the caller.

        Args:
            order: Owning order
            auto_capture_on_dispatch: See determine_state

        Returns:
            The shipment's state after the update
        """
        new_state = self.determine_state(order, auto_capture_on_dispatch)
        if new_state != self.state:
            logger.info(
                "Shipment state changed",
                shipment_id=str(self.id),
                from_state=ShipmentStatus(self.state).value,
                to_state=new_state.value,
            )
            self.state = new_state

        session = object_session(self)
        if session is not None:
            session.flush()

        return new_state


class ShippingRate(BaseModel):
    """
    Rate quoted for a shipment by a shipping method.
    """

    __tablename__ = "shipping_rates"
    __transient_defaults__ = {"cost": ZERO, "selected": False}

    shipment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("shipments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
    )

    selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    shipment: Mapped[Optional[Shipment]] = relationship(
        "Shipment",
        back_populates="shipping_rates",
    )
