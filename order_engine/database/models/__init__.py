"""
Database models package initialization.

All models are imported here so they register with the Base metadata and
their string-based relationships resolve before the mappers configure.
"""

from order_engine.database.base import Base, BaseModel, TimestampMixin, UUIDMixin
from order_engine.database.models.adjustment import Adjustment, AdjustmentSource
from order_engine.database.models.line_item import LineItem
from order_engine.database.models.order import Order
from order_engine.database.models.payment import Payment, Refund
from order_engine.database.models.shipment import Shipment, ShippingRate
from order_engine.database.models.state_change import StateChange

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "Adjustment",
    "AdjustmentSource",
    "LineItem",
    "Order",
    "Payment",
    "Refund",
    "Shipment",
    "ShippingRate",
    "StateChange",
]
