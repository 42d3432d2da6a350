"""
Order totals Pydantic schema.

Read-only snapshot of the derived fields of an order, used to compare
successive updates and to hand totals to callers without exposing the ORM
objects.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from order_engine.services.orders.enums import PaymentState, ShipmentState


class OrderTotals(BaseModel):
    """Derived totals and states of one order."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[UUID] = Field(None, description="Order identifier")
    item_count: int = Field(0, ge=0, description="Sum of line item quantities")
    item_total: Decimal = Field(..., description="Sum of line item amounts")
    shipment_total: Decimal = Field(..., description="Sum of shipment costs")
    adjustment_total: Decimal = Field(..., description="Sum of adjustments")
    additional_tax_total: Decimal = Field(..., description="Additional tax")
    included_tax_total: Decimal = Field(..., description="Included tax")
    promo_total: Decimal = Field(..., description="Sum of promotion adjustments")
    payment_total: Decimal = Field(..., description="Net counted payments")
    total: Decimal = Field(..., description="Order total")
    payment_state: Optional[PaymentState] = Field(None, description="Payment state")
    shipment_state: Optional[ShipmentState] = Field(None, description="Shipment state")
