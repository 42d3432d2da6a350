"""Order, payment, shipment and adjustment enums.

This module defines the checkout lifecycle of an order, the two derived
order-level states (payment and shipment state) recomputed by the order
updater, the lifecycle states of individual payment and shipment records,
and the tagged classification of adjustments.
"""

from enum import Enum


class OrderState(str, Enum):
    """Checkout lifecycle state of an order."""

    CART = "cart"
    ADDRESS = "address"
    DELIVERY = "delivery"
    PAYMENT = "payment"
    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCELED = "canceled"
    RETURNED = "returned"


class PaymentState(str, Enum):
    """Order-level payment state derived from totals and payments.

    Re-derived from scratch on every update, so any value may follow any
    other. Once the order is canceled only VOID and CREDIT_OWED are
    reachable.
    """

    BALANCE_DUE = "balance_due"
    PAID = "paid"
    CREDIT_OWED = "credit_owed"
    FAILED = "failed"
    VOID = "void"

    @property
    def is_settled(self) -> bool:
        """Check if nothing more is owed by the customer."""
        return self in {PaymentState.PAID, PaymentState.CREDIT_OWED}


class ShipmentState(str, Enum):
    """Order-level shipment state aggregated over the order's shipments.

    BACKORDER overrides the aggregation whenever any shipment is backordered.
    An order without shipments has no shipment state (None).
    """

    BACKORDER = "backorder"
    PENDING = "pending"
    READY = "ready"
    SHIPPED = "shipped"
    PARTIAL = "partial"
    CANCELED = "canceled"


class PaymentStatus(str, Enum):
    """Lifecycle state of a single payment record."""

    CHECKOUT = "checkout"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    VOID = "void"
    INVALID = "invalid"

    @property
    def is_valid(self) -> bool:
        """Check if the payment can still contribute to the order.

        Returns:
            False for FAILED and INVALID payments, True otherwise
        """
        return self not in {PaymentStatus.FAILED, PaymentStatus.INVALID}


class ShipmentStatus(str, Enum):
    """Lifecycle state of a single shipment record."""

    PENDING = "pending"
    READY = "ready"
    SHIPPED = "shipped"
    CANCELED = "canceled"


class AdjustmentKind(str, Enum):
    """Tagged classification of an adjustment.

    An adjustment carries exactly one kind, so an amount is counted as
    additional tax or as included tax, never both.
    """

    PROMOTION = "promotion"
    ADDITIONAL_TAX = "additional_tax"
    INCLUDED_TAX = "included_tax"
    MANUAL = "manual"
