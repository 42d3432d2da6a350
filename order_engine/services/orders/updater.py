"""Order updater recomputing derived totals and states.

This module implements the OrderUpdater class. Every derived field of an
order (item, shipment, adjustment, promotion, tax and payment totals, the
order total, payment_state and shipment_state) is recomputed from the order's
current line items, payments, shipments and adjustments. Nothing is
maintained incrementally, so running an update twice without touching the
collections yields the same result.
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import object_session

from order_engine.core.config import Settings, get_settings
from order_engine.core.logging import get_logger, log_performance, order_context
from order_engine.database.base import ZERO
from order_engine.database.models.order import Order
from order_engine.schemas.orders import OrderTotals
from order_engine.services.orders.adjustments import (
    recalculate_adjustments,
    sum_adjustments,
)
from order_engine.services.orders.enums import (
    AdjustmentKind,
    PaymentState,
    PaymentStatus,
    ShipmentState,
    ShipmentStatus,
)
from order_engine.services.orders.state_changes import (
    OrderStateChangeLog,
    StateChangeLog,
)
from order_engine.services.shipping.rates import ShippingRateEstimator

logger = get_logger(__name__)

CENT = Decimal("0.01")

UpdateHook = Callable[[Order], Any]

_UNSET: Any = object()


def _money(value: Any) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _state_value(value: Any) -> Optional[str]:
    if isinstance(value, Enum):
        return value.value
    return value


class OrderUpdater:
    """Recomputes the derived fields of one order on demand.

    The acting user is passed in explicitly and attached to every state
    change the updater records.

    Args:
        order: Order aggregate to reconcile
        user_id: Acting user, None for system updates
        state_log: State change collaborator, defaults to the order's own
            state_changes collection
        rate_estimator: Shipping-rate collaborator used when refreshing
            shipment rates, None keeps current rates
        hooks: Callables run with the order at the end of every update
        settings: Engine settings, defaults to the cached settings
    """

    def __init__(
        self,
        order: Order,
        *,
        user_id: Optional[uuid.UUID] = None,
        state_log: Optional[StateChangeLog] = None,
        rate_estimator: Optional[ShippingRateEstimator] = None,
        hooks: Iterable[UpdateHook] = (),
        settings: Optional[Settings] = None,
    ):
        self.order = order
        self.user_id = user_id
        self.state_log = state_log if state_log is not None else OrderStateChangeLog(order)
        self.rate_estimator = rate_estimator
        self.hooks: list[UpdateHook] = list(hooks)
        self.settings = settings or get_settings()

    def update(self) -> OrderTotals:
        """Recompute everything that applies to the order's lifecycle stage.

        Totals are always recomputed. Payment state, shipment state and the
        shipments themselves are only touched once the order is completed.

        Returns:
            Snapshot of the derived fields after the update
        """
        order = self.order
        with order_context(order.id, self.user_id), log_performance(
            logger,
            "order_update",
            slow_threshold_ms=self.settings.slow_update_threshold_ms,
            completed=order.completed,
        ):
            self.update_totals()

            if order.completed:
                self.update_payment_state()
                self.update_shipment_state()
                self.update_shipments()

            self.run_hooks()
            self.persist_totals()

        totals = self.totals()
        logger.info(
            "Order updated",
            order_id=str(order.id),
            total=str(totals.total),
            payment_state=_state_value(totals.payment_state),
            shipment_state=_state_value(totals.shipment_state),
        )
        return totals

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def update_totals(self) -> None:
        """Recompute all monetary totals in dependency order."""
        self.update_payment_total()
        self.update_item_total()
        self.update_shipment_total()
        self.update_adjustment_total()

    def update_item_total(self) -> None:
        order = self.order
        order.item_total = _money(
            sum((line_item.amount for line_item in order.line_items), ZERO)
        )
        order.item_count = sum(line_item.quantity for line_item in order.line_items)
        self.update_order_total()

    def update_shipment_total(self) -> None:
        order = self.order
        order.shipment_total = _money(
            sum((shipment.cost for shipment in order.shipments), ZERO)
        )
        self.update_order_total()

    def update_payment_total(self) -> None:
        """Sum the net amount of every counted payment.

        A payment counts when its state is one of the configured counted
        states; refunds issued against it are subtracted.
        """
        counted = set(self.settings.counted_payment_states)
        order = self.order
        order.payment_total = _money(
            sum(
                (
                    payment.net_amount
                    for payment in order.payments
                    if PaymentStatus(payment.state).value in counted
                ),
                ZERO,
            )
        )

    def update_adjustment_total(self) -> None:
        """Recalculate adjustments and roll them up onto the order.

        Included tax is already part of item prices, so it is reported in
        included_tax_total but never added to adjustment_total.
        """
        order = self.order
        recalculate_adjustments(order)

        adjustables = [*order.line_items, *order.shipments]

        order.adjustment_total = _money(
            sum((adjustable.adjustment_total for adjustable in adjustables), ZERO)
            + sum_adjustments(
                order.adjustments,
                AdjustmentKind.PROMOTION,
                AdjustmentKind.ADDITIONAL_TAX,
                AdjustmentKind.MANUAL,
            )
        )
        order.additional_tax_total = _money(
            sum((adjustable.additional_tax_total for adjustable in adjustables), ZERO)
            + sum_adjustments(order.adjustments, AdjustmentKind.ADDITIONAL_TAX)
        )
        order.included_tax_total = _money(
            sum((adjustable.included_tax_total for adjustable in adjustables), ZERO)
            + sum_adjustments(order.adjustments, AdjustmentKind.INCLUDED_TAX)
        )

        self.update_promo_total()
        self.update_order_total()

    def update_promo_total(self) -> None:
        order = self.order
        order.promo_total = _money(
            sum((line_item.promo_total for line_item in order.line_items), ZERO)
            + sum((shipment.promo_total for shipment in order.shipments), ZERO)
            + sum_adjustments(order.adjustments, AdjustmentKind.PROMOTION)
        )

    def update_order_total(self) -> None:
        order = self.order
        total = order.item_total + order.shipment_total + order.adjustment_total
        if not self.settings.adjustment_total_includes_additional_tax:
            total += order.additional_tax_total
        order.total = _money(total)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def update_shipment_state(self) -> Optional[ShipmentState]:
        """Aggregate the shipments' states into the order's shipment state.

        Returns:
            BACKORDER when any shipment is backordered, None without
            shipments, the common state when all shipments share one,
            PARTIAL otherwise
        """
        order = self.order
        last_state = order.shipment_state

        if order.backordered:
            new_state: Optional[ShipmentState] = ShipmentState.BACKORDER
        else:
            states = {ShipmentStatus(shipment.state) for shipment in order.shipments}
            if not states:
                new_state = None
            elif len(states) > 1:
                new_state = ShipmentState.PARTIAL
            else:
                new_state = ShipmentState(states.pop().value)

        order.shipment_state = new_state
        self.state_changed("shipment", previous_state=last_state)
        return new_state

    def update_payment_state(self) -> PaymentState:
        """Classify the order's payment state.

        Canceled orders are settled first and only end up CREDIT_OWED or
        VOID: a positive payment total backed by a completed payment is owed
        back, anything else is VOID. Otherwise a non-zero total with
        only failed or invalid payments is FAILED, a zero total is PAID,
        and the payment total is compared with the order total.

        Returns:
            The new payment state
        """
        order = self.order
        last_state = order.payment_state
        new_state = self._derive_payment_state()

        order.payment_state = new_state
        self.state_changed("payment", previous_state=last_state)
        return new_state

    def _derive_payment_state(self) -> PaymentState:
        order = self.order
        payment_total = order.payment_total
        total = order.total

        payments = list(order.payments)

        if order.canceled:
            if payment_total > ZERO and any(payment.is_completed for payment in payments):
                return PaymentState.CREDIT_OWED
            return PaymentState.VOID

        if payments and not any(payment.is_valid for payment in payments) and total > ZERO:
            return PaymentState.FAILED

        if total == ZERO:
            return PaymentState.PAID
        if payment_total > total:
            return PaymentState.CREDIT_OWED
        if payment_total < total:
            return PaymentState.BALANCE_DUE
        return PaymentState.PAID

    def state_changed(self, name: str, previous_state: Any = _UNSET) -> bool:
        """Record a transition of ``<name>_state`` with the state log.

        Without an explicit previous value, the value last loaded from or
        flushed to the database is used; transient orders have none.
        Nothing is recorded when the value did not move.

        Args:
            name: State family, e.g. "payment" or "shipment"
            previous_state: Value before the transition

        Returns:
            True if a state change was recorded

        Raises:
            ValueError: If the order has no such state field
        """
        order = self.order
        attribute = f"{name}_state"
        if not hasattr(order, attribute):
            raise ValueError(f"Order has no state named {name!r}")

        if previous_state is _UNSET:
            previous_state = self._persisted_value(attribute)

        previous = _state_value(previous_state)
        current = _state_value(getattr(order, attribute))
        if previous == current:
            return False

        self.state_log.create(
            previous_state=previous,
            next_state=current,
            name=name,
            user_id=self.user_id,
        )
        return True

    def _persisted_value(self, attribute: str) -> Any:
        history = inspect(self.order).attrs[attribute].history
        if history.deleted:
            return history.deleted[0]
        if history.unchanged:
            return history.unchanged[0]
        return None

    # ------------------------------------------------------------------
    # Shipments, hooks, persistence
    # ------------------------------------------------------------------

    def update_shipments(self) -> None:
        """Refresh rates, amounts and state of every shipment.

        Only completed orders propagate to their shipments. Errors raised
        while persisting a shipment propagate to the caller.
        """
        order = self.order
        if not order.completed:
            return

        for shipment in order.shipments:
            shipment.refresh_rates(self.rate_estimator)
            shipment.update_amounts()
            shipment.update(
                order,
                auto_capture_on_dispatch=self.settings.auto_capture_on_dispatch,
            )

    def run_hooks(self) -> None:
        for hook in self.hooks:
            hook(self.order)

    def persist_totals(self) -> None:
        """Flush the order through its session, if it is attached to one."""
        session = object_session(self.order)
        if session is not None:
            session.flush()

    def totals(self) -> OrderTotals:
        return OrderTotals.model_validate(self.order)


def get_order_updater(order: Order, **kwargs: Any) -> OrderUpdater:
    """Factory function to create an OrderUpdater.

    Args:
        order: Order aggregate to reconcile
        **kwargs: Keyword arguments forwarded to OrderUpdater

    Returns:
        OrderUpdater instance
    """
    return OrderUpdater(order, **kwargs)
