"""State change log for derived order states.

The updater reports transitions of payment_state and shipment_state to a
log collaborator. OrderStateChangeLog records them as StateChange rows on the
order; any object with a compatible ``create`` method can be used instead.
"""

import uuid
from typing import Any, Optional, Protocol

from order_engine.core.logging import get_logger
from order_engine.database.models.order import Order
from order_engine.database.models.state_change import StateChange

logger = get_logger(__name__)


class StateChangeLog(Protocol):
    def create(
        self,
        *,
        previous_state: Optional[str],
        next_state: Optional[str],
        name: str,
        user_id: Optional[uuid.UUID],
    ) -> Any:
        ...


class OrderStateChangeLog:
    """Appends StateChange records to an order's state_changes."""

    def __init__(self, order: Order):
        self.order = order

    def create(
        self,
        *,
        previous_state: Optional[str],
        next_state: Optional[str],
        name: str,
        user_id: Optional[uuid.UUID],
    ) -> StateChange:
        """
        Record one state transition.

        Args:
            previous_state: Value before the transition
            next_state: Value after the transition
            name: State family, e.g. "payment"
            user_id: Acting user, None for system updates

        Returns:
            The new StateChange, appended to the order
        """
        state_change = StateChange(
            name=name,
            previous_state=previous_state,
            next_state=next_state,
            user_id=user_id,
        )
        self.order.state_changes.append(state_change)

        logger.info(
            "Order state changed",
            order_id=str(self.order.id),
            name=name,
            previous_state=previous_state,
            next_state=next_state,
        )
        return state_change
