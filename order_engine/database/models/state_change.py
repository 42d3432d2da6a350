"""
State change model recording transitions of an order's derived states.
"""

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_engine.database.base import BaseModel

if TYPE_CHECKING:
    from order_engine.database.models.order import Order


class StateChange(BaseModel):
    """
    One transition of an order state field.

    Attributes:
        name: State family, e.g. "payment" or "shipment"
        previous_state: Value before the transition, None if unset
        next_state: Value after the transition
        user_id: Acting user, None for system updates
    """

    __tablename__ = "state_changes"

    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(32), nullable=False)

    previous_state: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    next_state: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        comment="Acting user, None for system updates",
    )

    order: Mapped[Optional["Order"]] = relationship(
        "Order",
        back_populates="state_changes",
    )

    __table_args__ = (
        Index("ix_state_changes_order_name", "order_id", "name"),
    )

    def __repr__(self) -> str:
        return (
            f"<StateChange(name={self.name!r}, "
            f"{self.previous_state!r} -> {self.next_state!r})>"
        )
