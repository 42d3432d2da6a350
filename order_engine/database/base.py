"""
SQLAlchemy declarative base and common model mixins.

This module provides the SQLAlchemy DeclarativeBase, mixins for UUID primary
keys and timestamps, and a base model that applies column defaults at
construction time so that transient aggregates can be reconciled in memory
before they are ever flushed.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

ZERO = Decimal("0.00")


class Base(DeclarativeBase):
    """
    Base class for all order engine models.

    Provides common functionality for all mapped models including
    dictionary serialization and a readable representation.
    """

    def to_dict(self, exclude: Optional[set[str]] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: Set of attribute names to exclude from output

        Returns:
            Dictionary representation of the model
        """
        exclude = exclude or set()
        result = {}

        for column in self.__table__.columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                result[column.name] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                result[column.name] = str(value)
            else:
                result[column.name] = value

        return result

    def __repr__(self) -> str:
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.name, None)
            if value is not None:
                pk_values.append(f"{column.name}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "transient"
        return f"<{self.__class__.__name__}({pk_str})>"


class TimestampMixin:
    """
    Mixin for automatic timestamp management.

    Adds created_at and updated_at columns managed by the database.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            comment="Timestamp when record was created",
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
            comment="Timestamp when record was last updated",
        )


class UUIDMixin:
    """
    Mixin for UUID primary key.

    Uses the generic Uuid type so that the schema works on any dialect.
    """

    @declared_attr
    def id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid(as_uuid=True),
            primary_key=True,
            default=uuid.uuid4,
            nullable=False,
            comment="Unique identifier for the record",
        )


class BaseModel(Base, UUIDMixin, TimestampMixin):
    """
    Base model with UUID primary key, timestamps and construction defaults.

    Column defaults are only applied by SQLAlchemy at flush time. Models
    list the attributes that must hold a value from the moment they are
    constructed in ``__transient_defaults__``; callables are invoked per
    instance.

    Example:
        class LineItem(BaseModel):
            __tablename__ = "line_items"
            __transient_defaults__ = {"quantity": 1, "price": ZERO}
    """

    __abstract__ = True
    __transient_defaults__: ClassVar[Dict[str, Any]] = {}

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("id", uuid.uuid4())
        for key, default in self.__transient_defaults__.items():
            if key not in kwargs:
                kwargs[key] = default() if callable(default) else default
        super().__init__(**kwargs)
