"""
Order engine configuration management with environment variables.

This module provides centralized configuration using Pydantic BaseSettings
for type-safe environment variable handling of the policies that shape order
totals and state reconciliation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Payment record states a host application may count towards payment_total.
KNOWN_PAYMENT_STATES = frozenset(
    {"checkout", "pending", "processing", "completed", "failed", "void", "invalid"}
)


class Settings(BaseSettings):
    """
    Order engine settings with environment variable support.

    All settings can be overridden via environment variables with the
    ORDER_ENGINE_ prefix (e.g., ORDER_ENGINE_LOG_LEVEL).
    """

    model_config = SettingsConfigDict(
        env_prefix="ORDER_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Engine logging level",
    )

    # Environment Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Totals Policy
    counted_payment_states: list[str] = Field(
        default=["completed"],
        description="Payment states whose net amount counts towards payment_total",
    )

    adjustment_total_includes_additional_tax: bool = Field(
        default=True,
        description=(
            "Whether adjustment_total already carries additional tax. When "
            "disabled, additional_tax_total is added to the order total separately"
        ),
    )

    # Shipment Policy
    auto_capture_on_dispatch: bool = Field(
        default=False,
        description="Mark shipments ready before the order is paid",
    )

    # Performance Logging
    slow_update_threshold_ms: float = Field(
        default=500.0,
        gt=0,
        description="Order updates slower than this are logged as warnings",
    )

    @field_validator("counted_payment_states", mode="before")
    @classmethod
    def parse_counted_payment_states(cls, v) -> list[str]:
        """
        Parse counted payment states from string or list.

        Args:
            v: Counted states value (comma separated string or list)

        Returns:
            List of lower-cased payment state names

        Raises:
            ValueError: If a state is not a known payment state
        """
        if isinstance(v, str):
            v = [state.strip() for state in v.split(",") if state.strip()]
        states = [state.lower() for state in v]
        unknown = sorted(set(states) - KNOWN_PAYMENT_STATES)
        if unknown:
            raise ValueError(f"Unknown payment states: {', '.join(unknown)}")
        if not states:
            raise ValueError("At least one payment state must be counted")
        return states

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached engine settings instance.

    Returns:
        Settings: Engine settings instance
    """
    return Settings()
