"""
Test suite for engine settings.
"""

import pytest
from pydantic import ValidationError

from order_engine.core.config import Settings, get_settings


class TestSettingsDefaults:
    """Test default policies."""

    def test_defaults(self, settings) -> None:
        assert settings.counted_payment_states == ["completed"]
        assert settings.adjustment_total_includes_additional_tax is True
        assert settings.auto_capture_on_dispatch is False
        assert settings.slow_update_threshold_ms == 500.0
        assert settings.is_development
        assert not settings.is_production

    def test_environment_override(self, monkeypatch) -> None:
        monkeypatch.setenv("ORDER_ENGINE_ENVIRONMENT", "production")
        monkeypatch.setenv("ORDER_ENGINE_AUTO_CAPTURE_ON_DISPATCH", "true")

        settings = Settings(_env_file=None)

        assert settings.is_production
        assert settings.auto_capture_on_dispatch is True


class TestCountedPaymentStates:
    """Test validation of the counted payment states."""

    def test_comma_separated_string(self) -> None:
        settings = Settings(_env_file=None, counted_payment_states="Completed, pending")

        assert settings.counted_payment_states == ["completed", "pending"]

    def test_unknown_state_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, counted_payment_states=["completed", "settled"])

        assert "settled" in str(exc_info.value)

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, counted_payment_states=[])

    def test_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, slow_update_threshold_ms=0)


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
