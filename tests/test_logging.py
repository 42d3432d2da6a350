"""
Test suite for structured logging helpers.
"""

from unittest.mock import Mock, patch

import pytest
import structlog

from order_engine.core import logging as engine_logging
from order_engine.core.logging import (
    PerformanceLogger,
    configure_logging,
    get_logger,
    log_performance,
    order_context,
)


class TestConfigureLogging:
    """Test renderer selection per environment."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_development_uses_console_renderer(self, settings) -> None:
        with patch.object(engine_logging, "get_settings", return_value=settings):
            configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_production_uses_json_renderer(self) -> None:
        settings = Mock(is_development=False, log_level="INFO")
        with patch.object(engine_logging, "get_settings", return_value=settings):
            configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_get_logger(self) -> None:
        assert get_logger(__name__) is not None


class TestOrderContext:
    """Test binding order correlation fields."""

    def test_binds_and_unbinds(self) -> None:
        with order_context("order-1", user_id="user-9"):
            context = structlog.contextvars.get_contextvars()
            assert context["order_id"] == "order-1"
            assert context["user_id"] == "user-9"

        context = structlog.contextvars.get_contextvars()
        assert "order_id" not in context
        assert "user_id" not in context

    def test_without_user(self) -> None:
        with order_context("order-2"):
            assert "user_id" not in structlog.contextvars.get_contextvars()


class TestPerformanceLogger:
    """Test duration logging around a block."""

    def test_fast_operation_logs_debug(self) -> None:
        logger = Mock()

        with log_performance(logger, "order_update", slow_threshold_ms=10_000):
            pass

        logger.warning.assert_not_called()
        assert logger.debug.call_count == 2
        assert logger.debug.call_args.kwargs["operation"] == "order_update"

    def test_slow_operation_logs_warning(self) -> None:
        logger = Mock()

        with patch.object(engine_logging.time, "perf_counter", side_effect=[0.0, 2.0]):
            with PerformanceLogger(logger, "order_update", slow_threshold_ms=100):
                pass

        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["duration_ms"] == 2000.0

    def test_failure_logs_error_and_propagates(self) -> None:
        logger = Mock()

        with pytest.raises(RuntimeError):
            with PerformanceLogger(logger, "order_update", slow_threshold_ms=100, order="R1"):
                raise RuntimeError("boom")

        logger.error.assert_called_once()
        assert logger.error.call_args.kwargs["error_type"] == "RuntimeError"
        assert logger.error.call_args.kwargs["order"] == "R1"
