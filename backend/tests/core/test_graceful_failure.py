"""
Tests for the graceful_failure context manager and decorator.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from fleetcheck.core.graceful_failure import (
    GracefulFailureDecorator,
    graceful_failure,
    graceful_failure_decorator,
)


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


class TestGracefulFailureContextManager:
    """Tests for the graceful_failure context manager."""

    def test_no_exception_logs_nothing(self, mock_logger):
        rows = []

        with graceful_failure("fetch trips records", mock_logger):
            rows.append({"id": "t1"})

        assert rows == [{"id": "t1"}]
        mock_logger.log.assert_not_called()

    def test_exception_is_logged_and_swallowed(self, mock_logger):
        with graceful_failure("fetch trips records", mock_logger):
            raise RuntimeError("relation \"trips\" does not exist")

        mock_logger.log.assert_called_once()
        level, message = mock_logger.log.call_args[0]
        assert level == logging.WARNING
        assert message.startswith("Failed to fetch trips records: ")
        assert "does not exist" in message
        assert mock_logger.log.call_args[1]["exc_info"] is False

    def test_custom_log_level_and_exc_info(self, mock_logger):
        with graceful_failure(
            "build safety summary", mock_logger, log_level=logging.ERROR, exc_info=True
        ):
            raise ValueError("bad row")

        assert mock_logger.log.call_args[0][0] == logging.ERROR
        assert mock_logger.log.call_args[1]["exc_info"] is True

    def test_context_in_log_message(self, mock_logger):
        with graceful_failure(
            "fetch history records",
            mock_logger,
            context={"subject_id": "driver-1", "source": "history"},
        ):
            raise RuntimeError("timeout")

        message = mock_logger.log.call_args[0][1]
        assert (
            message
            == "Failed to fetch history records (subject_id=driver-1, source=history): timeout"
        )
        assert mock_logger.log.call_args[1]["extra"] == {
            "subject_id": "driver-1",
            "source": "history",
        }

    def test_value_assigned_before_failure_is_kept(self, mock_logger):
        rows = None
        with graceful_failure("fetch results records", mock_logger):
            rows = []
            raise RuntimeError("late failure")

        assert rows == []

    def test_value_not_assigned_when_failure_comes_first(self, mock_logger):
        rows = None
        with graceful_failure("fetch results records", mock_logger):
            raise RuntimeError("early failure")
            rows = []  # noqa: F841

        assert rows is None

    async def test_wraps_awaited_calls(self, mock_logger):
        async def failing_query():
            raise ConnectionError("connection refused")

        result = "unset"
        with graceful_failure("fetch current records", mock_logger):
            result = await failing_query()

        assert result == "unset"
        assert "connection refused" in mock_logger.log.call_args[0][1]

    def test_absorbed_failure_is_counted(self, mock_logger):
        with patch("fleetcheck.core.graceful_failure.metrics") as mock_metrics:
            with graceful_failure("fetch trips records", mock_logger):
                raise RuntimeError("down")

        mock_metrics.record_error.assert_called_once_with(error_type="GracefulFailure")

    def test_success_is_not_counted(self, mock_logger):
        with patch("fleetcheck.core.graceful_failure.metrics") as mock_metrics:
            with graceful_failure("fetch trips records", mock_logger):
                pass

        mock_metrics.record_error.assert_not_called()

    def test_base_exceptions_propagate(self, mock_logger):
        with pytest.raises(KeyboardInterrupt):
            with graceful_failure("fetch trips records", mock_logger):
                raise KeyboardInterrupt


class TestGracefulFailureDecorator:
    """Tests for GracefulFailureDecorator."""

    def test_sync_function_success(self, mock_logger):
        @graceful_failure_decorator("count rows", logger=mock_logger)
        def count_rows(rows):
            return len(rows)

        assert count_rows([1, 2, 3]) == 3
        mock_logger.log.assert_not_called()

    def test_sync_function_returns_default_on_error(self, mock_logger):
        @graceful_failure_decorator("count rows", logger=mock_logger, default=0)
        def count_rows(rows):
            return len(rows)

        assert count_rows(None) == 0
        mock_logger.log.assert_called_once()

    async def test_coroutine_function_success(self, mock_logger):
        @graceful_failure_decorator("load upcoming schedules", logger=mock_logger)
        async def load(driver_id):
            return [{"driver_id": driver_id}]

        assert await load("driver-1") == [{"driver_id": "driver-1"}]
        mock_logger.log.assert_not_called()

    async def test_coroutine_function_returns_default_on_error(self, mock_logger):
        @graceful_failure_decorator(
            "load upcoming schedules", logger=mock_logger, default=()
        )
        async def load(driver_id):
            raise RuntimeError("schedules unavailable")

        assert await load("driver-1") == ()
        assert "load upcoming schedules" in mock_logger.log.call_args[0][1]

    def test_uses_module_logger_when_not_provided(self, monkeypatch):
        module_logger = MagicMock(spec=logging.Logger)
        monkeypatch.setattr(logging, "getLogger", lambda name=None: module_logger)

        @graceful_failure_decorator("parse row")
        def parse(row):
            raise KeyError("id")

        assert parse({}) is None
        module_logger.log.assert_called_once()

    def test_preserves_function_metadata(self):
        @graceful_failure_decorator("load")
        async def load_upcoming(driver_id):
            """Load shifts."""

        assert load_upcoming.__name__ == "load_upcoming"
        assert load_upcoming.__doc__ == "Load shifts."

    def test_alias(self):
        assert graceful_failure_decorator is GracefulFailureDecorator
