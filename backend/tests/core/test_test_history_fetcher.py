"""
Tests for the record fetcher and the test history service.
"""
import asyncio
import logging
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from fleetcheck.core.db_error_handling import DatabaseOperationError
from fleetcheck.core.test_history import (
    HistoryUnavailableError,
    RecordFetcher,
    RecordSource,
    TestHistory,
    TestHistoryService,
)
from fleetcheck.models import TestStatus
from tests.conftest import utc


def current_row(record_id, started_at, **overrides):
    row = {
        "id": record_id,
        "user_id": "driver-1",
        "test_type": "Safety Test",
        "status": "completed",
        "started_at": started_at,
        "completed_at": started_at,
        "score": 90,
        "pass": True,
        "answers": [],
        "progress": 100,
    }
    row.update(overrides)
    return row


def trip_row(record_id, created_at, status="approved", **overrides):
    row = {
        "id": record_id,
        "user_id": "driver-1",
        "status": status,
        "aggregate_score": 85,
        "risk_level": "low",
        "created_at": created_at,
        "updated_at": created_at,
    }
    row.update(overrides)
    return row


def history_row(record_id, created_at, final_score=90):
    return {
        "id": record_id,
        "driver_id": "driver-1",
        "test_type": "Safety Test",
        "status": None,
        "created_at": created_at,
        "completed_at": created_at,
        "final_score": final_score,
    }


def result_row(record_id, created_at, score=90):
    return {
        "id": record_id,
        "driver_id": "driver-1",
        "test_type": "Defensive Driving",
        "status": "completed",
        "created_at": created_at,
        "started_at": None,
        "completed_at": created_at,
        "score": score,
        "percentage": None,
    }


class TestRecordFetcher:
    """Tests for RecordFetcher failure isolation."""

    async def test_fetches_all_sources(self, fake_store_factory):
        store = fake_store_factory(
            current=[current_row("a", utc(2024, 3, 1))],
            trips=[trip_row("b", utc(2024, 1, 1))],
        )

        result = await RecordFetcher(store).fetch("driver-1")

        assert result.failed_sources == []
        assert set(result.rows) == set(RecordSource)
        assert [row["id"] for row in result.rows_for(RecordSource.CURRENT)] == ["a"]
        assert result.rows_for(RecordSource.HISTORY) == []

    async def test_failing_source_contributes_nothing(self, fake_store_factory):
        store = fake_store_factory(
            current=[current_row("a", utc(2024, 3, 1))],
            trips=OperationalError("SELECT", {}, Exception("no such table: trips")),
            history=[history_row("h", utc(2024, 2, 1))],
        )

        result = await RecordFetcher(store).fetch("driver-1")

        assert result.failed_sources == [RecordSource.TRIPS]
        assert RecordSource.TRIPS not in result.rows
        assert result.rows_for(RecordSource.TRIPS) == []

    async def test_failing_source_is_logged(self, fake_store_factory):
        store = fake_store_factory(trips=RuntimeError("connection reset"))
        mock_logger = MagicMock(spec=logging.Logger)

        with patch("fleetcheck.core.test_history.fetcher.logger", mock_logger):
            await RecordFetcher(store).fetch("driver-1")

        mock_logger.log.assert_called_once()
        level, message = mock_logger.log.call_args[0][:2]
        assert level == logging.WARNING
        assert "fetch trips records" in message
        assert "connection reset" in message

    async def test_each_failing_source_is_counted(self, fake_store_factory):
        store = fake_store_factory(
            trips=RuntimeError("connection reset"),
            results=RuntimeError("no such table: test_results"),
        )

        with patch("fleetcheck.core.graceful_failure.metrics") as mock_metrics:
            await RecordFetcher(store).fetch("driver-1")

        assert mock_metrics.record_error.call_count == 2
        mock_metrics.record_error.assert_called_with(error_type="GracefulFailure")

    async def test_all_sources_failing_raises(self, fake_store_factory):
        error = RuntimeError("database unreachable")
        store = fake_store_factory(
            current=error, trips=error, history=error, results=error
        )

        with pytest.raises(HistoryUnavailableError) as exc_info:
            await RecordFetcher(store).fetch("driver-1")

        assert isinstance(exc_info.value, DatabaseOperationError)
        assert exc_info.value.failed_sources == list(RecordSource)
        assert exc_info.value.subject_id == "driver-1"

    async def test_none_result_is_treated_as_empty(self, fake_store_factory):
        store = fake_store_factory(results=None)

        result = await RecordFetcher(store).fetch("driver-1")

        assert result.rows_for(RecordSource.RESULTS) == []
        assert result.failed_sources == []

    async def test_sources_are_fetched_concurrently(self):
        """All four queries are in flight before any of them completes."""
        in_flight = 0
        peak = 0

        async def slow_query(subject_id):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return []

        store = MagicMock()
        store.fetch_current_attempts = slow_query
        store.fetch_trips = slow_query
        store.fetch_history = slow_query
        store.fetch_results = slow_query

        await RecordFetcher(store).fetch("driver-1")

        assert peak == 4


class TestTestHistoryService:
    """Tests for TestHistoryService end to end over a fake store."""

    async def test_trip_source_failure_keeps_other_records(self, fake_store_factory):
        """Trips throwing leaves only non-trip records and raises nothing."""
        store = fake_store_factory(
            current=[current_row("a", utc(2024, 3, 1))],
            trips=RuntimeError("trips table missing"),
            history=[history_row("h", utc(2024, 2, 1))],
            results=[result_row("r", utc(2024, 1, 1))],
        )

        history = await TestHistoryService(store).get_history("driver-1")

        assert [r.id for r in history.records] == ["a", "h", "r"]
        assert all(r.source != RecordSource.TRIPS for r in history.records)
        assert history.failed_sources == [RecordSource.TRIPS]
        assert history.degraded is False
        assert history.metrics.total == 3

    async def test_duplicates_resolved_by_precedence(self, fake_store_factory):
        store = fake_store_factory(
            trips=[trip_row("dup", utc(2024, 1, 1), status="submitted")],
            history=[history_row("dup", utc(2023, 1, 1), final_score=99)],
        )

        history = await TestHistoryService(store).get_history("driver-1")

        assert len(history.records) == 1
        assert history.records[0].source == RecordSource.TRIPS
        assert history.records[0].status == TestStatus.PENDING

    async def test_malformed_rows_are_counted_not_raised(self, fake_store_factory):
        store = fake_store_factory(
            history=[
                history_row("ok", utc(2024, 1, 1)),
                history_row("bad", None),
            ],
            results=[result_row("also-bad", "yesterday")],
        )

        history = await TestHistoryService(store).get_history("driver-1")

        assert [r.id for r in history.records] == ["ok"]
        assert history.rejected_records == 2

    async def test_every_record_is_returned(self, fake_store_factory):
        base = utc(2024, 1, 1)
        store = fake_store_factory(
            history=[
                history_row(f"h{i}", base + timedelta(minutes=i)) for i in range(600)
            ],
        )

        history = await TestHistoryService(store).get_history("driver-1")

        assert len(history.records) == 600
        assert history.metrics.total == 600
        assert history.records[0].id == "h599"
        assert history.records[-1].id == "h0"

    async def test_history_metrics_are_recorded(self, fake_store_factory):
        store = fake_store_factory(
            trips=RuntimeError("down"),
            history=[history_row("h1", utc(2024, 1, 1)), history_row("bad", None)],
        )

        with patch(
            "fleetcheck.core.test_history.service.app_metrics"
        ) as mock_metrics:
            await TestHistoryService(store).get_history("driver-1")

        mock_metrics.record_test_history.assert_called_once_with(
            record_count=1, rejected_count=1, failed_sources=["trips"]
        )

    async def test_total_failure_propagates(self, fake_store_factory):
        error = RuntimeError("down")
        store = fake_store_factory(
            current=error, trips=error, history=error, results=error
        )

        with pytest.raises(HistoryUnavailableError):
            await TestHistoryService(store).get_history("driver-1")

    def test_unavailable_history_is_empty_and_degraded(self):
        history = TestHistory.unavailable("driver-1")

        assert history.records == []
        assert history.metrics.total == 0
        assert history.metrics.success_rate == 0
        assert history.degraded is True
        assert history.failed_sources == list(RecordSource)
