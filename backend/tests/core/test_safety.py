"""
Tests for the driver safety summary.
"""
import logging
from unittest.mock import MagicMock, patch

from fleetcheck.core.safety import SafetySummary, build_safety_summary, get_safety_summary
from tests.conftest import utc


def trip(status, risk_level=None, created_at=None):
    return {"status": status, "risk_level": risk_level, "created_at": created_at}


class TestBuildSafetySummary:
    def test_empty_trips(self):
        summary = build_safety_summary([])

        assert summary.total_inspections == 0
        assert summary.approval_rate == 0
        assert summary.risk_distribution == {
            "low": 0,
            "medium": 0,
            "high": 0,
            "critical": 0,
        }
        assert summary.last_inspection_date is None
        assert summary.last_risk_level is None

    def test_counts_and_rates(self):
        trips = [
            trip("approved", "low", utc(2024, 1, 1)),
            trip("approved", "medium", utc(2024, 1, 5)),
            trip("pending", "high", utc(2024, 2, 1)),
            trip("under_review", "critical", utc(2024, 1, 20)),
            trip("rejected", "low", utc(2023, 12, 1)),
            trip("submitted", None, utc(2023, 11, 1)),
        ]

        summary = build_safety_summary(trips)

        assert summary.total_inspections == 6
        assert summary.completed_inspections == 2
        assert summary.pending_inspections == 2
        assert summary.approval_rate == 33
        assert summary.risk_distribution == {
            "low": 2,
            "medium": 1,
            "high": 1,
            "critical": 1,
        }

    def test_last_inspection_is_most_recent(self):
        """The latest trip is found by created_at, not input order."""
        trips = [
            trip("approved", "low", utc(2024, 1, 1)),
            trip("pending", "high", "2024-03-01T08:00:00Z"),
            trip("approved", "medium", utc(2024, 2, 1)),
        ]

        summary = build_safety_summary(trips)

        assert summary.last_inspection_date == utc(2024, 3, 1, 8)
        assert summary.last_risk_level == "high"

    def test_approval_rate_rounds_half_up(self):
        trips = [trip("approved")] + [trip("rejected")] * 7
        assert build_safety_summary(trips).approval_rate == 13


class TestGetSafetySummary:
    async def test_loads_trips_from_store(self, fake_store_factory):
        store = fake_store_factory(trips=[trip("approved", "low", utc(2024, 1, 1))])

        summary = await get_safety_summary(store, "driver-1")

        assert summary.total_inspections == 1
        assert summary.approval_rate == 100

    async def test_failure_degrades_to_zeroed_summary(self, fake_store_factory):
        store = fake_store_factory(trips=RuntimeError("trips unavailable"))
        mock_logger = MagicMock(spec=logging.Logger)

        with patch("fleetcheck.core.safety.logger", mock_logger):
            summary = await get_safety_summary(store, "driver-1")

        assert summary == SafetySummary()
        mock_logger.log.assert_called_once()
        assert "build safety summary" in mock_logger.log.call_args[0][1]
