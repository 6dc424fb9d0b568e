"""
Tests for the driver dashboard endpoints under /v1/drivers.
"""
import pytest

from fleetcheck.main import app
from fleetcheck.services.record_store import get_record_store
from tests.conftest import DRIVER_ID, FakeRecordStore


@pytest.fixture
def broken_store():
    """Record store whose every query fails."""
    error = RuntimeError("connection refused")
    store = FakeRecordStore(
        current=error,
        trips=error,
        history=error,
        results=error,
        profile=error,
        certifications=error,
    )
    app.dependency_overrides[get_record_store] = lambda: store
    return store


class TestTestHistoryEndpoint:
    async def test_unified_history(self, async_client, driver_records):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/test-history")

        assert response.status_code == 200
        data = response.json()
        assert data["driver_id"] == DRIVER_ID
        assert [r["id"] for r in data["records"]] == [
            "attempt-2",
            "attempt-1",
            "shared-1",
            "history-2",
            "trip-1",
            "result-1",
        ]
        assert data["failed_sources"] == []
        assert data["rejected_records"] == 0
        assert data["degraded"] is False

    async def test_metrics(self, async_client, driver_records):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/test-history")

        # Completed: attempt-1, trip-1, history-2, result-1; history-2 scored 70
        assert response.json()["metrics"] == {
            "total": 6,
            "completed": 4,
            "pending": 1,
            "failed": 0,
            "success_rate": 75,
        }

    async def test_record_fields(self, async_client, driver_records):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/test-history")
        records = {r["id"]: r for r in response.json()["records"]}

        shared = records["shared-1"]
        assert shared["source"] == "trips"
        assert shared["category"] == "Pre-Trip Inspection"
        assert shared["status"] == "pending"
        assert shared["completed_at"] is None

        attempt = records["attempt-1"]
        assert attempt["source"] == "current"
        assert attempt["passed"] is True
        assert attempt["answers"] == ["a", "b"]

        assert records["history-2"]["category"] == "Safety Test"
        assert records["history-2"]["passed"] is False
        assert records["result-1"]["score"] == 81.0
        assert records["result-1"]["passed"] is True

    async def test_unknown_driver_has_empty_history(self, async_client, driver_records):
        response = await async_client.get("/v1/drivers/nobody/test-history")

        assert response.status_code == 200
        data = response.json()
        assert data["records"] == []
        assert data["metrics"]["total"] == 0
        assert data["metrics"]["success_rate"] == 0
        assert data["degraded"] is False

    async def test_total_outage_degrades_to_empty_list(self, async_client, broken_store):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/test-history")

        assert response.status_code == 200
        data = response.json()
        assert data["records"] == []
        assert data["degraded"] is True
        assert data["failed_sources"] == ["current", "trips", "history", "results"]
        assert data["metrics"] == {
            "total": 0,
            "completed": 0,
            "pending": 0,
            "failed": 0,
            "success_rate": 0,
        }


class TestSafetySummaryEndpoint:
    async def test_summary_from_trips(self, async_client, driver_records):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/safety-summary")

        assert response.status_code == 200
        data = response.json()
        assert data["total_inspections"] == 2
        assert data["completed_inspections"] == 1
        assert data["pending_inspections"] == 1
        assert data["approval_rate"] == 50
        assert data["risk_distribution"] == {
            "low": 1,
            "medium": 0,
            "high": 1,
            "critical": 0,
        }
        assert data["last_risk_level"] == "high"
        assert data["last_inspection_date"].startswith("2024-02-10")

    async def test_failure_returns_zero_summary(self, async_client, broken_store):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/safety-summary")

        assert response.status_code == 200
        data = response.json()
        assert data["total_inspections"] == 0
        assert data["approval_rate"] == 0
        assert data["last_inspection_date"] is None


class TestComplianceEndpoint:
    async def test_compliant_driver(self, async_client, driver_profile):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/compliance")

        assert response.status_code == 200
        assert response.json() == {"compliant": True, "issues": []}

    async def test_lookup_failure_is_non_compliant(self, async_client, broken_store):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/compliance")

        assert response.status_code == 200
        assert response.json() == {
            "compliant": False,
            "issues": ["Unable to verify compliance"],
        }


class TestSchedulesEndpoint:
    async def test_upcoming_shifts_in_order(self, async_client, driver_profile):
        response = await async_client.get(f"/v1/drivers/{DRIVER_ID}/schedules")

        assert response.status_code == 200
        data = response.json()
        assert [s["id"] for s in data] == ["shift-1", "shift-2"]
        assert data[0]["route_name"] == "Route A"
        assert data[0]["status"] == "scheduled"

    async def test_no_shifts(self, async_client, driver_profile):
        response = await async_client.get("/v1/drivers/nobody/schedules")

        assert response.status_code == 200
        assert response.json() == []
