"""
Pytest configuration and shared fixtures for testing.
"""
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fleetcheck.main import app
from fleetcheck.models import (
    Base,
    Certification,
    DriverProfile,
    LegacyTestResult,
    Schedule,
    TestAttempt,
    TestHistoryEntry,
    Trip,
    get_db,
)
from fleetcheck.services.record_store import SqlRecordStore, get_record_store


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Skips disposing of the production engine when a test client shuts down.
    """
    yield


# Neutralize the production lifespan on the singleton app.
app.router.lifespan_context = _test_lifespan


# SQLite file database, relative to this file so the .db lands inside tests/
# regardless of the working directory. A file (not :memory:) lets the record
# store's per-query sessions see data committed by fixtures.
_TEST_DB = Path(__file__).parent / "test.db"
ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)

DRIVER_ID = "driver-1"


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    """Shorthand for a timezone-aware UTC datetime."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


class FakeRecordStore:
    """
    In-memory RecordStore double.

    Each source returns the rows it was given; a source mapped to an
    exception instance raises it instead.
    """

    def __init__(
        self,
        current: Any = (),
        trips: Any = (),
        history: Any = (),
        results: Any = (),
        profile: Any = None,
        certifications: Any = (),
    ):
        self.sources: Dict[str, Any] = {
            "current": current,
            "trips": trips,
            "history": history,
            "results": results,
            "profile": profile,
            "certifications": certifications,
        }
        self.calls: List[str] = []

    def _rows(self, name: str) -> Any:
        self.calls.append(name)
        value = self.sources[name]
        if isinstance(value, Exception):
            raise value
        return list(value) if isinstance(value, (list, tuple)) else value

    async def fetch_current_attempts(self, subject_id: str) -> List[Dict[str, Any]]:
        return self._rows("current")

    async def fetch_trips(self, subject_id: str) -> List[Dict[str, Any]]:
        return self._rows("trips")

    async def fetch_history(self, subject_id: str) -> List[Dict[str, Any]]:
        return self._rows("history")

    async def fetch_results(self, subject_id: str) -> List[Dict[str, Any]]:
        return self._rows("results")

    async def fetch_profile(self, driver_id: str) -> Optional[Dict[str, Any]]:
        return self._rows("profile")

    async def fetch_certifications(self, driver_id: str) -> List[Dict[str, Any]]:
        return self._rows("certifications")


@pytest.fixture
def fake_store_factory() -> Callable[..., FakeRecordStore]:
    """Build FakeRecordStore instances with per-source rows or errors."""
    return FakeRecordStore


@pytest.fixture(scope="function")
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def record_store(async_db_session: AsyncSession) -> SqlRecordStore:
    """Record store over the test database (tables created by async_db_session)."""
    return SqlRecordStore(AsyncTestingSessionLocal)


@pytest.fixture(scope="function")
async def async_client(
    async_db_session: AsyncSession,
    record_store: SqlRecordStore,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client with database and record store overrides.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_record_store] = lambda: record_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_record_store, None)


@pytest.fixture
async def driver_records(async_db_session: AsyncSession) -> Dict[str, Any]:
    """
    Seed one driver's records across all four history sources.

    Contains a duplicate id ("shared-1") present in both trips and history;
    the trip version has precedence.
    """
    attempt = TestAttempt(
        id="attempt-1",
        user_id=DRIVER_ID,
        test_type="Safety Test",
        status="completed",
        started_at=utc(2024, 3, 1, 9),
        completed_at=utc(2024, 3, 1, 10),
        score=92.0,
        passed=True,
        answers=["a", "b"],
        progress=100,
    )
    in_progress = TestAttempt(
        id="attempt-2",
        user_id=DRIVER_ID,
        test_type="Hazmat Test",
        status="in_progress",
        started_at=utc(2024, 3, 5, 9),
        answers=["c"],
        progress=40,
    )
    approved_trip = Trip(
        id="trip-1",
        user_id=DRIVER_ID,
        status="approved",
        aggregate_score=85.0,
        risk_level="low",
        created_at=utc(2024, 1, 1),
        updated_at=utc(2024, 1, 2),
    )
    legacy_trip = Trip(
        id="shared-1",
        driver_id=DRIVER_ID,
        status="under_review",
        risk_level="high",
        created_at=utc(2024, 2, 10),
    )
    history = TestHistoryEntry(
        id="shared-1",
        driver_id=DRIVER_ID,
        test_type="Safety Test",
        created_at=utc(2023, 6, 1),
        completed_at=utc(2023, 6, 1, 1),
        final_score=95.0,
    )
    failed_history = TestHistoryEntry(
        id="history-2",
        driver_id=DRIVER_ID,
        test_type=None,
        created_at=utc(2024, 1, 15),
        completed_at=utc(2024, 2, 1),
        final_score=70.0,
    )
    result = LegacyTestResult(
        id="result-1",
        driver_id=DRIVER_ID,
        test_type="Defensive Driving",
        status="completed",
        created_at=None,
        started_at=utc(2023, 12, 1),
        completed_at=utc(2023, 12, 1, 2),
        score=None,
        percentage=81.0,
    )
    other_driver = TestHistoryEntry(
        id="history-other",
        driver_id="driver-2",
        created_at=utc(2024, 1, 1),
        final_score=99.0,
    )

    async_db_session.add_all(
        [
            attempt,
            in_progress,
            approved_trip,
            legacy_trip,
            history,
            failed_history,
            result,
            other_driver,
        ]
    )
    await async_db_session.commit()
    return {"driver_id": DRIVER_ID}


@pytest.fixture
async def driver_profile(async_db_session: AsyncSession) -> DriverProfile:
    """A compliant driver profile with one valid certification and two shifts."""
    today = datetime.now(timezone.utc).date()
    profile = DriverProfile(
        user_id=DRIVER_ID,
        full_name="Test Driver",
        license_expiry=date(today.year + 2, 1, 1),
        last_medical_check=today,
    )
    certification = Certification(
        driver_id=DRIVER_ID,
        certification_type="First Aid",
        expiry_date=date(today.year + 1, 12, 31),
    )
    later_shift = Schedule(
        id="shift-2",
        driver_id=DRIVER_ID,
        route_name="Route B",
        shift_date=date(today.year + 1, 2, 1),
        start_time="08:00",
        end_time="16:00",
    )
    earlier_shift = Schedule(
        id="shift-1",
        driver_id=DRIVER_ID,
        route_name="Route A",
        shift_date=date(today.year + 1, 1, 15),
        start_time="06:00",
        end_time="14:00",
    )
    cancelled_shift = Schedule(
        id="shift-3",
        driver_id=DRIVER_ID,
        route_name="Route C",
        shift_date=date(today.year + 1, 1, 10),
        start_time="06:00",
        end_time="14:00",
        status="cancelled",
    )
    async_db_session.add_all(
        [profile, certification, later_shift, earlier_shift, cancelled_shift]
    )
    await async_db_session.commit()
    await async_db_session.refresh(profile)
    return profile
