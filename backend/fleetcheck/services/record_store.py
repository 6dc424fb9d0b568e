"""
SQLAlchemy-backed record store.

Implements the RecordStore protocol consumed by the test history fetcher,
plus the profile, certification, schedule, critical failure and audit log
lookups used by the driver endpoints. Every query opens its own short-lived
AsyncSession from the injected session factory, so the fetcher can run the
four history queries concurrently (an AsyncSession must not be shared
between concurrent tasks).

Rows are returned as plain dicts keyed by database column name; the
test_attempts pass flag therefore appears under "pass".
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetcheck.core.graceful_failure import graceful_failure_decorator
from fleetcheck.models import (
    AsyncSessionLocal,
    AuditLog,
    Certification,
    CriticalFailure,
    DriverProfile,
    LegacyTestResult,
    Schedule,
    ScheduleStatus,
    TestAttempt,
    TestHistoryEntry,
    Trip,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class SqlRecordStore:
    """Read-only queries over the driver tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _fetch_rows(self, query: Select) -> List[Row]:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [dict(row) for row in result.mappings().all()]

    async def fetch_current_attempts(self, subject_id: str) -> List[Row]:
        table = TestAttempt.__table__
        return await self._fetch_rows(
            select(table)
            .where(table.c.user_id == subject_id)
            .order_by(table.c.started_at.desc())
        )

    async def fetch_trips(self, subject_id: str) -> List[Row]:
        table = Trip.__table__
        return await self._fetch_rows(
            select(table)
            .where(or_(table.c.user_id == subject_id, table.c.driver_id == subject_id))
            .order_by(table.c.created_at.desc())
        )

    async def fetch_history(self, subject_id: str) -> List[Row]:
        table = TestHistoryEntry.__table__
        return await self._fetch_rows(
            select(table)
            .where(table.c.driver_id == subject_id)
            .order_by(table.c.completed_at.desc())
        )

    async def fetch_results(self, subject_id: str) -> List[Row]:
        table = LegacyTestResult.__table__
        return await self._fetch_rows(
            select(table)
            .where(table.c.driver_id == subject_id)
            .order_by(table.c.completed_at.desc())
        )

    async def fetch_profile(self, driver_id: str) -> Optional[Row]:
        table = DriverProfile.__table__
        rows = await self._fetch_rows(
            select(table).where(table.c.user_id == driver_id).limit(1)
        )
        return rows[0] if rows else None

    async def fetch_certifications(self, driver_id: str) -> List[Row]:
        table = Certification.__table__
        return await self._fetch_rows(
            select(table)
            .where(table.c.driver_id == driver_id)
            .order_by(table.c.expiry_date.asc())
        )

    async def fetch_upcoming_schedules(self, driver_id: str) -> List[Row]:
        """Shifts still in the scheduled state, earliest first."""
        table = Schedule.__table__
        return await self._fetch_rows(
            select(table)
            .where(
                table.c.driver_id == driver_id,
                table.c.status == ScheduleStatus.SCHEDULED.value,
            )
            .order_by(table.c.shift_date.asc(), table.c.start_time.asc())
        )

    async def fetch_critical_failures(
        self, driver_id: str, limit: int = 10
    ) -> List[Row]:
        table = CriticalFailure.__table__
        return await self._fetch_rows(
            select(table)
            .where(table.c.driver_id == driver_id)
            .order_by(table.c.created_at.desc())
            .limit(limit)
        )

    async def fetch_audit_logs(self, driver_id: str, limit: int = 50) -> List[Row]:
        """Most recent changes to a driver's data, newest first."""
        table = AuditLog.__table__
        return await self._fetch_rows(
            select(table)
            .where(table.c.user_id == driver_id)
            .order_by(table.c.created_at.desc())
            .limit(limit)
        )


@graceful_failure_decorator("load upcoming schedules", logger=logger, default=())
async def load_upcoming_schedules(store: SqlRecordStore, driver_id: str) -> List[Row]:
    """Upcoming shifts for a driver; an empty sequence when the lookup fails."""
    return await store.fetch_upcoming_schedules(driver_id)


@graceful_failure_decorator("load certifications", logger=logger, default=())
async def load_certifications(store: SqlRecordStore, driver_id: str) -> List[Row]:
    return await store.fetch_certifications(driver_id)


@graceful_failure_decorator("load critical failures", logger=logger, default=())
async def load_critical_failures(
    store: SqlRecordStore, driver_id: str, limit: int = 10
) -> List[Row]:
    return await store.fetch_critical_failures(driver_id, limit=limit)


@graceful_failure_decorator("load audit logs", logger=logger, default=())
async def load_audit_logs(
    store: SqlRecordStore, driver_id: str, limit: int = 50
) -> List[Row]:
    """Audit entries for a driver; an empty sequence when the lookup fails."""
    return await store.fetch_audit_logs(driver_id, limit=limit)


def get_record_store() -> SqlRecordStore:
    """FastAPI dependency providing a record store bound to the app database."""
    return SqlRecordStore(AsyncSessionLocal)
