"""
Driver dashboard endpoints: unified test history, safety and compliance.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from fleetcheck.core.compliance import check_compliance
from fleetcheck.core.safety import get_safety_summary
from fleetcheck.core.test_history import (
    HistoryUnavailableError,
    TestHistory,
    TestHistoryService,
    TestRecord,
)
from fleetcheck.schemas.drivers import (
    ComplianceStatusResponse,
    SafetySummaryResponse,
    ScheduleResponse,
    TestHistoryResponse,
    TestMetricsResponse,
    TestRecordResponse,
)
from fleetcheck.services.record_store import (
    SqlRecordStore,
    get_record_store,
    load_upcoming_schedules,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def build_record_response(record: TestRecord) -> TestRecordResponse:
    return TestRecordResponse(
        id=record.id,
        subject_id=record.subject_id,
        category=record.category,
        status=record.status.value,
        started_at=record.started_at,
        completed_at=record.completed_at,
        score=record.score,
        passed=record.passed,
        answers=list(record.answers),
        progress=record.progress,
        source=record.source.value,
    )


def build_history_response(history: TestHistory) -> TestHistoryResponse:
    """
    Build a TestHistoryResponse from a reconciled TestHistory.

    Args:
        history: Reconciled history (possibly degraded)

    Returns:
        TestHistoryResponse with records in reconciled order
    """
    return TestHistoryResponse(
        driver_id=history.subject_id,
        records=[build_record_response(record) for record in history.records],
        metrics=TestMetricsResponse.model_validate(history.metrics),
        failed_sources=[source.value for source in history.failed_sources],
        rejected_records=history.rejected_records,
        degraded=history.degraded,
    )


@router.get("/{driver_id}/test-history", response_model=TestHistoryResponse)
async def get_test_history(
    driver_id: str,
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    Get a driver's unified test history with summary metrics.

    Records from current attempts, pre-trip inspections, legacy history and
    legacy results are merged, deduplicated by ID and sorted newest first.
    Sources that cannot be read are skipped and listed in `failed_sources`.

    Args:
        driver_id: Driver ID
        store: Record store

    Returns:
        Unified history. When no source can be read the response is an empty
        list with zeroed metrics and `degraded` set, never an error.
    """
    service = TestHistoryService(store)
    try:
        history = await service.get_history(driver_id)
    except HistoryUnavailableError as e:
        logger.error(
            f"Serving degraded test history: {e}",
            extra={"subject_id": driver_id},
        )
        history = TestHistory.unavailable(driver_id, e.failed_sources)

    return build_history_response(history)


@router.get("/{driver_id}/safety-summary", response_model=SafetySummaryResponse)
async def get_driver_safety_summary(
    driver_id: str,
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    Get inspection counts, approval rate and risk distribution for a driver.

    Falls back to an all-zero summary when trips cannot be read.
    """
    summary = await get_safety_summary(store, driver_id)
    return SafetySummaryResponse.model_validate(summary)


@router.get("/{driver_id}/compliance", response_model=ComplianceStatusResponse)
async def get_driver_compliance(
    driver_id: str,
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    Check license, medical and certification compliance for a driver.
    """
    status = await check_compliance(store, driver_id)
    return ComplianceStatusResponse.model_validate(status)


@router.get("/{driver_id}/schedules", response_model=List[ScheduleResponse])
async def get_driver_schedules(
    driver_id: str,
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    List a driver's upcoming scheduled shifts, earliest first.
    """
    rows = await load_upcoming_schedules(store, driver_id)
    return [ScheduleResponse.model_validate(row) for row in rows]
