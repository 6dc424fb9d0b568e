"""
Source adapters: one pure mapping per data source onto TestRecord.

Each adapter takes a single raw row (a mapping of column name to value, as
returned by the record store) plus the driver id the rows were fetched for,
and returns a TestRecord or raises MalformedRecordError. Adapters never talk
to the database and never log; normalize_source() collects rejected rows so
the caller can decide how to report them.

Source rules:
- current attempts: near-identity copy, status coerced onto the canonical set
- trips: fixed "Pre-Trip Inspection" category, native status vocabulary
  mapped through TRIP_STATUS_MAP, passed only when approved
- history: terminal records, status defaults to completed, passed inferred
  from final_score against PASS_THRESHOLD
- results: as history, score read from `score` with `percentage` fallback
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from fleetcheck.core.datetime_utils import parse_timestamp
from fleetcheck.core.test_history.records import (
    TERMINAL_STATUSES,
    MalformedRecordError,
    RecordId,
    RecordSource,
    TestRecord,
    clamp_progress,
    coerce_status,
    map_trip_status,
    passed_from_score,
)
from fleetcheck.models.models import TestStatus, TripStatus

PRE_TRIP_INSPECTION = "Pre-Trip Inspection"
DEFAULT_TEST_CATEGORY = "Safety Test"

# Progress reported for trips, keyed by native status
TRIP_PROGRESS_APPROVED = 100
TRIP_PROGRESS_IN_PROGRESS = 50

SourceRow = Mapping[str, Any]
Adapter = Callable[[SourceRow, str], TestRecord]


@dataclass
class NormalizedBatch:
    """Output of normalizing one source: accepted records and rejected rows."""

    source: RecordSource
    records: List[TestRecord] = field(default_factory=list)
    rejected: List[MalformedRecordError] = field(default_factory=list)


def _record_id(row: SourceRow, source: RecordSource) -> RecordId:
    value = row.get("id")
    if value is None or str(value).strip() == "":
        raise MalformedRecordError(source, value, "missing id")
    if isinstance(value, bool):
        raise MalformedRecordError(source, value, "boolean id")
    if isinstance(value, (str, int)):
        return value
    # UUID and other driver-specific id types
    return str(value)


def _started_at(
    value: Any, source: RecordSource, record_id: RecordId
) -> datetime:
    try:
        started_at = parse_timestamp(value)
    except ValueError as e:
        raise MalformedRecordError(
            source, record_id, f"unparseable start timestamp ({e})"
        ) from e
    if started_at is None:
        raise MalformedRecordError(source, record_id, "missing start timestamp")
    return started_at


def _completed_at(status: TestStatus, value: Any) -> Optional[datetime]:
    """Completion time is only meaningful once a record is terminal."""
    if status not in TERMINAL_STATUSES:
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def _score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _category(value: Any) -> str:
    if value is None or not str(value).strip():
        return DEFAULT_TEST_CATEGORY
    return str(value).strip()


def _subject(row: SourceRow, subject_id: str, *columns: str) -> str:
    for column in columns:
        value = row.get(column)
        if value:
            return str(value)
    return subject_id


def adapt_current_attempt(row: SourceRow, subject_id: str) -> TestRecord:
    """Map a test_attempts row onto a TestRecord."""
    source = RecordSource.CURRENT
    record_id = _record_id(row, source)
    status = coerce_status(row.get("status"))

    passed = row.get("pass")
    answers = row.get("answers")

    return TestRecord(
        id=record_id,
        subject_id=_subject(row, subject_id, "user_id"),
        category=_category(row.get("test_type")),
        status=status,
        started_at=_started_at(row.get("started_at"), source, record_id),
        source=source,
        completed_at=_completed_at(status, row.get("completed_at")),
        score=_score(row.get("score")),
        passed=None if passed is None else bool(passed),
        answers=tuple(answers) if isinstance(answers, (list, tuple)) else (),
        progress=clamp_progress(row.get("progress")),
    )


def adapt_trip(row: SourceRow, subject_id: str) -> TestRecord:
    """Map a legacy trips (pre-trip inspection) row onto a TestRecord."""
    source = RecordSource.TRIPS
    record_id = _record_id(row, source)
    native_status = str(row.get("status") or "").strip().lower()
    status = map_trip_status(native_status)

    if native_status == TripStatus.APPROVED.value:
        progress = TRIP_PROGRESS_APPROVED
    elif native_status == TripStatus.IN_PROGRESS.value:
        progress = TRIP_PROGRESS_IN_PROGRESS
    else:
        progress = 0

    # Only a review decision stamps the trip as finished
    completed_at = None
    if native_status in (TripStatus.APPROVED.value, TripStatus.REJECTED.value):
        completed_at = _completed_at(status, row.get("updated_at"))

    return TestRecord(
        id=record_id,
        subject_id=_subject(row, subject_id, "user_id", "driver_id"),
        category=PRE_TRIP_INSPECTION,
        status=status,
        started_at=_started_at(row.get("created_at"), source, record_id),
        source=source,
        completed_at=completed_at,
        score=_score(row.get("aggregate_score")),
        passed=native_status == TripStatus.APPROVED.value,
        progress=progress,
    )


def adapt_history(row: SourceRow, subject_id: str) -> TestRecord:
    """Map a legacy test_history row onto a TestRecord."""
    source = RecordSource.HISTORY
    record_id = _record_id(row, source)
    status = coerce_status(row.get("status"), unset_default=TestStatus.COMPLETED)
    score = _score(row.get("final_score"))

    return TestRecord(
        id=record_id,
        subject_id=_subject(row, subject_id, "driver_id"),
        category=_category(row.get("test_type")),
        status=status,
        started_at=_started_at(row.get("created_at"), source, record_id),
        source=source,
        completed_at=_completed_at(status, row.get("completed_at")),
        score=score,
        passed=passed_from_score(score),
        progress=100,
    )


def adapt_result(row: SourceRow, subject_id: str) -> TestRecord:
    """Map a legacy test_results row onto a TestRecord."""
    source = RecordSource.RESULTS
    record_id = _record_id(row, source)
    status = coerce_status(row.get("status"), unset_default=TestStatus.COMPLETED)

    score = _score(row.get("score"))
    if score is None:
        score = _score(row.get("percentage"))

    started = row.get("created_at")
    if started is None or (isinstance(started, str) and not started.strip()):
        started = row.get("started_at")

    return TestRecord(
        id=record_id,
        subject_id=_subject(row, subject_id, "driver_id"),
        category=_category(row.get("test_type")),
        status=status,
        started_at=_started_at(started, source, record_id),
        source=source,
        completed_at=_completed_at(status, row.get("completed_at")),
        score=score,
        passed=passed_from_score(score),
        progress=100,
    )


ADAPTERS: Dict[RecordSource, Adapter] = {
    RecordSource.CURRENT: adapt_current_attempt,
    RecordSource.TRIPS: adapt_trip,
    RecordSource.HISTORY: adapt_history,
    RecordSource.RESULTS: adapt_result,
}


def normalize_source(
    source: RecordSource, rows: Iterable[SourceRow], subject_id: str
) -> NormalizedBatch:
    """
    Run every row of one source through its adapter.

    Rows the adapter rejects are collected instead of aborting the batch.

    Args:
        source: Which source the rows came from
        rows: Raw rows in fetch order
        subject_id: Driver the rows were fetched for

    Returns:
        NormalizedBatch with records in input order plus the rejected rows
    """
    adapter = ADAPTERS[source]
    batch = NormalizedBatch(source=source)
    for row in rows:
        try:
            batch.records.append(adapter(row, subject_id))
        except MalformedRecordError as e:
            batch.rejected.append(e)
    return batch
