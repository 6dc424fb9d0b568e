"""
Canonical test record and the shared status/pass policy.

Every source adapter produces TestRecord instances and resolves status and
pass/fail through the helpers in this module, so the inference rules live in
one place instead of being repeated per source.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple, Union

from fleetcheck.models.models import TestStatus, TripStatus

# Minimum score (percentage) counted as a pass when a source has no explicit
# pass flag.
PASS_THRESHOLD = 80

TERMINAL_STATUSES = frozenset({TestStatus.COMPLETED, TestStatus.FAILED})

# Legacy trip vocabulary -> canonical status. Unlisted values map to PENDING.
TRIP_STATUS_MAP: Mapping[str, TestStatus] = {
    TripStatus.APPROVED.value: TestStatus.COMPLETED,
    TripStatus.REJECTED.value: TestStatus.FAILED,
    TripStatus.FAILED.value: TestStatus.FAILED,
    TripStatus.SUBMITTED.value: TestStatus.PENDING,
    TripStatus.UNDER_REVIEW.value: TestStatus.PENDING,
}


class RecordSource(str, enum.Enum):
    """Data sources feeding the test history, in precedence order."""

    CURRENT = "current"
    TRIPS = "trips"
    HISTORY = "history"
    RESULTS = "results"


# Ids keep their stored type: integer 1 and string "1" are different records.
RecordId = Union[str, int]

# Fetch/concatenation order; on duplicate ids the earlier source wins.
SOURCE_PRECEDENCE: Tuple[RecordSource, ...] = (
    RecordSource.CURRENT,
    RecordSource.TRIPS,
    RecordSource.HISTORY,
    RecordSource.RESULTS,
)


class MalformedRecordError(ValueError):
    """Raised by an adapter when a source row cannot become a TestRecord."""

    def __init__(self, source: RecordSource, record_id: Any, reason: str):
        self.source = source
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"{source.value} record {record_id!r}: {reason}")


@dataclass(frozen=True)
class TestRecord:
    """
    Source-agnostic representation of one assessment or inspection event.

    Attributes:
        id: Opaque identifier as stored (str or int), the deduplication key
            across sources
        subject_id: Driver the record belongs to
        category: Assessment label, e.g. "Pre-Trip Inspection"
        status: Canonical status, never None
        started_at: When the assessment started (timezone-aware)
        source: Which source produced the record
        completed_at: Set only for completed or failed records
        score: Percentage score 0-100, if known
        passed: Pass flag; None means unknown, not failed
        answers: Driver-supplied answers (empty for legacy sources)
        progress: Completion percentage 0-100
    """

    id: RecordId
    subject_id: str
    category: str
    status: TestStatus
    started_at: datetime
    source: RecordSource
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    passed: Optional[bool] = None
    answers: Tuple[Any, ...] = field(default_factory=tuple)
    progress: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def coerce_status(
    value: Any, unset_default: TestStatus = TestStatus.PENDING
) -> TestStatus:
    """
    Map a stored status value onto the canonical enumeration.

    Args:
        value: Raw status (string, TestStatus or None)
        unset_default: Status used when value is None or blank

    Returns:
        The matching TestStatus; PENDING for unrecognized values
    """
    if isinstance(value, TestStatus):
        return value
    if value is None or not str(value).strip():
        return unset_default
    try:
        return TestStatus(str(value).strip().lower())
    except ValueError:
        return TestStatus.PENDING


def map_trip_status(value: Any) -> TestStatus:
    """Map a trip's native status onto the canonical enumeration."""
    if value is None:
        return TestStatus.PENDING
    return TRIP_STATUS_MAP.get(str(value).strip().lower(), TestStatus.PENDING)


def passed_from_score(score: Optional[float]) -> bool:
    """Infer pass/fail from a score; a missing score counts as 0."""
    return (score or 0) >= PASS_THRESHOLD


def clamp_progress(value: Any) -> int:
    """Coerce a progress value into an integer percentage 0-100."""
    try:
        progress = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, progress))
