"""
Driver safety summary built from pre-trip inspection (trip) records.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fleetcheck.core.datetime_utils import parse_timestamp
from fleetcheck.core.graceful_failure import graceful_failure
from fleetcheck.core.test_history.fetcher import RecordStore
from fleetcheck.core.test_history.reconciler import round_half_up
from fleetcheck.models.models import RiskLevel, TripStatus

logger = logging.getLogger(__name__)

PENDING_TRIP_STATUSES = frozenset(
    {TripStatus.PENDING.value, TripStatus.UNDER_REVIEW.value}
)


def _empty_risk_distribution() -> Dict[str, int]:
    return {level.value: 0 for level in RiskLevel}


@dataclass
class SafetySummary:
    """Inspection counts, approval rate and risk breakdown for one driver."""

    total_inspections: int = 0
    completed_inspections: int = 0
    pending_inspections: int = 0
    approval_rate: int = 0
    risk_distribution: Dict[str, int] = field(default_factory=_empty_risk_distribution)
    last_inspection_date: Optional[datetime] = None
    last_risk_level: Optional[str] = None


def _created_at(row: Mapping[str, Any]) -> Optional[datetime]:
    try:
        return parse_timestamp(row.get("created_at"))
    except ValueError:
        return None


def build_safety_summary(trips: Iterable[Mapping[str, Any]]) -> SafetySummary:
    """
    Summarize a driver's trip rows.

    Approved trips count as completed inspections; pending and under_review
    trips count as pending. Risk levels outside low/medium/high/critical are
    counted in the total only. The most recent trip (by created_at) supplies
    last_inspection_date and last_risk_level.
    """
    rows: List[Mapping[str, Any]] = list(trips)
    summary = SafetySummary(total_inspections=len(rows))

    latest: Optional[Mapping[str, Any]] = None
    latest_at: Optional[datetime] = None
    for row in rows:
        status = str(row.get("status") or "").lower()
        if status == TripStatus.APPROVED.value:
            summary.completed_inspections += 1
        elif status in PENDING_TRIP_STATUSES:
            summary.pending_inspections += 1

        risk_level = str(row.get("risk_level") or "").lower()
        if risk_level in summary.risk_distribution:
            summary.risk_distribution[risk_level] += 1

        created_at = _created_at(row)
        if created_at is not None and (latest_at is None or created_at > latest_at):
            latest, latest_at = row, created_at

    if summary.total_inspections:
        summary.approval_rate = round_half_up(
            summary.completed_inspections / summary.total_inspections * 100
        )

    if latest is not None:
        summary.last_inspection_date = latest_at
        summary.last_risk_level = latest.get("risk_level")

    return summary


async def get_safety_summary(store: RecordStore, driver_id: str) -> SafetySummary:
    """
    Load the driver's trips and summarize them.

    Any failure is logged and degrades to an all-zero summary.
    """
    summary = SafetySummary()
    with graceful_failure(
        "build safety summary", logger, context={"subject_id": driver_id}
    ):
        summary = build_safety_summary(await store.fetch_trips(driver_id))
    return summary
