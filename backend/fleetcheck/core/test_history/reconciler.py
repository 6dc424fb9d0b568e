"""
Reconciliation and metrics for the unified test history.

reconcile() merges normalized batches into one deduplicated view ordered
newest first; calculate_metrics() derives the summary shown on the driver
dashboard. Both are pure and deterministic: the same input always produces
the same output.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Set

from fleetcheck.core.test_history.records import TestRecord
from fleetcheck.models.models import TestStatus


@dataclass(frozen=True)
class TestMetrics:
    """
    Summary statistics over a reconciled test history.

    Attributes:
        total: Number of records
        completed: Records with status completed
        pending: Records with status pending
        failed: Records with status failed
        success_rate: Integer percentage of completed records that passed
    """

    total: int = 0
    completed: int = 0
    pending: int = 0
    failed: int = 0
    success_rate: int = 0


def reconcile(records: Iterable[TestRecord]) -> List[TestRecord]:
    """
    Deduplicate records by id and order them by start time, newest first.

    The input must already be concatenated in source precedence order
    (current, trips, history, results): on a duplicate id the first record
    seen is kept. The sort is stable, so records sharing a start time keep
    their precedence order.

    Args:
        records: Normalized records in precedence order

    Returns:
        New list of unique records sorted by started_at descending
    """
    seen: Set[str] = set()
    unique: List[TestRecord] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)

    # sorted() is stable with reverse=True as well
    return sorted(unique, key=lambda record: record.started_at, reverse=True)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def calculate_metrics(records: Iterable[TestRecord]) -> TestMetrics:
    """
    Compute TestMetrics for a sequence of records.

    success_rate counts completed records whose passed flag is true; a record
    with an unknown pass flag is not a pass. Returns all zeros for an empty
    sequence.
    """
    total = completed = pending = failed = passed = 0
    for record in records:
        total += 1
        if record.status == TestStatus.COMPLETED:
            completed += 1
            if record.passed is True:
                passed += 1
        elif record.status == TestStatus.PENDING:
            pending += 1
        elif record.status == TestStatus.FAILED:
            failed += 1

    success_rate = round_half_up(passed / completed * 100) if completed else 0

    return TestMetrics(
        total=total,
        completed=completed,
        pending=pending,
        failed=failed,
        success_rate=success_rate,
    )
