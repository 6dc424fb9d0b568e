"""
Test history service: fetch, normalize, reconcile and summarize.

This is the single entry point the API uses to build a driver's unified
test history:

    service = TestHistoryService(store)
    history = await service.get_history(driver_id)

Partial failures (one source down, a few malformed rows) are absorbed and
reported on the returned TestHistory. Only a total outage raises
HistoryUnavailableError; callers degrade with TestHistory.unavailable().
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from fleetcheck.core.test_history.adapters import normalize_source
from fleetcheck.core.test_history.fetcher import RecordFetcher, RecordStore
from fleetcheck.core.test_history.reconciler import (
    TestMetrics,
    calculate_metrics,
    reconcile,
)
from fleetcheck.core.test_history.records import (
    SOURCE_PRECEDENCE,
    RecordSource,
    TestRecord,
)
from fleetcheck.observability import metrics as app_metrics

logger = logging.getLogger(__name__)


@dataclass
class TestHistory:
    """Reconciled records for one driver with their metrics and fetch report."""

    subject_id: str
    records: List[TestRecord] = field(default_factory=list)
    metrics: TestMetrics = field(default_factory=TestMetrics)
    failed_sources: List[RecordSource] = field(default_factory=list)
    rejected_records: int = 0
    degraded: bool = False

    @classmethod
    def unavailable(
        cls, subject_id: str, failed_sources: Optional[List[RecordSource]] = None
    ) -> "TestHistory":
        """Empty history returned when no source could be read."""
        return cls(
            subject_id=subject_id,
            failed_sources=list(failed_sources or SOURCE_PRECEDENCE),
            degraded=True,
        )


class TestHistoryService:
    """Builds unified test histories from a RecordStore."""

    def __init__(self, store: RecordStore):
        self.fetcher = RecordFetcher(store)

    async def get_history(self, subject_id: str) -> TestHistory:
        """
        Build the unified test history for a driver.

        Every reconciled record is returned, newest first, and counted in
        the metrics.

        Args:
            subject_id: Driver to build the history for

        Returns:
            TestHistory with records sorted by started_at descending

        Raises:
            HistoryUnavailableError: If every source failed
        """
        fetched = await self.fetcher.fetch(subject_id)

        merged: List[TestRecord] = []
        rejected = 0
        for source in SOURCE_PRECEDENCE:
            if source not in fetched.rows:
                continue
            batch = normalize_source(source, fetched.rows_for(source), subject_id)
            merged.extend(batch.records)
            for error in batch.rejected:
                logger.warning(
                    f"Skipping malformed test record: {error}",
                    extra={"subject_id": subject_id, "source": source.value},
                )
            rejected += len(batch.rejected)

        records = reconcile(merged)
        metrics = calculate_metrics(records)

        logger.info(
            f"Reconciled {len(records)} test records for subject {subject_id}",
            extra={
                "subject_id": subject_id,
                "record_count": len(records),
                "rejected_count": rejected,
                "failed_sources": [s.value for s in fetched.failed_sources],
            },
        )
        app_metrics.record_test_history(
            record_count=len(records),
            rejected_count=rejected,
            failed_sources=[s.value for s in fetched.failed_sources],
        )

        return TestHistory(
            subject_id=subject_id,
            records=records,
            metrics=metrics,
            failed_sources=list(fetched.failed_sources),
            rejected_records=rejected,
        )
