"""
Unified driver test history.

Merges the current test attempts table with the legacy trips, test_history
and test_results tables into one deduplicated, newest-first list of
TestRecord objects, and derives TestMetrics from it.
"""
from .adapters import NormalizedBatch, normalize_source
from .fetcher import FetchResult, HistoryUnavailableError, RecordFetcher, RecordStore
from .reconciler import TestMetrics, calculate_metrics, reconcile
from .records import (
    PASS_THRESHOLD,
    SOURCE_PRECEDENCE,
    MalformedRecordError,
    RecordId,
    RecordSource,
    TestRecord,
)
from .service import TestHistory, TestHistoryService

__all__ = [
    "FetchResult",
    "HistoryUnavailableError",
    "MalformedRecordError",
    "NormalizedBatch",
    "PASS_THRESHOLD",
    "RecordFetcher",
    "RecordId",
    "RecordSource",
    "RecordStore",
    "SOURCE_PRECEDENCE",
    "TestHistory",
    "TestHistoryService",
    "TestMetrics",
    "TestRecord",
    "calculate_metrics",
    "normalize_source",
    "reconcile",
]
