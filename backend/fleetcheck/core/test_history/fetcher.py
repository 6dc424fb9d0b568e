"""
Record fetcher: pulls a driver's raw rows from every test history source.

The four retrievals are independent and issued concurrently. A source that
raises contributes no rows and is reported in FetchResult.failed_sources; the
fetch as a whole only fails when no source could be read at all.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
)

from fleetcheck.core.db_error_handling import DatabaseOperationError
from fleetcheck.core.graceful_failure import graceful_failure
from fleetcheck.core.test_history.records import SOURCE_PRECEDENCE, RecordSource

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


class RecordStore(Protocol):
    """
    Read-only data-access handle for the test history sources.

    Every method returns the driver's rows for one source as plain mappings,
    newest first by that source's recency column.
    """

    async def fetch_current_attempts(self, subject_id: str) -> List[Row]:
        ...

    async def fetch_trips(self, subject_id: str) -> List[Row]:
        ...

    async def fetch_history(self, subject_id: str) -> List[Row]:
        ...

    async def fetch_results(self, subject_id: str) -> List[Row]:
        ...


class HistoryUnavailableError(DatabaseOperationError):
    """Raised when none of the test history sources could be read."""

    def __init__(self, subject_id: str, failed_sources: List[RecordSource]):
        self.subject_id = subject_id
        self.failed_sources = failed_sources
        super().__init__(
            "fetch test history",
            message=(
                f"All test history sources failed for subject {subject_id}: "
                f"{', '.join(source.value for source in failed_sources)}"
            ),
        )


@dataclass
class FetchResult:
    """Raw rows per source plus the sources that could not be read."""

    rows: Dict[RecordSource, List[Row]] = field(default_factory=dict)
    failed_sources: List[RecordSource] = field(default_factory=list)

    def rows_for(self, source: RecordSource) -> List[Row]:
        return self.rows.get(source, [])


def _source_queries(
    store: RecordStore,
) -> Dict[RecordSource, Callable[[str], Awaitable[List[Row]]]]:
    return {
        RecordSource.CURRENT: store.fetch_current_attempts,
        RecordSource.TRIPS: store.fetch_trips,
        RecordSource.HISTORY: store.fetch_history,
        RecordSource.RESULTS: store.fetch_results,
    }


class RecordFetcher:
    """Fetches raw test history rows through an injected RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def _fetch_source(
        self,
        source: RecordSource,
        query: Callable[[str], Awaitable[List[Row]]],
        subject_id: str,
    ) -> Tuple[RecordSource, Optional[List[Row]]]:
        rows: Optional[List[Row]] = None
        with graceful_failure(
            f"fetch {source.value} records",
            logger,
            context={"subject_id": subject_id, "source": source.value},
        ):
            rows = list(await query(subject_id) or [])
        return source, rows

    async def fetch(self, subject_id: str) -> FetchResult:
        """
        Retrieve rows from all sources for one driver.

        Args:
            subject_id: Driver whose records to fetch

        Returns:
            FetchResult with rows keyed by source (every readable source is
            present, possibly with an empty list)

        Raises:
            HistoryUnavailableError: If every source failed
        """
        queries = _source_queries(self.store)
        outcomes = await asyncio.gather(
            *(
                self._fetch_source(source, queries[source], subject_id)
                for source in SOURCE_PRECEDENCE
            )
        )

        result = FetchResult()
        for source, rows in outcomes:
            if rows is None:
                result.failed_sources.append(source)
            else:
                result.rows[source] = rows

        if not result.rows:
            logger.error(
                f"No test history source could be read for subject {subject_id}",
                extra={
                    "subject_id": subject_id,
                    "failed_sources": [s.value for s in result.failed_sources],
                },
            )
            raise HistoryUnavailableError(subject_id, result.failed_sources)

        return result
