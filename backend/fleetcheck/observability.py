"""
Application metrics.

Thin, domain-named helpers over the observability facade:

    from fleetcheck.observability import metrics

    metrics.record_http_request("GET", "/v1/drivers/{driver_id}/test-history", 200, 0.12)
    metrics.record_error("GracefulFailure")
    metrics.record_test_history(record_count=12, rejected_count=1, failed_sources=["trips"])

All methods are no-ops until initialize() has run with metrics enabled, and
none of them raise: a metrics failure is logged at DEBUG and dropped.
"""
import logging
from typing import List, Optional

from fleetcheck.core.config import settings
from fleetcheck.core.observability import observability

logger = logging.getLogger(__name__)


class ApplicationMetrics:
    """Custom metrics recorded through the observability facade."""

    def __init__(self) -> None:
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Enable recording.

        Call during startup, after observability.init().
        """
        if not settings.OTEL_ENABLED or not settings.OTEL_METRICS_ENABLED:
            logger.info("Application metrics not enabled (OTEL_METRICS_ENABLED=False)")
            return

        if self._initialized:
            logger.warning("Application metrics already initialized")
            return

        if not observability.is_initialized:
            logger.error(
                "Observability facade not initialized. "
                "Metrics will not be recorded."
            )
            return

        self._initialized = True
        logger.info("Application metrics initialized successfully")

    def reset(self) -> None:
        self._initialized = False

    def record_http_request(
        self,
        method: str,
        route: str,
        status_code: int,
        duration: float,
    ) -> None:
        """
        Record an HTTP request count and its duration in seconds.

        route should be the route template, not the concrete path, so that
        driver ids do not become label values.
        """
        if not self._initialized:
            return

        labels = {
            "http.method": method,
            "http.route": route,
            "http.status_code": str(status_code),
        }
        try:
            observability.record_metric(
                "http.server.requests", 1, labels=labels, metric_type="counter"
            )
            observability.record_metric(
                "http.server.request.duration",
                duration,
                labels=labels,
                metric_type="histogram",
                unit="s",
            )
        except Exception as e:
            logger.debug(f"Failed to record HTTP request metric: {e}")

    def record_error(self, error_type: str, path: Optional[str] = None) -> None:
        """
        Record an application error.

        Args:
            error_type: e.g. "GracefulFailure", "DatabaseError", "ValidationError"
            path: Route where the error occurred, if any
        """
        if not self._initialized:
            return

        labels = {"error.type": error_type}
        if path:
            labels["http.route"] = path
        try:
            observability.record_metric("app.errors", 1, labels=labels)
        except Exception as e:
            logger.debug(f"Failed to record error metric: {e}")

    def record_test_history(
        self,
        record_count: int,
        rejected_count: int,
        failed_sources: List[str],
    ) -> None:
        """Record one reconciled test history and its per-source failures."""
        if not self._initialized:
            return

        outcome = "degraded" if failed_sources else "complete"
        try:
            observability.record_metric(
                "test_history.requests", 1, labels={"outcome": outcome}
            )
            observability.record_metric(
                "test_history.records",
                record_count,
                metric_type="histogram",
                unit="1",
            )
            if rejected_count:
                observability.record_metric(
                    "test_history.rejected_records", rejected_count
                )
            for source in failed_sources:
                observability.record_metric(
                    "test_history.source_failures", 1, labels={"source": source}
                )
        except Exception as e:
            logger.debug(f"Failed to record test history metric: {e}")


metrics = ApplicationMetrics()
