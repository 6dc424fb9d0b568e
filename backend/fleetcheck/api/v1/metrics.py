"""
Prometheus metrics endpoint.

Serves the OpenTelemetry metrics in the Prometheus text format. Left
unauthenticated for scrapers; metric labels carry route templates, never
driver ids.
"""
import logging

from fastapi import APIRouter, Response
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from fleetcheck.core import settings
from fleetcheck.core.observability import observability

logger = logging.getLogger(__name__)

router = APIRouter()

PROMETHEUS_MEDIA_TYPE = "text/plain; version=0.0.4"


def _unavailable(message: str) -> Response:
    return Response(
        content=f"# {message}\n",
        media_type=PROMETHEUS_MEDIA_TYPE,
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/metrics", include_in_schema=False, response_class=Response)
async def prometheus_metrics() -> Response:
    """
    Prometheus scrape target.

    Answers 503 with a comment line when metrics are switched off.
    """
    if not settings.OTEL_ENABLED or not settings.OTEL_METRICS_ENABLED:
        return _unavailable(
            "Metrics not enabled (set OTEL_ENABLED=true and OTEL_METRICS_ENABLED=true)"
        )

    if not settings.PROMETHEUS_METRICS_ENABLED or not observability.prometheus_enabled:
        return _unavailable(
            "Prometheus endpoint not enabled (set PROMETHEUS_METRICS_ENABLED=true)"
        )

    try:
        return Response(
            content=observability.prometheus_text(), media_type=PROMETHEUS_MEDIA_TYPE
        )
    except Exception:
        logger.exception("Failed to generate Prometheus metrics")
        return _unavailable("Error generating metrics")
