"""
Request/response logging middleware.

One entry per request on the way in and one on the way out, correlated by a
request id that also tags every log line emitted while the request is being
served (the per-source history fetches included).
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fleetcheck.core.logging_config import request_id_context
from fleetcheck.observability import metrics

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

UNMATCHED_ROUTE = "unmatched"


def route_template(request: Request) -> str:
    """The matched route's path template, e.g. /v1/drivers/{driver_id}/compliance."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


def response_log_level(status_code: int) -> int:
    """ERROR for 5xx, WARNING for 4xx, INFO otherwise."""
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log requests and responses with a correlating request id.

    The id is taken from the X-Request-ID header when the caller supplies
    one, stored in request_id_context for the log formatter, and echoed on
    the response. Requests slower than slow_request_threshold seconds get an
    additional WARNING entry.
    """

    def __init__(self, app, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)
        try:
            return await self._log_exchange(request, call_next, request_id)
        finally:
            request_id_context.reset(token)

    async def _log_exchange(
        self, request: Request, call_next: Callable, request_id: str
    ) -> Response:
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            f"{method} {path}",
            extra={"method": method, "path": path, "client_host": client_host},
        )

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        response.headers[REQUEST_ID_HEADER] = request_id

        fields = {
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
            "client_host": client_host,
        }
        logger.log(
            response_log_level(response.status_code),
            f"{method} {path} -> {response.status_code}",
            extra=fields,
        )

        if duration > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {method} {path} took {duration:.3f}s "
                f"(threshold: {self.slow_request_threshold}s)",
                extra=fields,
            )

        metrics.record_http_request(
            method, route_template(request), response.status_code, duration
        )

        return response
