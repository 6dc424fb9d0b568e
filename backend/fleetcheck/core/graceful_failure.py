"""
Graceful degradation for non-critical reads.

A driver dashboard is still useful when one of its inputs is missing: a
legacy table that was never migrated, a summary that cannot be computed,
a schedule lookup that times out. The helpers here run such work, log the
failure with the driver/source context, and let the caller fall back to a
default instead of failing the whole request.

This is distinct from `db_error_handling.py`, which covers writes that must
be rolled back and reported to the client.

Usage:
    from fleetcheck.core.graceful_failure import graceful_failure

    rows = None
    with graceful_failure(
        "fetch trips records", logger, context={"subject_id": driver_id}
    ):
        rows = await store.fetch_trips(driver_id)
    # rows is still None here if the query failed

    @graceful_failure_decorator("load upcoming schedules", default=())
    async def load_upcoming_schedules(store, driver_id): ...
"""

import inspect
import logging
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Generator, Optional

from fleetcheck.observability import metrics


def _failure_message(
    operation_name: str, error: Exception, context: Optional[Dict[str, Any]]
) -> str:
    if not context:
        return f"Failed to {operation_name}: {error}"
    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
    return f"Failed to {operation_name} ({context_str}): {error}"


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[Dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Run a block whose failure should be logged rather than raised.

    Only `Exception` subclasses are absorbed; cancellation and interpreter
    exits still propagate. The block may await; the manager itself is
    synchronous and only sees the exception leaving the block.

    Args:
        operation_name: What the block does, phrased to follow "Failed to"
            (e.g. "fetch trips records").
        logger: Logger that receives the failure.
        log_level: Level of the failure entry. Defaults to WARNING.
        exc_info: Whether to attach the traceback. Defaults to False.
        context: Fields such as subject_id and source. They are rendered into
            the message and also passed as `extra` so the JSON formatter can
            emit them as structured fields.

    Each absorbed failure is also counted in the app.errors metric with
    error.type=GracefulFailure.
    """
    try:
        yield
    except Exception as e:
        logger.log(
            log_level,
            _failure_message(operation_name, e, context),
            exc_info=exc_info,
            extra=dict(context or {}),
        )
        # record_error never raises
        metrics.record_error(error_type="GracefulFailure")


class GracefulFailureDecorator:
    """Wrap a whole function in graceful_failure and return a default on error.

    Works for plain and coroutine functions. The logger defaults to the one
    named after the decorated function's module.
    """

    def __init__(
        self,
        operation_name: str,
        *,
        logger: Optional[logging.Logger] = None,
        log_level: int = logging.WARNING,
        exc_info: bool = False,
        default: Any = None,
    ):
        self.operation_name = operation_name
        self._logger = logger
        self.log_level = log_level
        self.exc_info = exc_info
        self.default = default

    def _guard(self, func: Callable[..., Any]):
        return graceful_failure(
            self.operation_name,
            self._logger or logging.getLogger(func.__module__),
            log_level=self.log_level,
            exc_info=self.exc_info,
        )

    def __call__(self, func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with self._guard(func):
                    return await func(*args, **kwargs)
                return self.default

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with self._guard(func):
                return func(*args, **kwargs)
            return self.default

        return wrapper


graceful_failure_decorator = GracefulFailureDecorator
