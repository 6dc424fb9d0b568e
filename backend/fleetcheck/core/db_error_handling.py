"""
Database error handling utilities.

Two failure shapes exist in this service:

- Write endpoints (the test attempt workflow) use `handle_db_error`, which
  rolls the session back, logs the failure and answers HTTP 500.
- Internal reads that are not tied to an HTTP response (the test history
  fetcher) raise `DatabaseOperationError` subclasses and let the caller
  decide how to degrade.

Usage:
    from fleetcheck.core.db_error_handling import handle_db_error

    async with handle_db_error(db, "complete test attempt"):
        apply_completion(attempt, score, passed, answers)
        await db.commit()
        await db.refresh(attempt)
        return TestAttemptResponse.model_validate(attempt)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleetcheck.core.observability import observability
from fleetcheck.observability import metrics

logger = logging.getLogger(__name__)


class DatabaseOperationError(Exception):
    """A database operation failed outside of an HTTP handler.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception, if there was a single one
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Optional[Exception] = None,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        if message is None:
            message = (
                f"Failed to {operation_name}: {original_error}"
                if original_error is not None
                else f"Failed to {operation_name}"
            )
        self.message = message
        super().__init__(self.message)


@asynccontextmanager
async def handle_db_error(
    db: AsyncSession,
    operation_name: str,
) -> AsyncGenerator[None, None]:
    """Roll back and answer 500 when a write block fails.

    HTTPExceptions raised inside the block (404 for a missing attempt, 400
    for a finished one) pass through untouched and nothing is rolled back.
    Any other exception rolls the session back, is logged with its traceback,
    is reported to Sentry and becomes an HTTPException whose detail names the operation but not
    the underlying error.

    Args:
        db: Session to roll back on error.
        operation_name: Name used in the log entry and the response detail,
            e.g. "complete test attempt".

    Raises:
        HTTPException: 500 on any non-HTTP exception.

    Note:
        The endpoint's return statement belongs inside the block so that
        response construction failures are logged with the same context.
    """
    try:
        yield
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(
            f"Database error during {operation_name}: {e}",
            exc_info=True,
            extra={"operation": operation_name},
        )
        observability.capture_error(
            e,
            context={"operation": operation_name},
            tags={"error_type": "DatabaseError"},
        )
        metrics.record_error(error_type="DatabaseError")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to {operation_name}. Please try again later.",
        )
