"""
Test attempt endpoints: start or resume, save progress, complete, report.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fleetcheck.core.db_error_handling import handle_db_error
from fleetcheck.core.reports import build_test_report, report_filename
from fleetcheck.models import get_db
from fleetcheck.schemas.test_attempts import (
    CompleteTestAttemptRequest,
    StartTestAttemptRequest,
    TestAttemptResponse,
    UpdateProgressRequest,
)
from fleetcheck.services.test_attempts import (
    apply_completion,
    apply_progress,
    create_or_resume_attempt,
    get_attempt_or_404,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/attempts", response_model=TestAttemptResponse)
async def start_test_attempt(
    request: StartTestAttemptRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Start a test attempt, or resume the driver's pending one.

    If the driver already has a pending attempt of the same test type it is
    returned unchanged; otherwise a new pending attempt is created.

    Args:
        request: Driver ID and test type
        db: Database session

    Returns:
        The pending attempt
    """
    async with handle_db_error(db, "start test attempt"):
        attempt = await create_or_resume_attempt(
            db, request.driver_id, request.test_type
        )
        await db.commit()
        await db.refresh(attempt)
        return TestAttemptResponse.model_validate(attempt)


@router.get("/attempts/{attempt_id}", response_model=TestAttemptResponse)
async def get_test_attempt(
    attempt_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Get a test attempt by ID.

    Raises:
        HTTPException: 404 if the attempt doesn't exist
    """
    attempt = await get_attempt_or_404(db, attempt_id)
    return TestAttemptResponse.model_validate(attempt)


@router.put("/attempts/{attempt_id}/progress", response_model=TestAttemptResponse)
async def update_test_attempt_progress(
    attempt_id: str,
    request: UpdateProgressRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Save answers and progress for an unfinished attempt.

    A pending attempt moves to in_progress on its first update.

    Raises:
        HTTPException: 404 if the attempt doesn't exist, 400 if it has finished
    """
    async with handle_db_error(db, "update test attempt progress"):
        attempt = await get_attempt_or_404(db, attempt_id)
        apply_progress(
            attempt, request.answers, request.current_question, request.progress
        )
        await db.commit()
        await db.refresh(attempt)
        return TestAttemptResponse.model_validate(attempt)


@router.post("/attempts/{attempt_id}/complete", response_model=TestAttemptResponse)
async def complete_test_attempt(
    attempt_id: str,
    request: CompleteTestAttemptRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Complete an attempt with its final score and answers.

    The attempt becomes completed when passed and failed otherwise.

    Raises:
        HTTPException: 404 if the attempt doesn't exist, 400 if it has finished
    """
    async with handle_db_error(db, "complete test attempt"):
        attempt = await get_attempt_or_404(db, attempt_id)
        apply_completion(attempt, request.score, request.passed, request.answers)
        await db.commit()
        await db.refresh(attempt)
        return TestAttemptResponse.model_validate(attempt)


@router.get("/attempts/{attempt_id}/report", response_class=PlainTextResponse)
async def download_test_report(
    attempt_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Download a plain-text report for an attempt.
    """
    attempt = await get_attempt_or_404(db, attempt_id)
    filename = report_filename(attempt.test_type)
    return PlainTextResponse(
        build_test_report(attempt),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
