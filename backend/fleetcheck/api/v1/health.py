"""
Health check and status endpoints.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fleetcheck.core.datetime_utils import utc_now
from fleetcheck.core import settings
from fleetcheck.core.graceful_failure import graceful_failure
from fleetcheck.models import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Reports "degraded" (still HTTP 200) when the database cannot be reached.
    """
    database = "unreachable"
    with graceful_failure("check database connectivity", logger):
        await db.execute(text("SELECT 1"))
        database = "ok"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
    }


@router.get("/ping")
async def ping():
    """
    Simple ping endpoint for basic connectivity testing.
    """
    return {"message": "pong"}
