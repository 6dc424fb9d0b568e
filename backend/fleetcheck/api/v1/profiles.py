"""
Driver profile endpoints: profile, certifications, critical failures and the
audit log of profile changes.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fleetcheck.core.db_error_handling import handle_db_error
from fleetcheck.models import get_db
from fleetcheck.schemas.profiles import (
    AuditLogResponse,
    CertificationResponse,
    CertificationUpsertRequest,
    CriticalFailureResponse,
    DriverProfileResponse,
    DriverProfileUpdate,
)
from fleetcheck.services.driver_profiles import (
    apply_profile_update,
    get_profile_or_404,
    upsert_certification,
)
from fleetcheck.services.record_store import (
    SqlRecordStore,
    get_record_store,
    load_audit_logs,
    load_certifications,
    load_critical_failures,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{driver_id}/profile", response_model=DriverProfileResponse)
async def get_driver_profile(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Get a driver's profile.

    Raises:
        HTTPException: 404 if the driver has no profile
    """
    profile = await get_profile_or_404(db, driver_id)
    return DriverProfileResponse.model_validate(profile)


@router.patch("/{driver_id}/profile", response_model=DriverProfileResponse)
async def update_driver_profile(
    driver_id: str,
    request: DriverProfileUpdate,
    db: AsyncSession = Depends(get_db),
):
    """
    Update some fields of a driver's profile.

    Only fields present in the body are changed. Each effective change is
    written to the audit log with the old and new values of the changed
    fields.

    Args:
        driver_id: Driver ID
        request: Fields to change
        db: Database session

    Raises:
        HTTPException: 404 if the driver has no profile, 400 if the body is
            empty
    """
    async with handle_db_error(db, "update driver profile"):
        profile = await get_profile_or_404(db, driver_id)
        await apply_profile_update(db, profile, request.changes())
        await db.commit()
        await db.refresh(profile)
        return DriverProfileResponse.model_validate(profile)


@router.get(
    "/{driver_id}/certifications", response_model=List[CertificationResponse]
)
async def get_driver_certifications(
    driver_id: str,
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    List a driver's certifications, soonest expiry first.
    """
    rows = await load_certifications(store, driver_id)
    return [CertificationResponse.model_validate(row) for row in rows]


@router.put(
    "/{driver_id}/certifications/{certification_id}",
    response_model=CertificationResponse,
)
async def put_driver_certification(
    driver_id: str,
    certification_id: str,
    request: CertificationUpsertRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Create or replace a driver's certification.

    Raises:
        HTTPException: 400 if the certification id belongs to another driver
    """
    data = request.model_dump()
    data["status"] = request.status.value
    async with handle_db_error(db, "save certification"):
        certification = await upsert_certification(
            db, driver_id, certification_id, data
        )
        await db.commit()
        await db.refresh(certification)
        return CertificationResponse.model_validate(certification)


@router.get(
    "/{driver_id}/critical-failures", response_model=List[CriticalFailureResponse]
)
async def get_driver_critical_failures(
    driver_id: str,
    limit: int = Query(10, ge=1, le=100),
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    List a driver's most recent critical failures, newest first.
    """
    rows = await load_critical_failures(store, driver_id, limit=limit)
    return [CriticalFailureResponse.model_validate(row) for row in rows]


@router.get("/{driver_id}/audit-logs", response_model=List[AuditLogResponse])
async def get_driver_audit_logs(
    driver_id: str,
    limit: int = Query(50, ge=1, le=200),
    store: SqlRecordStore = Depends(get_record_store),
):
    """
    List changes made to a driver's profile and certifications, newest first.
    """
    rows = await load_audit_logs(store, driver_id, limit=limit)
    return [AuditLogResponse.model_validate(row) for row in rows]
