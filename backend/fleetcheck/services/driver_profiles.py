"""
Driver profile and certification writes.

Every change is recorded in the audit log with only the fields that changed.
As in the attempt workflow, these helpers flush but leave committing to the
caller, which wraps them in handle_db_error.
"""
import enum
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetcheck.core.datetime_utils import utc_now
from fleetcheck.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_not_found,
)
from fleetcheck.models import AuditLog, Certification, DriverProfile

logger = logging.getLogger(__name__)

PROFILE_UPDATE_ACTION = "profile_update"
CERTIFICATION_UPSERT_ACTION = "certification_upsert"


def _audit_value(value: Any) -> Any:
    # Audit values are stored as JSON
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def diff_fields(
    current: Any, updates: Dict[str, Any]
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Compare requested values with an object's attributes.

    Returns:
        (old_values, new_values) holding only the fields whose value changes,
        in audit (JSON) form.
    """
    old_values: Dict[str, Any] = {}
    new_values: Dict[str, Any] = {}
    for field, value in updates.items():
        before = getattr(current, field, None)
        if _audit_value(before) == _audit_value(value):
            continue
        old_values[field] = _audit_value(before)
        new_values[field] = _audit_value(value)
    return old_values, new_values


def log_audit_action(
    db: AsyncSession,
    user_id: str,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Add an audit log entry to the session."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        old_values=old_values,
        new_values=new_values,
        created_at=utc_now(),
    )
    db.add(entry)
    return entry


async def get_profile_or_404(db: AsyncSession, driver_id: str) -> DriverProfile:
    """
    Fetch a driver's profile or raise 404 if the driver has none.

    Raises:
        HTTPException: 404 if no profile exists for the driver
    """
    result = await db.execute(
        select(DriverProfile).where(DriverProfile.user_id == driver_id).limit(1)
    )
    profile = result.scalars().first()
    if profile is None:
        raise_not_found(ErrorMessages.profile_not_found(driver_id))
    return profile


async def apply_profile_update(
    db: AsyncSession, profile: DriverProfile, updates: Dict[str, Any]
) -> DriverProfile:
    """
    Apply a partial update to a profile and audit it.

    Fields whose value does not change are ignored; when nothing changes the
    profile is left untouched and no audit entry is written.

    Raises:
        HTTPException: 400 if no fields were provided
    """
    if not updates:
        raise_bad_request(ErrorMessages.EMPTY_PROFILE_UPDATE)

    old_values, new_values = diff_fields(profile, updates)
    if not new_values:
        return profile

    for field in new_values:
        setattr(profile, field, updates[field])
    profile.updated_at = utc_now()

    log_audit_action(
        db,
        user_id=profile.user_id,
        action=PROFILE_UPDATE_ACTION,
        resource_type="profile",
        resource_id=profile.user_id,
        old_values=old_values,
        new_values=new_values,
    )
    await db.flush()

    logger.info(
        f"Updated profile fields {sorted(new_values)} for driver {profile.user_id}",
        extra={"subject_id": profile.user_id},
    )
    return profile


async def upsert_certification(
    db: AsyncSession,
    driver_id: str,
    certification_id: str,
    data: Dict[str, Any],
) -> Certification:
    """
    Create a certification under the given id or replace its fields.

    Raises:
        HTTPException: 400 if the id is already used by another driver
    """
    certification = await db.get(Certification, certification_id)
    now = utc_now()

    if certification is None:
        certification = Certification(
            id=certification_id,
            driver_id=driver_id,
            created_at=now,
            updated_at=now,
            **data,
        )
        db.add(certification)
        old_values: Dict[str, Any] = {}
        new_values = {field: _audit_value(value) for field, value in data.items()}
    else:
        if certification.driver_id != driver_id:
            raise_bad_request(
                ErrorMessages.certification_owned_by_other_driver(certification_id)
            )
        old_values, new_values = diff_fields(certification, data)
        for field in new_values:
            setattr(certification, field, data[field])
        if new_values:
            certification.updated_at = now

    if new_values:
        log_audit_action(
            db,
            user_id=driver_id,
            action=CERTIFICATION_UPSERT_ACTION,
            resource_type="certification",
            resource_id=certification_id,
            old_values=old_values,
            new_values=new_values,
        )
    await db.flush()
    return certification
