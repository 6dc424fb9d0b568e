"""
Driver compliance checks.

A driver is compliant when their license is valid and not about to expire,
their medical check is recent enough and none of their certifications has
expired. Thresholds come from settings:

- LICENSE_EXPIRY_WARNING_DAYS: days before expiry that trigger a warning
- MEDICAL_CHECK_MAX_AGE_DAYS: maximum age of the last medical check
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Protocol

from fleetcheck.core.config import settings
from fleetcheck.core.datetime_utils import parse_timestamp, utc_now
from fleetcheck.core.graceful_failure import graceful_failure

logger = logging.getLogger(__name__)

LICENSE_EXPIRED = "License has expired"
LICENSE_EXPIRES_SOON = "License expires soon"
MEDICAL_CHECK_REQUIRED = "Medical check required"
COMPLIANCE_UNVERIFIABLE = "Unable to verify compliance"

_SECONDS_PER_DAY = 24 * 60 * 60


class ComplianceStore(Protocol):
    async def fetch_profile(self, driver_id: str) -> Optional[Mapping[str, Any]]:
        ...

    async def fetch_certifications(self, driver_id: str) -> List[Mapping[str, Any]]:
        ...


@dataclass
class ComplianceStatus:
    compliant: bool
    issues: List[str] = field(default_factory=list)


def _days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, partial days rounded up."""
    return math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)


def evaluate_compliance(
    profile: Optional[Mapping[str, Any]],
    certifications: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> ComplianceStatus:
    """
    Evaluate a driver's compliance from their profile and certifications.

    Args:
        profile: Driver profile row, or None when the driver has no profile
        certifications: Certification rows for the driver
        now: Reference time (defaults to the current UTC time)

    Returns:
        ComplianceStatus listing every issue found

    Raises:
        ValueError: If a stored date cannot be parsed
    """
    now = now or utc_now()
    issues: List[str] = []

    if profile:
        license_expiry = parse_timestamp(profile.get("license_expiry"))
        if license_expiry is not None:
            days_until_expiry = _days_between(now, license_expiry)
            if days_until_expiry < 0:
                issues.append(LICENSE_EXPIRED)
            elif days_until_expiry < settings.LICENSE_EXPIRY_WARNING_DAYS:
                issues.append(LICENSE_EXPIRES_SOON)

        last_medical_check = parse_timestamp(profile.get("last_medical_check"))
        if last_medical_check is not None:
            days_since_medical = _days_between(last_medical_check, now)
            if days_since_medical > settings.MEDICAL_CHECK_MAX_AGE_DAYS:
                issues.append(MEDICAL_CHECK_REQUIRED)

    expired = 0
    for certification in certifications:
        expiry_date = parse_timestamp(certification.get("expiry_date"))
        if expiry_date is not None and expiry_date < now:
            expired += 1
    if expired:
        issues.append(f"{expired} certification(s) expired")

    return ComplianceStatus(compliant=not issues, issues=issues)


async def check_compliance(
    store: ComplianceStore, driver_id: str
) -> ComplianceStatus:
    """
    Load the driver's profile and certifications and evaluate compliance.

    A failed lookup reports the driver non-compliant with a single
    COMPLIANCE_UNVERIFIABLE issue.
    """
    status = ComplianceStatus(compliant=False, issues=[COMPLIANCE_UNVERIFIABLE])
    with graceful_failure(
        "check compliance", logger, context={"subject_id": driver_id}
    ):
        profile = await store.fetch_profile(driver_id)
        certifications = await store.fetch_certifications(driver_id)
        status = evaluate_compliance(profile, certifications)
    return status
