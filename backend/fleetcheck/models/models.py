"""
Database models for the FleetCheck application.

Four tables feed the driver test history: the current `test_attempts` table
and three legacy tables (`trips`, `test_history`, `test_results`) that
predate it. Legacy tables keep their native status vocabulary; mapping onto
the canonical TestStatus happens in fleetcheck.core.test_history.adapters.

Profiles, certifications, schedules, critical failures and the audit log
back the driver dashboard around that history.

Users and credentials live with the external identity provider, so driver
ids here are opaque strings without foreign keys.
"""
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    CheckConstraint,
)
import enum
import uuid

from fleetcheck.core.datetime_utils import utc_now

from .base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls) -> list:
    # Store the lowercase values shared with the legacy tables, not member names
    return [member.value for member in enum_cls]


class TestStatus(str, enum.Enum):
    """Canonical test status enumeration.

    Attempts move forward only: pending -> in_progress -> completed | failed.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class TripStatus(str, enum.Enum):
    """Native status vocabulary of the legacy trips table."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"


class RiskLevel(str, enum.Enum):
    """Risk level assigned to a trip inspection."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ScheduleStatus(str, enum.Enum):
    """Shift schedule status enumeration."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CertificationStatus(str, enum.Enum):
    """Driver certification status enumeration."""

    VALID = "valid"
    EXPIRED = "expired"
    SUSPENDED = "suspended"
    REVOKED = "revoked"


class FailureStatus(str, enum.Enum):
    """Resolution state of a critical failure."""

    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"


class MedicalFitnessStatus(str, enum.Enum):
    """Medical fitness state recorded on a driver profile."""

    VALID = "valid"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"


class AccountStatus(str, enum.Enum):
    """Driver account state."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class DriverProfile(Base):
    """Driver profile with license and medical fitness details."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    employee_id = Column(String(50), nullable=True)
    license_number = Column(String(50), nullable=True)
    license_class = Column(String(20), nullable=True)
    license_expiry = Column(Date, nullable=True)
    medical_fitness_status = Column(
        String(20), default=MedicalFitnessStatus.VALID.value, nullable=False
    )
    last_medical_check = Column(Date, nullable=True)
    vehicle_plate = Column(String(20), nullable=True)
    depot_unit = Column(String(100), nullable=True)
    primary_route = Column(String(200), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    account_status = Column(
        String(20), default=AccountStatus.ACTIVE.value, nullable=False
    )
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class Certification(Base):
    """Certification held by a driver (hazmat, first aid, passenger transport...)."""

    __tablename__ = "certifications"

    id = Column(String(36), primary_key=True, default=_new_id)
    driver_id = Column(String(36), nullable=False, index=True)
    certification_type = Column(String(100), nullable=False)
    certification_number = Column(String(100), nullable=True)
    issue_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    status = Column(String(20), default=CertificationStatus.VALID.value, nullable=False)
    issuing_authority = Column(String(200), nullable=True)
    document_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class Schedule(Base):
    """A driver's assigned shift on a route."""

    __tablename__ = "schedules"

    id = Column(String(36), primary_key=True, default=_new_id)
    driver_id = Column(String(36), nullable=False, index=True)
    route_name = Column(String(200), nullable=False)
    shift_date = Column(Date, nullable=False)
    start_time = Column(String(8), nullable=False)  # HH:MM[:SS]
    end_time = Column(String(8), nullable=False)
    vehicle_id = Column(String(36), nullable=True)
    vehicle_plate = Column(String(20), nullable=True)
    status = Column(String(20), default=ScheduleStatus.SCHEDULED.value, nullable=False)

    __table_args__ = (
        Index("ix_schedules_driver_status_date", "driver_id", "status", "shift_date"),
    )


class TestAttempt(Base):
    """Current-system test attempt, created and advanced by the attempt workflow."""

    __tablename__ = "test_attempts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    test_type = Column(String(100), nullable=False)
    status = Column(
        Enum(TestStatus, name="test_status", values_callable=_enum_values),
        default=TestStatus.PENDING,
        nullable=False,
    )
    started_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    score = Column(Float, nullable=True)  # Percentage 0-100
    # "pass" is a Python keyword; the attribute is `passed`
    passed = Column("pass", Boolean, nullable=True)
    answers = Column(JSON, default=list, nullable=False)
    current_question = Column(Integer, default=0, nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        Index("ix_test_attempts_user_type_status", "user_id", "test_type", "status"),
        CheckConstraint(
            "progress >= 0 AND progress <= 100",
            name="ck_test_attempts_progress_range",
        ),
    )


class Trip(Base):
    """Legacy pre-trip inspection record.

    Older rows identify the driver through `driver_id`, newer ones through
    `user_id`; either may be null.
    """

    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=True, index=True)
    driver_id = Column(String(36), nullable=True, index=True)
    status = Column(String(20), nullable=True)
    aggregate_score = Column(Float, nullable=True)
    risk_level = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class TestHistoryEntry(Base):
    """Legacy test history row (always a finished test)."""

    __tablename__ = "test_history"

    id = Column(String(36), primary_key=True, default=_new_id)
    driver_id = Column(String(36), nullable=False, index=True)
    test_type = Column(String(100), nullable=True)
    status = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    final_score = Column(Float, nullable=True)


class LegacyTestResult(Base):
    """Legacy test result row; the score lives in `score` or `percentage`."""

    __tablename__ = "test_results"

    id = Column(String(36), primary_key=True, default=_new_id)
    driver_id = Column(String(36), nullable=False, index=True)
    test_type = Column(String(100), nullable=True)
    status = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    score = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)


class CriticalFailure(Base):
    """A safety-critical defect or incident attributed to a driver."""

    __tablename__ = "critical_failures"

    id = Column(String(36), primary_key=True, default=_new_id)
    driver_id = Column(String(36), nullable=False, index=True)
    failure_category = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(String(20), default=RiskLevel.HIGH.value, nullable=False)
    status = Column(String(20), default=FailureStatus.UNRESOLVED.value, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_critical_failures_driver_created", "driver_id", "created_at"),
    )


class AuditLog(Base):
    """Append-only record of a change made to a driver's data.

    old_values/new_values hold only the fields that changed.
    """

    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    action = Column(String(100), nullable=False)
    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(36), nullable=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_audit_logs_user_created", "user_id", "created_at"),
    )
