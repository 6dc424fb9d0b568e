"""
Models package for the FleetCheck backend.
"""
from .base import Base, async_engine, AsyncSessionLocal, get_db
from .models import (
    DriverProfile,
    Certification,
    Schedule,
    TestAttempt,
    Trip,
    TestHistoryEntry,
    LegacyTestResult,
    CriticalFailure,
    AuditLog,
    TestStatus,
    TripStatus,
    RiskLevel,
    ScheduleStatus,
    CertificationStatus,
    FailureStatus,
    MedicalFitnessStatus,
    AccountStatus,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "DriverProfile",
    "Certification",
    "Schedule",
    "TestAttempt",
    "Trip",
    "TestHistoryEntry",
    "LegacyTestResult",
    "CriticalFailure",
    "AuditLog",
    "TestStatus",
    "TripStatus",
    "RiskLevel",
    "ScheduleStatus",
    "CertificationStatus",
    "FailureStatus",
    "MedicalFitnessStatus",
    "AccountStatus",
]
