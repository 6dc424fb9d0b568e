"""
Pydantic schemas for request/response validation.
"""
from .test_attempts import (
    TestAttemptResponse,
    StartTestAttemptRequest,
    UpdateProgressRequest,
    CompleteTestAttemptRequest,
)
from .drivers import (
    TestRecordResponse,
    TestMetricsResponse,
    TestHistoryResponse,
    SafetySummaryResponse,
    ComplianceStatusResponse,
    ScheduleResponse,
)
from .profiles import (
    DriverProfileResponse,
    DriverProfileUpdate,
    CertificationResponse,
    CertificationUpsertRequest,
    CriticalFailureResponse,
    AuditLogResponse,
)

__all__ = [
    "TestAttemptResponse",
    "StartTestAttemptRequest",
    "UpdateProgressRequest",
    "CompleteTestAttemptRequest",
    "TestRecordResponse",
    "TestMetricsResponse",
    "TestHistoryResponse",
    "SafetySummaryResponse",
    "ComplianceStatusResponse",
    "ScheduleResponse",
    "DriverProfileResponse",
    "DriverProfileUpdate",
    "CertificationResponse",
    "CertificationUpsertRequest",
    "CriticalFailureResponse",
    "AuditLogResponse",
]
