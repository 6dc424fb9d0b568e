"""
Services package for business logic.
"""

from .driver_profiles import (
    apply_profile_update,
    get_profile_or_404,
    log_audit_action,
    upsert_certification,
)
from .record_store import (
    SqlRecordStore,
    get_record_store,
    load_audit_logs,
    load_certifications,
    load_critical_failures,
    load_upcoming_schedules,
)
from .test_attempts import (
    apply_completion,
    apply_progress,
    create_or_resume_attempt,
    get_attempt_or_404,
)

__all__ = [
    "apply_profile_update",
    "get_profile_or_404",
    "log_audit_action",
    "upsert_certification",
    "SqlRecordStore",
    "get_record_store",
    "load_audit_logs",
    "load_certifications",
    "load_critical_failures",
    "load_upcoming_schedules",
    "apply_completion",
    "apply_progress",
    "create_or_resume_attempt",
    "get_attempt_or_404",
]
