"""
Pydantic schemas for driver dashboard endpoints.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime


class TestRecordResponse(BaseModel):
    """One entry of the unified test history."""

    id: Union[str, int] = Field(
        ..., description="Record ID as stored (unique across sources)"
    )
    subject_id: str = Field(..., description="Driver the record belongs to")
    category: str = Field(..., description="Assessment label")
    status: str = Field(
        ..., description="Canonical status (pending, in_progress, completed, failed)"
    )
    started_at: datetime = Field(..., description="When the assessment started")
    completed_at: Optional[datetime] = Field(
        None, description="When the assessment finished (terminal records only)"
    )
    score: Optional[float] = Field(None, description="Score as a percentage 0-100")
    passed: Optional[bool] = Field(
        None, description="Pass flag; null means unknown rather than failed"
    )
    answers: List[Any] = Field(default_factory=list, description="Recorded answers")
    progress: int = Field(..., ge=0, le=100, description="Completion percentage")
    source: str = Field(
        ..., description="Originating source (current, trips, history, results)"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestMetricsResponse(BaseModel):
    """Summary metrics over the unified test history."""

    total: int = Field(..., ge=0, description="Number of records")
    completed: int = Field(..., ge=0, description="Completed records")
    pending: int = Field(..., ge=0, description="Pending records")
    failed: int = Field(..., ge=0, description="Failed records")
    success_rate: int = Field(
        ...,
        ge=0,
        le=100,
        description="Percentage of completed records that passed",
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestHistoryResponse(BaseModel):
    """Schema for a driver's unified test history."""

    driver_id: str = Field(..., description="Driver ID")
    records: List[TestRecordResponse] = Field(
        ..., description="Records sorted by start time, newest first"
    )
    metrics: TestMetricsResponse = Field(..., description="Summary metrics")
    failed_sources: List[str] = Field(
        default_factory=list, description="Sources that could not be read"
    )
    rejected_records: int = Field(
        0, ge=0, description="Rows skipped because they were malformed"
    )
    degraded: bool = Field(
        False, description="True when no source could be read and the list is empty"
    )


class SafetySummaryResponse(BaseModel):
    """Schema for a driver's inspection safety summary."""

    total_inspections: int = Field(..., ge=0, description="All pre-trip inspections")
    completed_inspections: int = Field(..., ge=0, description="Approved inspections")
    pending_inspections: int = Field(
        ..., ge=0, description="Inspections pending or under review"
    )
    approval_rate: int = Field(
        ..., ge=0, le=100, description="Percentage of inspections approved"
    )
    risk_distribution: Dict[str, int] = Field(
        ..., description="Inspection counts per risk level"
    )
    last_inspection_date: Optional[datetime] = Field(
        None, description="Date of the most recent inspection"
    )
    last_risk_level: Optional[str] = Field(
        None, description="Risk level of the most recent inspection"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ComplianceStatusResponse(BaseModel):
    """Schema for a driver's compliance status."""

    compliant: bool = Field(..., description="True when no issues were found")
    issues: List[str] = Field(default_factory=list, description="Compliance issues")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ScheduleResponse(BaseModel):
    """Schema for an upcoming shift."""

    id: str = Field(..., description="Schedule ID")
    route_name: str = Field(..., description="Route name")
    shift_date: date = Field(..., description="Shift date")
    start_time: str = Field(..., description="Shift start time (HH:MM)")
    end_time: str = Field(..., description="Shift end time (HH:MM)")
    vehicle_id: Optional[str] = Field(None, description="Assigned vehicle ID")
    vehicle_plate: Optional[str] = Field(None, description="Assigned vehicle plate")
    status: str = Field(..., description="Schedule status")
