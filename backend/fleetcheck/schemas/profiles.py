"""
Pydantic schemas for driver profile, certification, critical failure and
audit log endpoints.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, Optional
from datetime import date, datetime

from fleetcheck.models import CertificationStatus, MedicalFitnessStatus


class DriverProfileResponse(BaseModel):
    """Schema for a driver profile."""

    id: str = Field(..., description="Profile ID")
    user_id: str = Field(..., description="Driver ID")
    full_name: str = Field(..., description="Full name")
    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, description="Contact phone")
    employee_id: Optional[str] = Field(None, description="Employer's staff number")
    license_number: Optional[str] = Field(None, description="Driving license number")
    license_class: Optional[str] = Field(None, description="Driving license class")
    license_expiry: Optional[date] = Field(None, description="License expiry date")
    medical_fitness_status: str = Field(
        ..., description="Medical fitness (valid, expired, expiring_soon)"
    )
    last_medical_check: Optional[date] = Field(
        None, description="Date of the last medical fitness check"
    )
    vehicle_plate: Optional[str] = Field(None, description="Assigned vehicle plate")
    depot_unit: Optional[str] = Field(None, description="Home depot or unit")
    primary_route: Optional[str] = Field(None, description="Usual route")
    avatar_url: Optional[str] = Field(None, description="Profile picture URL")
    account_status: str = Field(
        ..., description="Account status (active, suspended, terminated)"
    )
    last_login: Optional[datetime] = Field(None, description="Last sign-in time")
    created_at: datetime = Field(..., description="Profile creation timestamp")
    updated_at: datetime = Field(..., description="Last profile change")

    model_config = ConfigDict(from_attributes=True)


class DriverProfileUpdate(BaseModel):
    """
    Partial profile update.

    Only the fields present in the request body are changed; unknown fields
    are rejected. Account status and login times are not driver-editable.
    """

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    employee_id: Optional[str] = Field(None, max_length=50)
    license_number: Optional[str] = Field(None, max_length=50)
    license_class: Optional[str] = Field(None, max_length=20)
    license_expiry: Optional[date] = None
    medical_fitness_status: Optional[MedicalFitnessStatus] = None
    last_medical_check: Optional[date] = None
    vehicle_plate: Optional[str] = Field(None, max_length=20)
    depot_unit: Optional[str] = Field(None, max_length=100)
    primary_route: Optional[str] = Field(None, max_length=200)
    avatar_url: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be empty")
        return v

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "DriverProfileUpdate":
        """full_name and medical_fitness_status may be changed but not nulled."""
        for name in ("full_name", "medical_fitness_status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields sent by the client, enums reduced to their stored values."""
        values = self.model_dump(exclude_unset=True)
        if values.get("medical_fitness_status") is not None:
            values["medical_fitness_status"] = values["medical_fitness_status"].value
        return values


class CertificationResponse(BaseModel):
    """Schema for a driver certification."""

    id: str = Field(..., description="Certification ID")
    driver_id: str = Field(..., description="Driver ID")
    certification_type: str = Field(..., description="e.g. Hazmat, First Aid")
    certification_number: Optional[str] = Field(None, description="Issuer's number")
    issue_date: Optional[date] = Field(None, description="Issue date")
    expiry_date: Optional[date] = Field(None, description="Expiry date")
    status: str = Field(..., description="valid, expired, suspended or revoked")
    issuing_authority: Optional[str] = Field(None, description="Issuing body")
    document_url: Optional[str] = Field(None, description="Scanned certificate")

    model_config = ConfigDict(from_attributes=True)


class CertificationUpsertRequest(BaseModel):
    """Schema for creating or replacing a certification."""

    certification_type: str = Field(..., min_length=1, max_length=100)
    certification_number: Optional[str] = Field(None, max_length=100)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: CertificationStatus = CertificationStatus.VALID
    issuing_authority: Optional[str] = Field(None, max_length=200)
    document_url: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def expiry_after_issue(self) -> "CertificationUpsertRequest":
        if (
            self.issue_date is not None
            and self.expiry_date is not None
            and self.expiry_date < self.issue_date
        ):
            raise ValueError("expiry_date cannot be before issue_date")
        return self


class CriticalFailureResponse(BaseModel):
    """Schema for a safety-critical failure."""

    id: str = Field(..., description="Failure ID")
    driver_id: str = Field(..., description="Driver ID")
    failure_category: str = Field(..., description="e.g. Brakes, Lighting")
    description: str = Field(..., description="What failed")
    severity: str = Field(..., description="low, medium, high or critical")
    status: str = Field(..., description="unresolved or resolved")
    created_at: datetime = Field(..., description="When the failure was recorded")
    resolved_at: Optional[datetime] = Field(None, description="When it was resolved")

    model_config = ConfigDict(from_attributes=True)


class AuditLogResponse(BaseModel):
    """Schema for one audit log entry."""

    id: str = Field(..., description="Entry ID")
    user_id: str = Field(..., description="Driver whose data changed")
    action: str = Field(..., description="e.g. profile_update")
    resource_type: Optional[str] = Field(None, description="e.g. profile")
    resource_id: Optional[str] = Field(None, description="ID of the changed resource")
    old_values: Optional[Dict[str, Any]] = Field(
        None, description="Changed fields before the change"
    )
    new_values: Optional[Dict[str, Any]] = Field(
        None, description="Changed fields after the change"
    )
    created_at: datetime = Field(..., description="When the change was made")

    model_config = ConfigDict(from_attributes=True)
