from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import EnumStr


def mask_identifier(value: str | None) -> str | None:
    """Keep only the last four digits of an SSN/TIN."""
    if not value:
        return value
    digits = [ch for ch in value if ch.isdigit()]
    if len(digits) <= 4:
        return "*" * len(digits)
    return "***-**-" + "".join(digits[-4:])


# ---------------------------------------------------------------------------
# Physician
# ---------------------------------------------------------------------------


class PhysicianBase(BaseModel):
    full_legal_name: str = Field(min_length=1, max_length=255)
    date_of_birth: date | None = None
    gender: EnumStr | None = None
    npi: str | None = Field(default=None, pattern=r"^\d{10}$")
    dea_number: str | None = Field(default=None, max_length=20)
    caqh_id: str | None = Field(default=None, max_length=40)
    provider_role: EnumStr | None = None
    clinician_type: EnumStr | None = None
    supervising_physician_id: UUID | None = None
    collaboration_physician_id: UUID | None = None
    home_address: str | None = None
    mailing_address: str | None = None
    phone_numbers: list[str] | None = None
    email_address: str | None = Field(default=None, max_length=255)
    emergency_contact: dict[str, Any] | None = None
    practice_name: str | None = Field(default=None, max_length=255)
    malpractice_carrier: str | None = Field(default=None, max_length=255)
    malpractice_policy_number: str | None = Field(default=None, max_length=120)
    coverage_limits: str | None = Field(default=None, max_length=120)
    malpractice_expiration_date: date | None = None
    status: EnumStr = "active"


class PhysicianCreate(PhysicianBase):
    ssn: str | None = Field(default=None, max_length=32)
    tin: str | None = Field(default=None, max_length=32)


class PhysicianUpdate(BaseModel):
    full_legal_name: str | None = Field(default=None, min_length=1, max_length=255)
    date_of_birth: date | None = None
    gender: str | None = None
    ssn: str | None = Field(default=None, max_length=32)
    tin: str | None = Field(default=None, max_length=32)
    npi: str | None = Field(default=None, pattern=r"^\d{10}$")
    dea_number: str | None = Field(default=None, max_length=20)
    caqh_id: str | None = Field(default=None, max_length=40)
    provider_role: str | None = None
    clinician_type: str | None = None
    supervising_physician_id: UUID | None = None
    collaboration_physician_id: UUID | None = None
    home_address: str | None = None
    mailing_address: str | None = None
    phone_numbers: list[str] | None = None
    email_address: str | None = Field(default=None, max_length=255)
    emergency_contact: dict[str, Any] | None = None
    practice_name: str | None = Field(default=None, max_length=255)
    malpractice_carrier: str | None = Field(default=None, max_length=255)
    malpractice_policy_number: str | None = Field(default=None, max_length=120)
    coverage_limits: str | None = Field(default=None, max_length=120)
    malpractice_expiration_date: date | None = None
    status: str | None = None


class PhysicianRead(PhysicianBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    ssn: str | None = None
    tin: str | None = None
    age: int | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("ssn", "tin", mode="before")
    @classmethod
    def _mask(cls, value):
        return mask_identifier(value)


# ---------------------------------------------------------------------------
# Education / work history / hospital affiliations
# ---------------------------------------------------------------------------


class EducationBase(BaseModel):
    education_type: EnumStr
    institution_name: str = Field(min_length=1, max_length=255)
    specialty: str | None = None
    location: str | None = None
    start_date: date | None = None
    completion_date: date | None = None
    graduation_year: int | None = Field(default=None, ge=1900, le=2100)


class EducationCreate(EducationBase):
    pass


class EducationUpdate(BaseModel):
    education_type: str | None = None
    institution_name: str | None = Field(default=None, min_length=1, max_length=255)
    specialty: str | None = None
    location: str | None = None
    start_date: date | None = None
    completion_date: date | None = None
    graduation_year: int | None = Field(default=None, ge=1900, le=2100)


class EducationRead(EducationBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


class WorkHistoryBase(BaseModel):
    employer_name: str = Field(min_length=1, max_length=255)
    position: str | None = None
    start_date: date
    end_date: date | None = None
    address: str | None = None
    supervisor_name: str | None = None
    reason_for_leaving: str | None = None


class WorkHistoryCreate(WorkHistoryBase):
    pass


class WorkHistoryUpdate(BaseModel):
    employer_name: str | None = Field(default=None, min_length=1, max_length=255)
    position: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    address: str | None = None
    supervisor_name: str | None = None
    reason_for_leaving: str | None = None


class WorkHistoryRead(WorkHistoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


class HospitalAffiliationBase(BaseModel):
    hospital_name: str = Field(min_length=1, max_length=255)
    privileges: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: EnumStr = "active"


class HospitalAffiliationCreate(HospitalAffiliationBase):
    pass


class HospitalAffiliationUpdate(BaseModel):
    hospital_name: str | None = Field(default=None, min_length=1, max_length=255)
    privileges: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None


class HospitalAffiliationRead(HospitalAffiliationBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Compliance attestations
# ---------------------------------------------------------------------------


class ComplianceUpsert(BaseModel):
    license_revocations: bool = False
    license_revocations_explanation: str | None = None
    pending_investigations: bool = False
    pending_investigations_explanation: str | None = None
    malpractice_claims: bool = False
    malpractice_claims_explanation: str | None = None
    medicare_sanctions: bool = False
    medicare_sanctions_explanation: str | None = None


class ComplianceRead(ComplianceUpsert):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_compliant: bool
    created_at: datetime
    updated_at: datetime
