from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import EnumStr


class CredentialReadMixin(BaseModel):
    """Computed expiration fields exposed on every credential."""

    days_until_expiration: int | None = None
    expiration_status: str | None = None
    expiration_severity: str | None = None
    label: str


# ---------------------------------------------------------------------------
# Licenses
# ---------------------------------------------------------------------------


class LicenseBase(BaseModel):
    state: str = Field(min_length=2, max_length=2)
    license_number: str = Field(min_length=1, max_length=80)
    license_type: str = Field(default="medical", max_length=40)
    issue_date: date | None = None
    expiration_date: date


class LicenseCreate(LicenseBase):
    pass


class LicenseUpdate(BaseModel):
    state: str | None = Field(default=None, min_length=2, max_length=2)
    license_number: str | None = Field(default=None, min_length=1, max_length=80)
    license_type: str | None = Field(default=None, max_length=40)
    issue_date: date | None = None
    expiration_date: date | None = None


class LicenseRead(CredentialReadMixin, LicenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# DEA registrations
# ---------------------------------------------------------------------------


class DeaRegistrationBase(BaseModel):
    state: str = Field(min_length=2, max_length=2)
    dea_number: str = Field(pattern=r"^[A-Za-z]{2}\d{7}$")
    issue_date: date
    expiration_date: date
    mate_attested: bool = False
    status: EnumStr = "active"


class DeaRegistrationCreate(DeaRegistrationBase):
    pass


class DeaRegistrationUpdate(BaseModel):
    state: str | None = Field(default=None, min_length=2, max_length=2)
    dea_number: str | None = Field(default=None, pattern=r"^[A-Za-z]{2}\d{7}$")
    issue_date: date | None = None
    expiration_date: date | None = None
    mate_attested: bool | None = None
    status: str | None = None


class DeaRegistrationRead(CredentialReadMixin, DeaRegistrationBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# CSR licenses
# ---------------------------------------------------------------------------


class CsrLicenseBase(BaseModel):
    state: str = Field(min_length=2, max_length=2)
    csr_number: str = Field(min_length=1, max_length=40)
    issue_date: date
    expiration_date: date
    renewal_cycle: EnumStr
    status: EnumStr = "active"


class CsrLicenseCreate(CsrLicenseBase):
    pass


class CsrLicenseUpdate(BaseModel):
    state: str | None = Field(default=None, min_length=2, max_length=2)
    csr_number: str | None = Field(default=None, min_length=1, max_length=40)
    issue_date: date | None = None
    expiration_date: date | None = None
    renewal_cycle: str | None = None
    status: str | None = None


class CsrLicenseRead(CredentialReadMixin, CsrLicenseBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Board certifications
# ---------------------------------------------------------------------------


class CertificationBase(BaseModel):
    specialty: str = Field(min_length=1, max_length=160)
    subspecialty: str | None = Field(default=None, max_length=160)
    board_name: str = Field(min_length=1, max_length=255)
    certificate_number: str | None = Field(default=None, max_length=80)
    certification_date: date | None = None
    expiration_date: date | None = None


class CertificationCreate(CertificationBase):
    pass


class CertificationUpdate(BaseModel):
    specialty: str | None = Field(default=None, min_length=1, max_length=160)
    subspecialty: str | None = Field(default=None, max_length=160)
    board_name: str | None = Field(default=None, min_length=1, max_length=255)
    certificate_number: str | None = Field(default=None, max_length=80)
    certification_date: date | None = None
    expiration_date: date | None = None


class CertificationRead(CredentialReadMixin, CertificationBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime
