from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel


class ComplianceRate(BaseModel):
    category: str
    compliant: int
    non_compliant: int
    compliance_rate: float


class ComplianceSummary(BaseModel):
    overall: float
    by_department: list[ComplianceRate]
    by_specialty: list[ComplianceRate]
    by_provider_role: list[ComplianceRate]


class RenewalTrend(BaseModel):
    period: str
    successful: int
    failed: int
    pending: int
    success_rate: float


class ExpirationForecast(BaseModel):
    period: str
    days: int
    licenses: int
    dea_registrations: int
    csr_licenses: int
    certifications: int
    total: int


class DistributionEntry(BaseModel):
    category: str
    value: int
    percentage: float


class LicenseDistribution(BaseModel):
    by_state: list[DistributionEntry]
    by_type: list[DistributionEntry]
    by_status: list[DistributionEntry]


class ProviderMetrics(BaseModel):
    role: str
    total: int
    compliant: int
    non_compliant: int
    compliance_rate: float
    avg_licenses_per_provider: float
    expiring_within_30_days: int


class DeaMetrics(BaseModel):
    total_registrations: int
    active_registrations: int
    expired_registrations: int
    expiring_within_30_days: int
    mate_training_compliance: float
    state_distribution: dict[str, int]


class CsrMetrics(BaseModel):
    total_licenses: int
    active_licenses: int
    expired_licenses: int
    expiring_within_30_days: int
    renewal_cycle_breakdown: dict[str, int]
    state_distribution: dict[str, int]


class DocumentCompleteness(BaseModel):
    physician_id: UUID
    category: str
    required: int
    uploaded: int
    completeness_rate: float
    missing_documents: list[str]


class PhysicianStatusSummary(BaseModel):
    total: int
    status_breakdown: dict[str, int]


class ExpiringLicenseEntry(BaseModel):
    id: UUID
    physician_id: UUID
    physician_name: str
    state: str
    license_number: str
    license_type: str | None = None
    expiration_date: date
    days_until_expiration: int


class LicenseExpirationReport(BaseModel):
    days: int
    expiring_within_days: int
    already_expired: int
    licenses: list[ExpiringLicenseEntry]
    report_generated_at: datetime
