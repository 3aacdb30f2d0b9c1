import enum
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base
from app.services import expiration


class CredentialStatus(enum.Enum):
    active = "active"
    expired = "expired"
    pending_renewal = "pending_renewal"


class RenewalCycle(enum.Enum):
    annual = "annual"
    biennial = "biennial"


class ExpiringCredentialMixin:
    """Computed expiration fields shared by every credential table."""

    @property
    def days_until_expiration(self) -> int | None:
        if self.expiration_date is None:
            return None
        return expiration.days_until(self.expiration_date)

    @property
    def expiration_status(self) -> str | None:
        status = expiration.classify(
            self.expiration_date, stored_status=getattr(self, "status", None)
        )
        return status.value if status else None

    @property
    def expiration_severity(self) -> str | None:
        status = expiration.classify(
            self.expiration_date, stored_status=getattr(self, "status", None)
        )
        severity = expiration.severity_for(status)
        return severity.value if severity else None


# ---------------------------------------------------------------------------
# State medical licenses
# ---------------------------------------------------------------------------


class PhysicianLicense(ExpiringCredentialMixin, Base):
    __tablename__ = "physician_licenses"
    __table_args__ = (
        Index("ix_physician_licenses_physician_id", "physician_id"),
        Index("ix_physician_licenses_expiration_date", "expiration_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    license_number: Mapped[str] = mapped_column(String(80), nullable=False)
    license_type: Mapped[str] = mapped_column(String(40), default="medical")
    issue_date: Mapped[date | None] = mapped_column(Date)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    physician = relationship("Physician", back_populates="licenses")

    @property
    def label(self) -> str:
        return f"{self.state} {self.license_type or 'medical'} license #{self.license_number}"


# ---------------------------------------------------------------------------
# Federal DEA registrations and state controlled substance registrations
# ---------------------------------------------------------------------------


class DeaRegistration(ExpiringCredentialMixin, Base):
    __tablename__ = "dea_registrations"
    __table_args__ = (
        Index("ix_dea_registrations_physician_id", "physician_id"),
        Index("ix_dea_registrations_expiration_date", "expiration_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    dea_number: Mapped[str] = mapped_column(String(20), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    mate_attested: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[CredentialStatus] = mapped_column(
        Enum(CredentialStatus), default=CredentialStatus.active
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    physician = relationship("Physician", back_populates="dea_registrations")

    @property
    def label(self) -> str:
        return f"{self.state} DEA registration #{self.dea_number}"


class CsrLicense(ExpiringCredentialMixin, Base):
    __tablename__ = "csr_licenses"
    __table_args__ = (
        Index("ix_csr_licenses_physician_id", "physician_id"),
        Index("ix_csr_licenses_expiration_date", "expiration_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    csr_number: Mapped[str] = mapped_column(String(40), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    renewal_cycle: Mapped[RenewalCycle] = mapped_column(
        Enum(RenewalCycle), nullable=False
    )
    status: Mapped[CredentialStatus] = mapped_column(
        Enum(CredentialStatus), default=CredentialStatus.active
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    physician = relationship("Physician", back_populates="csr_licenses")

    @property
    def label(self) -> str:
        return f"{self.state} CSR license #{self.csr_number}"


# ---------------------------------------------------------------------------
# Board certifications
# ---------------------------------------------------------------------------


class PhysicianCertification(ExpiringCredentialMixin, Base):
    __tablename__ = "physician_certifications"
    __table_args__ = (
        Index("ix_physician_certifications_physician_id", "physician_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    specialty: Mapped[str] = mapped_column(String(160), nullable=False)
    subspecialty: Mapped[str | None] = mapped_column(String(160))
    board_name: Mapped[str] = mapped_column(String(255), nullable=False)
    certificate_number: Mapped[str | None] = mapped_column(String(80))
    certification_date: Mapped[date | None] = mapped_column(Date)
    expiration_date: Mapped[date | None] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    physician = relationship("Physician", back_populates="certifications")

    @property
    def label(self) -> str:
        return f"{self.board_name} certification in {self.specialty}"
