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
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Gender(enum.Enum):
    male = "male"
    female = "female"
    other = "other"
    prefer_not_to_say = "prefer_not_to_say"


class ProviderRole(enum.Enum):
    physician = "physician"
    pa = "pa"
    np = "np"


class ClinicianType(enum.Enum):
    md = "md"
    do = "do"
    pa = "pa"
    np = "np"
    cnm = "cnm"
    crna = "crna"
    cns = "cns"
    rn = "rn"
    lpn = "lpn"
    lvn = "lvn"
    cna = "cna"
    na = "na"
    ma = "ma"
    admin_staff = "admin_staff"
    receptionist = "receptionist"
    billing_specialist = "billing_specialist"
    medical_technician = "medical_technician"
    lab_technician = "lab_technician"
    radiology_tech = "radiology_tech"
    pharmacist = "pharmacist"
    dentist = "dentist"
    optometrist = "optometrist"
    podiatrist = "podiatrist"
    chiropractor = "chiropractor"
    physical_therapist = "physical_therapist"
    occupational_therapist = "occupational_therapist"
    speech_language_pathologist = "speech_language_pathologist"
    respiratory_therapist = "respiratory_therapist"
    paramedic = "paramedic"
    emt = "emt"
    radiation_therapist = "radiation_therapist"
    sonographer = "sonographer"
    dietitian = "dietitian"
    social_worker = "social_worker"
    case_manager = "case_manager"
    other = "other"


class PhysicianStatus(enum.Enum):
    active = "active"
    inactive = "inactive"
    pending = "pending"
    suspended = "suspended"
    terminated = "terminated"


class EducationType(enum.Enum):
    medical_school = "medical_school"
    residency = "residency"
    fellowship = "fellowship"
    internship = "internship"


def _utcnow():
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Physicians
# ---------------------------------------------------------------------------


class Physician(Base):
    __tablename__ = "physicians"
    __table_args__ = (
        Index("ix_physicians_full_legal_name", "full_legal_name"),
        Index("ix_physicians_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    full_legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    gender: Mapped[Gender | None] = mapped_column(Enum(Gender))
    ssn: Mapped[str | None] = mapped_column(String(32))
    npi: Mapped[str | None] = mapped_column(String(10), unique=True)
    tin: Mapped[str | None] = mapped_column(String(32))
    dea_number: Mapped[str | None] = mapped_column(String(20))
    caqh_id: Mapped[str | None] = mapped_column(String(40))

    provider_role: Mapped[ProviderRole | None] = mapped_column(Enum(ProviderRole))
    clinician_type: Mapped[ClinicianType | None] = mapped_column(Enum(ClinicianType))
    supervising_physician_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id")
    )
    collaboration_physician_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id")
    )

    home_address: Mapped[str | None] = mapped_column(Text)
    mailing_address: Mapped[str | None] = mapped_column(Text)
    phone_numbers: Mapped[list | None] = mapped_column(JSON)
    email_address: Mapped[str | None] = mapped_column(String(255))
    emergency_contact: Mapped[dict | None] = mapped_column(JSON)
    practice_name: Mapped[str | None] = mapped_column(String(255))

    malpractice_carrier: Mapped[str | None] = mapped_column(String(255))
    malpractice_policy_number: Mapped[str | None] = mapped_column(String(120))
    coverage_limits: Mapped[str | None] = mapped_column(String(120))
    malpractice_expiration_date: Mapped[date | None] = mapped_column(Date)

    status: Mapped[PhysicianStatus] = mapped_column(
        Enum(PhysicianStatus), default=PhysicianStatus.active
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    licenses = relationship("PhysicianLicense", back_populates="physician")
    dea_registrations = relationship("DeaRegistration", back_populates="physician")
    csr_licenses = relationship("CsrLicense", back_populates="physician")
    certifications = relationship("PhysicianCertification", back_populates="physician")
    education = relationship("PhysicianEducation", back_populates="physician")
    work_history = relationship("PhysicianWorkHistory", back_populates="physician")
    hospital_affiliations = relationship(
        "PhysicianHospitalAffiliation", back_populates="physician"
    )
    compliance = relationship(
        "PhysicianCompliance", back_populates="physician", uselist=False
    )
    documents = relationship("PhysicianDocument", back_populates="physician")

    @property
    def age(self) -> int | None:
        if self.date_of_birth is None:
            return None
        today = date.today()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


# ---------------------------------------------------------------------------
# Background records
# ---------------------------------------------------------------------------


class PhysicianEducation(Base):
    __tablename__ = "physician_education"
    __table_args__ = (Index("ix_physician_education_physician_id", "physician_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    education_type: Mapped[EducationType] = mapped_column(
        Enum(EducationType), nullable=False
    )
    institution_name: Mapped[str] = mapped_column(String(255), nullable=False)
    specialty: Mapped[str | None] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(255))
    start_date: Mapped[date | None] = mapped_column(Date)
    completion_date: Mapped[date | None] = mapped_column(Date)
    graduation_year: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    physician = relationship("Physician", back_populates="education")


class PhysicianWorkHistory(Base):
    __tablename__ = "physician_work_history"
    __table_args__ = (
        Index("ix_physician_work_history_physician_id", "physician_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    employer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str | None] = mapped_column(String(255))
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    address: Mapped[str | None] = mapped_column(Text)
    supervisor_name: Mapped[str | None] = mapped_column(String(255))
    reason_for_leaving: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    physician = relationship("Physician", back_populates="work_history")


class PhysicianHospitalAffiliation(Base):
    __tablename__ = "physician_hospital_affiliations"
    __table_args__ = (
        Index("ix_physician_hospital_affiliations_physician_id", "physician_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    hospital_name: Mapped[str] = mapped_column(String(255), nullable=False)
    privileges: Mapped[list | None] = mapped_column(JSON)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[PhysicianStatus] = mapped_column(
        Enum(PhysicianStatus), default=PhysicianStatus.active
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    physician = relationship("Physician", back_populates="hospital_affiliations")


class PhysicianCompliance(Base):
    __tablename__ = "physician_compliance"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False, unique=True
    )
    license_revocations: Mapped[bool] = mapped_column(Boolean, default=False)
    license_revocations_explanation: Mapped[str | None] = mapped_column(Text)
    pending_investigations: Mapped[bool] = mapped_column(Boolean, default=False)
    pending_investigations_explanation: Mapped[str | None] = mapped_column(Text)
    malpractice_claims: Mapped[bool] = mapped_column(Boolean, default=False)
    malpractice_claims_explanation: Mapped[str | None] = mapped_column(Text)
    medicare_sanctions: Mapped[bool] = mapped_column(Boolean, default=False)
    medicare_sanctions_explanation: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    physician = relationship("Physician", back_populates="compliance")

    @property
    def is_compliant(self) -> bool:
        return not (
            self.license_revocations
            or self.pending_investigations
            or self.malpractice_claims
            or self.medicare_sanctions
        )
