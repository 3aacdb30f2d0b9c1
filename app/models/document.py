import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class DocumentType(enum.Enum):
    drivers_license = "drivers_license"
    social_security_card = "social_security_card"
    dea_certificate = "dea_certificate"
    npi_confirmation = "npi_confirmation"
    w9_form = "w9_form"
    liability_insurance = "liability_insurance"
    medical_license = "medical_license"
    board_certification = "board_certification"
    controlled_substance_registration = "controlled_substance_registration"
    medical_diploma = "medical_diploma"
    residency_certificate = "residency_certificate"
    fellowship_certificate = "fellowship_certificate"
    hospital_privilege_letter = "hospital_privilege_letter"
    employment_verification = "employment_verification"
    malpractice_insurance = "malpractice_insurance"
    npdb_report = "npdb_report"
    cv = "cv"
    immunization_records = "immunization_records"
    citizenship_proof = "citizenship_proof"


class PhysicianDocument(Base):
    """One uploaded version of a physician document.

    Versions of the same document type share ``(physician_id, document_type)``;
    at most one of them is current at any time.
    """

    __tablename__ = "physician_documents"
    __table_args__ = (
        Index("ix_physician_documents_physician_id", "physician_id"),
        Index(
            "uq_physician_documents_current",
            "physician_id",
            "document_type",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType), nullable=False
    )
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    storage_key: Mapped[str] = mapped_column(String(1000), nullable=False)
    file_size: Mapped[int | None] = mapped_column(BigInteger)
    mime_type: Mapped[str | None] = mapped_column(String(255))
    version: Mapped[int] = mapped_column(Integer, default=1)
    is_current: Mapped[bool] = mapped_column(Boolean, default=True)
    is_sensitive: Mapped[bool] = mapped_column(Boolean, default=True)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    physician = relationship("Physician", back_populates="documents")
