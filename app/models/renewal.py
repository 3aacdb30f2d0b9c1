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
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class RenewalEntityType(enum.Enum):
    license = "license"
    dea = "dea"
    csr = "csr"


class RenewalStatus(enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    filed = "filed"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"
    expired = "expired"


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


class RenewalWorkflow(Base):
    __tablename__ = "renewal_workflows"
    __table_args__ = (
        Index("ix_renewal_workflows_physician_id", "physician_id"),
        Index("ix_renewal_workflows_entity", "entity_type", "entity_id"),
        Index("ix_renewal_workflows_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    physician_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("physicians.id"), nullable=False
    )
    entity_type: Mapped[RenewalEntityType] = mapped_column(
        Enum(RenewalEntityType), nullable=False
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    status: Mapped[RenewalStatus] = mapped_column(
        Enum(RenewalStatus), default=RenewalStatus.not_started
    )

    application_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    filed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approval_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # only populated while status is rejected
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    notes: Mapped[str | None] = mapped_column(Text)
    next_action_required: Mapped[str | None] = mapped_column(String(500))
    next_action_due_date: Mapped[date | None] = mapped_column(Date)
    progress_percentage: Mapped[int] = mapped_column(Integer, default=0)

    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    physician = relationship("Physician")
    checklist = relationship(
        "RenewalChecklistItem",
        back_populates="workflow",
        order_by="RenewalChecklistItem.position",
        cascade="all, delete-orphan",
    )


class RenewalChecklistItem(Base):
    __tablename__ = "renewal_checklist_items"
    __table_args__ = (
        Index("ix_renewal_checklist_items_workflow_id", "workflow_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    workflow_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("renewal_workflows.id"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    key: Mapped[str] = mapped_column(String(80), nullable=False)
    task: Mapped[str] = mapped_column(String(500), nullable=False)
    required: Mapped[bool] = mapped_column(Boolean, default=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    due_date: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    workflow = relationship("RenewalWorkflow", back_populates="checklist")
