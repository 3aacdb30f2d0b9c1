from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import EnumStr


class RenewalInitiate(BaseModel):
    physician_id: UUID
    entity_type: str
    entity_id: UUID


class RenewalStatusUpdate(BaseModel):
    status: str
    rejection_reason: str | None = Field(default=None, max_length=2000)


class RenewalProgressUpdate(BaseModel):
    progress_percentage: int = Field(ge=0, le=100)


class RenewalUpdate(BaseModel):
    notes: str | None = None
    next_action_required: str | None = Field(default=None, max_length=500)
    next_action_due_date: date | None = None


class ChecklistToggle(BaseModel):
    completed: bool


class ChecklistItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    position: int
    key: str
    task: str
    required: bool
    completed: bool
    completed_at: datetime | None = None
    due_date: date | None = None


class RenewalRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    entity_type: EnumStr
    entity_id: UUID
    status: EnumStr
    application_date: datetime | None = None
    filed_date: datetime | None = None
    approval_date: datetime | None = None
    rejection_date: datetime | None = None
    rejection_reason: str | None = None
    notes: str | None = None
    next_action_required: str | None = None
    next_action_due_date: date | None = None
    progress_percentage: int
    checklist: list[ChecklistItemRead] = []
    created_by: UUID | None = None
    updated_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class TimelineEntry(BaseModel):
    status: str
    date: datetime | None = None
    description: str
    completed: bool


class NextActionsResponse(BaseModel):
    workflow_id: UUID
    status: str
    actions: list[str]


class RenewalStatistics(BaseModel):
    total: int
    by_status: dict[str, int]
    in_progress: int
    pending: int
    completed: int
    rejected: int
    expired: int
    upcoming_in_30_days: int
    upcoming_in_60_days: int
    upcoming_in_90_days: int


class RenewalJobResult(BaseModel):
    processed: int
    affected: list[UUID]
