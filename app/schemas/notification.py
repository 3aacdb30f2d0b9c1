from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.schemas.common import EnumStr


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    type: EnumStr
    entity_id: UUID
    notification_date: date
    days_before_expiry: int
    severity: EnumStr
    sent_status: EnumStr
    sent_at: datetime | None = None
    read_at: datetime | None = None
    is_read: bool
    error_message: str | None = None
    delivery_attempts: int = 0
    provider_name: str
    license_type: str
    state: str
    expiration_date: date
    created_at: datetime
    updated_at: datetime


class FeedResponse(BaseModel):
    days: int
    generated: int
    unread: int
    items: list[NotificationRead]


class MarkReadRequest(BaseModel):
    notification_ids: list[UUID]


class MarkAllReadRequest(BaseModel):
    physician_id: UUID | None = None


class UnreadCountResponse(BaseModel):
    count: int


class NotificationRunResult(BaseModel):
    processed: int
    sent: int = 0
    failed: int = 0
