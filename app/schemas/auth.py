from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import EnumStr


class LoginRequest(BaseModel):
    login: str = Field(min_length=1, description="Username or email address")
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserRead


class UserBase(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    username: str = Field(min_length=1, max_length=120)
    full_name: str | None = None
    role: str = "staff"


class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)


class UserUpdate(BaseModel):
    email: str | None = Field(default=None, min_length=3, max_length=255)
    full_name: str | None = None
    role: str | None = None
    is_active: bool | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    full_name: str | None = None
    role: EnumStr
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserSettingsUpdate(BaseModel):
    theme: str | None = Field(default=None, pattern="^(light|dark|system)$")
    language: str | None = Field(default=None, max_length=10)
    timezone: str | None = Field(default=None, max_length=64)
    date_format: str | None = Field(default=None, max_length=20)
    email_notifications: bool | None = None
    desktop_notifications: bool | None = None
    sms_notifications: bool | None = None
    default_page_size: int | None = Field(default=None, ge=5, le=200)
    show_archived: bool | None = None
    session_timeout: int | None = Field(default=None, ge=300, le=86400)
    custom_preferences: dict[str, Any] | None = None


class UserSettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    theme: str
    language: str
    timezone: str
    date_format: str
    email_notifications: bool
    desktop_notifications: bool
    sms_notifications: bool
    default_page_size: int
    show_archived: bool
    session_timeout: int
    custom_preferences: dict[str, Any] | None = None
    updated_at: datetime


LoginResponse.model_rebuild()
