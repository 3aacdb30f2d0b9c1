from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import EnumStr


class UploadURLRequest(BaseModel):
    document_type: str
    file_name: str = Field(min_length=1, max_length=500)
    mime_type: str = Field(min_length=1, max_length=255)
    file_size: int | None = Field(default=None, ge=0)


class UploadURLResponse(BaseModel):
    upload_url: str
    storage_key: str
    expires_in: int


class DocumentRegister(BaseModel):
    document_type: str
    file_name: str = Field(min_length=1, max_length=500)
    storage_key: str = Field(min_length=1, max_length=1000)
    file_size: int = Field(ge=0)
    mime_type: str = Field(min_length=1, max_length=255)
    is_sensitive: bool = True


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    physician_id: UUID
    document_type: EnumStr
    file_name: str
    storage_key: str
    file_size: int | None = None
    mime_type: str | None = None
    version: int
    is_current: bool
    is_sensitive: bool
    uploaded_by: UUID | None = None
    archived_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class DownloadURLResponse(BaseModel):
    download_url: str
    expires_in: int


class DocumentStats(BaseModel):
    total_documents: int
    current_documents: int
    documents_by_type: dict[str, int]
    total_size: int
    last_upload_date: datetime | None = None
