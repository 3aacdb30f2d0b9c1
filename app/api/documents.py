from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.document import DocumentType
from app.schemas.common import ListResponse
from app.schemas.document import (
    DocumentRead,
    DocumentRegister,
    DocumentStats,
    DownloadURLResponse,
    UploadURLRequest,
    UploadURLResponse,
)
from app.services import document as document_service
from app.services.validation import enum_field

router = APIRouter(tags=["documents"])


# ------------------------------------------------------------------
# Upload flow
# ------------------------------------------------------------------


@router.post(
    "/physicians/{physician_id}/documents/upload-url",
    response_model=UploadURLResponse,
    dependencies=[Depends(enum_field("document_type", DocumentType))],
)
def request_upload_url(
    physician_id: str, payload: UploadURLRequest, db: Session = Depends(get_db)
):
    return document_service.documents.request_upload(db, physician_id, payload)


@router.post(
    "/physicians/{physician_id}/documents",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enum_field("document_type", DocumentType))],
)
def register_document(
    physician_id: str,
    payload: DocumentRegister,
    request: Request,
    db: Session = Depends(get_db),
):
    user = getattr(request.state, "user", None)
    return document_service.documents.register(
        db, physician_id, payload, uploaded_by=user.id if user else None
    )


# ------------------------------------------------------------------
# Per-physician views
# ------------------------------------------------------------------


@router.get(
    "/physicians/{physician_id}/documents",
    response_model=ListResponse[DocumentRead],
    dependencies=[Depends(enum_field("document_type", DocumentType, "query"))],
)
def list_physician_documents(
    physician_id: str,
    document_type: str | None = None,
    current_only: bool = False,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    document_service.get_physician(db, physician_id)
    return document_service.documents.list_response(
        db,
        physician_id,
        document_type,
        current_only,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.get(
    "/physicians/{physician_id}/documents/current",
    response_model=list[DocumentRead],
)
def current_documents(physician_id: str, db: Session = Depends(get_db)):
    return document_service.documents.current(db, physician_id)


@router.get(
    "/physicians/{physician_id}/documents/stats",
    response_model=DocumentStats,
)
def document_stats(physician_id: str, db: Session = Depends(get_db)):
    return document_service.documents.stats(db, physician_id)


@router.get(
    "/physicians/{physician_id}/documents/history/{document_type}",
    response_model=list[DocumentRead],
    dependencies=[Depends(enum_field("document_type", DocumentType, "path"))],
)
def document_history(
    physician_id: str, document_type: str, db: Session = Depends(get_db)
):
    return document_service.documents.history(db, physician_id, document_type)


# ------------------------------------------------------------------
# Single document
# ------------------------------------------------------------------


@router.get("/documents/{document_id}", response_model=DocumentRead)
def get_document(document_id: str, db: Session = Depends(get_db)):
    return document_service.documents.get(db, document_id)


@router.post("/documents/{document_id}/set-current", response_model=DocumentRead)
def set_current_document(document_id: str, db: Session = Depends(get_db)):
    return document_service.documents.set_current(db, document_id)


@router.delete("/documents/{document_id}", response_model=DocumentRead)
def archive_document(document_id: str, db: Session = Depends(get_db)):
    return document_service.documents.archive(db, document_id)


@router.get(
    "/documents/{document_id}/download-url", response_model=DownloadURLResponse
)
def document_download_url(document_id: str, db: Session = Depends(get_db)):
    return document_service.documents.download_url(db, document_id)
