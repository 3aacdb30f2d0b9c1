from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import settings
from app.models.document import DocumentType, PhysicianDocument
from app.models.physician import Physician
from app.schemas.document import DocumentRegister, UploadURLRequest
from app.services.common import (
    apply_ordering,
    coerce_uuid,
    get_or_404,
    paginate,
)
from app.services.response import ListResponseMixin
from app.services.storage import storage
from app.services.validation import validate_enum

logger = logging.getLogger(__name__)

ALLOWED_FILE_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def validate_file(file_name: str, mime_type: str, file_size: int | None) -> None:
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    expected = ALLOWED_FILE_TYPES.get(extension)
    if expected is None:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "invalid_file_type",
                "message": (
                    "File type not allowed. Allowed types: "
                    + ", ".join(ALLOWED_FILE_TYPES)
                ),
                "details": {"file_name": file_name},
            },
        )
    if mime_type.lower() != expected:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "mime_type_mismatch",
                "message": f"MIME type does not match .{extension} file",
                "details": {"expected": expected, "received": mime_type},
            },
        )
    if file_size is not None and file_size > settings.document_max_size_bytes:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "file_too_large",
                "message": "File exceeds the maximum allowed size",
                "details": {
                    "max_bytes": settings.document_max_size_bytes,
                    "received_bytes": file_size,
                },
            },
        )


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_physician(db: Session, physician_id) -> Physician:
    return get_or_404(db, Physician, physician_id, "Physician")


def _current_versions(db: Session, physician_id, document_type, exclude_id=None):
    query = (
        db.query(PhysicianDocument)
        .filter(PhysicianDocument.physician_id == physician_id)
        .filter(PhysicianDocument.document_type == document_type)
        .filter(PhysicianDocument.is_current.is_(True))
    )
    if exclude_id is not None:
        query = query.filter(PhysicianDocument.id != exclude_id)
    return query.all()


def _archive_current(db: Session, physician_id, document_type, exclude_id=None) -> None:
    for doc in _current_versions(db, physician_id, document_type, exclude_id):
        doc.is_current = False
        doc.archived_at = _now()
        logger.info("Archived document %s", doc.id)
    # the partial unique index must see the archive before a new current row
    db.flush()


class Documents(ListResponseMixin):
    @staticmethod
    def request_upload(db: Session, physician_id: str, payload: UploadURLRequest) -> dict:
        physician = get_physician(db, physician_id)
        document_type = validate_enum("document_type", payload.document_type, DocumentType)
        validate_file(payload.file_name, payload.mime_type, payload.file_size)
        storage_key = storage.generate_storage_key(
            physician.id, document_type.value, payload.file_name
        )
        upload_url = storage.generate_upload_url(storage_key, payload.mime_type)
        return {
            "upload_url": upload_url,
            "storage_key": storage_key,
            "expires_in": settings.s3_presigned_url_expiry,
        }

    @staticmethod
    def register(
        db: Session, physician_id: str, payload: DocumentRegister, uploaded_by=None
    ) -> PhysicianDocument:
        """Record an uploaded file as the new current version of its type."""
        physician = get_physician(db, physician_id)
        document_type = validate_enum("document_type", payload.document_type, DocumentType)
        validate_file(payload.file_name, payload.mime_type, payload.file_size)
        if not storage.key_belongs_to(payload.storage_key, physician.id):
            raise HTTPException(
                status_code=400, detail="Storage key does not belong to this physician"
            )
        if storage.is_configured():
            stored_size = storage.object_size(payload.storage_key)
            if stored_size is None:
                raise HTTPException(status_code=400, detail="Uploaded file not found")
            validate_file(payload.file_name, payload.mime_type, stored_size)

        latest_version = (
            db.query(func.max(PhysicianDocument.version))
            .filter(PhysicianDocument.physician_id == physician.id)
            .filter(PhysicianDocument.document_type == document_type)
            .scalar()
        )
        _archive_current(db, physician.id, document_type)
        document = PhysicianDocument(
            physician_id=physician.id,
            document_type=document_type,
            file_name=payload.file_name,
            storage_key=payload.storage_key,
            file_size=payload.file_size,
            mime_type=payload.mime_type.lower(),
            is_sensitive=payload.is_sensitive,
            version=(latest_version or 0) + 1,
            is_current=True,
            uploaded_by=uploaded_by,
        )
        db.add(document)
        db.commit()
        db.refresh(document)
        logger.info(
            "Registered document %s (%s v%s)",
            document.id,
            document_type.value,
            document.version,
        )
        return document

    @staticmethod
    def get(db: Session, document_id: str) -> PhysicianDocument:
        return get_or_404(db, PhysicianDocument, document_id, "Document")

    @staticmethod
    def list(
        db: Session,
        physician_id: str | None,
        document_type: str | None,
        current_only: bool,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[PhysicianDocument]:
        query = db.query(PhysicianDocument)
        if physician_id:
            query = query.filter(
                PhysicianDocument.physician_id == coerce_uuid(physician_id)
            )
        if document_type:
            query = query.filter(
                PhysicianDocument.document_type
                == validate_enum("document_type", document_type, DocumentType)
            )
        if current_only:
            query = query.filter(PhysicianDocument.is_current.is_(True))
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": PhysicianDocument.created_at,
                "version": PhysicianDocument.version,
                "file_name": PhysicianDocument.file_name,
            },
        )
        return paginate(query, limit, offset)

    @staticmethod
    def set_current(db: Session, document_id: str) -> PhysicianDocument:
        document = Documents.get(db, document_id)
        if document.is_current:
            return document
        _archive_current(
            db, document.physician_id, document.document_type, exclude_id=document.id
        )
        document.is_current = True
        document.archived_at = None
        db.commit()
        db.refresh(document)
        logger.info("Set document %s as current v%s", document.id, document.version)
        return document

    @staticmethod
    def archive(db: Session, document_id: str) -> PhysicianDocument:
        document = Documents.get(db, document_id)
        if document.is_current:
            document.is_current = False
            document.archived_at = _now()
            db.commit()
            db.refresh(document)
            logger.info("Archived document %s", document.id)
        return document

    @staticmethod
    def history(
        db: Session, physician_id: str, document_type: str
    ) -> list[PhysicianDocument]:
        physician = get_physician(db, physician_id)
        doc_type = validate_enum("document_type", document_type, DocumentType)
        return (
            db.query(PhysicianDocument)
            .filter(PhysicianDocument.physician_id == physician.id)
            .filter(PhysicianDocument.document_type == doc_type)
            .order_by(PhysicianDocument.version.desc())
            .all()
        )

    @staticmethod
    def current(db: Session, physician_id: str) -> list[PhysicianDocument]:
        physician = get_physician(db, physician_id)
        return (
            db.query(PhysicianDocument)
            .filter(PhysicianDocument.physician_id == physician.id)
            .filter(PhysicianDocument.is_current.is_(True))
            .order_by(PhysicianDocument.document_type.asc())
            .all()
        )

    @staticmethod
    def download_url(db: Session, document_id: str) -> dict:
        document = Documents.get(db, document_id)
        url = storage.generate_download_url(document.storage_key, document.file_name)
        return {"download_url": url, "expires_in": settings.s3_presigned_url_expiry}

    @staticmethod
    def stats(db: Session, physician_id: str) -> dict:
        physician = get_physician(db, physician_id)
        documents = (
            db.query(PhysicianDocument)
            .filter(PhysicianDocument.physician_id == physician.id)
            .all()
        )
        by_type: dict[str, int] = {}
        total_size = 0
        last_upload = None
        for doc in documents:
            by_type[doc.document_type.value] = by_type.get(doc.document_type.value, 0) + 1
            total_size += doc.file_size or 0
            if last_upload is None or doc.created_at > last_upload:
                last_upload = doc.created_at
        return {
            "total_documents": len(documents),
            "current_documents": sum(1 for doc in documents if doc.is_current),
            "documents_by_type": by_type,
            "total_size": total_size,
            "last_upload_date": last_upload,
        }


documents = Documents()
