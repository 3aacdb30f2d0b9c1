import logging
import re
import uuid

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from fastapi import HTTPException

from app.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_name(file_name: str) -> str:
    name = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "file"


class DocumentStorage:
    """Presigned S3/MinIO access for physician documents.

    Files never pass through the API: clients PUT to an upload URL and GET
    from a download URL, both signed here.
    """

    @staticmethod
    def is_configured() -> bool:
        return bool(
            settings.s3_endpoint_url
            and settings.s3_access_key
            and settings.s3_secret_key
        )

    @staticmethod
    def _get_client():
        if not DocumentStorage.is_configured():
            raise HTTPException(
                status_code=503,
                detail={
                    "code": "storage_unavailable",
                    "message": "Document storage is not configured",
                    "details": {
                        "required": ["S3_ENDPOINT_URL", "S3_ACCESS_KEY", "S3_SECRET_KEY"]
                    },
                },
            )
        return boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(signature_version="s3v4"),
        )

    @staticmethod
    def generate_storage_key(physician_id, document_type: str, file_name: str) -> str:
        unique = uuid.uuid4().hex[:12]
        return f"physicians/{physician_id}/{document_type}/{unique}/{safe_file_name(file_name)}"

    @staticmethod
    def key_belongs_to(storage_key: str, physician_id) -> bool:
        return storage_key.startswith(f"physicians/{physician_id}/")

    @staticmethod
    def generate_upload_url(storage_key: str, mime_type: str) -> str:
        client = DocumentStorage._get_client()
        url: str = client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.s3_bucket_name,
                "Key": storage_key,
                "ContentType": mime_type,
            },
            ExpiresIn=settings.s3_presigned_url_expiry,
        )
        return url

    @staticmethod
    def generate_download_url(storage_key: str, file_name: str | None = None) -> str:
        client = DocumentStorage._get_client()
        params = {"Bucket": settings.s3_bucket_name, "Key": storage_key}
        if file_name:
            params["ResponseContentDisposition"] = (
                f'attachment; filename="{safe_file_name(file_name)}"'
            )
        url: str = client.generate_presigned_url(
            "get_object",
            Params=params,
            ExpiresIn=settings.s3_presigned_url_expiry,
        )
        return url

    @staticmethod
    def object_size(storage_key: str) -> int | None:
        """Size of an uploaded object, or None when it does not exist."""
        client = DocumentStorage._get_client()
        try:
            head = client.head_object(Bucket=settings.s3_bucket_name, Key=storage_key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                return None
            logger.warning("head_object failed for %s: %s", storage_key, code)
            raise HTTPException(status_code=502, detail="Document storage error")
        return head.get("ContentLength")


storage = DocumentStorage()
