import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/credentialing"
    if environment == "test":
        return "sqlite://"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _int_list(raw: str) -> tuple[int, ...]:
    return tuple(sorted({int(item) for item in raw.split(",") if item.strip()}))


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # S3 / MinIO settings
    s3_endpoint_url: str = os.getenv("S3_ENDPOINT_URL", "")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "")
    s3_bucket_name: str = os.getenv("S3_BUCKET_NAME", "credential-documents")
    s3_region: str = os.getenv("S3_REGION", "us-east-1")
    s3_presigned_url_expiry: int = int(os.getenv("S3_PRESIGNED_URL_EXPIRY", "3600"))

    # Documents
    document_max_size_bytes: int = int(
        os.getenv("DOCUMENT_MAX_SIZE_BYTES", str(10 * 1024 * 1024))
    )  # 10MB

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND", "redis://localhost:6379/1"
    )

    # Auth
    session_lifetime_hours: int = int(os.getenv("SESSION_LIFETIME_HOURS", "12"))
    session_idle_timeout_seconds: int = int(
        os.getenv("SESSION_IDLE_TIMEOUT_SECONDS", "3600")
    )
    login_max_failed_attempts: int = int(os.getenv("LOGIN_MAX_FAILED_ATTEMPTS", "5"))
    login_lockout_minutes: int = int(os.getenv("LOGIN_LOCKOUT_MINUTES", "15"))

    # Expiration tracking
    notification_intervals: tuple[int, ...] = _int_list(
        os.getenv("NOTIFICATION_INTERVALS", "90,60,30,7,1")
    )
    notification_retention_days: int = int(
        os.getenv("NOTIFICATION_RETENTION_DAYS", "180")
    )
    notification_max_attempts: int = int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3"))
    renewal_lead_days: int = int(os.getenv("RENEWAL_LEAD_DAYS", "90"))

    # First admin account, created at startup when no admin exists
    bootstrap_admin_email: str = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "")
    bootstrap_admin_username: str = os.getenv("BOOTSTRAP_ADMIN_USERNAME", "admin")
    bootstrap_admin_password: str = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "")

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "Credentialing")


settings = Settings()
