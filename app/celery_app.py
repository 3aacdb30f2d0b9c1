from celery import Celery
from celery.schedules import crontab

from app.config import settings

celery_app = Celery(
    "credentialing",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.notifications", "app.tasks.renewals"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_time_limit=600,
    task_soft_time_limit=540,
    beat_schedule={
        "generate-expiration-notifications": {
            "task": "app.tasks.notifications.generate_expiration_notifications",
            "schedule": crontab(hour=6, minute=0),
        },
        "process-notification-queue": {
            "task": "app.tasks.notifications.process_notification_queue",
            "schedule": crontab(hour=9, minute=0),
        },
        "retry-failed-notifications": {
            "task": "app.tasks.notifications.retry_failed_notifications",
            "schedule": crontab(minute=0, hour="*/4"),
        },
        "cleanup-notifications": {
            "task": "app.tasks.notifications.cleanup_notifications",
            "schedule": crontab(hour=2, minute=0, day_of_week="sunday"),
        },
        "auto-create-renewals": {
            "task": "app.tasks.renewals.auto_create_renewals",
            "schedule": crontab(hour=1, minute=0),
        },
        "auto-expire-renewals": {
            "task": "app.tasks.renewals.auto_expire_renewals",
            "schedule": crontab(hour=0, minute=30),
        },
    },
)
