import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.tasks.notifications.generate_expiration_notifications",
    ignore_result=True,
)
def generate_expiration_notifications() -> int:
    """Create reminder rows for credentials crossing a notification interval."""
    from app.db import SessionLocal
    from app.services.notification import notifications

    db = SessionLocal()
    try:
        created = notifications.generate(db)
        return len(created)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to generate expiration notifications: %s", e)
        return 0
    finally:
        db.close()


@celery_app.task(
    name="app.tasks.notifications.process_notification_queue", ignore_result=True
)
def process_notification_queue() -> dict:
    from app.db import SessionLocal
    from app.services.notification import notifications

    db = SessionLocal()
    try:
        return notifications.process_queue(db)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to process notification queue: %s", e)
        return {"processed": 0, "sent": 0, "failed": 0}
    finally:
        db.close()


@celery_app.task(
    name="app.tasks.notifications.retry_failed_notifications", ignore_result=True
)
def retry_failed_notifications() -> dict:
    from app.db import SessionLocal
    from app.services.notification import notifications

    db = SessionLocal()
    try:
        return notifications.retry_failed(db)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to retry notifications: %s", e)
        return {"processed": 0, "sent": 0, "failed": 0}
    finally:
        db.close()


@celery_app.task(name="app.tasks.notifications.cleanup_notifications", ignore_result=True)
def cleanup_notifications(days_old: int | None = None) -> int:
    """Delete notifications for expirations long past."""
    from app.db import SessionLocal
    from app.services.notification import notifications

    db = SessionLocal()
    try:
        return notifications.cleanup(db, days_old)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to clean up notifications: %s", e)
        return 0
    finally:
        db.close()
