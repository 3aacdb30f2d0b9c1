import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.renewals.auto_create_renewals", ignore_result=True)
def auto_create_renewals(window: int | None = None) -> list[str]:
    """Open renewal workflows for credentials entering the renewal window."""
    from app.db import SessionLocal
    from app.services.renewal import renewal_workflows

    db = SessionLocal()
    try:
        created = renewal_workflows.auto_create(db, window=window)
        logger.info("Auto-created %d renewal workflows", len(created))
        return [str(workflow.id) for workflow in created]
    except Exception as e:
        db.rollback()
        logger.exception("Failed to auto-create renewal workflows: %s", e)
        return []
    finally:
        db.close()


@celery_app.task(name="app.tasks.renewals.auto_expire_renewals", ignore_result=True)
def auto_expire_renewals() -> list[str]:
    """Mark unfinished workflows expired once their credential has lapsed."""
    from app.db import SessionLocal
    from app.services.renewal import renewal_workflows

    db = SessionLocal()
    try:
        expired = renewal_workflows.auto_expire(db)
        logger.info("Auto-expired %d renewal workflows", len(expired))
        return [str(workflow.id) for workflow in expired]
    except Exception as e:
        db.rollback()
        logger.exception("Failed to auto-expire renewal workflows: %s", e)
        return []
    finally:
        db.close()
