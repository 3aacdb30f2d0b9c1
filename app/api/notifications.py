from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.notification import (
    NotificationSeverity,
    NotificationStatus,
    NotificationType,
)
from app.schemas.common import ListResponse
from app.schemas.notification import (
    FeedResponse,
    MarkAllReadRequest,
    MarkReadRequest,
    NotificationRead,
    NotificationRunResult,
    UnreadCountResponse,
)
from app.services.auth_dependencies import require_role
from app.services.notification import notifications
from app.services.validation import enum_field

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/feed", response_model=FeedResponse)
def notification_feed(
    days: int = Query(default=30),
    physician_id: str | None = None,
    unread_only: bool = False,
    db: Session = Depends(get_db),
):
    return notifications.feed(db, days, physician_id, unread_only)


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(physician_id: str | None = None, db: Session = Depends(get_db)):
    return {"count": notifications.unread_count(db, physician_id)}


@router.get(
    "",
    response_model=ListResponse[NotificationRead],
    dependencies=[
        Depends(enum_field("type", NotificationType, "query")),
        Depends(enum_field("severity", NotificationSeverity, "query")),
        Depends(enum_field("sent_status", NotificationStatus, "query")),
    ],
)
def list_notifications(
    physician_id: str | None = None,
    notification_type: str | None = Query(default=None, alias="type"),
    severity: str | None = None,
    sent_status: str | None = None,
    order_by: str = Query(default="expiration_date"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=25, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return notifications.list_response(
        db,
        physician_id,
        notification_type,
        severity,
        sent_status,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.post("/mark-read")
def mark_read(payload: MarkReadRequest, db: Session = Depends(get_db)):
    count = notifications.mark_read(db, [str(nid) for nid in payload.notification_ids])
    return {"marked": count}


@router.post("/mark-all-read")
def mark_all_read(payload: MarkAllReadRequest, db: Session = Depends(get_db)):
    physician_id = str(payload.physician_id) if payload.physician_id else None
    return {"marked": notifications.mark_all_read(db, physician_id)}


@router.post(
    "/process",
    response_model=NotificationRunResult,
    dependencies=[Depends(require_role("admin"))],
)
def process_notifications(db: Session = Depends(get_db)):
    notifications.generate(db)
    return notifications.process_queue(db)


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification(notification_id: str, db: Session = Depends(get_db)):
    return notifications.get(db, notification_id)
