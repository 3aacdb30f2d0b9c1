"""Expiration notifications for licenses, DEA registrations and CSR licenses.

Notifications are derived from credential expiration dates. ``generate``
creates at most one row per (credential, expiration date, reminder
interval), always for the tightest interval the credential has crossed, so
the read state of a notice survives repeated polling.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import List

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.models.credential import (
    CredentialStatus,
    CsrLicense,
    DeaRegistration,
    PhysicianLicense,
)
from app.models.notification import (
    Notification,
    NotificationSeverity,
    NotificationStatus,
    NotificationType,
)
from app.models.physician import Physician
from app.services import expiration
from app.services.common import (
    apply_ordering,
    coerce_uuid,
    get_or_404,
    paginate,
)
from app.services.response import ListResponseMixin
from app.services.validation import validate_enum

logger = logging.getLogger(__name__)

MIN_FEED_DAYS = 1
MAX_FEED_DAYS = 365

_SOURCES = {
    NotificationType.license: PhysicianLicense,
    NotificationType.dea: DeaRegistration,
    NotificationType.csr: CsrLicense,
}

_ACTION_ITEMS = {
    NotificationType.license: [
        "Submit renewal application to the state medical board",
        "Ensure all CME requirements are met",
        "Pay renewal fees",
        "Update your records in our system once renewed",
    ],
    NotificationType.dea: [
        "Complete DEA renewal application online at deadiversion.usdoj.gov",
        "Verify MATE training compliance if required",
        "Submit renewal fee",
        "Update your DEA number in our system once renewed",
    ],
    NotificationType.csr: [
        "Submit CSR renewal application to the state controlled substance authority",
        "Complete any required continuing education",
        "Pay renewal fees",
        "Update your CSR information in our system once renewed",
    ],
}


class DeliveryError(Exception):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _credential_label(notification_type: NotificationType, credential) -> str:
    if notification_type == NotificationType.license:
        return f"{(credential.license_type or 'medical').title()} License"
    if notification_type == NotificationType.dea:
        return "DEA Registration"
    return "CSR License"


def email_subject(notification: Notification) -> str:
    prefix = {
        NotificationSeverity.critical: "URGENT: ",
        NotificationSeverity.warning: "Reminder: ",
    }.get(notification.severity, "")
    return f"{prefix}{notification.license_type} Expiration Reminder - {notification.state}"


def email_body(notification: Notification) -> str:
    if notification.days_before_expiry == 1:
        when = "tomorrow"
    else:
        when = f"in {notification.days_before_expiry} days"
    actions = "\n".join(f"- {item}" for item in _ACTION_ITEMS[notification.type])
    return (
        f"Dear {notification.provider_name},\n\n"
        f"This is a reminder that your {notification.license_type} in "
        f"{notification.state} will expire {when} on "
        f"{notification.expiration_date.isoformat()}.\n\n"
        f"IMPORTANT ACTION REQUIRED:\n{actions}\n\n"
        "If you have already renewed this credential, please update your "
        "records in the system.\n\n"
        f"{settings.brand_name}"
    )


def _mark_read(notification: Notification, now: datetime) -> None:
    notification.read_at = now
    # delivery state is kept until the email has gone out
    if notification.sent_status == NotificationStatus.sent:
        notification.sent_status = NotificationStatus.read


def _deliver(db: Session, notification: Notification) -> None:
    physician = db.get(Physician, notification.physician_id)
    recipient = physician.email_address if physician else None
    if not recipient:
        raise DeliveryError("No email address on file")
    # outbound mail is not wired up; the message is logged instead
    logger.info(
        "Would send email to %s: %s\n%s",
        recipient,
        email_subject(notification),
        email_body(notification),
    )


class Notifications(ListResponseMixin):
    @staticmethod
    def prune_stale(db: Session) -> int:
        """Delete notices whose credential was renewed, deactivated or removed.

        A notice belongs to one expiration date of one credential; once the
        credential no longer carries that date, or it or its physician is
        inactive, the notice is dropped.
        """
        removed = 0
        for notification_type, model in _SOURCES.items():
            stale = (
                db.query(Notification)
                .join(Physician, Physician.id == Notification.physician_id)
                .outerjoin(model, model.id == Notification.entity_id)
                .filter(Notification.type == notification_type)
                .filter(
                    or_(
                        model.id.is_(None),
                        model.is_active.is_(False),
                        Physician.is_active.is_(False),
                        model.expiration_date != Notification.expiration_date,
                    )
                )
                .all()
            )
            for notification in stale:
                db.delete(notification)
            removed += len(stale)
        if removed:
            db.commit()
            logger.info("Removed %d stale notifications", removed)
        return removed

    @staticmethod
    def generate(db: Session, today: date | None = None) -> list[Notification]:
        """Create missing notifications for credentials nearing expiration."""
        today = today or date.today()
        Notifications.prune_stale(db)
        intervals = settings.notification_intervals
        horizon = today + timedelta(days=max(intervals))
        created = []
        for notification_type, model in _SOURCES.items():
            query = (
                db.query(model, Physician)
                .join(Physician, Physician.id == model.physician_id)
                .filter(Physician.is_active.is_(True))
                .filter(model.is_active.is_(True))
                .filter(model.expiration_date >= today)
                .filter(model.expiration_date <= horizon)
            )
            if hasattr(model, "status"):
                query = query.filter(model.status != CredentialStatus.expired)
            for credential, physician in query.all():
                days = expiration.days_until(credential.expiration_date, today)
                interval = expiration.notification_interval(days, intervals)
                if interval is None:
                    continue
                exists = (
                    db.query(Notification.id)
                    .filter(Notification.type == notification_type)
                    .filter(Notification.entity_id == credential.id)
                    .filter(Notification.expiration_date == credential.expiration_date)
                    .filter(Notification.days_before_expiry == interval)
                    .first()
                )
                if exists:
                    continue
                notification = Notification(
                    physician_id=physician.id,
                    type=notification_type,
                    entity_id=credential.id,
                    notification_date=credential.expiration_date
                    - timedelta(days=interval),
                    days_before_expiry=interval,
                    severity=NotificationSeverity(
                        expiration.notification_severity(interval)
                    ),
                    sent_status=NotificationStatus.pending,
                    provider_name=physician.full_legal_name,
                    license_type=_credential_label(notification_type, credential),
                    state=credential.state,
                    expiration_date=credential.expiration_date,
                )
                db.add(notification)
                created.append(notification)
        if created:
            db.commit()
            logger.info("Generated %d expiration notifications", len(created))
        return created

    @staticmethod
    def feed(
        db: Session,
        days: int = 30,
        physician_id: str | None = None,
        unread_only: bool = False,
        today: date | None = None,
    ) -> dict:
        if days < MIN_FEED_DAYS or days > MAX_FEED_DAYS:
            raise HTTPException(
                status_code=400,
                detail=f"days must be between {MIN_FEED_DAYS} and {MAX_FEED_DAYS}",
            )
        today = today or date.today()
        generated = Notifications.generate(db, today)
        query = (
            db.query(Notification)
            .filter(Notification.expiration_date >= today)
            .filter(Notification.expiration_date <= today + timedelta(days=days))
        )
        if physician_id:
            query = query.filter(Notification.physician_id == coerce_uuid(physician_id))
        if unread_only:
            query = query.filter(Notification.read_at.is_(None))
        items = query.order_by(
            Notification.expiration_date.asc(), Notification.days_before_expiry.asc()
        ).all()
        return {
            "days": days,
            "generated": len(generated),
            "unread": sum(1 for item in items if item.read_at is None),
            "items": items,
        }

    @staticmethod
    def get(db: Session, notification_id: str) -> Notification:
        return get_or_404(db, Notification, notification_id, "Notification")

    @staticmethod
    def list(
        db: Session,
        physician_id: str | None,
        notification_type: str | None,
        severity: str | None,
        sent_status: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> List[Notification]:
        query = db.query(Notification)
        if physician_id is not None:
            query = query.filter(Notification.physician_id == coerce_uuid(physician_id))
        if notification_type is not None:
            query = query.filter(
                Notification.type
                == validate_enum("type", notification_type, NotificationType)
            )
        if severity is not None:
            query = query.filter(
                Notification.severity
                == validate_enum("severity", severity, NotificationSeverity)
            )
        if sent_status is not None:
            query = query.filter(
                Notification.sent_status
                == validate_enum("sent_status", sent_status, NotificationStatus)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": Notification.created_at,
                "expiration_date": Notification.expiration_date,
                "notification_date": Notification.notification_date,
            },
        )
        return paginate(query, limit, offset)

    @staticmethod
    def mark_read(db: Session, notification_ids: List[str]) -> int:
        now = _now()
        count = 0
        for nid in notification_ids:
            notification = db.get(Notification, coerce_uuid(nid))
            if notification and notification.read_at is None:
                _mark_read(notification, now)
                count += 1
        db.commit()
        logger.info("Marked %d notifications as read", count)
        return count

    @staticmethod
    def mark_all_read(db: Session, physician_id: str | None = None) -> int:
        query = db.query(Notification).filter(Notification.read_at.is_(None))
        if physician_id is not None:
            get_or_404(db, Physician, physician_id, "Physician")
            query = query.filter(Notification.physician_id == coerce_uuid(physician_id))
        now = _now()
        unread = query.all()
        for notification in unread:
            _mark_read(notification, now)
        db.commit()
        logger.info("Marked all %d notifications as read", len(unread))
        return len(unread)

    @staticmethod
    def unread_count(db: Session, physician_id: str | None = None) -> int:
        query = db.query(Notification).filter(Notification.read_at.is_(None))
        if physician_id is not None:
            get_or_404(db, Physician, physician_id, "Physician")
            query = query.filter(Notification.physician_id == coerce_uuid(physician_id))
        return query.count()

    # -----------------------------------------------------------------------
    # Delivery
    # -----------------------------------------------------------------------

    @staticmethod
    def send(db: Session, notification: Notification) -> bool:
        notification.delivery_attempts = (notification.delivery_attempts or 0) + 1
        try:
            _deliver(db, notification)
        except DeliveryError as exc:
            notification.sent_status = NotificationStatus.failed
            notification.error_message = str(exc)
            db.commit()
            logger.warning("Notification %s failed: %s", notification.id, exc)
            return False
        notification.sent_status = (
            NotificationStatus.read if notification.read_at else NotificationStatus.sent
        )
        notification.sent_at = _now()
        notification.error_message = None
        db.commit()
        return True

    @staticmethod
    def process_queue(db: Session, today: date | None = None) -> dict:
        """Send pending notifications whose notification date has arrived."""
        today = today or date.today()
        Notifications.prune_stale(db)
        pending = (
            db.query(Notification)
            .filter(Notification.sent_status == NotificationStatus.pending)
            .filter(Notification.notification_date <= today)
            .order_by(Notification.notification_date.asc())
            .all()
        )
        sent = sum(1 for notification in pending if Notifications.send(db, notification))
        logger.info("Processed %d queued notifications, %d sent", len(pending), sent)
        return {"processed": len(pending), "sent": sent, "failed": len(pending) - sent}

    @staticmethod
    def retry_failed(db: Session) -> dict:
        """Requeue failed notices that have attempts left and send them again."""
        Notifications.prune_stale(db)
        failed = (
            db.query(Notification)
            .filter(Notification.sent_status == NotificationStatus.failed)
            .filter(Notification.delivery_attempts < settings.notification_max_attempts)
            .all()
        )
        for notification in failed:
            notification.sent_status = NotificationStatus.pending
            notification.error_message = None
        db.commit()
        sent = sum(1 for notification in failed if Notifications.send(db, notification))
        logger.info("Retried %d failed notifications, %d sent", len(failed), sent)
        return {"processed": len(failed), "sent": sent, "failed": len(failed) - sent}

    @staticmethod
    def cleanup(
        db: Session, days_old: int | None = None, today: date | None = None
    ) -> int:
        """Delete notifications for expirations more than ``days_old`` days past."""
        today = today or date.today()
        days_old = settings.notification_retention_days if days_old is None else days_old
        cutoff = today - timedelta(days=days_old)
        removed = (
            db.query(Notification)
            .filter(Notification.expiration_date < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
        logger.info("Removed %d notifications older than %d days", removed, days_old)
        return removed


notifications = Notifications()
