"""Renewal workflows for licenses, DEA registrations and CSR licenses.

A workflow moves through a fixed transition table::

    not_started  -> in_progress, expired
    in_progress  -> filed, expired
    filed        -> under_review, approved, rejected, expired
    under_review -> approved, rejected, expired
    rejected     -> in_progress, expired
    approved, expired: terminal

Every status change goes through ``RenewalWorkflows.update_status``, which
also applies the per-status side effects (milestone dates, next action,
progress). ``rejection_reason`` is only ever populated while the workflow is
rejected. Filing requires every required checklist item to be completed.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.config import settings
from app.models.credential import (
    CredentialStatus,
    CsrLicense,
    DeaRegistration,
    PhysicianLicense,
)
from app.models.physician import Physician
from app.models.renewal import (
    RenewalChecklistItem,
    RenewalEntityType,
    RenewalStatus,
    RenewalWorkflow,
)
from app.schemas.renewal import RenewalInitiate, RenewalUpdate
from app.services.common import (
    apply_ordering,
    coerce_uuid,
    get_or_404,
    paginate,
)
from app.services.response import ListResponseMixin
from app.services.validation import validate_enum

logger = logging.getLogger(__name__)

CREDENTIAL_MODELS = {
    RenewalEntityType.license: PhysicianLicense,
    RenewalEntityType.dea: DeaRegistration,
    RenewalEntityType.csr: CsrLicense,
}

_CREDENTIAL_LABELS = {
    RenewalEntityType.license: "License",
    RenewalEntityType.dea: "DEA registration",
    RenewalEntityType.csr: "CSR license",
}

ALLOWED_TRANSITIONS: dict[RenewalStatus, set[RenewalStatus]] = {
    RenewalStatus.not_started: {RenewalStatus.in_progress, RenewalStatus.expired},
    RenewalStatus.in_progress: {RenewalStatus.filed, RenewalStatus.expired},
    RenewalStatus.filed: {
        RenewalStatus.under_review,
        RenewalStatus.approved,
        RenewalStatus.rejected,
        RenewalStatus.expired,
    },
    RenewalStatus.under_review: {
        RenewalStatus.approved,
        RenewalStatus.rejected,
        RenewalStatus.expired,
    },
    RenewalStatus.rejected: {RenewalStatus.in_progress, RenewalStatus.expired},
    RenewalStatus.approved: set(),
    RenewalStatus.expired: set(),
}

TERMINAL_STATUSES = {RenewalStatus.approved, RenewalStatus.expired}
# statuses that block a second workflow for the same credential
OPEN_STATUSES = {
    RenewalStatus.not_started,
    RenewalStatus.in_progress,
    RenewalStatus.filed,
    RenewalStatus.under_review,
}

_NEXT_ACTION = {
    RenewalStatus.in_progress: "Complete renewal application",
    RenewalStatus.filed: "Await state board review",
    RenewalStatus.under_review: "Respond to any board inquiries",
    RenewalStatus.rejected: "Review rejection and resubmit",
    RenewalStatus.expired: "Credential has expired - immediate action required",
}

RECOMMENDED_ACTIONS = {
    RenewalStatus.not_started: [
        "Begin renewal application",
        "Gather required documents",
        "Review state-specific requirements",
    ],
    RenewalStatus.in_progress: [
        "Complete all application sections",
        "Upload required documents",
        "Pay renewal fees",
        "Submit application",
    ],
    RenewalStatus.filed: [
        "Monitor application status",
        "Prepare for potential board inquiries",
        "Keep documents ready for verification",
    ],
    RenewalStatus.under_review: [
        "Respond promptly to board requests",
        "Provide additional documentation if requested",
        "Monitor review progress",
    ],
    RenewalStatus.rejected: [
        "Review rejection reasons",
        "Address deficiencies",
        "Prepare resubmission",
        "Consider legal consultation if needed",
    ],
    RenewalStatus.approved: [
        "Download new license/certificate",
        "Update records",
        "Set reminder for next renewal",
    ],
    RenewalStatus.expired: [
        "URGENT: Contact state board immediately",
        "Cease practice if required by state",
        "Apply for reinstatement",
        "Document lapse for compliance records",
    ],
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _percent(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # half-up, so 12.5% reads as 13%
    return int(math.floor(100 * completed / total + 0.5))


# ---------------------------------------------------------------------------
# Checklist templates
# ---------------------------------------------------------------------------


def build_checklist(
    entity_type: RenewalEntityType, state: str | None, today: date | None = None
) -> list[dict]:
    """Ordered checklist for renewing one credential in ``state``."""
    today = today or date.today()
    state = (state or "").upper()
    items = [
        {
            "key": "review-expiration",
            "task": "Review expiration date and renewal requirements",
            "required": True,
        },
        {
            "key": "gather-documents",
            "task": "Gather all required documents",
            "required": True,
        },
    ]
    if entity_type == RenewalEntityType.license:
        items += [
            {
                "key": "cme-requirements",
                "task": "Complete CME requirements",
                "required": True,
                "due_date": today + timedelta(days=60),
            },
            {
                "key": "license-application",
                "task": "Complete license renewal application",
                "required": True,
            },
            {
                "key": "background-check",
                "task": "Submit to background check if required",
                "required": state in ("CA", "NY"),
            },
            {
                "key": "malpractice-insurance",
                "task": "Provide proof of malpractice insurance",
                "required": True,
            },
            {
                "key": "renewal-fee",
                "task": "Pay license renewal fee",
                "required": True,
            },
        ]
    elif entity_type == RenewalEntityType.dea:
        items += [
            {"key": "dea-form", "task": "Complete DEA Form 224a", "required": True},
            {
                "key": "state-license-valid",
                "task": "Ensure state medical license is active",
                "required": True,
            },
            {
                "key": "csr-valid",
                "task": "Verify state CSR is current (if applicable)",
                # states without a separate CSR
                "required": state not in ("AK", "MT"),
            },
            {
                "key": "dea-fee",
                "task": "Pay DEA renewal fee ($888)",
                "required": True,
            },
            {
                "key": "dea-submit",
                "task": "Submit renewal online via DEA website",
                "required": True,
            },
        ]
    elif entity_type == RenewalEntityType.csr:
        items += [
            {
                "key": "csr-application",
                "task": "Complete state CSR renewal application",
                "required": True,
            },
            {
                "key": "mate-training",
                "task": "Complete MATE Act training (if required)",
                "required": True,
                "due_date": today + timedelta(days=30),
            },
            {
                "key": "prescribing-course",
                "task": "Complete controlled substance prescribing course",
                "required": state in ("CA", "FL"),
            },
            {"key": "csr-fee", "task": "Pay CSR renewal fee", "required": True},
            {
                "key": "csr-attestation",
                "task": "Sign renewal attestation",
                "required": True,
            },
        ]
    items.append(
        {
            "key": "submit-renewal",
            "task": "Submit renewal application",
            "required": True,
        }
    )
    for position, item in enumerate(items, start=1):
        item["position"] = position
    return items


def get_credential(db: Session, entity_type: RenewalEntityType, entity_id):
    return get_or_404(
        db, CREDENTIAL_MODELS[entity_type], entity_id, _CREDENTIAL_LABELS[entity_type]
    )


def _open_workflow(db: Session, entity_type: RenewalEntityType, entity_id):
    return (
        db.query(RenewalWorkflow)
        .filter(RenewalWorkflow.entity_type == entity_type)
        .filter(RenewalWorkflow.entity_id == entity_id)
        .filter(RenewalWorkflow.status.in_(OPEN_STATUSES))
        .first()
    )


def _user_id(user):
    return getattr(user, "id", None)


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


class RenewalWorkflows(ListResponseMixin):
    @staticmethod
    def initiate(
        db: Session,
        payload: RenewalInitiate,
        user=None,
        today: date | None = None,
    ) -> RenewalWorkflow:
        today = today or date.today()
        entity_type = validate_enum("entity_type", payload.entity_type, RenewalEntityType)
        physician = get_or_404(db, Physician, payload.physician_id, "Physician")
        if not physician.is_active:
            raise HTTPException(status_code=400, detail="Physician is inactive")
        credential = get_credential(db, entity_type, payload.entity_id)
        if credential.physician_id != physician.id:
            raise HTTPException(
                status_code=404, detail=f"{_CREDENTIAL_LABELS[entity_type]} not found"
            )
        if _open_workflow(db, entity_type, credential.id):
            raise HTTPException(
                status_code=409,
                detail=f"Active renewal workflow already exists for this {entity_type.value}",
            )

        if credential.expiration_date:
            due = credential.expiration_date - timedelta(days=settings.renewal_lead_days)
        else:
            due = today + timedelta(days=30)
        workflow = RenewalWorkflow(
            physician_id=physician.id,
            entity_type=entity_type,
            entity_id=credential.id,
            status=RenewalStatus.not_started,
            next_action_required="Begin renewal application",
            next_action_due_date=due,
            progress_percentage=0,
            notes=f"Renewal initiated for {credential.label}",
            created_by=_user_id(user),
            updated_by=_user_id(user),
        )
        for item in build_checklist(entity_type, credential.state, today):
            workflow.checklist.append(RenewalChecklistItem(**item))
        db.add(workflow)
        db.commit()
        db.refresh(workflow)
        logger.info(
            "Initiated renewal workflow %s for %s %s",
            workflow.id,
            entity_type.value,
            credential.id,
        )
        return workflow

    @staticmethod
    def get(db: Session, workflow_id: str) -> RenewalWorkflow:
        return get_or_404(db, RenewalWorkflow, workflow_id, "Renewal workflow")

    @staticmethod
    def list(
        db: Session,
        physician_id: str | None,
        status: str | None,
        entity_type: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[RenewalWorkflow]:
        query = db.query(RenewalWorkflow)
        if physician_id:
            query = query.filter(
                RenewalWorkflow.physician_id == coerce_uuid(physician_id)
            )
        if status:
            query = query.filter(
                RenewalWorkflow.status == validate_enum("status", status, RenewalStatus)
            )
        if entity_type:
            query = query.filter(
                RenewalWorkflow.entity_type
                == validate_enum("entity_type", entity_type, RenewalEntityType)
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": RenewalWorkflow.created_at,
                "updated_at": RenewalWorkflow.updated_at,
                "next_action_due_date": RenewalWorkflow.next_action_due_date,
                "progress_percentage": RenewalWorkflow.progress_percentage,
            },
        )
        return paginate(query, limit, offset)

    @staticmethod
    def update(
        db: Session, workflow_id: str, payload: RenewalUpdate, user=None
    ) -> RenewalWorkflow:
        workflow = RenewalWorkflows.get(db, workflow_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(workflow, key, value)
        workflow.updated_by = _user_id(user)
        db.commit()
        db.refresh(workflow)
        logger.info("Updated renewal workflow %s", workflow.id)
        return workflow

    @staticmethod
    def update_status(
        db: Session,
        workflow_id: str,
        status: str,
        rejection_reason: str | None = None,
        user=None,
    ) -> RenewalWorkflow:
        workflow = RenewalWorkflows.get(db, workflow_id)
        target = validate_enum("status", status, RenewalStatus)
        reason = (rejection_reason or "").strip()
        if target == RenewalStatus.rejected and not reason:
            raise HTTPException(
                status_code=400,
                detail={
                    "code": "rejection_reason_required",
                    "message": "A rejection reason is required to reject a renewal",
                    "details": {"field": "rejection_reason"},
                },
            )
        if target != RenewalStatus.rejected and rejection_reason is not None:
            raise HTTPException(
                status_code=400,
                detail={
                    "code": "unexpected_rejection_reason",
                    "message": "A rejection reason is only accepted when rejecting",
                    "details": {"field": "rejection_reason", "status": target.value},
                },
            )
        if target == workflow.status:
            return workflow

        allowed = ALLOWED_TRANSITIONS[workflow.status]
        if target not in allowed:
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "invalid_transition",
                    "message": (
                        f"Cannot move renewal from {workflow.status.value} "
                        f"to {target.value}"
                    ),
                    "details": {
                        "current_status": workflow.status.value,
                        "requested_status": target.value,
                        "allowed_statuses": sorted(s.value for s in allowed),
                    },
                },
            )
        if target == RenewalStatus.filed:
            pending = [
                item.key
                for item in workflow.checklist
                if item.required and not item.completed
            ]
            if pending:
                raise HTTPException(
                    status_code=409,
                    detail={
                        "code": "checklist_incomplete",
                        "message": "Complete all required checklist items before filing",
                        "details": {"pending_items": pending},
                    },
                )

        previous = workflow.status
        now = _now()
        workflow.status = target
        workflow.updated_by = _user_id(user)
        if previous == RenewalStatus.rejected:
            workflow.rejection_reason = None
        if target in _NEXT_ACTION:
            workflow.next_action_required = _NEXT_ACTION[target]
        if target == RenewalStatus.in_progress:
            workflow.application_date = now
        elif target == RenewalStatus.filed:
            workflow.filed_date = now
        elif target == RenewalStatus.approved:
            workflow.approval_date = now
            workflow.next_action_required = None
            workflow.next_action_due_date = None
            workflow.progress_percentage = 100
        elif target == RenewalStatus.rejected:
            workflow.rejection_date = now
            workflow.rejection_reason = reason
        elif target == RenewalStatus.expired:
            workflow.next_action_due_date = now.date()
        db.commit()
        db.refresh(workflow)
        logger.info(
            "Renewal workflow %s moved %s -> %s",
            workflow.id,
            previous.value,
            target.value,
        )
        return workflow

    @staticmethod
    def set_progress(
        db: Session, workflow_id: str, progress: int, user=None
    ) -> RenewalWorkflow:
        if progress < 0 or progress > 100:
            raise HTTPException(
                status_code=400, detail="Progress must be between 0 and 100"
            )
        workflow = RenewalWorkflows.get(db, workflow_id)
        workflow.progress_percentage = progress
        workflow.updated_by = _user_id(user)
        db.commit()
        db.refresh(workflow)
        logger.info("Set renewal workflow %s progress to %s", workflow.id, progress)
        return workflow

    @staticmethod
    def toggle_item(
        db: Session, workflow_id: str, item_id: str, completed: bool, user=None
    ) -> RenewalWorkflow:
        workflow = RenewalWorkflows.get(db, workflow_id)
        if workflow.status in TERMINAL_STATUSES:
            raise HTTPException(
                status_code=409,
                detail=f"Renewal workflow is {workflow.status.value}; checklist is closed",
            )
        item_uuid = coerce_uuid(item_id)
        item = next((i for i in workflow.checklist if i.id == item_uuid), None)
        if not item:
            raise HTTPException(status_code=404, detail="Checklist item not found")
        if item.completed != completed:
            item.completed = completed
            item.completed_at = _now() if completed else None
        done = sum(1 for i in workflow.checklist if i.completed)
        workflow.progress_percentage = _percent(done, len(workflow.checklist))
        workflow.updated_by = _user_id(user)
        db.commit()
        db.refresh(workflow)
        logger.info(
            "Checklist item %s on workflow %s set to %s",
            item.key,
            workflow.id,
            completed,
        )
        return workflow

    @staticmethod
    def timeline(db: Session, workflow_id: str) -> list[dict]:
        workflow = RenewalWorkflows.get(db, workflow_id)
        reviewed = workflow.status in (
            RenewalStatus.under_review,
            RenewalStatus.approved,
            RenewalStatus.rejected,
        )
        if workflow.status == RenewalStatus.approved:
            decision = ("approved", "Renewal approved")
        elif workflow.status == RenewalStatus.rejected:
            decision = ("rejected", f"Renewal rejected: {workflow.rejection_reason}")
        elif workflow.status == RenewalStatus.expired:
            decision = ("expired", "Credential expired before approval")
        else:
            decision = ("pending", "Awaiting decision")
        decision_date = workflow.approval_date or workflow.rejection_date
        return [
            {
                "status": RenewalStatus.not_started.value,
                "date": workflow.created_at,
                "description": "Renewal workflow initiated",
                "completed": True,
            },
            {
                "status": RenewalStatus.in_progress.value,
                "date": workflow.application_date,
                "description": "Application started",
                "completed": workflow.application_date is not None,
            },
            {
                "status": RenewalStatus.filed.value,
                "date": workflow.filed_date,
                "description": "Application submitted to state board",
                "completed": workflow.filed_date is not None,
            },
            {
                "status": RenewalStatus.under_review.value,
                "date": None,
                "description": "Under state board review",
                "completed": reviewed,
            },
            {
                "status": decision[0],
                "date": decision_date,
                "description": decision[1],
                "completed": decision[0] != "pending",
            },
        ]

    @staticmethod
    def next_actions(db: Session, workflow_id: str) -> dict:
        workflow = RenewalWorkflows.get(db, workflow_id)
        return {
            "workflow_id": workflow.id,
            "status": workflow.status.value,
            "actions": list(RECOMMENDED_ACTIONS[workflow.status]),
        }

    @staticmethod
    def upcoming(
        db: Session, days: int = 90, today: date | None = None
    ) -> list[RenewalWorkflow]:
        """Open workflows whose next action falls due within ``days`` (overdue included)."""
        today = today or date.today()
        cutoff = today + timedelta(days=days)
        return (
            db.query(RenewalWorkflow)
            .filter(RenewalWorkflow.status.notin_(TERMINAL_STATUSES))
            .filter(RenewalWorkflow.next_action_due_date.isnot(None))
            .filter(RenewalWorkflow.next_action_due_date <= cutoff)
            .order_by(RenewalWorkflow.next_action_due_date.asc())
            .all()
        )

    @staticmethod
    def statistics(db: Session, today: date | None = None) -> dict:
        workflows = db.query(RenewalWorkflow).all()
        by_status = {status.value: 0 for status in RenewalStatus}
        for workflow in workflows:
            by_status[workflow.status.value] += 1
        return {
            "total": len(workflows),
            "by_status": by_status,
            "in_progress": by_status["in_progress"],
            "pending": by_status["filed"] + by_status["under_review"],
            "completed": by_status["approved"],
            "rejected": by_status["rejected"],
            "expired": by_status["expired"],
            "upcoming_in_30_days": len(RenewalWorkflows.upcoming(db, 30, today)),
            "upcoming_in_60_days": len(RenewalWorkflows.upcoming(db, 60, today)),
            "upcoming_in_90_days": len(RenewalWorkflows.upcoming(db, 90, today)),
        }

    # -----------------------------------------------------------------------
    # Scheduled maintenance
    # -----------------------------------------------------------------------

    @staticmethod
    def auto_expire(db: Session, today: date | None = None) -> list[RenewalWorkflow]:
        """Expire every unfinished workflow whose credential has lapsed."""
        today = today or date.today()
        expired = []
        candidates = (
            db.query(RenewalWorkflow)
            .filter(RenewalWorkflow.status.notin_(TERMINAL_STATUSES))
            .all()
        )
        for workflow in candidates:
            model = CREDENTIAL_MODELS[workflow.entity_type]
            credential = db.get(model, workflow.entity_id)
            if not credential or not credential.expiration_date:
                continue
            if credential.expiration_date >= today:
                continue
            try:
                RenewalWorkflows.update_status(
                    db, str(workflow.id), RenewalStatus.expired.value
                )
            except HTTPException as exc:
                db.rollback()
                logger.warning(
                    "Could not expire renewal workflow %s: %s", workflow.id, exc.detail
                )
                continue
            expired.append(workflow)
        return expired

    @staticmethod
    def auto_create(
        db: Session, today: date | None = None, window: int | None = None
    ) -> list[RenewalWorkflow]:
        """Open workflows for active credentials expiring within ``window`` days."""
        today = today or date.today()
        window = settings.renewal_lead_days if window is None else window
        cutoff = today + timedelta(days=window)
        created = []
        for entity_type, model in CREDENTIAL_MODELS.items():
            query = (
                db.query(model)
                .join(Physician, Physician.id == model.physician_id)
                .filter(Physician.is_active.is_(True))
                .filter(model.is_active.is_(True))
                .filter(model.expiration_date >= today)
                .filter(model.expiration_date <= cutoff)
            )
            if hasattr(model, "status"):
                query = query.filter(model.status != CredentialStatus.expired)
            for credential in query.all():
                if _already_handled(db, entity_type, credential, window):
                    continue
                try:
                    workflow = RenewalWorkflows.initiate(
                        db,
                        RenewalInitiate(
                            physician_id=credential.physician_id,
                            entity_type=entity_type.value,
                            entity_id=credential.id,
                        ),
                        today=today,
                    )
                except HTTPException as exc:
                    db.rollback()
                    logger.warning(
                        "Could not open renewal for %s %s: %s",
                        entity_type.value,
                        credential.id,
                        exc.detail,
                    )
                    continue
                created.append(workflow)
        return created


def _already_handled(db: Session, entity_type, credential, window: int) -> bool:
    """True when a workflow is open, rejected, or approved within this renewal window."""
    workflows = (
        db.query(RenewalWorkflow)
        .filter(RenewalWorkflow.entity_type == entity_type)
        .filter(RenewalWorkflow.entity_id == credential.id)
        .all()
    )
    window_start = credential.expiration_date - timedelta(days=window)
    for workflow in workflows:
        if workflow.status in OPEN_STATUSES or workflow.status == RenewalStatus.rejected:
            return True
        if (
            workflow.status == RenewalStatus.approved
            and workflow.approval_date is not None
            and workflow.approval_date.date() >= window_start
        ):
            return True
    return False


renewal_workflows = RenewalWorkflows()
