from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.renewal import RenewalEntityType, RenewalStatus
from app.schemas.common import ListResponse
from app.schemas.renewal import (
    ChecklistToggle,
    NextActionsResponse,
    RenewalInitiate,
    RenewalJobResult,
    RenewalProgressUpdate,
    RenewalRead,
    RenewalStatistics,
    RenewalStatusUpdate,
    RenewalUpdate,
    TimelineEntry,
)
from app.services import renewal as renewal_service
from app.services.auth_dependencies import require_role
from app.services.validation import enum_field

router = APIRouter(prefix="/renewals", tags=["renewals"])


def _current_user(request: Request):
    return getattr(request.state, "user", None)


@router.post(
    "",
    response_model=RenewalRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enum_field("entity_type", RenewalEntityType))],
)
def initiate_renewal(
    payload: RenewalInitiate, request: Request, db: Session = Depends(get_db)
):
    return renewal_service.renewal_workflows.initiate(
        db, payload, user=_current_user(request)
    )


@router.get(
    "",
    response_model=ListResponse[RenewalRead],
    dependencies=[
        Depends(enum_field("status", RenewalStatus, "query")),
        Depends(enum_field("entity_type", RenewalEntityType, "query")),
    ],
)
def list_renewals(
    physician_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    entity_type: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return renewal_service.renewal_workflows.list_response(
        db,
        physician_id,
        status_filter,
        entity_type,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.get("/upcoming", response_model=list[RenewalRead])
def upcoming_renewals(
    days: int = Query(default=90, ge=1, le=365), db: Session = Depends(get_db)
):
    return renewal_service.renewal_workflows.upcoming(db, days)


@router.get("/statistics", response_model=RenewalStatistics)
def renewal_statistics(db: Session = Depends(get_db)):
    return renewal_service.renewal_workflows.statistics(db)


# ------------------------------------------------------------------
# Maintenance triggers (also run by the scheduler)
# ------------------------------------------------------------------


@router.post(
    "/jobs/auto-expire",
    response_model=RenewalJobResult,
    dependencies=[Depends(require_role("admin"))],
)
def run_auto_expire(db: Session = Depends(get_db)):
    expired = renewal_service.renewal_workflows.auto_expire(db)
    return {"processed": len(expired), "affected": [w.id for w in expired]}


@router.post(
    "/jobs/auto-create",
    response_model=RenewalJobResult,
    dependencies=[Depends(require_role("admin"))],
)
def run_auto_create(
    window: int = Query(default=90, ge=1, le=365), db: Session = Depends(get_db)
):
    created = renewal_service.renewal_workflows.auto_create(db, window=window)
    return {"processed": len(created), "affected": [w.id for w in created]}


# ------------------------------------------------------------------
# Single workflow
# ------------------------------------------------------------------


@router.get("/{workflow_id}", response_model=RenewalRead)
def get_renewal(workflow_id: str, db: Session = Depends(get_db)):
    return renewal_service.renewal_workflows.get(db, workflow_id)


@router.patch("/{workflow_id}", response_model=RenewalRead)
def update_renewal(
    workflow_id: str,
    payload: RenewalUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    return renewal_service.renewal_workflows.update(
        db, workflow_id, payload, user=_current_user(request)
    )


@router.put(
    "/{workflow_id}/status",
    response_model=RenewalRead,
    dependencies=[Depends(enum_field("status", RenewalStatus))],
)
def update_renewal_status(
    workflow_id: str,
    payload: RenewalStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    return renewal_service.renewal_workflows.update_status(
        db,
        workflow_id,
        payload.status,
        payload.rejection_reason,
        user=_current_user(request),
    )


@router.put("/{workflow_id}/progress", response_model=RenewalRead)
def update_renewal_progress(
    workflow_id: str,
    payload: RenewalProgressUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    return renewal_service.renewal_workflows.set_progress(
        db, workflow_id, payload.progress_percentage, user=_current_user(request)
    )


@router.patch("/{workflow_id}/checklist/{item_id}", response_model=RenewalRead)
def toggle_checklist_item(
    workflow_id: str,
    item_id: str,
    payload: ChecklistToggle,
    request: Request,
    db: Session = Depends(get_db),
):
    return renewal_service.renewal_workflows.toggle_item(
        db, workflow_id, item_id, payload.completed, user=_current_user(request)
    )


@router.get("/{workflow_id}/timeline", response_model=list[TimelineEntry])
def renewal_timeline(workflow_id: str, db: Session = Depends(get_db)):
    return renewal_service.renewal_workflows.timeline(db, workflow_id)


@router.get("/{workflow_id}/next-actions", response_model=NextActionsResponse)
def renewal_next_actions(workflow_id: str, db: Session = Depends(get_db)):
    return renewal_service.renewal_workflows.next_actions(db, workflow_id)
