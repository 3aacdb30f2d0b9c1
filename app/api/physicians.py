from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.physician import ClinicianType, Gender, PhysicianStatus, ProviderRole
from app.schemas.common import ListResponse
from app.schemas.physician import PhysicianCreate, PhysicianRead, PhysicianUpdate
from app.services import physician as physician_service
from app.services.validation import enum_field

router = APIRouter(prefix="/physicians", tags=["physicians"])

_BODY_ENUMS = [
    Depends(enum_field("gender", Gender)),
    Depends(enum_field("provider_role", ProviderRole)),
    Depends(enum_field("clinician_type", ClinicianType)),
    Depends(enum_field("status", PhysicianStatus)),
]


@router.post(
    "",
    response_model=PhysicianRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=_BODY_ENUMS,
)
def create_physician(
    payload: PhysicianCreate, request: Request, db: Session = Depends(get_db)
):
    user = getattr(request.state, "user", None)
    return physician_service.physicians.create(
        db, payload, created_by=user.id if user else None
    )


@router.get("/{physician_id}", response_model=PhysicianRead)
def get_physician(physician_id: str, db: Session = Depends(get_db)):
    return physician_service.physicians.get(db, physician_id)


@router.get(
    "",
    response_model=ListResponse[PhysicianRead],
    dependencies=[
        Depends(enum_field("status", PhysicianStatus, "query")),
        Depends(enum_field("provider_role", ProviderRole, "query")),
        Depends(enum_field("clinician_type", ClinicianType, "query")),
    ],
)
def list_physicians(
    search: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    provider_role: str | None = None,
    clinician_type: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="full_legal_name"),
    order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return physician_service.physicians.list_response(
        db,
        search,
        status_filter,
        provider_role,
        clinician_type,
        is_active,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.patch(
    "/{physician_id}", response_model=PhysicianRead, dependencies=_BODY_ENUMS
)
def update_physician(
    physician_id: str, payload: PhysicianUpdate, db: Session = Depends(get_db)
):
    return physician_service.physicians.update(db, physician_id, payload)


@router.delete("/{physician_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_physician(physician_id: str, db: Session = Depends(get_db)):
    physician_service.physicians.delete(db, physician_id)
