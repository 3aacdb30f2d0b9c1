from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.auth import UserRole
from app.schemas.auth import UserCreate, UserRead, UserUpdate
from app.schemas.common import ListResponse
from app.services import auth as auth_service
from app.services.validation import enum_field

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enum_field("role", UserRole))],
)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    return auth_service.users.create(db, payload)


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return auth_service.users.get(db, user_id)


@router.get(
    "",
    response_model=ListResponse[UserRead],
    dependencies=[Depends(enum_field("role", UserRole, "query"))],
)
def list_users(
    role: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return auth_service.users.list_response(
        db, role, is_active, order_by, order_dir, limit, offset
    )


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(enum_field("role", UserRole))],
)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    return auth_service.users.update(db, user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    auth_service.users.delete(db, user_id)
