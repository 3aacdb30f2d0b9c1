from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.auth import User
from app.schemas.auth import UserSettingsRead, UserSettingsUpdate
from app.services.auth_dependencies import require_user_auth
from app.services.user_settings import user_preferences

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/me", response_model=UserSettingsRead)
def get_my_settings(
    user: User = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return user_preferences.get(db, user)


@router.put("/me", response_model=UserSettingsRead)
@router.patch("/me", response_model=UserSettingsRead)
def update_my_settings(
    payload: UserSettingsUpdate,
    user: User = Depends(require_user_auth),
    db: Session = Depends(get_db),
):
    return user_preferences.update(db, user, payload)


@router.post("/me/reset", response_model=UserSettingsRead)
def reset_my_settings(
    user: User = Depends(require_user_auth), db: Session = Depends(get_db)
):
    return user_preferences.reset(db, user)
