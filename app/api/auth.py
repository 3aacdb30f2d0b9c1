from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.auth import User
from app.schemas.auth import LoginRequest, LoginResponse, UserRead
from app.services.auth import auth_sessions
from app.services.auth_dependencies import bearer_token, require_user_auth

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    ip_address = request.client.host if request.client else None
    token, session = auth_sessions.login(
        db, payload, ip_address, request.headers.get("user-agent")
    )
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_at": session.expires_at,
        "user": session.user,
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(token: str = Depends(bearer_token), db: Session = Depends(get_db)):
    auth_sessions.logout(db, token)


@router.get("/me", response_model=UserRead)
def me(user: User = Depends(require_user_auth)):
    return user
