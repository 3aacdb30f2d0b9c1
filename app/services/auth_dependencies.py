from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.auth import User, UserRole
from app.services.auth import auth_sessions

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


def _extract_bearer(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


def require_user_auth(
    request: Request,
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    user = auth_sessions.authenticate(db, _extract_bearer(authorization))
    request.state.user = user
    return user


def require_role(*roles: str):
    allowed = {UserRole(role) for role in roles}

    def _require(user: User = Depends(require_user_auth)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return user

    return _require


def require_write_access(
    request: Request, user: User = Depends(require_user_auth)
) -> User:
    """Viewers may read; only staff and admins may change data."""
    if request.method not in SAFE_METHODS and user.role == UserRole.viewer:
        raise HTTPException(status_code=403, detail="Read-only account")
    return user


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer(authorization)
