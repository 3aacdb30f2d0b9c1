from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.models.auth import User, UserRole, UserSession, UserSettings
from app.schemas.auth import LoginRequest, UserCreate, UserUpdate
from app.services.common import apply_ordering, get_or_404, paginate
from app.services.response import ListResponseMixin
from app.services.validation import validate_enum

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Password and token hashing
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    pw_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.checkpw(pw_bytes, hashed_password.encode("utf-8"))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class Users(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: UserCreate) -> User:
        role = validate_enum("role", payload.role, UserRole)
        email = payload.email.strip().lower()
        existing = (
            db.query(User)
            .filter(or_(User.email == email, User.username == payload.username))
            .first()
        )
        if existing:
            raise HTTPException(status_code=409, detail="User already exists")
        user = User(
            email=email,
            username=payload.username,
            full_name=payload.full_name,
            password_hash=hash_password(payload.password),
            role=role,
        )
        db.add(user)
        db.flush()
        db.add(UserSettings(user_id=user.id))
        db.commit()
        db.refresh(user)
        logger.info("Created user %s", user.id)
        return user

    @staticmethod
    def get(db: Session, user_id: str) -> User:
        return get_or_404(db, User, user_id, "User")

    @staticmethod
    def list(
        db: Session,
        role: str | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[User]:
        query = db.query(User)
        if role:
            query = query.filter(User.role == validate_enum("role", role, UserRole))
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": User.created_at,
                "username": User.username,
                "email": User.email,
            },
        )
        return paginate(query, limit, offset)

    @staticmethod
    def update(db: Session, user_id: str, payload: UserUpdate) -> User:
        user = Users.get(db, user_id)
        data = payload.model_dump(exclude_unset=True)
        if "role" in data:
            data["role"] = validate_enum("role", data["role"], UserRole)
        if "email" in data and data["email"]:
            data["email"] = data["email"].strip().lower()
        password = data.pop("password", None)
        if password:
            user.password_hash = hash_password(password)
        for key, value in data.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
        logger.info("Updated user %s", user.id)
        return user

    @staticmethod
    def delete(db: Session, user_id: str) -> None:
        user = Users.get(db, user_id)
        user.is_active = False
        for session in user.sessions:
            if session.revoked_at is None:
                session.revoked_at = _now()
        db.commit()
        logger.info("Deactivated user %s", user.id)

    @staticmethod
    def ensure_bootstrap_admin(db: Session) -> User | None:
        """Create the configured admin account when no admin exists yet."""
        if not (settings.bootstrap_admin_email and settings.bootstrap_admin_password):
            return None
        admin = db.query(User).filter(User.role == UserRole.admin).first()
        if admin:
            return admin
        return Users.create(
            db,
            UserCreate(
                email=settings.bootstrap_admin_email,
                username=settings.bootstrap_admin_username,
                password=settings.bootstrap_admin_password,
                role=UserRole.admin.value,
            ),
        )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def _idle_timeout_seconds(user: User) -> int:
    if user.settings and user.settings.session_timeout:
        return user.settings.session_timeout
    return settings.session_idle_timeout_seconds


class AuthSessions:
    @staticmethod
    def login(
        db: Session,
        payload: LoginRequest,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[str, UserSession]:
        login = payload.login.strip()
        user = (
            db.query(User)
            .filter(or_(User.username == login, User.email == login.lower()))
            .first()
        )
        if not user:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        if not user.is_active:
            raise HTTPException(status_code=403, detail="Account disabled")

        now = _now()
        locked_until = _as_utc(user.locked_until)
        if locked_until and locked_until > now:
            raise HTTPException(
                status_code=423,
                detail={
                    "code": "account_locked",
                    "message": "Account temporarily locked after repeated failed logins",
                    "details": {"locked_until": locked_until.isoformat()},
                },
            )

        if not verify_password(payload.password, user.password_hash):
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            if user.failed_login_attempts >= settings.login_max_failed_attempts:
                user.locked_until = now + timedelta(
                    minutes=settings.login_lockout_minutes
                )
                user.failed_login_attempts = 0
                logger.warning("Locked user %s after failed logins", user.id)
            db.commit()
            raise HTTPException(status_code=401, detail="Invalid credentials")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = now

        token = secrets.token_urlsafe(32)
        session = UserSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=now + timedelta(hours=settings.session_lifetime_hours),
            last_activity_at=now,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:512] or None,
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        logger.info("Opened session %s for user %s", session.id, user.id)
        return token, session

    @staticmethod
    def authenticate(db: Session, token: str) -> User:
        """Resolve a bearer token to its user, enforcing expiry and idle timeout."""
        session = (
            db.query(UserSession)
            .filter(UserSession.token_hash == hash_token(token))
            .first()
        )
        if not session or session.revoked_at is not None:
            raise HTTPException(status_code=401, detail="Invalid session")

        now = _now()
        user = session.user
        if _as_utc(session.expires_at) <= now:
            raise HTTPException(status_code=401, detail="Session expired")
        idle_limit = timedelta(seconds=_idle_timeout_seconds(user))
        last_activity = _as_utc(session.last_activity_at) or _as_utc(session.created_at)
        if last_activity and now - last_activity > idle_limit:
            session.revoked_at = now
            db.commit()
            logger.info("Revoked idle session %s", session.id)
            raise HTTPException(status_code=401, detail="Session expired")
        if not user.is_active:
            raise HTTPException(status_code=401, detail="Invalid session")

        session.last_activity_at = now
        db.commit()
        return user

    @staticmethod
    def logout(db: Session, token: str) -> None:
        session = (
            db.query(UserSession)
            .filter(UserSession.token_hash == hash_token(token))
            .first()
        )
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        if session.revoked_at is None:
            session.revoked_at = _now()
            db.commit()
            logger.info("Closed session %s", session.id)


users = Users()
auth_sessions = AuthSessions()
