import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

import secrets  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.auth import User, UserRole, UserSession  # noqa: E402
from app.services.auth import hash_password, hash_token  # noqa: E402

PASSWORD = "correct-horse-battery"
# hashing once keeps bcrypt out of every fixture
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db_session, role: UserRole, name: str) -> User:
    user = User(
        email=f"{name}@example.com",
        username=name,
        full_name=name.title(),
        password_hash=PASSWORD_HASH,
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _headers_for(db_session, user: User) -> dict:
    token = secrets.token_urlsafe(24)
    now = datetime.now(timezone.utc)
    db_session.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=now + timedelta(hours=1),
            last_activity_at=now,
        )
    )
    db_session.commit()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_user(db_session):
    return _make_user(db_session, UserRole.admin, "admin")


@pytest.fixture()
def staff_user(db_session):
    return _make_user(db_session, UserRole.staff, "staff")


@pytest.fixture()
def viewer_user(db_session):
    return _make_user(db_session, UserRole.viewer, "viewer")


@pytest.fixture()
def auth_headers(db_session, staff_user):
    return _headers_for(db_session, staff_user)


@pytest.fixture()
def admin_headers(db_session, admin_user):
    return _headers_for(db_session, admin_user)


@pytest.fixture()
def viewer_headers(db_session, viewer_user):
    return _headers_for(db_session, viewer_user)


@pytest.fixture()
def physician(db_session):
    from tests.factories import make_physician

    return make_physician(db_session)
