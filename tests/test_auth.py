from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from app.models.auth import UserSession
from app.schemas.auth import LoginRequest, UserCreate
from app.services.auth import auth_sessions, hash_token, users, verify_password
from tests.conftest import PASSWORD


class TestLogin:
    def test_login_and_me(self, client, staff_user):
        resp = client.post(
            "/auth/login", json={"login": "staff", "password": PASSWORD}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["username"] == "staff"
        assert data["user"]["role"] == "staff"

        me = client.get(
            "/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["email"] == "staff@example.com"

    def test_login_by_email(self, client, staff_user):
        resp = client.post(
            "/api/v1/auth/login",
            json={"login": "STAFF@example.com", "password": PASSWORD},
        )
        assert resp.status_code == 200

    def test_wrong_password(self, client, staff_user):
        resp = client.post("/auth/login", json={"login": "staff", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid credentials"

    def test_unknown_user(self, client):
        resp = client.post("/auth/login", json={"login": "ghost", "password": "x"})
        assert resp.status_code == 401

    def test_lockout_after_repeated_failures(self, db_session, staff_user):
        for _ in range(5):
            with pytest.raises(HTTPException) as exc:
                auth_sessions.login(
                    db_session, LoginRequest(login="staff", password="bad")
                )
            assert exc.value.status_code == 401
        with pytest.raises(HTTPException) as exc:
            auth_sessions.login(
                db_session, LoginRequest(login="staff", password=PASSWORD)
            )
        assert exc.value.status_code == 423
        assert exc.value.detail["code"] == "account_locked"

    def test_success_resets_failed_attempts(self, db_session, staff_user):
        with pytest.raises(HTTPException):
            auth_sessions.login(db_session, LoginRequest(login="staff", password="bad"))
        db_session.refresh(staff_user)
        assert staff_user.failed_login_attempts == 1
        token, session = auth_sessions.login(
            db_session, LoginRequest(login="staff", password=PASSWORD)
        )
        db_session.refresh(staff_user)
        assert staff_user.failed_login_attempts == 0
        assert session.token_hash == hash_token(token)

    def test_disabled_account(self, db_session, staff_user):
        staff_user.is_active = False
        db_session.commit()
        with pytest.raises(HTTPException) as exc:
            auth_sessions.login(
                db_session, LoginRequest(login="staff", password=PASSWORD)
            )
        assert exc.value.status_code == 403


class TestSessions:
    def _session(self, db_session, user, **overrides):
        now = datetime.now(timezone.utc)
        values = {
            "user_id": user.id,
            "token_hash": hash_token("token-1"),
            "expires_at": now + timedelta(hours=1),
            "last_activity_at": now,
        }
        values.update(overrides)
        session = UserSession(**values)
        db_session.add(session)
        db_session.commit()
        return session

    def test_missing_token(self, client):
        resp = client.get("/physicians")
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_expired_session(self, db_session, staff_user):
        self._session(
            db_session,
            staff_user,
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        with pytest.raises(HTTPException) as exc:
            auth_sessions.authenticate(db_session, "token-1")
        assert exc.value.detail == "Session expired"

    def test_idle_session_is_revoked(self, db_session, staff_user):
        session = self._session(
            db_session,
            staff_user,
            last_activity_at=datetime.now(timezone.utc) - timedelta(hours=2),
        )
        with pytest.raises(HTTPException) as exc:
            auth_sessions.authenticate(db_session, "token-1")
        assert exc.value.status_code == 401
        db_session.refresh(session)
        assert session.revoked_at is not None

    def test_activity_is_refreshed(self, db_session, staff_user):
        session = self._session(
            db_session,
            staff_user,
            last_activity_at=datetime.now(timezone.utc) - timedelta(minutes=10),
        )
        before = session.last_activity_at
        user = auth_sessions.authenticate(db_session, "token-1")
        assert user.id == staff_user.id
        db_session.refresh(session)
        assert session.last_activity_at > before

    def test_logout_revokes(self, client, db_session, staff_user):
        self._session(db_session, staff_user)
        headers = {"Authorization": "Bearer token-1"}
        resp = client.post("/auth/logout", headers=headers)
        assert resp.status_code == 204
        assert client.get("/auth/me", headers=headers).status_code == 401


class TestRoles:
    def test_viewer_can_read(self, client, viewer_headers):
        assert client.get("/physicians", headers=viewer_headers).status_code == 200

    def test_viewer_cannot_write(self, client, viewer_headers):
        resp = client.post(
            "/physicians", json={"full_legal_name": "X"}, headers=viewer_headers
        )
        assert resp.status_code == 403

    def test_users_admin_only(self, client, auth_headers, admin_headers):
        assert client.get("/users", headers=auth_headers).status_code == 403
        assert client.get("/users", headers=admin_headers).status_code == 200


class TestUsers:
    def test_create_user_via_api(self, client, admin_headers):
        resp = client.post(
            "/users",
            json={
                "email": "New.User@example.com",
                "username": "newuser",
                "password": "long-enough-pw",
                "role": "viewer",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["email"] == "new.user@example.com"
        assert resp.json()["role"] == "viewer"

    def test_invalid_role(self, client, admin_headers):
        resp = client.post(
            "/users",
            json={
                "email": "x@example.com",
                "username": "x",
                "password": "long-enough-pw",
                "role": "superuser",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_enum"

    def test_duplicate_user(self, db_session, staff_user):
        with pytest.raises(HTTPException) as exc:
            users.create(
                db_session,
                UserCreate(
                    email="staff@example.com", username="other", password="password1"
                ),
            )
        assert exc.value.status_code == 409

    def test_create_hashes_password(self, db_session):
        user = users.create(
            db_session,
            UserCreate(email="a@example.com", username="a", password="password1"),
        )
        assert user.password_hash != "password1"
        assert verify_password("password1", user.password_hash)
        assert user.settings is not None

    def test_deactivate_revokes_sessions(self, client, db_session, admin_headers):
        user = users.create(
            db_session,
            UserCreate(email="b@example.com", username="b", password="password1"),
        )
        resp = client.delete(f"/users/{user.id}", headers=admin_headers)
        assert resp.status_code == 204
        db_session.refresh(user)
        assert user.is_active is False


class TestSettings:
    def test_defaults_created_lazily(self, client, auth_headers):
        resp = client.get("/settings/me", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["theme"] == "system"
        assert resp.json()["session_timeout"] == 3600

    def test_update_merges_custom_preferences(self, client, auth_headers):
        client.patch(
            "/settings/me",
            json={"custom_preferences": {"a": 1}},
            headers=auth_headers,
        )
        resp = client.put(
            "/settings/me",
            json={"theme": "dark", "custom_preferences": {"b": 2}},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["theme"] == "dark"
        assert resp.json()["custom_preferences"] == {"a": 1, "b": 2}

    def test_invalid_theme(self, client, auth_headers):
        resp = client.patch(
            "/settings/me", json={"theme": "neon"}, headers=auth_headers
        )
        assert resp.status_code == 422

    def test_reset(self, client, auth_headers):
        client.patch("/settings/me", json={"theme": "dark"}, headers=auth_headers)
        resp = client.post("/settings/me/reset", headers=auth_headers)
        assert resp.json()["theme"] == "system"
