"""Tests for the auth module: tokens, login, dev-mode bypass and admin gating."""

import pytest

from proctrack.core.config import settings
from proctrack.core.token_factory import create_token, decode_token
from proctrack.models import User
from proctrack.services.auth_service import hash_password, verify_password


def _user(db, email="clerk@gmail.com", role="user", status="active", password="Clerk#2024"):
    user = User(
        id=f"u-{email.split('@')[0]}",
        name="Clerk",
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=status,
    )
    db.add(user)
    db.commit()
    return user


def _bearer(user_id: str, role: str = "user") -> dict:
    token = create_token(user_id, role, settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


class TestTokenFactory:

    def test_create_and_decode(self):
        token = create_token("u-1", "admin", "test-secret")
        payload = decode_token(token, "test-secret")
        assert payload is not None
        assert payload.sub == "u-1"
        assert payload.role == "admin"

    def test_wrong_secret_returns_none(self):
        token = create_token("u-1", "user", "correct-secret")
        assert decode_token(token, "wrong-secret") is None

    def test_expired_token_returns_none(self):
        token = create_token("u-1", "user", "secret", expires_hours=-1)
        assert decode_token(token, "secret") is None

    def test_malformed_token_returns_none(self):
        assert decode_token("not.a.token", "secret") is None
        assert decode_token("", "secret") is None

    def test_unsupported_algorithm_rejected(self):
        with pytest.raises(ValueError):
            create_token("u-1", "user", "secret", algorithm="RS256")


class TestPasswordHashing:

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("Secret#123")
        assert hashed != "Secret#123"
        assert verify_password("Secret#123", hashed)
        assert not verify_password("secret#123", hashed)

    def test_unreadable_hash_does_not_verify(self):
        assert verify_password("Secret#123", "Secret#123") is False


class TestAuthDisabledMode:
    """With AUTH_ENABLED=false every request runs as an anonymous admin."""

    def test_me_is_anonymous_admin(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 200
        data = resp.json()
        assert data["role"] == "admin"
        assert data["email"] == "unknown@example.com"
        assert data["name"] == "Unknown User"

    def test_admin_routes_open_without_token(self, client):
        assert client.get("/api/users").status_code == 200


class TestLogin:

    def test_primordial_admin_can_log_in(self, client):
        resp = client.post(
            "/api/auth/login",
            json={"email": settings.admin_email, "password": settings.admin_initial_password},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["user"]["email"] == settings.admin_email
        assert data["user"]["role"] == "admin"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
        assert decode_token(data["token"], settings.jwt_secret_key).sub == data["user"]["id"]

    def test_email_is_case_insensitive(self, client):
        resp = client.post(
            "/api/auth/login",
            json={"email": settings.admin_email.upper(), "password": settings.admin_initial_password},
        )
        assert resp.status_code == 200

    def test_wrong_password_is_401(self, client):
        resp = client.post(
            "/api/auth/login", json={"email": settings.admin_email, "password": "Wrong#1234"}
        )
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_inactive_account_cannot_log_in(self, client, db):
        _user(db, status="inactive")
        resp = client.post("/api/auth/login", json={"email": "clerk@gmail.com", "password": "Clerk#2024"})
        assert resp.status_code == 401


class TestAuthEnabledMode:

    @pytest.fixture(autouse=True)
    def _enable_auth(self, monkeypatch):
        monkeypatch.setattr(settings, "auth_enabled", True)

    def test_missing_token_is_401(self, client):
        assert client.get("/api/records").status_code == 401

    def test_garbage_token_is_401(self, client):
        resp = client.get("/api/records", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_token_for_unknown_user_is_401(self, client, auth_headers):
        assert client.get("/api/records", headers=auth_headers).status_code == 401

    def test_valid_user_token_reads_records(self, client, db):
        user = _user(db)
        resp = client.get("/api/records", headers=_bearer(user.id))
        assert resp.status_code == 200

    def test_me_reflects_stored_user(self, client, db):
        user = _user(db)
        data = client.get("/api/auth/me", headers=_bearer(user.id)).json()
        assert data["email"] == "clerk@gmail.com"
        assert data["role"] == "user"

    def test_stored_role_wins_over_token_claim(self, client, db):
        user = _user(db)
        resp = client.get("/api/users", headers=_bearer(user.id, role="admin"))
        assert resp.status_code == 403

    def test_non_admin_gets_generic_403(self, client, db):
        user = _user(db)
        resp = client.get("/api/users", headers=_bearer(user.id))
        assert resp.status_code == 403
        assert resp.json()["message"] == "Admin access required"

    def test_deactivated_user_token_is_401(self, client, db):
        user = _user(db, status="inactive")
        assert client.get("/api/records", headers=_bearer(user.id)).status_code == 401

    def test_admin_token_reaches_admin_routes(self, client, db):
        admin = _user(db, email="boss@gmail.com", role="admin")
        assert client.get("/api/users", headers=_bearer(admin.id, "admin")).status_code == 200

    def test_login_token_round_trip(self, client):
        token = client.post(
            "/api/auth/login",
            json={"email": settings.admin_email, "password": settings.admin_initial_password},
        ).json()["token"]
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["email"] == settings.admin_email
