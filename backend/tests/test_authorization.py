"""
Admin authentication and route protection.

Storefront reads are public; every write and every ledger/report read needs
a bearer token from /api/auth/login.
"""
from datetime import timedelta

import pytest

from stockledger.extensions import db
from stockledger.models import AdminUser, SessionToken
from stockledger.services import session_service
from stockledger.services.auth_service import PasswordValidationError, create_admin
from stockledger.time_utils import utcnow

# Matches the admin fixture in conftest.py
ADMIN_EMAIL = "admin@stockledger.test"
ADMIN_PASSWORD = "Password123!"


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


PROTECTED = [
    ("post", "/api/products"),
    ("put", "/api/products/1"),
    ("delete", "/api/products/1"),
    ("post", "/api/categories"),
    ("put", "/api/categories/1"),
    ("delete", "/api/categories/1"),
    ("get", "/api/sales"),
    ("post", "/api/sales"),
    ("get", "/api/stats"),
    ("put", "/api/settings"),
    ("get", "/api/auth/me"),
    ("post", "/api/auth/logout"),
]

PUBLIC = [
    "/api/products",
    "/api/categories",
    "/api/settings",
    "/api/health",
]


@pytest.mark.parametrize("method,path", PROTECTED)
def test_protected_routes_require_token(client, db_session, method, path):
    response = getattr(client, method)(path, json={})
    assert response.status_code == 401
    assert response.get_json()["error"] == "Authentication required"


@pytest.mark.parametrize("method,path", PROTECTED)
def test_protected_routes_reject_bogus_token(client, db_session, method, path):
    response = getattr(client, method)(path, json={}, headers=auth_headers("not-a-real-token"))
    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid or expired token"


@pytest.mark.parametrize("path", PUBLIC)
def test_public_routes(client, db_session, path):
    assert client.get(path).status_code == 200


def test_login_me_logout(client, admin):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["email"] == ADMIN_EMAIL
    headers = auth_headers(body["token"])

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.get_json()["email"] == ADMIN_EMAIL

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_login_accepts_username_alias(client, admin):
    response = client.post("/api/auth/login", json={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200


def test_login_failures(client, admin):
    assert client.post("/api/auth/login", json={"email": ADMIN_EMAIL}).status_code == 400
    wrong = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "Wrong123!"})
    assert wrong.status_code == 401
    assert wrong.get_json()["error"] == "Invalid credentials"


def test_inactive_admin_cannot_log_in(client, admin):
    admin.is_active = False
    db.session.commit()
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 401


def test_deactivating_admin_kills_sessions(admin):
    _, token = session_service.create_session(admin.id)
    admin.is_active = False
    db.session.commit()
    assert session_service.validate_session(token) is None


def test_idle_session_expires(admin):
    session, token = session_service.create_session(admin.id)
    session.last_used_at = utcnow() - timedelta(hours=3)
    db.session.commit()

    assert session_service.validate_session(token) is None
    db.session.refresh(session)
    assert session.is_revoked


def test_absolute_session_expiry(admin):
    session, token = session_service.create_session(admin.id)
    session.expires_at = utcnow() - timedelta(seconds=1)
    db.session.commit()
    assert session_service.validate_session(token) is None


def test_tokens_stored_hashed(admin):
    _, token = session_service.create_session(admin.id)
    stored = db.session.query(SessionToken).one()
    assert stored.token_hash == session_service.hash_token(token)
    assert stored.token_hash != token


def test_weak_password_rejected(db_session):
    with pytest.raises(PasswordValidationError):
        create_admin(email="weak@stockledger.test", password="password", rounds=4)
    assert db_session.query(AdminUser).count() == 0


def test_duplicate_admin_rejected(admin):
    with pytest.raises(ValueError):
        create_admin(email=ADMIN_EMAIL.upper(), password=ADMIN_PASSWORD, rounds=4)
