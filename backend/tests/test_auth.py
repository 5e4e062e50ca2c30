"""
Authentication and session tests.

Verifies:
- Unauthenticated requests return 401
- Login issues a bearer token; logout revokes it
- Expired sessions and deactivated operators are refused
- SessionContext lifecycle (initialize / current_user / teardown)
"""

from datetime import timedelta

import pytest

from verger.models import SessionToken
from verger.services.auth_service import (
    PasswordValidationError,
    authenticate,
    create_user,
    hash_password,
    verify_password,
)
from verger.services.session_service import AuthenticationError, SessionContext, hash_token
from verger.time_utils import utcnow


OPERATOR_EMAIL = "ops@verger.test"
OPERATOR_PASSWORD = "Password123"


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/customers"),
            ("POST", "/api/customers"),
            ("GET", "/api/products"),
            ("GET", "/api/inventory"),
            ("PUT", "/api/inventory/1"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("PUT", "/api/sales/1"),
            ("DELETE", "/api/sales/1"),
            ("POST", "/api/sales/draft/items"),
            ("GET", "/api/analytics/sales"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_unknown_token(self, client, db_session):
        resp = client.get("/api/sales", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401
        assert resp.json["error"] == "Session invalide ou expirée"

    def test_health_is_public(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLoginLogout:

    def test_login_and_me(self, client, operator):
        resp = client.post("/api/auth/login", json={"email": OPERATOR_EMAIL, "password": OPERATOR_PASSWORD})
        assert resp.status_code == 200
        token = resp.json["token"]

        me = client.get("/api/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["user"]["email"] == OPERATOR_EMAIL

    def test_login_is_case_insensitive_on_email(self, client, operator):
        resp = client.post("/api/auth/login", json={"email": "OPS@Verger.Test", "password": OPERATOR_PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password(self, client, operator):
        resp = client.post("/api/auth/login", json={"email": OPERATOR_EMAIL, "password": "Wrong12345"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": OPERATOR_EMAIL})
        assert resp.status_code == 400

    def test_logout_revokes_token(self, client, token):
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 401

    def test_expired_session(self, client, db_session, token):
        session = db_session.query(SessionToken).filter_by(token_hash=hash_token(token)).one()
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_deactivated_operator(self, client, db_session, operator, token):
        operator.is_active = False
        db_session.commit()
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert authenticate(OPERATOR_EMAIL, OPERATOR_PASSWORD) is None


# =============================================================================
# SESSION CONTEXT
# =============================================================================


class TestSessionContext:

    def test_lifecycle(self, operator, token):
        context = SessionContext()
        assert not context.is_authenticated
        assert context.current_user() is None

        context.initialize(token)
        assert context.is_authenticated
        assert context.current_user().id == operator.id
        assert context.user_id == operator.id
        assert context.session is not None

        context.teardown()
        assert context.current_user() is None
        assert context.user_id is None

    def test_initialize_with_bad_token(self, db_session):
        with pytest.raises(AuthenticationError):
            SessionContext().initialize("bogus")

    def test_for_user(self, operator):
        context = SessionContext.for_user(operator)
        assert context.user_id == operator.id
        assert context.session is None


# =============================================================================
# PASSWORDS
# =============================================================================


class TestPasswords:

    @pytest.mark.parametrize("password", ["short1", "onlyletters", "1234567890"])
    def test_weak_passwords(self, password):
        with pytest.raises(PasswordValidationError):
            hash_password(password, rounds=4)

    def test_hash_roundtrip(self):
        hashed = hash_password("Mangue2024", rounds=4)
        assert verify_password("Mangue2024", hashed)
        assert not verify_password("Mangue2025", hashed)
        assert not verify_password("Mangue2024", "not-a-bcrypt-hash")

    def test_duplicate_user(self, operator):
        with pytest.raises(ValueError):
            create_user(OPERATOR_EMAIL.upper(), "Another123", rounds=4)
