# Overview: Session tokens and the explicit per-request session context.

"""
Session Token Management Service

Tokens are 32 random bytes (hex), returned to the client once and stored
only as a SHA-256 hash. Sessions expire after SESSION_TTL_HOURS and can be
revoked on logout.

SessionContext replaces ambient "current user" state: it is created per
request (or per CLI run), initialized from a token, handed to the services
that need the acting user, and torn down afterwards.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


class AuthenticationError(Exception):
    """Raised when a session token cannot be resolved to an active user."""


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """
    Create a new session for a user.

    Returns (session_record, plaintext_token).
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    plaintext_token = generate_token()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=utcnow(),
        expires_at=utcnow() + ttl,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionToken | None:
    """Return the live session for a token, or None if unknown, expired or revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < utcnow():
        return None

    if not session.user or not session.user.is_active:
        return None

    return session


def revoke_session(token: str) -> bool:
    """Revoke a session token. Returns False if it was not active."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return True


class SessionContext:
    """
    Identity of the acting operator.

    Lifecycle: initialize(token) -> current_user() ... -> teardown().
    """

    def __init__(self):
        self._user: User | None = None
        self._session: SessionToken | None = None

    @classmethod
    def for_user(cls, user: User) -> "SessionContext":
        """Context without a token (CLI commands, background scripts)."""
        context = cls()
        context._user = user
        return context

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def initialize(self, token: str) -> "SessionContext":
        session = validate_session(token)
        if session is None:
            raise AuthenticationError("Invalid or expired token")
        self._session = session
        self._user = session.user
        return self

    def current_user(self) -> User | None:
        return self._user

    @property
    def user_id(self) -> int | None:
        return self._user.id if self._user else None

    @property
    def session(self) -> SessionToken | None:
        return self._session

    def teardown(self) -> None:
        self._user = None
        self._session = None
