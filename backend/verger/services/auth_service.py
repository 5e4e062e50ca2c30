# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

Passwords are hashed with bcrypt (cost factor 12) after a strength check.
Session tokens are handled separately (see session_service.py).
"""

import bcrypt
import re
from ..extensions import db
from ..models import User
from ..time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, rounds: int = 12) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in database
        return False


def create_user(email: str, password: str, display_name: str | None = None, rounds: int = 12) -> User:
    """
    Create an operator account.

    Raises ValueError if the email is already registered and
    PasswordValidationError if the password is too weak.
    """
    email = email.strip().lower()
    if db.session.query(User).filter_by(email=email).first():
        raise ValueError(f"User {email} already exists")

    user = User(
        email=email,
        display_name=display_name,
        password_hash=hash_password(password, rounds=rounds),
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """Return the active user matching the credentials, else None."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
