# Overview: Application error types and database error translation.

"""
Error taxonomy shared by services and routes.

- AppError carries a short localized message (shown inline in the dashboard),
  an optional machine code, the HTTP status and free-form details.
- PersistenceError is raised by the persistence service for any database
  failure. Codes follow the PostgreSQL SQLSTATE values the hosted store used
  to return, so SQLite failures are mapped onto the same codes.
- NotFoundError is raised when an expected single-row read yields no rows.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"
UNDEFINED_TABLE = "42P01"

GENERIC_MESSAGE = "Une erreur est survenue"

_DATABASE_MESSAGES = {
    UNIQUE_VIOLATION: ("Cette entrée existe déjà", 409),
    FOREIGN_KEY_VIOLATION: ("Référence invalide", 400),
    NOT_NULL_VIOLATION: ("Données requises manquantes", 400),
    CHECK_VIOLATION: ("Données invalides", 400),
    UNDEFINED_TABLE: ("Erreur de configuration", 500),
}

# SQLite reports constraint failures as plain text
_SQLITE_MARKERS = (
    ("UNIQUE constraint failed", UNIQUE_VIOLATION),
    ("FOREIGN KEY constraint failed", FOREIGN_KEY_VIOLATION),
    ("NOT NULL constraint failed", NOT_NULL_VIOLATION),
    ("CHECK constraint failed", CHECK_VIOLATION),
    ("no such table", UNDEFINED_TABLE),
)


class AppError(Exception):
    """Base application error with a user-facing message."""

    status = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status: int | None = None,
        details: dict | str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        if status is not None:
            self.status = status
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class PersistenceError(AppError):
    """A database call failed. `detail` holds the driver message."""

    def __init__(self, message: str, code: str | None = None, status: int = 500, detail: str | None = None):
        super().__init__(message, code=code, status=status, details=detail)
        self.detail = detail


class NotFoundError(AppError):
    status = 404

    def __init__(self, message: str = "Aucune donnée trouvée", details: dict | None = None):
        super().__init__(message, code="NOT_FOUND", status=404, details=details)


def database_error_code(exc: SQLAlchemyError) -> str | None:
    """Extract a SQLSTATE-style code from a SQLAlchemy exception."""
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode:
        return pgcode

    text = str(orig if orig is not None else exc)
    for marker, code in _SQLITE_MARKERS:
        if marker in text:
            return code

    if isinstance(exc, IntegrityError):
        return UNIQUE_VIOLATION if "unique" in text.lower() else None
    return None


def handle_database_error(exc: SQLAlchemyError) -> PersistenceError:
    """Translate a SQLAlchemy exception into a PersistenceError."""
    code = database_error_code(exc)
    message, status = _DATABASE_MESSAGES.get(code, (GENERIC_MESSAGE, 500))
    if isinstance(exc, OperationalError) and code is None:
        code = "OPERATIONAL_ERROR"
    detail = str(getattr(exc, "orig", None) or exc)
    return PersistenceError(message, code=code, status=status, detail=detail)
