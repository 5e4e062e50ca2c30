# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services.session_service import AuthenticationError, SessionContext


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes for the duration of the request:
    - g.session_context: the initialized SessionContext
    - g.current_user: the authenticated User

    Returns 401 if the Authorization header is missing, or the token is
    unknown, expired or revoked, or the user is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentification requise"}), 401

        context = SessionContext()
        try:
            context.initialize(token)
        except AuthenticationError:
            return jsonify({"error": "Session invalide ou expirée"}), 401

        g.session_context = context
        g.current_user = context.current_user()
        try:
            return f(*args, **kwargs)
        finally:
            context.teardown()

    return decorated_function
