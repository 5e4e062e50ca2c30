# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import bearer_token, require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate an operator and create a session token.

    The token must be sent back as `Authorization: Bearer <token>`.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "Email et mot de passe requis"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Identifiants invalides"}), 401

        session, token = session_service.create_session(user.id)

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Erreur d'authentification"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the session token (logout)."""
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authentification requise"}), 401

    if not session_service.revoke_session(token):
        return jsonify({"error": "Session invalide ou expirée"}), 401

    return jsonify({"message": "Déconnexion réussie"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
