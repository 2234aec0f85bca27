# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /register: self-registration, always as a cashier
- POST /login: email + password -> bearer token
- POST /logout: revoke the presented token
- GET /me: the current user and what their role allows
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..services import auth_service, permission_service, session_service
from ..services.auth_service import PasswordValidationError, UserError

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, session, token: str) -> dict:
    return {
        "user": user.to_dict(),
        "permissions": permission_service.get_user_permissions(user),
        "token": token,
        "session": session.to_dict(),
    }


@auth_bp.post("/register")
def register_route():
    """
    Create a cashier account and log it in.

    Admins are made by promoting an account in settings or from the CLI.
    """
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    email = data.get("email")
    password = data.get("password")
    confirm = data.get("confirm_password")

    if not all([name, email, password, confirm]):
        return jsonify({"error": "name, email, password and confirm_password required"}), 400

    try:
        user = auth_service.register(name, email, password, confirm)
        session, token = session_service.create_session(user.id)
    except (PasswordValidationError, UserError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({**_session_payload(user, session, token), "message": "Registration successful"}), 201


@auth_bp.post("/login")
def login_route():
    """Authenticate and create a session token."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(user.id)
        return jsonify({**_session_payload(user, session, token), "message": "Login successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the bearer token. The session ends here."""
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    try:
        revoked = session_service.revoke_session(token, reason="User logout")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500

    if not revoked:
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "is_admin": g.session_context.is_admin,
        "permissions": permission_service.get_user_permissions(user),
    }), 200
