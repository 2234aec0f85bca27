# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .services import permission_service, session_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, "session_context")


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets for the rest of the request:
    - g.session_context: the SessionContext (user + session row)
    - g.current_user: shortcut to the authenticated User

    Returns 401 when the header is missing or the token is unknown,
    expired, idle too long, revoked, or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session_context = context
        g.current_user = context.user

        return f(*args, **kwargs)

    return decorated_function


def require_permission(operation: str):
    """Require the role to allow `operation`; 403 otherwise."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require(g.current_user, operation)
            except PermissionDeniedError as e:
                current_app.logger.warning(
                    "Permission denied: user=%s operation=%s path=%s",
                    g.current_user.id, operation, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": operation,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
