from flask import Blueprint, current_app, jsonify

from ..decorators import require_auth, require_permission
from ..services import reporting_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard_route():
    try:
        data = reporting_service.dashboard()
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500
    if data is None:
        return jsonify({"error": "Failed to build dashboard"}), 500
    return jsonify(data), 200
