# Overview: Flask API routes for settings operations; parses input and returns JSON responses.

"""
Settings page (admin only).

- Store profile: name, phone, address, owner
- Users: list, create with a role, toggle role, delete. Nobody can change
  or delete their own account here.
- Backup: one JSON document with every table
- Migrate: copy a local-store export into the database
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..local_store import LocalDataAccess, LocalRecordError, LocalRecordStore
from ..services import auth_service, migration_service, session_service, settings_service
from ..services.auth_service import PasswordValidationError, UserError
from ..time_utils import utcnow
from ..validation import ValidationError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/store")
@require_auth
def get_store_info_route():
    """Any signed-in user may read the profile (it heads receipts)."""
    return jsonify(settings_service.get_store_info()), 200


@settings_bp.put("/store")
@require_auth
@require_permission("MANAGE_SETTINGS")
def update_store_info_route():
    payload = request.get_json(silent=True) or {}
    try:
        saved = settings_service.save_store_info(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if saved is None:
        return jsonify({"error": "Failed to save store info"}), 500
    return jsonify(settings_service.get_store_info()), 200


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@settings_bp.get("/users")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    users = [u.to_dict() for u in auth_service.list_users()]
    return jsonify({"users": users, "count": len(users)}), 200


@settings_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    data = request.get_json(silent=True) or {}
    name = data.get("name")
    email = data.get("email")
    password = data.get("password")
    role = data.get("role", "cashier")

    if not all([name, email, password]):
        return jsonify({"error": "name, email and password required"}), 400

    try:
        user = auth_service.create_user(name, email, password, role=role)
    except (PasswordValidationError, UserError) as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.info("User %s created by %s with role %s", user.email, g.current_user.email, user.role)
    return jsonify({"user": user.to_dict()}), 201


@settings_bp.post("/users/<int:user_id>/toggle-role")
@require_auth
@require_permission("MANAGE_USERS")
def toggle_role_route(user_id: int):
    try:
        user = auth_service.toggle_role(user_id, acting_user_id=g.current_user.id)
    except UserError as e:
        status = 404 if str(e) == "User not found" else 400
        return jsonify({"error": str(e)}), status

    # Existing sessions carry the old role
    session_service.revoke_all_user_sessions(user.id, reason="Role changed")
    return jsonify({"user": user.to_dict()}), 200


@settings_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    try:
        deleted = auth_service.delete_user(user_id, acting_user_id=g.current_user.id)
    except UserError as e:
        return jsonify({"error": str(e)}), 400
    if not deleted:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"ok": True}), 200


# =============================================================================
# BACKUP AND MIGRATION
# =============================================================================

@settings_bp.get("/backup")
@require_auth
@require_permission("EXPORT_BACKUP")
def backup_route():
    backup = settings_service.export_backup()
    response = jsonify(backup)
    filename = f"pos_backup_{utcnow().date().isoformat()}.json"
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response, 200


@settings_bp.post("/migrate")
@require_auth
@require_permission("RUN_MIGRATION")
def migrate_route():
    """
    Copy local-store data into the database.

    Body: a local-store export (the JSON object of pos_* keys). Without a
    body the file at LOCAL_STORE_PATH is used.

    Query params:
    - include_deliveries: "false" to skip deliveries (default true)
    """
    payload = request.get_json(silent=True)
    include_deliveries = request.args.get("include_deliveries", "true").lower() != "false"

    try:
        if payload:
            store = LocalRecordStore(data=payload)
        else:
            store = LocalRecordStore(path=current_app.config["LOCAL_STORE_PATH"])
    except (LocalRecordError, OSError) as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.info("Migration started by %s", g.current_user.email)
    success = migration_service.migrate_local_to_remote(
        LocalDataAccess(store),
        include_deliveries=include_deliveries,
    )
    if not success:
        return jsonify({"success": False, "error": "Migration failed; see server log"}), 500
    return jsonify({"success": True, "message": "Migration completed"}), 200
