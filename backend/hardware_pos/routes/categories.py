# Overview: Flask API routes for product categories.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import categories_service

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_categories_route():
    return jsonify({"items": categories_service.list_categories()}), 200


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    name = (payload.get("name") or "").strip()
    if not name:
        return jsonify({"error": "name is required"}), 400
    if not categories_service.save_category(name):
        return jsonify({"error": "Failed to save category"}), 500
    return jsonify({"name": name}), 201


@categories_bp.delete("/<path:name>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_category_route(name: str):
    if not categories_service.delete_category(name):
        return jsonify({"error": "Category not found"}), 404
    return jsonify({"ok": True}), 200
