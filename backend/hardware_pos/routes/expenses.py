# Overview: Flask API routes for expenses operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import Expense
from ..services import expenses_service
from ..validation import ModelValidationPolicy, ValidationError, enforce_rules_expense, validate_payload

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields=set(expenses_service.EXPENSE_MUTABLE_FIELDS),
    required_on_create={"name", "amount_cents", "category"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
@require_permission("MANAGE_EXPENSES")
def list_expenses_route():
    return jsonify({"items": expenses_service.list_expenses()}), 200


@expenses_bp.get("/<expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def get_expense_route(expense_id: str):
    expense = expenses_service.get_expense(expense_id)
    if expense is None:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(expense), 200


@expenses_bp.post("")
@require_auth
@require_permission("MANAGE_EXPENSES")
def create_expense_route():
    """Date defaults to today when omitted."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    created = expenses_service.save_expense(patch)
    if created is None:
        return jsonify({"error": "Failed to save expense"}), 500
    return jsonify(created), 201


@expenses_bp.put("/<expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def update_expense_route(expense_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = expenses_service.save_expense({**patch, "id": expense_id})
    if updated is None:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(updated), 200


@expenses_bp.delete("/<expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def delete_expense_route(expense_id: str):
    if not expenses_service.delete_expense(expense_id):
        return jsonify({"error": "Expense not found"}), 404
    return jsonify({"ok": True}), 200
