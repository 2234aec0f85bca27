# Overview: Flask API routes for suppliers and deliveries; parses input and returns JSON responses.

"""
Suppliers page (admin only).

A delivery records stock received from one supplier:
{supplier_id, date?, notes?, items: [{product_id, quantity, cost_cents}]}.
Its cost is the sum of the item costs and each product's quantity goes up
by the delivered amount.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import Supplier
from ..services import deliveries_service, products_service, suppliers_service
from ..time_utils import parse_iso_date
from ..validation import ModelValidationPolicy, ValidationError, require_positive_int, validate_payload

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields=set(suppliers_service.SUPPLIER_MUTABLE_FIELDS),
    required_on_create={"name"},
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def list_suppliers_route():
    return jsonify({"items": suppliers_service.list_suppliers()}), 200


@suppliers_bp.post("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    created = suppliers_service.save_supplier(patch)
    if created is None:
        return jsonify({"error": "Failed to save supplier"}), 500
    return jsonify(created), 201


@suppliers_bp.put("/<supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: str):
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = suppliers_service.save_supplier({**patch, "id": supplier_id})
    if updated is None:
        return jsonify({"error": "Supplier not found"}), 404
    return jsonify(updated), 200


@suppliers_bp.delete("/<supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def delete_supplier_route(supplier_id: str):
    if suppliers_service.get_supplier(supplier_id) is None:
        return jsonify({"error": "Supplier not found"}), 404
    if suppliers_service.has_deliveries(supplier_id):
        return jsonify({"error": "Supplier has deliveries and cannot be deleted"}), 409
    if not suppliers_service.delete_supplier(supplier_id):
        return jsonify({"error": "Failed to delete supplier"}), 500
    return jsonify({"ok": True}), 200


@suppliers_bp.get("/deliveries")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def list_deliveries_route():
    include_items = request.args.get("include_items", "false").lower() == "true"
    return jsonify({"items": deliveries_service.list_deliveries(include_items=include_items)}), 200


@suppliers_bp.get("/deliveries/<delivery_id>")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def get_delivery_route(delivery_id: str):
    delivery = deliveries_service.get_delivery(delivery_id)
    if delivery is None:
        return jsonify({"error": "Delivery not found"}), 404
    return jsonify(delivery), 200


@suppliers_bp.get("/deliveries/<delivery_id>/items")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def get_delivery_items_route(delivery_id: str):
    if deliveries_service.get_delivery(delivery_id) is None:
        return jsonify({"error": "Delivery not found"}), 404
    return jsonify({"items": deliveries_service.get_delivery_items(delivery_id)}), 200


def _build_delivery(payload: dict) -> tuple[dict, list[dict]]:
    supplier_id = payload.get("supplier_id")
    supplier = suppliers_service.get_supplier(supplier_id) if supplier_id else None
    if supplier is None:
        raise ValidationError("A known supplier_id is required")

    lines = payload.get("items")
    if not isinstance(lines, list) or not lines:
        raise ValidationError("A delivery needs at least one item")

    items = []
    for line in lines:
        if not isinstance(line, dict):
            raise ValidationError("Each item must be an object")
        product = products_service.get_product(line.get("product_id")) if line.get("product_id") else None
        if product is None:
            raise ValidationError(f"Product not found: {line.get('product_id')}")
        cost = line.get("cost_cents")
        if isinstance(cost, bool) or not isinstance(cost, int) or cost < 0:
            raise ValidationError("cost_cents must be a non-negative integer")
        items.append({
            "product_id": product["id"],
            "product_name": product["name"],
            "quantity": require_positive_int(line.get("quantity"), "quantity"),
            "cost_cents": cost,
        })

    try:
        delivery_date = parse_iso_date(payload.get("date"))
    except ValueError:
        raise ValidationError("date must be an ISO-8601 date")

    delivery = {
        "supplier_id": supplier["id"],
        "supplier_name": supplier["name"],
        "date": delivery_date,
        "notes": payload.get("notes"),
        "cost_cents": sum(i["cost_cents"] for i in items),
    }
    return delivery, items


@suppliers_bp.post("/deliveries")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def create_delivery_route():
    payload = request.get_json(silent=True) or {}
    try:
        delivery, items = _build_delivery(payload)
        created = deliveries_service.save_delivery(delivery, items)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record delivery")
        return jsonify({"error": "Internal server error"}), 500

    if created is None:
        return jsonify({"error": "Failed to record delivery"}), 500
    return jsonify(created), 201


@suppliers_bp.delete("/deliveries/<delivery_id>")
@require_auth
@require_permission("MANAGE_DELIVERIES")
def delete_delivery_route(delivery_id: str):
    if not deliveries_service.delete_delivery(delivery_id):
        return jsonify({"error": "Delivery not found"}), 404
    return jsonify({"ok": True}), 200
