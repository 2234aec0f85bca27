# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Inventory routes.

Everyone signed in can list products; cashiers get them without cost and
supplier columns. Creating, editing and deleting products is admin-only.
SKU uniqueness is checked here (409 on a duplicate).
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import Product
from ..services import permission_service, products_service, suppliers_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"name", "sku", "selling_price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _shape(product: dict) -> dict:
    if permission_service.can(g.current_user, "VIEW_COST_COLUMNS"):
        return product
    return products_service.public_view(product)


def _check_references(patch: dict, *, exclude_id: str | None = None) -> None:
    sku = patch.get("sku")
    if sku and products_service.find_by_sku(sku, exclude_id=exclude_id):
        raise ConflictError(f"SKU already exists: {sku}")
    supplier_id = patch.get("supplier_id")
    if supplier_id and suppliers_service.get_supplier(supplier_id) is None:
        raise ValidationError(f"Supplier not found: {supplier_id}")


@products_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_products_route():
    """
    Query params:
    - low_stock: "true" to return only products at or below reorder level
    """
    if request.args.get("low_stock", "false").lower() == "true":
        products = products_service.list_low_stock()
    else:
        products = products_service.list_products()
    return jsonify({"items": [_shape(p) for p in products]}), 200


@products_bp.get("/<product_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_product_route(product_id: str):
    product = products_service.get_product(product_id)
    if product is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(_shape(product)), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        _check_references(patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    created = products_service.save_product(patch)
    if created is None:
        current_app.logger.error("Product insert returned no row")
        return jsonify({"error": "Failed to save product"}), 500
    return jsonify(created), 201


@products_bp.put("/<product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: str):
    """Partial update; quantity edits here are the admin stock correction."""
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        _check_references(patch, exclude_id=product_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = products_service.save_product({**patch, "id": product_id})
    if updated is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(updated), 200


@products_bp.delete("/<product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: str):
    if products_service.get_product(product_id) is None:
        return jsonify({"error": "Product not found"}), 404
    if not products_service.delete_product(product_id):
        return jsonify({"error": "Product has sales or deliveries and cannot be deleted"}), 409
    return jsonify({"ok": True}), 200
