# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Checkout and sales history.

The cart is validated here before anything is written: a non-empty cart,
positive integer quantities, known products with enough stock, a reference
for mobile money and a customer name for credit. Prices are taken from the
product's selling price at the moment of sale, never from the client.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import PAYMENT_METHODS
from ..services import products_service, sales_service
from ..validation import InsufficientStockError, ValidationError, require_positive_int

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _build_sale(payload: dict) -> tuple[dict, list[dict]]:
    """Turn a checkout payload into a sale header and priced items."""
    method = payload.get("payment_method")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    customer_name = (payload.get("customer_name") or "").strip() or None
    reference = (payload.get("reference") or "").strip() or None
    if method == "mobile_money" and not reference:
        raise ValidationError("reference is required for mobile money payments")
    if method == "credit" and not customer_name:
        raise ValidationError("customer_name is required for credit sales")

    cart = payload.get("items")
    if not isinstance(cart, list) or not cart:
        raise ValidationError("Cart is empty")

    items = []
    for line in cart:
        if not isinstance(line, dict):
            raise ValidationError("Each item must be an object")
        product_id = line.get("product_id")
        quantity = require_positive_int(line.get("quantity"), "quantity")
        product = products_service.get_product(product_id) if product_id else None
        if product is None:
            raise ValidationError(f"Product not found: {product_id}")
        price = product["selling_price_cents"]
        items.append({
            "product_id": product["id"],
            "product_name": product["name"],
            "quantity": quantity,
            "price_cents": price,
            "total_cents": quantity * price,
        })

    ctx = g.session_context
    sale = {
        "payment_method": method,
        "customer_name": customer_name,
        "reference": reference,
        "staff_id": ctx.staff_id,
        "staff_name": ctx.staff_name,
        "total_cents": sum(i["total_cents"] for i in items),
    }
    return sale, items


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    limit = request.args.get("limit", type=int)
    include_items = request.args.get("include_items", "false").lower() == "true"
    return jsonify({"items": sales_service.list_sales(include_items=include_items, limit=limit)}), 200


@sales_bp.get("/<sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: str):
    sale = sales_service.get_sale(sale_id)
    if sale is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify(sale), 200


@sales_bp.get("/<sale_id>/items")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_items_route(sale_id: str):
    if sales_service.get_sale(sale_id) is None:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"items": sales_service.get_sale_items(sale_id)}), 200


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale_route():
    """Complete a checkout: header, items, then stock decrement."""
    payload = request.get_json(silent=True) or {}

    try:
        sale, items = _build_sale(payload)
        created = sales_service.save_sale(sale, items)
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    if created is None:
        return jsonify({"error": "Failed to complete sale"}), 500

    return jsonify(created), 201


@sales_bp.delete("/<sale_id>")
@require_auth
@require_permission("DELETE_SALES")
def delete_sale_route(sale_id: str):
    if not sales_service.delete_sale(sale_id):
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"ok": True}), 200
