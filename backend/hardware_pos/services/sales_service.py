# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sales Service

A sale is written as three independent steps, each committed on its own:

1. the sale header,
2. its items (product names denormalised onto each item),
3. the stock decrement of every referenced product.

There is no rollback across steps: if step 2 fails the header stays behind
without items. If a guarded decrement in step 3 matches no row (stock drained
since the check), none of the decrements are applied, the header and items
stay behind, and the save reports failure.

adjust_stock=False skips both the stock check and step 3. The local-store
migration uses it because migrated product quantities already reflect the
historical sales.

The sale total defaults to the sum of its line totals. A live sale whose
total disagrees with its lines is rejected; with adjust_stock=False a
legacy total is kept as recorded.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import PAYMENT_METHODS, Product, Sale, SaleItem
from ..time_utils import utcnow
from ..validation import InsufficientStockError, ValidationError
from .persistence import store_operation
from .products_service import adjust_quantity

logger = logging.getLogger(__name__)


def _aggregate_quantities(items: list[dict]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for item in items:
        product_id = item.get("product_id")
        totals[product_id] = totals.get(product_id, 0) + int(item.get("quantity") or 0)
    return totals


def check_stock(items: list[dict]) -> None:
    """Raise InsufficientStockError if any product lacks the requested quantity."""
    insufficient = []
    for product_id, qty in _aggregate_quantities(items).items():
        product = db.session.get(Product, product_id)
        on_hand = product.quantity if product else 0
        if on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "product_name": product.name if product else None,
                "requested_quantity": qty,
                "on_hand": on_hand,
            })
    if insufficient:
        raise InsufficientStockError("Insufficient stock", details={"items": insufficient})


def _line_total(item: dict) -> int:
    total = item.get("total_cents")
    return item["quantity"] * item["price_cents"] if total is None else total


def _sale_total(sale: dict, items: list[dict], *, strict: bool) -> int:
    lines_total = sum(_line_total(i) for i in items)
    total = sale.get("total_cents")
    if total is None:
        return lines_total
    if strict and total != lines_total:
        raise ValidationError(f"total_cents {total} does not match the line totals ({lines_total})")
    return total


def _validate_sale(sale: dict, items: list[dict]) -> None:
    if sale.get("payment_method") not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    if not sale.get("staff_id") or not sale.get("staff_name"):
        raise ValidationError("staff_id and staff_name are required")
    for item in items:
        if not item.get("product_id"):
            raise ValidationError("product_id is required on every item")
        qty = item.get("quantity")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError("quantity must be a positive integer")
        if item.get("price_cents") is None:
            raise ValidationError("price_cents is required on every item")


@store_operation("fetching sales", default=[])
def list_sales(*, include_items: bool = False, limit: int | None = None) -> list[dict]:
    query = db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.asc())
    if limit:
        query = query.limit(limit)
    return [s.to_dict(include_items=include_items) for s in query.all()]


@store_operation("fetching sale")
def get_sale(sale_id: str) -> dict | None:
    sale = db.session.get(Sale, sale_id)
    return sale.to_dict(include_items=True) if sale else None


@store_operation("fetching sale items", default=[])
def get_sale_items(sale_id: str) -> list[dict]:
    rows = (
        db.session.query(SaleItem)
        .filter(SaleItem.sale_id == sale_id)
        .order_by(SaleItem.created_at.asc())
        .all()
    )
    return [i.to_dict() for i in rows]


@store_operation("creating sale")
def save_sale(sale: dict, items: list[dict], *, adjust_stock: bool = True) -> dict | None:
    """
    Persist a sale header and its items; decrement stock unless told not to.

    Returns the sale with items, or None when the store rejects a write
    or the stock decrement can no longer be applied.
    Raises ValidationError / InsufficientStockError before writing anything.
    """
    _validate_sale(sale, items)
    total_cents = _sale_total(sale, items, strict=adjust_stock)
    if adjust_stock:
        check_stock(items)

    now = utcnow()
    header = Sale(
        total_cents=total_cents,
        payment_method=sale["payment_method"],
        staff_id=str(sale["staff_id"]),
        staff_name=sale["staff_name"],
        customer_name=sale.get("customer_name"),
        reference=sale.get("reference"),
        created_at=sale.get("created_at") or now,
    )
    db.session.add(header)
    db.session.commit()
    sale_id = header.id

    for item in items:
        product_name = item.get("product_name")
        if not product_name:
            product = db.session.get(Product, item["product_id"])
            product_name = product.name if product else None
        db.session.add(SaleItem(
            sale_id=sale_id,
            product_id=item["product_id"],
            product_name=product_name,
            quantity=item["quantity"],
            price_cents=item["price_cents"],
            total_cents=_line_total(item),
            created_at=now,
        ))
    db.session.commit()

    if adjust_stock:
        applied = [adjust_quantity(product_id, -qty) for product_id, qty in _aggregate_quantities(items).items()]
        if not all(applied):
            db.session.rollback()
            logger.error("Sale %s saved without its stock decrement; stock changed after the check", sale_id)
            return None
        db.session.commit()

    return db.session.get(Sale, sale_id).to_dict(include_items=True)


@store_operation("deleting sale", default=False)
def delete_sale(sale_id: str) -> bool:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        return False
    db.session.delete(sale)
    db.session.commit()
    return True
