# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products Service

Upsert semantics: a patch carrying an id updates only the supplied fields,
otherwise a product is inserted with a generated id. Saving a product whose
category is unknown registers that category.

Stock moves through adjust_quantity, a single UPDATE statement so two
concurrent sales cannot overwrite each other's decrement.
"""

from __future__ import annotations

import logging

from sqlalchemy import update

from ..extensions import db
from ..models import Product
from ..time_utils import utcnow
from .categories_service import ensure_category
from .persistence import store_operation, upsert

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "category",
    "sku",
    "buying_price_cents",
    "selling_price_cents",
    "quantity",
    "reorder_level",
    "supplier_id",
}

# Hidden from cashiers
COST_FIELDS = ("buying_price_cents", "supplier_id")


def public_view(product: dict) -> dict:
    return {k: v for k, v in product.items() if k not in COST_FIELDS}


@store_operation("fetching products", default=[])
def list_products() -> list[dict]:
    rows = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in rows]


@store_operation("fetching product")
def get_product(product_id: str) -> dict | None:
    product = db.session.get(Product, product_id)
    return product.to_dict() if product else None


@store_operation("fetching product by SKU")
def find_by_sku(sku: str, *, exclude_id: str | None = None) -> dict | None:
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id:
        query = query.filter(Product.id != exclude_id)
    product = query.first()
    return product.to_dict() if product else None


@store_operation("fetching low stock products", default=[])
def list_low_stock() -> list[dict]:
    rows = (
        db.session.query(Product)
        .filter(Product.quantity <= Product.reorder_level)
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in rows]


@store_operation("saving product")
def save_product(patch: dict) -> dict | None:
    product = upsert(Product, patch, PRODUCT_MUTABLE_FIELDS)
    if product is None:
        return None
    if "category" in patch:
        ensure_category(patch["category"])
    db.session.commit()
    return product.to_dict()


@store_operation("deleting product", default=False)
def delete_product(product_id: str) -> bool:
    product = db.session.get(Product, product_id)
    if not product:
        return False
    db.session.delete(product)
    db.session.commit()
    return True


def adjust_quantity(product_id: str, delta: int, *, allow_negative: bool = False) -> bool:
    """
    Atomically add `delta` to a product's quantity. Caller commits.

    A decrement that would take stock below zero matches no row and
    returns False unless allow_negative is set.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + delta, updated_at=utcnow())
    )
    if delta < 0 and not allow_negative:
        stmt = stmt.where(Product.quantity >= -delta)
    result = db.session.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount != 1:
        logger.warning("Stock adjustment of %s on product %s was not applied", delta, product_id)
        return False
    return True
