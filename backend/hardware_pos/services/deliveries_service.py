# Overview: Service-layer operations for supplier deliveries.

"""
Delivery Service

Mirror image of a sale: header, items, then a stock increment per product,
each committed separately. The supplier name and product names are
denormalised onto the delivery and its items at write time.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Delivery, DeliveryItem, Product, Supplier
from ..time_utils import today, utcnow
from ..validation import ValidationError
from .persistence import store_operation
from .products_service import adjust_quantity


def _validate_delivery(delivery: dict, items: list[dict]) -> None:
    if not delivery.get("supplier_id"):
        raise ValidationError("supplier_id is required")
    for item in items:
        if not item.get("product_id"):
            raise ValidationError("product_id is required on every item")
        qty = item.get("quantity")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError("quantity must be a positive integer")
        cost = item.get("cost_cents")
        if cost is None or cost < 0:
            raise ValidationError("cost_cents must be >= 0 on every item")


@store_operation("fetching deliveries", default=[])
def list_deliveries(*, include_items: bool = False) -> list[dict]:
    rows = (
        db.session.query(Delivery)
        .order_by(Delivery.date.desc(), Delivery.created_at.desc())
        .all()
    )
    return [d.to_dict(include_items=include_items) for d in rows]


@store_operation("fetching delivery")
def get_delivery(delivery_id: str) -> dict | None:
    delivery = db.session.get(Delivery, delivery_id)
    return delivery.to_dict(include_items=True) if delivery else None


@store_operation("fetching delivery items", default=[])
def get_delivery_items(delivery_id: str) -> list[dict]:
    rows = (
        db.session.query(DeliveryItem)
        .filter(DeliveryItem.delivery_id == delivery_id)
        .order_by(DeliveryItem.created_at.asc())
        .all()
    )
    return [i.to_dict() for i in rows]


@store_operation("creating delivery")
def save_delivery(delivery: dict, items: list[dict], *, adjust_stock: bool = True) -> dict | None:
    """
    Persist a delivery and its items; increment stock unless told not to.

    cost_cents defaults to the sum of the item costs.
    """
    _validate_delivery(delivery, items)

    supplier_name = delivery.get("supplier_name")
    if not supplier_name:
        supplier = db.session.get(Supplier, delivery["supplier_id"])
        supplier_name = supplier.name if supplier else None

    cost_cents = delivery.get("cost_cents")
    if cost_cents is None:
        cost_cents = sum(item["cost_cents"] for item in items)

    now = utcnow()
    header = Delivery(
        supplier_id=delivery["supplier_id"],
        supplier_name=supplier_name,
        date=delivery.get("date") or today(),
        cost_cents=cost_cents,
        notes=delivery.get("notes"),
        created_at=now,
    )
    db.session.add(header)
    db.session.commit()
    delivery_id = header.id

    for item in items:
        product_name = item.get("product_name")
        if not product_name:
            product = db.session.get(Product, item["product_id"])
            product_name = product.name if product else None
        db.session.add(DeliveryItem(
            delivery_id=delivery_id,
            product_id=item["product_id"],
            product_name=product_name,
            quantity=item["quantity"],
            cost_cents=item["cost_cents"],
            created_at=now,
        ))
    db.session.commit()

    if adjust_stock:
        for item in items:
            adjust_quantity(item["product_id"], item["quantity"])
        db.session.commit()

    return db.session.get(Delivery, delivery_id).to_dict(include_items=True)


@store_operation("deleting delivery", default=False)
def delete_delivery(delivery_id: str) -> bool:
    delivery = db.session.get(Delivery, delivery_id)
    if not delivery:
        return False
    db.session.delete(delivery)
    db.session.commit()
    return True
