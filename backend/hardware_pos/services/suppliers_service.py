# Overview: Service-layer operations for suppliers.

"""
Supplier Service

Suppliers are optional on products and required on deliveries. Deleting a
supplier unlinks its products; a supplier with recorded deliveries cannot be
deleted.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Delivery, Supplier
from .persistence import store_operation, upsert

SUPPLIER_MUTABLE_FIELDS = {"name", "phone", "company"}


@store_operation("fetching suppliers", default=[])
def list_suppliers() -> list[dict]:
    rows = db.session.query(Supplier).order_by(Supplier.name.asc(), Supplier.id.asc()).all()
    return [s.to_dict() for s in rows]


@store_operation("fetching supplier")
def get_supplier(supplier_id: str) -> dict | None:
    supplier = db.session.get(Supplier, supplier_id)
    return supplier.to_dict() if supplier else None


@store_operation("saving supplier")
def save_supplier(patch: dict) -> dict | None:
    supplier = upsert(Supplier, patch, SUPPLIER_MUTABLE_FIELDS)
    if supplier is None:
        return None
    db.session.commit()
    return supplier.to_dict()


@store_operation("checking supplier deliveries", default=False)
def has_deliveries(supplier_id: str) -> bool:
    return db.session.query(Delivery.id).filter(Delivery.supplier_id == supplier_id).first() is not None


@store_operation("deleting supplier", default=False)
def delete_supplier(supplier_id: str) -> bool:
    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        return False
    db.session.delete(supplier)
    db.session.commit()
    return True
