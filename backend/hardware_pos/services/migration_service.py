# Overview: One-shot copy of the local record store into the database.

"""
Local -> Remote Migration

Copies every entity from a LocalDataAccess into the database through the
regular data access services, in dependency order:

    categories -> suppliers -> products -> sales (+items)
               -> expenses -> deliveries (+items) -> store profile

Suppliers and products get new identifiers on insert. Each MigrationRun
keeps an IdentifierMap per entity so later steps can rewrite references:

- product.supplier goes through the supplier map; unmapped -> no supplier
- sale item productId goes through the product map; unmapped -> left as is
  (the store then rejects the stale reference and the run aborts)
- delivery supplierId must be mapped; delivery item productId as for sales

Sales and deliveries are saved with adjust_stock=False: migrated product
quantities already include their effect.

Any failed save or malformed local record stops the run. Rows written before
the failure stay; there is no rollback and no resume. Running twice inserts
everything twice (categories excepted, they are keyed by name).
"""

from __future__ import annotations

import logging

from ..local_store import LocalDataAccess, LocalRecordError
from ..time_utils import parse_iso_date, parse_iso_datetime
from ..validation import ValidationError, to_cents
from . import (
    categories_service,
    deliveries_service,
    expenses_service,
    products_service,
    sales_service,
    settings_service,
    suppliers_service,
)

logger = logging.getLogger(__name__)

UNKNOWN_STAFF_ID = "unknown"
UNKNOWN_STAFF_NAME = "Unknown"


class MigrationError(Exception):
    """A migration step could not complete."""


class IdentifierMap:
    """
    Bijective old-id -> new-id mapping for one entity type within one run.

    Binding the same pair twice is allowed; binding an old id to a second
    new id, or a new id to a second old id, is an error.
    """

    def __init__(self, entity: str):
        self.entity = entity
        self._forward: dict[str, str] = {}
        self._reverse: dict[str, str] = {}

    def bind(self, old_id: str, new_id: str) -> None:
        old_id, new_id = str(old_id), str(new_id)
        bound_new = self._forward.get(old_id)
        if bound_new is not None and bound_new != new_id:
            raise MigrationError(f"{self.entity} {old_id} already mapped to {bound_new}")
        bound_old = self._reverse.get(new_id)
        if bound_old is not None and bound_old != old_id:
            raise MigrationError(f"{self.entity} {new_id} already mapped from {bound_old}")
        self._forward[old_id] = new_id
        self._reverse[new_id] = old_id

    def get(self, old_id, default=None):
        if old_id is None:
            return default
        return self._forward.get(str(old_id), default)

    def old_id(self, new_id) -> str | None:
        return self._reverse.get(str(new_id))

    def __contains__(self, old_id) -> bool:
        return old_id is not None and str(old_id) in self._forward

    def __len__(self) -> int:
        return len(self._forward)


class MigrationRun:
    """State of a single migration. Create one per run and discard it after."""

    def __init__(self, local: LocalDataAccess, *, include_deliveries: bool = True):
        self.local = local
        self.include_deliveries = include_deliveries
        self.suppliers = IdentifierMap("supplier")
        self.products = IdentifierMap("product")
        self.counts: dict[str, int] = {}

    def _fail(self, message: str):
        raise MigrationError(message)

    def migrate_categories(self) -> int:
        count = 0
        for name in self.local.list_categories():
            if not categories_service.save_category(name):
                self._fail(f"Failed to save category {name!r}")
            count += 1
        return count

    def migrate_suppliers(self) -> int:
        count = 0
        for supplier in self.local.list_suppliers():
            saved = suppliers_service.save_supplier({
                "name": supplier.name,
                "phone": supplier.phone,
                "company": supplier.company,
            })
            if saved is None:
                self._fail(f"Failed to save supplier {supplier.id}")
            self.suppliers.bind(supplier.id, saved["id"])
            count += 1
        return count

    def migrate_products(self) -> int:
        count = 0
        for product in self.local.list_products():
            saved = products_service.save_product({
                "name": product.name,
                "category": product.category,
                "sku": product.sku,
                "buying_price_cents": to_cents(product.buying_price, "buyingPrice"),
                "selling_price_cents": to_cents(product.selling_price, "sellingPrice"),
                "quantity": product.quantity,
                "reorder_level": product.reorder_level,
                "supplier_id": self.suppliers.get(product.supplier),
            })
            if saved is None:
                self._fail(f"Failed to save product {product.id}")
            self.products.bind(product.id, saved["id"])
            count += 1
        return count

    def migrate_sales(self) -> int:
        count = 0
        # Oldest first so the remote insert order matches history
        for sale in reversed(self.local.list_sales()):
            items = [
                {
                    "product_id": self.products.get(item.product_id, item.product_id),
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "price_cents": to_cents(item.price, "price"),
                    "total_cents": to_cents(item.total, "total"),
                }
                for item in sale.items
            ]
            saved = sales_service.save_sale(
                {
                    "total_cents": to_cents(sale.total, "total"),
                    "payment_method": sale.payment_method,
                    "staff_id": sale.staff_id or UNKNOWN_STAFF_ID,
                    "staff_name": sale.staff_name or UNKNOWN_STAFF_NAME,
                    "customer_name": sale.customer_name,
                    "reference": sale.reference,
                    "created_at": parse_iso_datetime(sale.created_at),
                },
                items,
                adjust_stock=False,
            )
            if saved is None:
                self._fail(f"Failed to save sale {sale.id}")
            count += 1
        return count

    def migrate_expenses(self) -> int:
        count = 0
        for expense in reversed(self.local.list_expenses()):
            saved = expenses_service.save_expense({
                "name": expense.name,
                "amount_cents": to_cents(expense.amount, "amount"),
                "category": expense.category,
                "date": parse_iso_date(expense.date),
                "notes": expense.notes,
            })
            if saved is None:
                self._fail(f"Failed to save expense {expense.id}")
            count += 1
        return count

    def migrate_deliveries(self) -> int:
        count = 0
        for delivery in reversed(self.local.list_deliveries()):
            supplier_id = self.suppliers.get(delivery.supplier_id)
            if supplier_id is None:
                self._fail(f"Delivery {delivery.id} references unknown supplier {delivery.supplier_id}")
            items = [
                {
                    "product_id": self.products.get(item.product_id, item.product_id),
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "cost_cents": to_cents(item.cost, "cost"),
                }
                for item in delivery.items
            ]
            saved = deliveries_service.save_delivery(
                {
                    "supplier_id": supplier_id,
                    "supplier_name": delivery.supplier_name,
                    "date": parse_iso_date(delivery.date),
                    "cost_cents": to_cents(delivery.cost, "cost"),
                    "notes": delivery.notes,
                },
                items,
                adjust_stock=False,
            )
            if saved is None:
                self._fail(f"Failed to save delivery {delivery.id}")
            count += 1
        return count

    def migrate_store_info(self) -> int:
        info = self.local.get_store_info()
        if not info or settings_service.get_store_info(defaults=False):
            return 0
        if settings_service.save_store_info(info) is None:
            self._fail("Failed to save store info")
        return 1

    def steps(self):
        yield "Categories", self.migrate_categories
        yield "Suppliers", self.migrate_suppliers
        yield "Products", self.migrate_products
        yield "Sales", self.migrate_sales
        yield "Expenses", self.migrate_expenses
        if self.include_deliveries:
            yield "Deliveries", self.migrate_deliveries
        yield "Store info", self.migrate_store_info

    def run(self) -> bool:
        for label, step in self.steps():
            try:
                count = step()
            except (MigrationError, LocalRecordError, ValidationError) as exc:
                logger.error("Migration aborted during %s: %s", label.lower(), exc)
                return False
            self.counts[label] = count
            logger.info("%s migrated: %d", label, count)
        logger.info("Migration completed successfully")
        return True


def migrate_local_to_remote(local: LocalDataAccess, *, include_deliveries: bool = True) -> bool:
    """
    Copy everything in `local` into the database. True on success.

    A False result means some rows may already have been written.
    """
    logger.info("Starting migration from local store")
    return MigrationRun(local, include_deliveries=include_deliveries).run()
