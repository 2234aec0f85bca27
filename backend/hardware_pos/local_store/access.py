# Overview: Entity-level data access over the local record store.

"""
Local Data Access

Same per-entity surface as the remote services (list/get/save/delete) but
against the JSON document. Inputs are camelCase patches as the legacy till
wrote them; outputs are typed records from .records.

save_* is an upsert: a patch with an "id" updates the supplied fields of an
existing record (unknown id -> None), a patch without one inserts a new
record with a generated id and createdAt/updatedAt stamps.

Stock side effects follow the legacy behaviour: a sale decrements product
quantities with no floor, a delivery increments them.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Callable
from uuid import uuid4

from ..time_utils import to_utc_z, utcnow
from . import record_store as rs
from .record_store import LocalRecordStore
from .records import (
    LocalDelivery,
    LocalExpense,
    LocalProduct,
    LocalRecordError,
    LocalSale,
    LocalSupplier,
    LocalUser,
    parse_category,
    parse_collection,
)

logger = logging.getLogger(__name__)


@dataclass
class LocalSession:
    """The logged-in user of the local till; password never included."""
    user_id: str
    name: str
    email: str
    role: str
    logged_in_at: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_record(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "loggedInAt": self.logged_in_at,
        }


def _now() -> str:
    return to_utc_z(utcnow())


class LocalDataAccess:
    def __init__(self, store: LocalRecordStore):
        self.store = store

    # --- generic helpers ---

    def _load(self, collection: str, parser: Callable[[str, Any], Any]) -> list:
        return parse_collection(collection, self.store.get(collection), parser)

    def _find(self, collection: str, parser, record_id: str):
        for record in self._load(collection, parser):
            if record.id == str(record_id):
                return record
        return None

    def _upsert(self, collection: str, parser, patch: dict, *, timestamps: bool = True):
        rows = self.store.get(collection)
        now = _now()
        record_id = patch.get("id")

        if record_id not in (None, ""):
            for index, row in enumerate(rows):
                if isinstance(row, dict) and str(row.get("id")) == str(record_id):
                    merged = {**row, **patch, "id": row.get("id")}
                    if timestamps:
                        merged["updatedAt"] = now
                    parsed = parser(f"{collection}[{index}]", merged)
                    rows[index] = parsed.to_record()
                    self.store.put(collection, rows)
                    return parsed
            return None

        record = {**patch, "id": uuid4().hex}
        if timestamps:
            record["createdAt"] = now
            record["updatedAt"] = now
        parsed = parser(f"{collection}[{len(rows)}]", record)
        rows.append(parsed.to_record())
        self.store.put(collection, rows)
        return parsed

    def _delete(self, collection: str, record_id: str) -> bool:
        rows = self.store.get(collection)
        kept = [r for r in rows if not (isinstance(r, dict) and str(r.get("id")) == str(record_id))]
        if len(kept) == len(rows):
            return False
        self.store.put(collection, kept)
        return True

    def _adjust_quantities(self, deltas: dict[str, int]) -> None:
        if not deltas:
            return
        products = self.store.get(rs.PRODUCTS)
        now = _now()
        seen = set()
        for row in products:
            if not isinstance(row, dict):
                continue
            pid = str(row.get("id"))
            if pid in deltas:
                row["quantity"] = int(row.get("quantity") or 0) + deltas[pid]
                row["updatedAt"] = now
                seen.add(pid)
        for pid in set(deltas) - seen:
            logger.warning("Stock change for unknown local product %s ignored", pid)
        self.store.put(rs.PRODUCTS, products)

    # --- categories ---

    def list_categories(self) -> list[str]:
        return self._load(rs.CATEGORIES, parse_category)

    def save_category(self, name: str) -> bool:
        name = parse_category(rs.CATEGORIES, name)
        categories = self.list_categories()
        if name not in categories:
            categories.append(name)
            self.store.put(rs.CATEGORIES, categories)
        return True

    def delete_category(self, name: str) -> bool:
        categories = self.list_categories()
        if name not in categories:
            return False
        self.store.put(rs.CATEGORIES, [c for c in categories if c != name])
        return True

    # --- products ---

    def list_products(self) -> list[LocalProduct]:
        return sorted(self._load(rs.PRODUCTS, LocalProduct.parse), key=lambda p: p.name.lower())

    def get_product_by_id(self, product_id: str) -> LocalProduct | None:
        return self._find(rs.PRODUCTS, LocalProduct.parse, product_id)

    def save_product(self, patch: dict) -> LocalProduct | None:
        product = self._upsert(rs.PRODUCTS, LocalProduct.parse, patch)
        if product is not None and product.category:
            self.save_category(product.category)
        return product

    def delete_product(self, product_id: str) -> bool:
        return self._delete(rs.PRODUCTS, product_id)

    # --- suppliers ---

    def list_suppliers(self) -> list[LocalSupplier]:
        return sorted(self._load(rs.SUPPLIERS, LocalSupplier.parse), key=lambda s: s.name.lower())

    def get_supplier_by_id(self, supplier_id: str) -> LocalSupplier | None:
        return self._find(rs.SUPPLIERS, LocalSupplier.parse, supplier_id)

    def save_supplier(self, patch: dict) -> LocalSupplier | None:
        return self._upsert(rs.SUPPLIERS, LocalSupplier.parse, patch)

    def delete_supplier(self, supplier_id: str) -> bool:
        return self._delete(rs.SUPPLIERS, supplier_id)

    # --- sales ---

    def list_sales(self) -> list[LocalSale]:
        sales = self._load(rs.SALES, LocalSale.parse)
        return sorted(sales, key=lambda s: s.created_at or "", reverse=True)

    def get_sale_by_id(self, sale_id: str) -> LocalSale | None:
        return self._find(rs.SALES, LocalSale.parse, sale_id)

    def save_sale(self, patch: dict) -> LocalSale | None:
        is_new = patch.get("id") in (None, "")
        patch = dict(patch)
        if is_new:
            patch.setdefault("createdAt", _now())
        sale = self._upsert(rs.SALES, LocalSale.parse, patch, timestamps=False)
        if sale is not None and is_new:
            deltas: dict[str, int] = {}
            for item in sale.items:
                deltas[item.product_id] = deltas.get(item.product_id, 0) - item.quantity
            self._adjust_quantities(deltas)
        return sale

    def delete_sale(self, sale_id: str) -> bool:
        return self._delete(rs.SALES, sale_id)

    # --- expenses ---

    def list_expenses(self) -> list[LocalExpense]:
        return sorted(self._load(rs.EXPENSES, LocalExpense.parse), key=lambda e: e.date, reverse=True)

    def get_expense_by_id(self, expense_id: str) -> LocalExpense | None:
        return self._find(rs.EXPENSES, LocalExpense.parse, expense_id)

    def save_expense(self, patch: dict) -> LocalExpense | None:
        return self._upsert(rs.EXPENSES, LocalExpense.parse, patch, timestamps=False)

    def delete_expense(self, expense_id: str) -> bool:
        return self._delete(rs.EXPENSES, expense_id)

    # --- deliveries ---

    def list_deliveries(self) -> list[LocalDelivery]:
        return sorted(self._load(rs.DELIVERIES, LocalDelivery.parse), key=lambda d: d.date, reverse=True)

    def get_delivery_by_id(self, delivery_id: str) -> LocalDelivery | None:
        return self._find(rs.DELIVERIES, LocalDelivery.parse, delivery_id)

    def save_delivery(self, patch: dict) -> LocalDelivery | None:
        is_new = patch.get("id") in (None, "")
        patch = dict(patch)
        if is_new and not patch.get("supplierName") and patch.get("supplierId") is not None:
            supplier = self.get_supplier_by_id(patch["supplierId"])
            if supplier is not None:
                patch["supplierName"] = supplier.name
        delivery = self._upsert(rs.DELIVERIES, LocalDelivery.parse, patch, timestamps=False)
        if delivery is not None and is_new:
            deltas: dict[str, int] = {}
            for item in delivery.items:
                deltas[item.product_id] = deltas.get(item.product_id, 0) + item.quantity
            self._adjust_quantities(deltas)
        return delivery

    def delete_delivery(self, delivery_id: str) -> bool:
        return self._delete(rs.DELIVERIES, delivery_id)

    # --- users ---

    def list_users(self) -> list[LocalUser]:
        return self._load(rs.USERS, LocalUser.parse)

    def get_user_by_email(self, email: str) -> LocalUser | None:
        email = (email or "").strip().lower()
        for user in self.list_users():
            if user.email == email:
                return user
        return None

    def save_user(self, patch: dict) -> LocalUser | None:
        if patch.get("id") in (None, "") and self.get_user_by_email(patch.get("email", "")):
            return None
        return self._upsert(rs.USERS, LocalUser.parse, patch, timestamps=False)

    # --- store profile ---

    def get_store_info(self) -> dict:
        info = self.store.get_blob(rs.STORE_INFO)
        if info is None:
            return {}
        if not isinstance(info, dict):
            raise LocalRecordError(f"{rs.STORE_INFO}: expected an object")
        return info

    def save_store_info(self, info: dict) -> dict:
        merged = {**self.get_store_info(), **info}
        self.store.put_blob(rs.STORE_INFO, merged)
        return merged

    # --- session ---

    def login(self, email: str, password: str) -> LocalSession | None:
        user = self.get_user_by_email(email)
        if user is None:
            return None
        if not secrets.compare_digest(user.password.encode("utf-8"), (password or "").encode("utf-8")):
            return None
        session = LocalSession(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            logged_in_at=_now(),
        )
        self.store.put_blob(rs.CURRENT_USER, session.to_record())
        return session

    def current_session(self) -> LocalSession | None:
        marker = self.store.get_blob(rs.CURRENT_USER)
        if marker is None:
            return None
        if not isinstance(marker, dict):
            raise LocalRecordError(f"{rs.CURRENT_USER}: expected an object")
        user = self._find(rs.USERS, LocalUser.parse, marker.get("id"))
        if user is None:
            # Marker for a user that no longer exists
            self.store.remove_blob(rs.CURRENT_USER)
            return None
        return LocalSession(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            logged_in_at=str(marker.get("loggedInAt") or ""),
        )

    def logout(self) -> None:
        self.store.remove_blob(rs.CURRENT_USER)
