# Overview: Typed records parsed from the local store.

"""
Local records are whatever the browser wrote: JSON objects with camelCase
keys and no schema. Every record is parsed here before use; a missing or
mistyped field raises LocalRecordError naming the collection, the index and
the field, instead of leaking None into the rest of the system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from ..time_utils import parse_iso_date, parse_iso_datetime

PAYMENT_METHOD_ALIASES = {
    "cash": "cash",
    "mpesa": "mobile_money",
    "m-pesa": "mobile_money",
    "mobile_money": "mobile_money",
    "mobile-money": "mobile_money",
    "credit": "credit",
}


class LocalRecordError(ValueError):
    """A local record failed schema validation."""


_MISSING = object()


class _Reader:
    def __init__(self, where: str, raw: Any):
        if not isinstance(raw, dict):
            raise LocalRecordError(f"{where}: expected an object, got {type(raw).__name__}")
        self.where = where
        self.raw = raw

    def fail(self, key: str, message: str):
        raise LocalRecordError(f"{self.where}.{key}: {message}")

    def _value(self, key: str, required: bool):
        value = self.raw.get(key, _MISSING)
        if value is _MISSING or value is None or value == "":
            if required:
                self.fail(key, "is required")
            return None
        return value

    def ident(self, key: str, required: bool = True) -> str | None:
        value = self._value(key, required)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            self.fail(key, "must be a string or integer identifier")
        return str(value)

    def text(self, key: str, required: bool = True, default: str | None = None) -> str | None:
        value = self._value(key, required)
        if value is None:
            return default
        if not isinstance(value, str):
            self.fail(key, "must be a string")
        return value.strip()

    def integer(self, key: str, required: bool = True, default: int | None = None,
                minimum: int | None = None) -> int | None:
        value = self._value(key, required)
        if value is None:
            return default
        if isinstance(value, bool):
            self.fail(key, "must be an integer")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            value = int(value.strip())
        if not isinstance(value, int):
            self.fail(key, "must be an integer")
        if minimum is not None and value < minimum:
            self.fail(key, f"must be >= {minimum}")
        return value

    def number(self, key: str, required: bool = True, default: float | None = None,
               minimum: float | None = 0) -> float | None:
        value = self._value(key, required)
        if value is None:
            return default
        if isinstance(value, bool):
            self.fail(key, "must be a number")
        if isinstance(value, str):
            try:
                value = Decimal(value.strip().replace(",", ""))
            except InvalidOperation:
                self.fail(key, "must be a number")
            if not value.is_finite():
                self.fail(key, "must be a number")
            value = float(value)
        if not isinstance(value, (int, float)):
            self.fail(key, "must be a number")
        if minimum is not None and value < minimum:
            self.fail(key, f"must be >= {minimum}")
        return value

    def timestamp(self, key: str, required: bool = False) -> str | None:
        value = self.text(key, required)
        if value is None:
            return None
        try:
            parse_iso_datetime(value)
        except ValueError:
            self.fail(key, "must be an ISO-8601 timestamp")
        return value

    def day(self, key: str, required: bool = True) -> str | None:
        value = self.text(key, required)
        if value is None:
            return None
        try:
            parse_iso_date(value)
        except ValueError:
            self.fail(key, "must be an ISO-8601 date")
        return value

    def choice(self, key: str, aliases: dict[str, str], required: bool = True,
               default: str | None = None) -> str | None:
        value = self.text(key, required)
        if value is None:
            return default
        canonical = aliases.get(value.lower())
        if canonical is None:
            self.fail(key, f"unknown value {value!r}")
        return canonical

    def records(self, key: str, parser: Callable[[str, Any], Any]) -> list:
        value = self.raw.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            self.fail(key, "must be a list")
        return [parser(f"{self.where}.{key}[{i}]", item) for i, item in enumerate(value)]


def _compact(record: dict) -> dict:
    return {k: v for k, v in record.items() if v is not None}


@dataclass
class LocalUser:
    id: str
    name: str
    email: str
    role: str
    password: str

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalUser":
        r = _Reader(where, raw)
        return cls(
            id=r.ident("id"),
            name=r.text("name"),
            email=r.text("email").lower(),
            role=r.choice("role", {"admin": "admin", "cashier": "cashier"}, required=False, default="cashier"),
            password=r.text("password"),
        )

    def to_record(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role, "password": self.password}


@dataclass
class LocalSupplier:
    id: str
    name: str
    phone: str | None = None
    company: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalSupplier":
        r = _Reader(where, raw)
        return cls(
            id=r.ident("id"),
            name=r.text("name"),
            phone=r.text("phone", required=False),
            company=r.text("company", required=False),
            created_at=r.timestamp("createdAt"),
            updated_at=r.timestamp("updatedAt"),
        )

    def to_record(self) -> dict:
        return _compact({
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "company": self.company,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })


@dataclass
class LocalProduct:
    id: str
    name: str
    category: str | None = None
    sku: str | None = None
    buying_price: float = 0
    selling_price: float = 0
    quantity: int = 0
    # A supplier id; legacy seed rows hold a company name that matches nothing
    supplier: str | None = None
    reorder_level: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalProduct":
        r = _Reader(where, raw)
        return cls(
            id=r.ident("id"),
            name=r.text("name"),
            category=r.text("category", required=False),
            sku=r.text("sku", required=False),
            buying_price=r.number("buyingPrice", required=False, default=0),
            selling_price=r.number("sellingPrice", required=False, default=0),
            # The local adapter never floors stock, so negatives are legal here
            quantity=r.integer("quantity", required=False, default=0),
            supplier=r.ident("supplier", required=False),
            reorder_level=r.integer("reorderLevel", required=False, default=0, minimum=0),
            created_at=r.timestamp("createdAt"),
            updated_at=r.timestamp("updatedAt"),
        )

    def to_record(self) -> dict:
        return _compact({
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "buyingPrice": self.buying_price,
            "sellingPrice": self.selling_price,
            "quantity": self.quantity,
            "supplier": self.supplier,
            "reorderLevel": self.reorder_level,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })


@dataclass
class LocalSaleItem:
    product_id: str
    quantity: int
    price: float
    total: float
    product_name: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalSaleItem":
        r = _Reader(where, raw)
        quantity = r.integer("quantity", minimum=1)
        price = r.number("price")
        return cls(
            product_id=r.ident("productId"),
            product_name=r.text("productName", required=False),
            quantity=quantity,
            price=price,
            total=r.number("total", required=False, default=quantity * price),
        )

    def to_record(self) -> dict:
        return _compact({
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": self.price,
            "total": self.total,
        })


@dataclass
class LocalSale:
    id: str
    total: float
    payment_method: str
    items: list[LocalSaleItem] = field(default_factory=list)
    staff_id: str | None = None
    staff_name: str | None = None
    customer_name: str | None = None
    reference: str | None = None
    created_at: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalSale":
        r = _Reader(where, raw)
        return cls(
            id=r.ident("id"),
            items=r.records("items", LocalSaleItem.parse),
            total=r.number("total"),
            # Early till builds only took cash and did not write the field
            payment_method=r.choice("paymentMethod", PAYMENT_METHOD_ALIASES, required=False, default="cash"),
            staff_id=r.ident("staffId", required=False),
            staff_name=r.text("staffName", required=False),
            customer_name=r.text("customerName", required=False),
            reference=r.text("reference", required=False),
            created_at=r.timestamp("createdAt"),
        )

    def to_record(self) -> dict:
        return _compact({
            "id": self.id,
            "items": [item.to_record() for item in self.items],
            "total": self.total,
            "paymentMethod": self.payment_method,
            "staffId": self.staff_id,
            "staffName": self.staff_name,
            "customerName": self.customer_name,
            "reference": self.reference,
            "createdAt": self.created_at,
        })


@dataclass
class LocalExpense:
    id: str
    name: str
    amount: float
    category: str
    date: str
    notes: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalExpense":
        r = _Reader(where, raw)
        return cls(
            id=r.ident("id"),
            name=r.text("name"),
            amount=r.number("amount"),
            category=r.text("category", required=False, default="Other"),
            date=r.day("date"),
            notes=r.text("notes", required=False),
        )

    def to_record(self) -> dict:
        return _compact({
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "category": self.category,
            "date": self.date,
            "notes": self.notes,
        })


@dataclass
class LocalDeliveryItem:
    product_id: str
    quantity: int
    cost: float
    product_name: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalDeliveryItem":
        r = _Reader(where, raw)
        return cls(
            product_id=r.ident("productId"),
            product_name=r.text("productName", required=False),
            quantity=r.integer("quantity", minimum=1),
            cost=r.number("cost"),
        )

    def to_record(self) -> dict:
        return _compact({
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "cost": self.cost,
        })


@dataclass
class LocalDelivery:
    id: str
    supplier_id: str
    date: str
    cost: float
    items: list[LocalDeliveryItem] = field(default_factory=list)
    supplier_name: str | None = None
    notes: str | None = None

    @classmethod
    def parse(cls, where: str, raw: Any) -> "LocalDelivery":
        r = _Reader(where, raw)
        items = r.records("items", LocalDeliveryItem.parse)
        return cls(
            id=r.ident("id"),
            supplier_id=r.ident("supplierId"),
            supplier_name=r.text("supplierName", required=False),
            date=r.day("date"),
            items=items,
            cost=r.number("cost", required=False, default=sum(i.cost for i in items)),
            notes=r.text("notes", required=False),
        )

    def to_record(self) -> dict:
        return _compact({
            "id": self.id,
            "supplierId": self.supplier_id,
            "supplierName": self.supplier_name,
            "date": self.date,
            "items": [item.to_record() for item in self.items],
            "cost": self.cost,
            "notes": self.notes,
        })


def parse_category(where: str, raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise LocalRecordError(f"{where}: category must be a non-empty string")
    return raw.strip()


def parse_collection(collection: str, rows: list, parser: Callable[[str, Any], Any]) -> list:
    return [parser(f"{collection}[{i}]", row) for i, row in enumerate(rows)]
