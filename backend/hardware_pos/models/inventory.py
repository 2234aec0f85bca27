from __future__ import annotations

from uuid import uuid4

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


def new_id() -> str:
    return str(uuid4())


class Category(db.Model):
    """
    Known product categories.

    Categories are keyed by name. The set only grows through usage: saving a
    product with an unseen category registers it.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Category {self.name!r}>"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "created_at": to_utc_z(self.created_at)}


class Supplier(db.Model):
    __tablename__ = "suppliers"
    __table_args__ = (db.Index("ix_suppliers_name", "name"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    company = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "company": self.company,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data.

    SKU is intended to be unique but is not enforced by the table; the admin
    product routes reject duplicates instead.

    quantity moves only through sales (down), deliveries (up) and explicit
    admin correction.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_sku", "sku"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=True)
    sku = db.Column(db.String(64), nullable=True)

    # Authoritative storage in cents
    buying_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)

    supplier_id = db.Column(
        db.String(36),
        db.ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True, passive_deletes=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} qty={self.quantity}>"

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_level

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "buying_price_cents": self.buying_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "quantity": self.quantity,
            "reorder_level": self.reorder_level,
            "is_low_stock": self.is_low_stock,
            "supplier_id": self.supplier_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Delivery(db.Model):
    """
    Stock received from a supplier.

    supplier_name is a snapshot taken when the delivery is recorded.
    cost_cents equals the sum of the item costs.
    """
    __tablename__ = "deliveries"
    __table_args__ = (db.Index("ix_deliveries_date", "date"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    supplier_id = db.Column(db.String(36), db.ForeignKey("suppliers.id"), nullable=False, index=True)
    supplier_name = db.Column(db.String(255), nullable=True)
    date = db.Column(db.Date, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    supplier = db.relationship("Supplier", backref=db.backref("deliveries", lazy=True))
    items = db.relationship(
        "DeliveryItem",
        backref="delivery",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeliveryItem.created_at",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "date": self.date.isoformat() if self.date else None,
            "cost_cents": self.cost_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class DeliveryItem(db.Model):
    __tablename__ = "delivery_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    delivery_id = db.Column(
        db.String(36),
        db.ForeignKey("deliveries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "delivery_id": self.delivery_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "cost_cents": self.cost_cents,
            "created_at": to_utc_z(self.created_at),
        }
