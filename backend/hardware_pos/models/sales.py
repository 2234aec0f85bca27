from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .inventory import new_id

PAYMENT_METHODS = ("cash", "mobile_money", "credit")


class Sale(db.Model):
    """
    Completed checkout.

    total_cents equals the sum of the line totals. staff_name is a snapshot of
    the cashier at sale time. customer_name is expected for credit sales and
    reference for mobile money; the checkout route enforces both.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        db.CheckConstraint(
            "payment_method IN ('cash', 'mobile_money', 'credit')",
            name="ck_sales_payment_method",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    staff_id = db.Column(db.String(64), nullable=False)
    staff_name = db.Column(db.String(255), nullable=False)
    customer_name = db.Column(db.String(255), nullable=True)
    reference = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    items = db.relationship(
        "SaleItem",
        backref="sale",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SaleItem.created_at",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} total_cents={self.total_cents} method={self.payment_method}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "customer_name": self.customer_name,
            "reference": self.reference,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """
    One sold line. product_name and price_cents are snapshots: later product
    renames or price changes do not touch them.
    """
    __tablename__ = "sale_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(
        db.String(36),
        db.ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
        }
