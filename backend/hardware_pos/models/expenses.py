from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .inventory import new_id


class Expense(db.Model):
    __tablename__ = "expenses"
    __table_args__ = (db.Index("ix_expenses_date", "date"),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    # Free text, unrelated to product categories
    category = db.Column(db.String(120), nullable=False)
    date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "date": self.date.isoformat() if self.date else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
