# Overview: Service-layer operations for expenses.

from __future__ import annotations

from ..extensions import db
from ..models import Expense
from ..time_utils import today
from .persistence import store_operation, upsert

EXPENSE_MUTABLE_FIELDS = {"name", "amount_cents", "category", "date", "notes"}


@store_operation("fetching expenses", default=[])
def list_expenses() -> list[dict]:
    rows = (
        db.session.query(Expense)
        .order_by(Expense.date.desc(), Expense.created_at.desc())
        .all()
    )
    return [e.to_dict() for e in rows]


@store_operation("fetching expense")
def get_expense(expense_id: str) -> dict | None:
    expense = db.session.get(Expense, expense_id)
    return expense.to_dict() if expense else None


@store_operation("saving expense")
def save_expense(patch: dict) -> dict | None:
    if not patch.get("id") and not patch.get("date"):
        patch = {**patch, "date": today()}
    expense = upsert(Expense, patch, EXPENSE_MUTABLE_FIELDS)
    if expense is None:
        return None
    db.session.commit()
    return expense.to_dict()


@store_operation("deleting expense", default=False)
def delete_expense(expense_id: str) -> bool:
    expense = db.session.get(Expense, expense_id)
    if not expense:
        return False
    db.session.delete(expense)
    db.session.commit()
    return True
