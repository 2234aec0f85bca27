# Overview: Service-layer operations for product categories.

"""
Categories are bare names. The known set grows by usage: saving a product
with an unseen category registers it here. Saving an existing name is a
no-op that still reports success, so a category is stored exactly once.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Category
from .persistence import store_operation


def _normalize(name) -> str | None:
    if name is None:
        return None
    text = str(name).strip()
    return text or None


@store_operation("fetching categories", default=[])
def list_categories() -> list[str]:
    rows = db.session.query(Category).order_by(Category.name.asc()).all()
    return [c.name for c in rows]


def ensure_category(name) -> None:
    """Stage the category on the current session if unknown. Caller commits."""
    name = _normalize(name)
    if name is None:
        return
    exists = db.session.query(Category.id).filter(Category.name == name).first()
    if exists:
        return
    # Another pending insert in this session counts as known
    for pending in db.session.new:
        if isinstance(pending, Category) and pending.name == name:
            return
    db.session.add(Category(name=name))


@store_operation("creating category", default=False)
def save_category(name) -> bool:
    name = _normalize(name)
    if name is None:
        return False
    ensure_category(name)
    db.session.commit()
    return True


@store_operation("deleting category", default=False)
def delete_category(name) -> bool:
    name = _normalize(name)
    deleted = db.session.query(Category).filter(Category.name == name).delete()
    db.session.commit()
    return bool(deleted)
