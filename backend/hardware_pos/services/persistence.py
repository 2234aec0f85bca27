# Overview: Shared helpers for the database-backed data access services.

from __future__ import annotations

import logging
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


def store_operation(description: str, *, default=None):
    """
    Trap store failures at the data-access call site.

    SQLAlchemy errors (connectivity, constraint violations) roll the session
    back, are logged, and turn into `default` (None for reads/saves, False for
    deletes). Validation errors raised by the wrapped function propagate.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception("Error %s", description)
                return default
        return wrapper
    return decorator


def apply_patch(obj, patch: dict, mutable_fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in mutable_fields:
            continue
        setattr(obj, k, v)


def upsert(model, patch: dict, mutable_fields: set[str], *, touch: bool = True):
    """
    Insert-or-update keyed by the presence of `id`.

    With an id, only supplied fields change and updated_at is stamped; an
    unknown id yields None. Without one, a new row with a generated id is
    inserted. Caller commits.
    """
    row_id = patch.get("id")
    now = utcnow()
    if row_id:
        row = db.session.get(model, row_id)
        if row is None:
            return None
        apply_patch(row, patch, mutable_fields)
        if touch and hasattr(row, "updated_at"):
            row.updated_at = now
        return row

    row = model()
    apply_patch(row, patch, mutable_fields)
    if hasattr(row, "created_at"):
        row.created_at = now
    if hasattr(row, "updated_at"):
        row.updated_at = now
    db.session.add(row)
    return row
