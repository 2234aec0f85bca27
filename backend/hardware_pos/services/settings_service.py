# Overview: Store profile settings and the JSON backup export.

from __future__ import annotations

import logging

from flask import current_app

from ..extensions import db
from ..models import StoreSetting
from ..time_utils import to_utc_z, utcnow
from ..validation import ValidationError
from . import (
    categories_service,
    deliveries_service,
    expenses_service,
    products_service,
    sales_service,
    suppliers_service,
)
from .persistence import store_operation

logger = logging.getLogger(__name__)

STORE_INFO_KEY = "store_info"
STORE_INFO_FIELDS = ("name", "phone", "address", "owner")

BACKUP_VERSION = 1


def _clean_store_info(info: dict) -> dict:
    if not isinstance(info, dict):
        raise ValidationError("store info must be an object")
    cleaned = {}
    for key in STORE_INFO_FIELDS:
        if key not in info:
            continue
        value = info[key]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        cleaned[key] = value.strip() if isinstance(value, str) else None
    return cleaned


@store_operation("fetching store info", default={})
def get_store_info(*, defaults: bool = True) -> dict:
    """
    Stored store profile. With defaults=True missing fields are filled in
    (name from STORE_NAME); with defaults=False an unset profile is {}.
    """
    row = db.session.get(StoreSetting, STORE_INFO_KEY)
    stored = dict(row.value_json or {}) if row else {}
    if not defaults:
        return stored
    info = {key: None for key in STORE_INFO_FIELDS}
    info["name"] = current_app.config.get("STORE_NAME")
    info.update({k: v for k, v in stored.items() if v is not None})
    return info


@store_operation("saving store info")
def save_store_info(info: dict) -> dict | None:
    cleaned = _clean_store_info(info)
    row = db.session.get(StoreSetting, STORE_INFO_KEY)
    if row is None:
        row = StoreSetting(key=STORE_INFO_KEY, value_json={})
        db.session.add(row)
    # Reassign so the JSON column change is detected
    row.value_json = {**(row.value_json or {}), **cleaned}
    row.updated_at = utcnow()
    db.session.commit()
    logger.info("Store info updated: %s", ", ".join(sorted(cleaned)) or "no fields")
    return dict(row.value_json)


def export_backup() -> dict:
    """Everything the store knows, as one JSON-serialisable document."""
    return {
        "version": BACKUP_VERSION,
        "exported_at": to_utc_z(utcnow()),
        "store_info": get_store_info(defaults=False),
        "categories": categories_service.list_categories(),
        "suppliers": suppliers_service.list_suppliers(),
        "products": products_service.list_products(),
        "sales": sales_service.list_sales(include_items=True),
        "expenses": expenses_service.list_expenses(),
        "deliveries": deliveries_service.list_deliveries(include_items=True),
    }
