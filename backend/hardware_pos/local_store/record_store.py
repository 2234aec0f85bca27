# Overview: JSON-file key/value store holding the legacy browser collections.

"""
Local Record Store

The original till kept everything in browser local storage under fixed
keys. An export of that storage is a single JSON object:

    {"pos_products": [...], "pos_suppliers": [...], ..., "pos_store_info": {...}}

LocalRecordStore reads and writes that document. Collections are lists of
records; blobs (store profile, session marker) are opaque JSON values.
With no path the store lives in memory only, which is how an uploaded
export is migrated.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .records import LocalRecordError

logger = logging.getLogger(__name__)

USERS = "pos_users"
PRODUCTS = "pos_products"
SUPPLIERS = "pos_suppliers"
SALES = "pos_sales"
EXPENSES = "pos_expenses"
DELIVERIES = "pos_deliveries"
CATEGORIES = "pos_categories"

COLLECTIONS = (USERS, PRODUCTS, SUPPLIERS, SALES, EXPENSES, DELIVERIES, CATEGORIES)

STORE_INFO = "pos_store_info"
CURRENT_USER = "pos_current_user"

BLOBS = (STORE_INFO, CURRENT_USER)


class LocalRecordStore:
    def __init__(self, path: str | os.PathLike | None = None, data: dict | None = None):
        self.path = Path(path) if path is not None else None
        if data is not None:
            if not isinstance(data, dict):
                raise LocalRecordError("Local store document must be a JSON object")
            self._data = copy.deepcopy(data)
        elif self.path is not None and self.path.exists():
            self._data = self._read_file()
        else:
            self._data = {}

    @classmethod
    def from_json(cls, text: str) -> "LocalRecordStore":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LocalRecordError(f"Local store is not valid JSON: {exc}") from exc
        return cls(data=data)

    def _read_file(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise LocalRecordError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise LocalRecordError(f"{self.path} must contain a JSON object")
        return data

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a crash never leaves a half-written file
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def has(self, key: str) -> bool:
        return key in self._data

    def get(self, collection: str) -> list[Any]:
        """Return a copy of a collection; a missing key reads as empty."""
        value = self._data.get(collection)
        if value is None:
            return []
        if not isinstance(value, list):
            raise LocalRecordError(f"{collection}: expected a list, got {type(value).__name__}")
        return copy.deepcopy(value)

    def put(self, collection: str, records: list[Any]) -> None:
        self._data[collection] = copy.deepcopy(list(records))
        self._flush()

    def get_blob(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def put_blob(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self._flush()

    def remove_blob(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def initialize(self, seed: dict[str, list] | None = None) -> list[str]:
        """
        Seed every absent collection with its default rows (first run).

        Returns the keys that were seeded. Present keys are never touched,
        even when empty.
        """
        from .defaults import default_collections

        seed = seed if seed is not None else default_collections()
        seeded = []
        for collection in COLLECTIONS:
            if collection not in self._data:
                self._data[collection] = copy.deepcopy(seed.get(collection, []))
                seeded.append(collection)
        if seeded:
            logger.info("Seeded local collections: %s", ", ".join(seeded))
            self._flush()
        return seeded

    def to_dict(self) -> dict:
        return copy.deepcopy(self._data)
