from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class StoreSetting(db.Model):
    """Key/value settings stored as JSON (e.g. the store profile)."""
    __tablename__ = "store_settings"

    key = db.Column(db.String(120), primary_key=True)
    value_json = db.Column(db.JSON, nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value_json,
            "updated_at": to_utc_z(self.updated_at),
        }
