# backend/hardware_pos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process by default; any SQLAlchemy URL works
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///hardware_pos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JSON file holding the legacy browser local-storage collections
    LOCAL_STORE_PATH = os.environ.get("LOCAL_STORE_PATH", "local_store.json")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "24"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "2"))

    STORE_NAME = os.environ.get("STORE_NAME", "Mic3 Hardware")
