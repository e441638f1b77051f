# backend/eggpack/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/eggpack.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///eggpack.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Manual bank balance adjustments smaller than this are ignored
    BALANCE_ADJUST_EPSILON = os.environ.get("BALANCE_ADJUST_EPSILON", "0.01")

    # Credit sales due within this many days are reported as "due soon"
    DUE_SOON_DAYS = int(os.environ.get("DUE_SOON_DAYS", "7"))

    # Raw material stock is guarded like product stock unless this is set
    ALLOW_NEGATIVE_MATERIAL_STOCK = _env_bool("ALLOW_NEGATIVE_MATERIAL_STOCK", False)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "DEBUG"
