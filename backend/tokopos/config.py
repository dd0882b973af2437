# backend/tokopos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tokopos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tokopos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar day boundaries (sale numbers, "today" summaries) use this zone
    STORE_TIMEZONE = os.environ.get("STORE_TIMEZONE", "UTC")

    SALE_NUMBER_PREFIX = os.environ.get("SALE_NUMBER_PREFIX", "SALE")

    # The terminal caches the whole catalogue, so the POS listing allows large pages
    POS_PRODUCTS_MAX_LIMIT = int(os.environ.get("POS_PRODUCTS_MAX_LIMIT", "5000"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    DEFAULT_ADMIN_EMAIL = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@tokopos.local")
    DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "Password123!")

    # bcrypt cost factor; tests lower it to keep the suite fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    CORS_ALLOWED_ORIGINS = tuple(
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if o.strip()
    )
