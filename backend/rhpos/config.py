# backend/rhpos/config.py
from __future__ import annotations
import os

from dotenv import load_dotenv

# Optional .env next to the process; real environment variables win.
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/rhpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///rhpos.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Bearer tokens for tenant users
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-jwt-secret-change-me")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", "24"))

    # Basic auth credentials for platform-admin (tenant management) routes.
    # Empty values disable the admin surface entirely.
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")

    # Reversible public identifiers
    HASHID_SALT = os.environ.get("HASHID_SALT", "rhpos-dev-salt")
    HASHID_ALPHABET = os.environ.get("HASHID_ALPHABET", "ABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890")
    HASHID_MIN_LENGTH = int(os.environ.get("HASHID_MIN_LENGTH", "7"))

    # S3-compatible object storage (MinIO in development)
    STORAGE_ENDPOINT = os.environ.get("STORAGE_ENDPOINT", "")
    STORAGE_ACCESS_KEY = os.environ.get("STORAGE_ACCESS_KEY", "")
    STORAGE_SECRET_KEY = os.environ.get("STORAGE_SECRET_KEY", "")
    STORAGE_BUCKET = os.environ.get("STORAGE_BUCKET", "rh-pos")
    STORAGE_REGION = os.environ.get("STORAGE_REGION", "us-east-1")
    STORAGE_USE_SSL = _env_bool("STORAGE_USE_SSL", False)

    # Upper bound for one sale's atomic unit (lock waits included)
    SALE_TIMEOUT_SECONDS = float(os.environ.get("SALE_TIMEOUT_SECONDS", "10"))

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]
