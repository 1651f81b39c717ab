# backend/vterm/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes"}


class Config:
    # Google Cloud project id; only informational outside of App Engine
    PROJECT_ID = os.environ.get("PROJECT_ID", "")

    # Session cookie keys: auth key signs, encrypt key encrypts
    SESSION_AUTH_KEY = os.environ.get("SESSION_AUTH_KEY", "").strip()
    SESSION_ENCRYPT_KEY = os.environ.get("SESSION_ENCRYPT_KEY", "").strip()
    SESSION_LIFETIME_DAYS = int(os.environ.get("SESSION_LIFETIME_DAYS", "7"))
    SESSION_COOKIE_NAME = "cc_app_session_id"
    SESSION_COOKIE_SECURE = _env_bool("COOKIE_SECURE")
    SESSION_COOKIE_HTTPONLY = True

    # Flask still wants a SECRET_KEY; reuse the auth key
    SECRET_KEY = SESSION_AUTH_KEY or "dev-secret-key-change-me"

    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "").strip()
    STRIPE_PUBLISHABLE_KEY = os.environ.get("STRIPE_PUBLISHABLE_KEY", "").strip()

    # Ceiling for a single charge call to Stripe
    CHARGE_TIMEOUT_SECONDS = float(os.environ.get("CHARGE_TIMEOUT_SECONDS", "10"))

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///vterm.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Empty means the in-process cache is used
    REDIS_URL = os.environ.get("REDIS_URL", "")
    CACHE_DEFAULT_TTL = int(os.environ.get("CACHE_DEFAULT_TTL", "3600"))

    # Shared secret for the cron endpoint when not behind App Engine cron
    CRON_SECRET = os.environ.get("CRON_SECRET", "")

    PORT = int(os.environ.get("PORT", "8005"))


# exact key sizes required for the cookie store
SESSION_AUTH_KEY_LENGTH = 64
SESSION_ENCRYPT_KEY_LENGTH = 32
STRIPE_KEY_LENGTH = 32


def validate_config(config) -> None:
    """
    Fail fast on keys that cannot work.

    Raises InvalidSessionKey or InvalidSecretKey. Called from create_app
    unless TESTING is set.
    """
    from .errors import InvalidSecretKey, InvalidSessionKey

    if len(config.get("SESSION_AUTH_KEY", "")) != SESSION_AUTH_KEY_LENGTH:
        raise InvalidSessionKey(
            "Provide a SESSION_AUTH_KEY that is exactly 64 bytes long."
        )
    if len(config.get("SESSION_ENCRYPT_KEY", "")) != SESSION_ENCRYPT_KEY_LENGTH:
        raise InvalidSessionKey(
            "Provide a SESSION_ENCRYPT_KEY that is exactly 32 bytes long."
        )
    if len(config.get("STRIPE_SECRET_KEY", "")) != STRIPE_KEY_LENGTH:
        raise InvalidSecretKey("The STRIPE_SECRET_KEY is invalid.")
    if len(config.get("STRIPE_PUBLISHABLE_KEY", "")) != STRIPE_KEY_LENGTH:
        raise InvalidSecretKey("The STRIPE_PUBLISHABLE_KEY is invalid.")
