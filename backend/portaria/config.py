# backend/portaria/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Session signing secret, with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///portaria.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # PIN login for the point-of-sale operator.
    # ADMIN_PIN_HASH (bcrypt) wins over the plain ADMIN_PIN when both are set.
    ADMIN_PIN = os.environ.get("ADMIN_PIN", "1234")
    ADMIN_PIN_HASH = os.environ.get("ADMIN_PIN_HASH")

    # OAuth identity that is promoted to admin on first login
    OWNER_OPEN_ID = os.environ.get("OWNER_OPEN_ID")
    OAUTH_SERVER_URL = os.environ.get("OAUTH_SERVER_URL")

    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "portaria_session")
    SESSION_MAX_AGE_SECONDS = _int_env("SESSION_MAX_AGE_SECONDS", 60 * 60)

    TICKET_VALIDITY_HOURS = _int_env("TICKET_VALIDITY_HOURS", 12)
    EVENT_NAME = os.environ.get("EVENT_NAME", "RESERVA SOLAR")

    # Marketing sync (disabled when keys are missing)
    BREVO_API_KEY = os.environ.get("BREVO_API_KEY")
    BREVO_LIST_ID = _int_env("BREVO_LIST_ID", 2)
    MANYCHAT_API_TOKEN = os.environ.get("MANYCHAT_API_TOKEN")
    MANYCHAT_TAG_NAME = os.environ.get("MANYCHAT_TAG_NAME", "Passante Reserva")
    MARKETING_TIMEOUT_SECONDS = _int_env("MARKETING_TIMEOUT_SECONDS", 10)

    # Terminal-side offline queue (used by the `flask offline` commands)
    OFFLINE_DB_PATH = os.environ.get("OFFLINE_DB_PATH", "portaria-offline.sqlite3")
    TERMINAL_SERVER_URL = os.environ.get("TERMINAL_SERVER_URL", "http://127.0.0.1:5000")
    TERMINAL_TOKEN = os.environ.get("TERMINAL_TOKEN")
