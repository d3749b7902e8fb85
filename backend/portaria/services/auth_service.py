# Overview: Service-layer operations for auth; PIN verification and user upsert.

"""
Authentication Service

Two ways into the system:
- PIN login at the point of sale, which always resolves to the local
  administrator account ("admin-local").
- An external OAuth provider, whose callback ends in upsert_user(open_id, ...).

SECURITY NOTES:
- ADMIN_PIN_HASH (bcrypt) takes precedence over the plain ADMIN_PIN
- Plain PIN comparison is constant-time
"""

from __future__ import annotations

import hmac

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import USER_ROLES
from portaria.time_utils import utcnow


LOCAL_ADMIN_OPEN_ID = "admin-local"
LOCAL_ADMIN_NAME = "Administrador"
LOCAL_ADMIN_EMAIL = "admin@portaria.local"


class AuthError(Exception):
    """Raised for authentication failures."""
    def __init__(self, message: str, code: str = "UNAUTHORIZED"):
        super().__init__(message)
        self.message = message
        self.code = code


def hash_pin(pin: str) -> str:
    """bcrypt hash suitable for ADMIN_PIN_HASH."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str) -> bool:
    """Check a PIN against the configured administrator PIN."""
    if not pin:
        return False

    pin_hash = current_app.config.get("ADMIN_PIN_HASH")
    if pin_hash:
        try:
            return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
        except ValueError:
            current_app.logger.error("ADMIN_PIN_HASH is not a valid bcrypt hash")
            return False

    expected = current_app.config.get("ADMIN_PIN") or ""
    if not expected:
        return False
    return hmac.compare_digest(pin.encode("utf-8"), expected.encode("utf-8"))


def get_user_by_open_id(open_id: str) -> User | None:
    return db.session.query(User).filter_by(open_id=open_id).first()


def upsert_user(
    open_id: str,
    *,
    name: str | None = None,
    email: str | None = None,
    login_method: str | None = None,
    role: str | None = None,
    last_signed_in=None,
) -> User:
    """
    Insert or update a user keyed by open_id.

    Only the fields that are passed overwrite stored values. When no role
    is supplied, the configured owner (OWNER_OPEN_ID) is promoted to admin.
    Commits.
    """
    if not open_id:
        raise AuthError("User openId is required for upsert", code="BAD_REQUEST")
    if role is not None and role not in USER_ROLES:
        raise AuthError(f"Invalid role: {role}", code="BAD_REQUEST")

    if role is None and open_id == current_app.config.get("OWNER_OPEN_ID"):
        role = "admin"

    user = get_user_by_open_id(open_id)
    if user is None:
        user = User(open_id=open_id, role=role or "user")
        db.session.add(user)
    elif role is not None:
        user.role = role

    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    if login_method is not None:
        user.login_method = login_method
    user.last_signed_in = last_signed_in or utcnow()

    db.session.commit()
    return user


def login_with_pin(pin: str) -> User:
    """Verify the PIN and return the (upserted) local administrator."""
    if not verify_pin(pin):
        raise AuthError("PIN inválido")

    return upsert_user(
        LOCAL_ADMIN_OPEN_ID,
        name=LOCAL_ADMIN_NAME,
        email=LOCAL_ADMIN_EMAIL,
        login_method="pin",
        role="admin",
    )
