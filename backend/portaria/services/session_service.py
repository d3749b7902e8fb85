# Overview: Service-layer operations for session; issues and validates signed session tokens.

"""
Session Token Service

Sessions are stateless: the token is the user's open_id signed with
SECRET_KEY (itsdangerous, the same signer Flask uses for its own cookie).
A token is valid while its signature checks out, it is younger than
SESSION_MAX_AGE_SECONDS and the user it names still exists.

Logout clears the cookie on the client; there is no server-side revocation.
"""

from __future__ import annotations

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..extensions import db
from ..models import User


SESSION_SALT = "portaria-session"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=SESSION_SALT)


def create_session_token(user: User) -> str:
    return _serializer().dumps({"openId": user.open_id, "name": user.name or ""})


def validate_session(token: str | None) -> User | None:
    """
    Resolve a session token to its user.

    Returns None for missing, tampered or expired tokens.
    """
    if not token:
        return None

    max_age = current_app.config.get("SESSION_MAX_AGE_SECONDS", 3600)
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        return None
    except BadSignature:
        return None

    open_id = payload.get("openId") if isinstance(payload, dict) else None
    if not open_id:
        return None

    return db.session.query(User).filter_by(open_id=open_id).first()
