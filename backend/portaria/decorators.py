# Overview: Request and access decorators for API routes.

from functools import wraps
from flask import current_app, g, request

from .errors import NOT_ADMIN_MESSAGE, UNAUTHED_MESSAGE, error_response
from .services import session_service


def session_token_from_request() -> str | None:
    """Session token from the Authorization header, falling back to the cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def load_current_user():
    """
    Resolve the session user once per request and cache it on g.

    Returns None for anonymous requests.
    """
    if "current_user" not in g:
        g.current_user = session_service.validate_session(session_token_from_request())
    return g.current_user


def require_auth(f):
    """
    Require a valid session.

    Sets g.current_user to the authenticated User. Returns 401 for missing,
    tampered or expired tokens.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if load_current_user() is None:
            return error_response(UNAUTHED_MESSAGE, "UNAUTHORIZED")
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require a valid session whose user has the admin role (401/403)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = load_current_user()
        if user is None:
            return error_response(UNAUTHED_MESSAGE, "UNAUTHORIZED")
        if not user.is_admin:
            return error_response(NOT_ADMIN_MESSAGE, "FORBIDDEN")
        return f(*args, **kwargs)

    return decorated_function
