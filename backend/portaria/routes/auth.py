# Overview: Flask API routes for auth operations; PIN login, logout and session lookup.

# backend/portaria/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Login throttling per client address to prevent PIN brute-forcing
- Signed, time-limited session token set as an httpOnly cookie
- Failed and successful logins land in the audit log
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import load_current_user
from ..errors import error_response
from ..services import auth_service, login_throttle_service, session_service
from ..services.auth_service import AuthError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def set_session_cookie(response, token: str):
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        max_age=current_app.config["SESSION_MAX_AGE_SECONDS"],
        httponly=True,
        samesite="Lax",
        secure=request.is_secure,
        path="/",
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], path="/")
    return response


@auth_bp.post("/login")
def login_route():
    """
    Authenticate the point-of-sale operator by PIN.

    Request body: {"pin": "1234"}

    Returns {success, user: {name, role}, token} and sets the session cookie.

    SECURITY:
    - Checks for lockout before verifying the PIN
    - Records failed attempts for throttling
    """
    try:
        data = request.get_json(silent=True) or {}
        pin = data.get("pin")
        if not pin or not isinstance(pin, str):
            return error_response("PIN é obrigatório", "BAD_REQUEST")

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr
        identifier = login_throttle_service.pin_identifier(ip_address)

        is_locked, seconds_remaining = login_throttle_service.is_locked(identifier)
        if is_locked:
            minutes_remaining = (seconds_remaining // 60) + 1 if seconds_remaining else 15
            return error_response(
                "Muitas tentativas de login. Tente novamente mais tarde.",
                "TOO_MANY_REQUESTS",
                locked=True,
                retry_after_seconds=seconds_remaining,
                retry_after_minutes=minutes_remaining,
            )

        try:
            user = auth_service.login_with_pin(pin)
        except AuthError as exc:
            failed_count = login_throttle_service.record_failed_attempt(
                identifier=identifier,
                ip_address=ip_address,
                user_agent=user_agent,
                reason=exc.message,
            )
            remaining = login_throttle_service.MAX_FAILED_ATTEMPTS - failed_count

            if remaining <= 0:
                return error_response(
                    "Muitas tentativas de login. Tente novamente mais tarde.",
                    "TOO_MANY_REQUESTS",
                    locked=True,
                    retry_after_minutes=int(login_throttle_service.LOCKOUT_DURATION.total_seconds() // 60),
                )
            if remaining <= 3:
                return error_response(
                    exc.message,
                    exc.code,
                    warning=f"{remaining} tentativas restantes antes do bloqueio",
                )
            return error_response(exc.message, exc.code)

        login_throttle_service.record_successful_login(
            user_id=user.id,
            identifier=identifier,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        token = session_service.create_session_token(user)
        response = jsonify({
            "success": True,
            "user": {"name": user.name, "role": user.role},
            "token": token,
        })
        return set_session_cookie(response, token)

    except Exception:
        current_app.logger.exception("Failed to login user")
        return error_response("Internal server error", "INTERNAL_SERVER_ERROR")


@auth_bp.post("/logout")
def logout_route():
    """Clear the session cookie. Tokens are stateless, so there is nothing to revoke."""
    return clear_session_cookie(jsonify({"success": True}))


@auth_bp.get("/me")
def me_route():
    try:
        user = load_current_user()
        if user is None:
            return error_response("Não autenticado", "UNAUTHORIZED")
        return jsonify({"user": user.to_dict()})
    except Exception:
        current_app.logger.exception("Failed to load session user")
        return error_response("Internal server error", "INTERNAL_SERVER_ERROR")
