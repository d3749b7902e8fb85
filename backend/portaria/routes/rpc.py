# Overview: RPC transport; dispatches /api/trpc/<procedure> to registered procedures.

"""
RPC endpoint

- GET  /api/trpc/<procedure>?input=<json>   queries
- POST /api/trpc/<procedure>                mutations; body is the input
                                            itself or {"json": <input>}

Success: {"result": {"data": ...}}
Failure: {"error": {"message": ..., "code": ...}} with the mapped status.
"""

import json

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import OperationalError

from ..decorators import load_current_user
from ..errors import NOT_ADMIN_MESSAGE, UNAUTHED_MESSAGE, error_response
from ..extensions import db
from ..rpc import PROCEDURES, RpcContext, RpcError
from ..services.auth_service import AuthError
from ..services.reporting_service import ReportError
from ..services.ticket_service import TicketError
from ..services.ticket_type_service import TicketTypeError
from ..validation import ValidationError, validate_input
from .auth import clear_session_cookie


rpc_bp = Blueprint("rpc", __name__, url_prefix="/api/trpc")

# Domain exceptions that carry (message, code)
DOMAIN_ERRORS = (RpcError, TicketError, TicketTypeError, ReportError, AuthError)


def _unwrap(payload):
    if isinstance(payload, dict) and set(payload.keys()) == {"json"}:
        return payload["json"]
    return payload


def _read_input(method: str):
    if method == "GET":
        raw = request.args.get("input")
        if raw is None or raw == "":
            return None
        try:
            return _unwrap(json.loads(raw))
        except ValueError:
            raise ValidationError("Invalid JSON payload")

    if not request.get_data(cache=True):
        return None
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError("Invalid JSON payload")
    return _unwrap(payload)


@rpc_bp.route("/<path:name>", methods=["GET", "POST"])
def call_procedure(name: str):
    proc = PROCEDURES.get(name)
    if proc is None:
        return error_response(f'No procedure found on path "{name}"', "NOT_FOUND")
    if request.method != proc.http_method:
        return error_response(
            f'Unsupported {request.method}-request to {proc.kind} procedure at path "{name}"',
            "METHOD_NOT_SUPPORTED",
        )

    ctx = RpcContext(ip_address=request.remote_addr)
    try:
        ctx.user = load_current_user()
        if proc.access != "public" and ctx.user is None:
            return error_response(UNAUTHED_MESSAGE, "UNAUTHORIZED")
        if proc.access == "admin" and not ctx.user.is_admin:
            return error_response(NOT_ADMIN_MESSAGE, "FORBIDDEN")

        data = validate_input(proc.input, _read_input(request.method))
        result = proc.handler(ctx, data)

    except ValidationError as exc:
        db.session.rollback()
        return error_response(str(exc), "BAD_REQUEST")
    except DOMAIN_ERRORS as exc:
        db.session.rollback()
        return error_response(exc.message, exc.code)
    except OperationalError:
        db.session.rollback()
        current_app.logger.exception("Database not available during %s", name)
        return error_response("Database not available", "SERVICE_UNAVAILABLE")
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Procedure %s failed", name)
        return error_response("Internal server error", "INTERNAL_SERVER_ERROR")

    response = jsonify({"result": {"data": result}})
    if ctx.clear_session:
        clear_session_cookie(response)
    return response
