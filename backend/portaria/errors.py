# Overview: Error codes shared by the RPC dispatcher and the REST routes.

from __future__ import annotations

from flask import jsonify


# RPC error code -> HTTP status
CODE_STATUS = {
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "METHOD_NOT_SUPPORTED": 405,
    "CONFLICT": 409,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_SERVER_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}

UNAUTHED_MESSAGE = "Please login (10001)"
NOT_ADMIN_MESSAGE = "You do not have required permission (10002)"


def error_response(message: str, code: str = "INTERNAL_SERVER_ERROR", status: int | None = None, **extra):
    body = {"error": {"message": message, "code": code}}
    body["error"].update(extra)
    return jsonify(body), status or CODE_STATUS.get(code, 500)
