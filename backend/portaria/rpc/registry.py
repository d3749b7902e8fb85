"""
RPC procedure registry.

Each procedure is a named handler with:
- kind: "query" (served on GET) or "mutation" (served on POST)
- access: "public", "protected" (valid session) or "admin" (admin role)
- input: declared input shape, validated before the handler runs

Resource modules register their procedures with the @procedure decorator
at import time; routes/rpc.py looks them up by dotted name
("tickets.create").
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..models import User
from ..validation import Field, Shape


QUERY = "query"
MUTATION = "mutation"
ACCESS_LEVELS = ("public", "protected", "admin")


class RpcError(Exception):
    """Raised by handlers to fail a call with an explicit code."""
    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass
class RpcContext:
    """Per-call state handed to every handler."""
    user: User | None = None
    ip_address: str | None = None
    # Set by auth.logout; the dispatcher deletes the session cookie
    clear_session: bool = False

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user else None


@dataclass(frozen=True)
class Procedure:
    name: str
    kind: str
    access: str
    handler: Callable[[RpcContext, Any], Any]
    input: Shape | Field | None = None

    @property
    def http_method(self) -> str:
        return "GET" if self.kind == QUERY else "POST"


PROCEDURES: dict[str, Procedure] = {}


def procedure(name: str, kind: str, access: str = "protected", input: Shape | Field | None = None):
    """Register the decorated function as RPC procedure `name`."""
    if kind not in (QUERY, MUTATION):
        raise ValueError(f"Unknown procedure kind: {kind}")
    if access not in ACCESS_LEVELS:
        raise ValueError(f"Unknown access level: {access}")

    def decorator(fn):
        if name in PROCEDURES:
            raise ValueError(f"Procedure already registered: {name}")
        PROCEDURES[name] = Procedure(name=name, kind=kind, access=access, handler=fn, input=input)
        return fn

    return decorator
