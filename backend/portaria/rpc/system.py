# Overview: system.* procedures; liveness and marketing integration diagnostics.

from ..services import marketing_service
from ..validation import Field, Shape
from .registry import MUTATION, QUERY, procedure


@procedure(
    "system.health",
    QUERY,
    access="public",
    input=Shape({"timestamp": Field("number", minimum=0)}),
)
def health(ctx, data):
    return {"ok": True}


@procedure("system.brevoStatus", QUERY, access="admin")
def brevo_status(ctx, data):
    return marketing_service.brevo_status()


@procedure(
    "system.verifySubscriber",
    MUTATION,
    access="admin",
    input=Shape({
        "email": Field("string", required=False),
        "phone": Field("string", required=False),
    }, optional=True),
)
def verify_subscriber(ctx, data):
    return marketing_service.verify_subscriber(email=data.get("email"), phone=data.get("phone"))
