# Overview: access.* procedures; the door flow (public pass lookup, scan validation, check-in).

from ..services import access_service
from ..validation import Field, Shape
from .registry import MUTATION, QUERY, procedure


TOKEN_INPUT = Shape({"token": Field("string")})


@procedure("access.info", QUERY, access="public", input=TOKEN_INPUT)
def info(ctx, data):
    return access_service.ticket_info(data["token"])


@procedure("access.validate", MUTATION, input=TOKEN_INPUT)
def validate(ctx, data):
    return access_service.validate_token(data["token"])


@procedure(
    "access.checkIn",
    MUTATION,
    input=Shape({"ticketId": Field("int", positive=True)}),
)
def check_in(ctx, data):
    access_service.check_in(data["ticketId"], user_id=ctx.user_id)
    return {"success": True}
