# Overview: ticketTypes.* procedures; catalogue of priced admission categories.

from ..services import ticket_type_service
from ..validation import Field, Shape
from portaria.time_utils import cents_to_units, units_to_cents
from .registry import MUTATION, QUERY, procedure


def ticket_type_payload(ticket_type) -> dict:
    data = ticket_type.to_dict()
    data["price"] = cents_to_units(ticket_type.price)
    return data


@procedure("ticketTypes.list", QUERY)
def list_types(ctx, data):
    return [ticket_type_payload(t) for t in ticket_type_service.list_ticket_types()]


@procedure(
    "ticketTypes.create",
    MUTATION,
    access="admin",
    input=Shape({
        "name": Field("string", min_length=1, max_length=255),
        "description": Field("string", required=False),
        "price": Field("number", minimum=0),
    }),
)
def create(ctx, data):
    ticket_type = ticket_type_service.create_ticket_type(
        name=data["name"],
        description=data.get("description") or None,
        price_cents=units_to_cents(data["price"]),
        user_id=ctx.user_id,
    )
    return ticket_type_payload(ticket_type)


@procedure("ticketTypes.delete", MUTATION, access="admin", input=Field("int", positive=True))
def delete(ctx, ticket_type_id):
    ticket_type_service.delete_ticket_type(ticket_type_id, user_id=ctx.user_id)
    return {"success": True}
