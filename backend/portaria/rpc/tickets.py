# Overview: tickets.* procedures; sale, lookup, cancellation, printing and use.

from ..models.tickets import PAYMENT_METHODS, TICKET_STATUSES
from ..services import ticket_service
from ..validation import Field, Shape
from portaria.time_utils import cents_to_units
from .registry import MUTATION, QUERY, procedure


TICKET_ID = Field("int", positive=True)


def ticket_payload(ticket) -> dict:
    """Ticket dict with the price in currency units."""
    data = ticket.to_dict()
    data["price"] = cents_to_units(ticket.price)
    return data


@procedure(
    "tickets.list",
    QUERY,
    input=Shape({"status": Field("enum", required=False, choices=TICKET_STATUSES)}, optional=True),
)
def list_tickets(ctx, data):
    return [ticket_payload(t) for t in ticket_service.list_tickets(status=data.get("status"))]


@procedure(
    "tickets.create",
    MUTATION,
    input=Shape({
        "customerName": Field("string", min_length=1, max_length=255),
        "customerEmail": Field("string", required=False, email=True, max_length=320),
        "customerPhone": Field("string", required=False, max_length=20),
        "ticketTypeId": Field("int", positive=True),
        "paymentMethod": Field("enum", choices=PAYMENT_METHODS),
    }),
)
def create(ctx, data):
    ticket = ticket_service.create_ticket(
        customer_name=data["customerName"],
        customer_email=data.get("customerEmail") or None,
        customer_phone=data.get("customerPhone") or None,
        ticket_type_id=data["ticketTypeId"],
        payment_method=data["paymentMethod"],
        user_id=ctx.user_id,
    )
    return ticket_payload(ticket)


@procedure("tickets.getById", QUERY, input=TICKET_ID)
def get_by_id(ctx, ticket_id):
    ticket = ticket_service.get_ticket(ticket_id)
    return ticket_payload(ticket) if ticket else None


@procedure(
    "tickets.cancel",
    MUTATION,
    input=Shape({
        "ticketId": Field("int", positive=True),
        "reason": Field("string", min_length=1),
    }),
)
def cancel(ctx, data):
    ticket_service.cancel_ticket(data["ticketId"], data["reason"], user_id=ctx.user_id)
    return {"success": True}


@procedure("tickets.markPrinted", MUTATION, input=TICKET_ID)
def mark_printed(ctx, ticket_id):
    ticket_service.mark_printed(ticket_id, user_id=ctx.user_id)
    return {"success": True}


@procedure("tickets.markUsed", MUTATION, input=TICKET_ID)
def mark_used(ctx, ticket_id):
    ticket_service.mark_used(ticket_id, user_id=ctx.user_id)
    return {"success": True}
