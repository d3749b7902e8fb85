# Overview: Service-layer operations for door access; ticket lookup by QR token and check-in.

from __future__ import annotations

from .ticket_service import get_ticket_by_token, is_expired, mark_used
from portaria.time_utils import cents_to_units, to_utc_z, utcnow


def ticket_info(token: str) -> dict | None:
    """
    Public view of a ticket for its digital pass.

    Returns None when no ticket holds the token.
    """
    ticket = get_ticket_by_token(token)
    if ticket is None:
        return None

    customer = ticket.customer
    ticket_type = ticket.ticket_type
    return {
        "id": ticket.id,
        "qrToken": ticket.qr_token,
        "customerName": customer.name if customer else None,
        "customerEmail": customer.email if customer else None,
        "customerPhone": customer.phone if customer else None,
        "ticketTypeName": ticket_type.name if ticket_type else None,
        "price": cents_to_units(ticket.price),
        "paymentMethod": ticket.payment_method,
        "status": ticket.status,
        "validUntil": to_utc_z(ticket.valid_until),
        "usedAt": to_utc_z(ticket.used_at),
        "cancelledAt": to_utc_z(ticket.cancelled_at),
        "createdAt": to_utc_z(ticket.created_at),
    }


def validate_token(token: str) -> dict:
    """
    Classify a scanned token. Read-only.

    Order matters: a used ticket reports "used" even when it has also expired.
    """
    ticket = get_ticket_by_token(token)
    if ticket is None:
        return {"status": "invalid", "message": "Ingresso não encontrado"}

    customer_name = ticket.customer.name if ticket.customer else None

    if ticket.status == "used":
        return {
            "status": "used",
            "message": "Ingresso já utilizado",
            "customer": customer_name,
            "usedAt": to_utc_z(ticket.used_at),
        }

    if ticket.status != "active":
        return {"status": "invalid", "message": "Ingresso inválido ou cancelado"}

    if is_expired(ticket, utcnow()):
        return {"status": "expired", "message": "QR Code expirado", "customer": customer_name}

    return {
        "status": "valid",
        "ticket": {
            "id": ticket.id,
            "customerName": customer_name,
            "type": ticket.ticket_type.name if ticket.ticket_type else None,
            "validUntil": to_utc_z(ticket.valid_until),
        },
    }


def check_in(ticket_id: int, user_id: int | None = None) -> None:
    """Admit a ticket at the door (active and unexpired only)."""
    mark_used(ticket_id, user_id=user_id, reject_expired=True)
