"""
Ticket Service - sale, lookup and status lifecycle

Status lifecycle:
- active -> cancelled (cancel_ticket)
- active -> used (mark_used / door check-in)
Both targets are terminal. Printing does not change status.

Every create, cancel, print and use appends one audit entry inside the
same transaction as the change.
"""

from __future__ import annotations

import uuid
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Customer, Ticket, TicketType
from ..models.tickets import PAYMENT_METHODS, TICKET_STATUSES
from .audit_service import log_audit_action
from . import marketing_service
from portaria.time_utils import utcnow


# Attempts at drawing a qr_token that no other ticket holds
TOKEN_ATTEMPTS = 5


class TicketError(Exception):
    """Raised for ticket operation errors."""
    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message)
        self.message = message
        self.code = code


def _new_qr_token() -> str:
    return str(uuid.uuid4())


def _issue_qr_token() -> str:
    for _ in range(TOKEN_ATTEMPTS):
        token = _new_qr_token()
        taken = db.session.query(Ticket.id).filter(Ticket.qr_token == token).first()
        if taken is None:
            return token
        current_app.logger.warning("qr_token collision, drawing a new token")
    raise TicketError("Could not issue a unique ticket token", code="INTERNAL_SERVER_ERROR")


def _get_or_raise(ticket_id: int) -> Ticket:
    ticket = db.session.get(Ticket, ticket_id)
    if ticket is None:
        raise TicketError("Ticket not found", code="NOT_FOUND")
    return ticket


def get_ticket(ticket_id: int) -> Ticket | None:
    return db.session.get(Ticket, ticket_id)


def get_ticket_by_token(token: str) -> Ticket | None:
    if not token:
        return None
    return db.session.query(Ticket).filter(Ticket.qr_token == token).first()


def list_tickets(status: str | None = None) -> list[Ticket]:
    """Newest first; optionally filtered by status."""
    query = db.session.query(Ticket)
    if status:
        if status not in TICKET_STATUSES:
            raise TicketError(f"Invalid status: {status}")
        query = query.filter(Ticket.status == status)
    return query.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def create_ticket(
    *,
    customer_name: str,
    ticket_type_id: int,
    payment_method: str,
    customer_email: str | None = None,
    customer_phone: str | None = None,
    user_id: int | None = None,
) -> Ticket:
    """
    Sell one ticket. Commits.

    The ticket price is a snapshot of the type's price at sale time.
    After the commit the buyer is pushed to the marketing integrations;
    their failures never fail the sale.
    """
    if payment_method not in PAYMENT_METHODS:
        raise TicketError(f"Invalid payment method: {payment_method}")

    ticket_type = db.session.get(TicketType, ticket_type_id)
    if ticket_type is None:
        raise TicketError("Ticket type not found", code="NOT_FOUND")

    customer = Customer(name=customer_name, email=customer_email, phone=customer_phone)
    db.session.add(customer)
    db.session.flush()

    now = utcnow()
    validity = timedelta(hours=current_app.config.get("TICKET_VALIDITY_HOURS", 12))

    ticket = Ticket(
        customer_id=customer.id,
        ticket_type_id=ticket_type.id,
        price=ticket_type.price,
        payment_method=payment_method,
        status="active",
        qr_token=_issue_qr_token(),
        valid_until=now + validity,
        created_at=now,
        updated_at=now,
    )
    db.session.add(ticket)
    db.session.flush()

    log_audit_action(
        action="create",
        entity_type="ticket",
        entity_id=ticket.id,
        user_id=user_id,
        details={
            "customer_name": customer_name,
            "ticket_type": ticket_type.name,
            "price": ticket.price,
            "payment_method": payment_method,
        },
    )
    db.session.commit()

    marketing_service.sync_customer(customer_name, customer_email, customer_phone)
    return ticket


def cancel_ticket(ticket_id: int, reason: str, user_id: int | None = None) -> Ticket:
    """active -> cancelled. Commits."""
    ticket = _get_or_raise(ticket_id)
    if ticket.status != "active":
        raise TicketError("Only active tickets can be cancelled")

    previous_status = ticket.status
    ticket.status = "cancelled"
    ticket.cancelled_at = utcnow()
    ticket.cancellation_reason = reason

    log_audit_action(
        action="cancel",
        entity_type="ticket",
        entity_id=ticket.id,
        user_id=user_id,
        details={"reason": reason, "previous_status": previous_status},
    )
    db.session.commit()
    return ticket


def mark_printed(ticket_id: int, user_id: int | None = None) -> Ticket:
    """Stamp printed_at (reprints overwrite it). Commits."""
    ticket = _get_or_raise(ticket_id)
    ticket.printed_at = utcnow()

    log_audit_action(action="print", entity_type="ticket", entity_id=ticket.id, user_id=user_id)
    db.session.commit()
    return ticket


def is_expired(ticket: Ticket, now=None) -> bool:
    if ticket.valid_until is None:
        return False
    return (now or utcnow()) > ticket.valid_until


def mark_used(ticket_id: int, user_id: int | None = None, reject_expired: bool = False) -> Ticket:
    """
    active -> used. Commits.

    reject_expired is set by the door check-in, which refuses passes past
    their validity window.
    """
    ticket = _get_or_raise(ticket_id)
    if ticket.status != "active":
        raise TicketError("Only active tickets can be checked in")

    now = utcnow()
    if reject_expired and is_expired(ticket, now):
        raise TicketError("Ticket expired")

    ticket.status = "used"
    ticket.used_at = now

    log_audit_action(
        action="use",
        entity_type="ticket",
        entity_id=ticket.id,
        user_id=user_id,
        details={"valid_until": ticket.valid_until.isoformat() if ticket.valid_until else None},
    )
    db.session.commit()
    return ticket
