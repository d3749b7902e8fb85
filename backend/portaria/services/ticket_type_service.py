# Overview: Service-layer operations for ticket types; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import TicketType
from ..validation import enforce_price_cents
from .audit_service import log_audit_action


# Seeded on `flask ticket-types seed` / `flask system init`
DEFAULT_TICKET_TYPES = (
    {"name": "Inteira", "description": "Ingresso inteiro", "price": 10000},
    {"name": "Meia-entrada", "description": "Estudantes, idosos e PCD", "price": 5000},
    {"name": "Cortesia", "description": "Ingresso cortesia", "price": 0},
)


class TicketTypeError(Exception):
    """Raised for ticket type operation errors."""
    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message)
        self.message = message
        self.code = code


def list_ticket_types() -> list[TicketType]:
    return db.session.query(TicketType).order_by(TicketType.id.asc()).all()


def get_ticket_type(ticket_type_id: int) -> TicketType | None:
    return db.session.get(TicketType, ticket_type_id)


def create_ticket_type(
    name: str,
    price_cents: int,
    description: str | None = None,
    user_id: int | None = None,
) -> TicketType:
    """Create a ticket type. Price is in cents. Commits."""
    name = (name or "").strip()
    if not name:
        raise TicketTypeError("Name is required")
    enforce_price_cents(price_cents)

    ticket_type = TicketType(name=name, description=description, price=price_cents)
    db.session.add(ticket_type)
    db.session.flush()

    log_audit_action(
        action="create",
        entity_type="ticket_type",
        entity_id=ticket_type.id,
        user_id=user_id,
        details={"name": name, "price": price_cents},
    )
    db.session.commit()

    current_app.logger.info("Ticket type created: %s (%s cents)", name, price_cents)
    return ticket_type


def delete_ticket_type(ticket_type_id: int, user_id: int | None = None) -> None:
    """
    Delete a ticket type. Commits.

    Tickets already sold keep their price snapshot and type id.
    """
    ticket_type = get_ticket_type(ticket_type_id)
    if ticket_type is None:
        raise TicketTypeError("Ticket type not found", code="NOT_FOUND")

    log_audit_action(
        action="delete",
        entity_type="ticket_type",
        entity_id=ticket_type.id,
        user_id=user_id,
        details={"name": ticket_type.name, "price": ticket_type.price},
    )
    db.session.delete(ticket_type)
    db.session.commit()


def seed_default_ticket_types() -> list[TicketType]:
    """Insert the default types that are missing (matched by name). Commits."""
    existing = {t.name for t in list_ticket_types()}
    created = []
    for row in DEFAULT_TICKET_TYPES:
        if row["name"] in existing:
            continue
        ticket_type = TicketType(name=row["name"], description=row["description"], price=row["price"])
        db.session.add(ticket_type)
        created.append(ticket_type)
    db.session.commit()
    return created
