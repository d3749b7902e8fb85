from __future__ import annotations

from ..extensions import db
from portaria.time_utils import to_utc_z, utcnow


PAYMENT_METHODS = ("dinheiro", "pix", "cartao")
TICKET_STATUSES = ("active", "cancelled", "used")


class Customer(db.Model):
    """
    Buyer contact captured at the time of sale.

    One row per ticket purchase; customers are not deduplicated.
    """
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(320), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "createdAt": to_utc_z(self.created_at),
        }


class TicketType(db.Model):
    """Priced admission category (e.g. Inteira, Meia-entrada, Cortesia)."""
    __tablename__ = "ticket_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Price in cents
    price = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "createdAt": to_utc_z(self.created_at),
        }


class Ticket(db.Model):
    """
    A sold admission.

    Status only moves forward: active -> cancelled or active -> used.
    Both targets are terminal. qr_token is the public lookup key printed
    as a QR code and must be unique across all tickets.
    """
    __tablename__ = "tickets"
    __table_args__ = (
        db.Index("ix_tickets_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    # Not a hard FK: ticket types are deletable while sold tickets remain
    ticket_type_id = db.Column(db.Integer, nullable=False, index=True)

    # Price snapshot in cents
    price = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="active")

    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)
    printed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    qr_token = db.Column(db.String(255), nullable=True, unique=True)
    valid_until = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("tickets", lazy=True))
    ticket_type = db.relationship(
        "TicketType",
        primaryjoin="foreign(Ticket.ticket_type_id) == TicketType.id",
        viewonly=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "ticketTypeId": self.ticket_type_id,
            "price": self.price,
            "paymentMethod": self.payment_method,
            "status": self.status,
            "cancelledAt": to_utc_z(self.cancelled_at),
            "cancellationReason": self.cancellation_reason,
            "printedAt": to_utc_z(self.printed_at),
            "usedAt": to_utc_z(self.used_at),
            "qrToken": self.qr_token,
            "validUntil": to_utc_z(self.valid_until),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
