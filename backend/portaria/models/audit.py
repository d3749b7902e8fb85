from __future__ import annotations

import json

from ..extensions import db
from portaria.time_utils import to_utc_z, utcnow


class AuditLogEntry(db.Model):
    """
    Audit trail for ticket operations.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    Entries are written in the same transaction as the change they record.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_entity", "entity_type", "entity_id"),
        db.Index("ix_audit_log_action_created", "action", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(100), nullable=False)        # create, cancel, print, use, login_failed ...
    entity_type = db.Column(db.String(100), nullable=False)   # ticket, ticket_type, login
    entity_id = db.Column(db.Integer, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # JSON-encoded free-form detail
    details = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    user = db.relationship("User")

    def details_dict(self) -> dict:
        if not self.details:
            return {}
        return json.loads(self.details)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "userId": self.user_id,
            "details": self.details_dict(),
            "createdAt": to_utc_z(self.created_at),
        }
