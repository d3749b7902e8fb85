# Overview: Service-layer operations for the audit log; append-only writes and filtered reads.

from __future__ import annotations

import json
from typing import Any, Optional

from ..extensions import db
from ..models import AuditLogEntry
"""
Audit Log Invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- No domain/business logic in the audit log itself.
- Entries are written inside the same DB transaction as the change they record;
  callers own the commit.
"""


def log_audit_action(
    *,
    action: str,
    entity_type: str,
    entity_id: int,
    user_id: int | None = None,
    details: Optional[dict[str, Any]] = None,
) -> AuditLogEntry:
    """
    Append one audit entry and flush it so the id is assigned.

    details is stored as JSON text with sorted keys.
    """
    entry = AuditLogEntry(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        details=json.dumps(details, sort_keys=True, default=str) if details else None,
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def list_entries(
    *,
    entity_type: str | None = None,
    entity_id: int | None = None,
    action: str | None = None,
    limit: int = 200,
) -> list[AuditLogEntry]:
    query = db.session.query(AuditLogEntry)
    if entity_type:
        query = query.filter(AuditLogEntry.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLogEntry.entity_id == entity_id)
    if action:
        query = query.filter(AuditLogEntry.action == action)
    return query.order_by(AuditLogEntry.id.asc()).limit(limit).all()
