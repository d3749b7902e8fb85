"""
Login Throttling Service

WHY: A four-digit PIN is trivially brute-forced without a limit on attempts.
After too many failures from one client, further PIN attempts are refused.

- Tracks failed attempts per identifier ("pin:<client address>")
- Lockout after MAX_FAILED_ATTEMPTS failures within LOCKOUT_WINDOW
- Lockout duration: LOCKOUT_DURATION
- Uses the audit_log table for tracking (action "login_failed")
- A successful login restarts the count
"""

from __future__ import annotations

import json
from datetime import timedelta

from ..extensions import db
from ..models import AuditLogEntry
from .audit_service import log_audit_action
from portaria.time_utils import utcnow


# Configuration constants
MAX_FAILED_ATTEMPTS = 10  # Lock after 10 failed attempts
LOCKOUT_WINDOW = timedelta(minutes=15)  # Within 15 minutes
LOCKOUT_DURATION = timedelta(minutes=15)  # Lockout for 15 minutes

FAILED_ACTION = "login_failed"
SUCCESS_ACTION = "login"


def pin_identifier(ip_address: str | None) -> str:
    return f"pin:{ip_address or 'unknown'}"


def _identifier_filter(identifier: str):
    # details JSON is written with sorted keys and default separators
    return AuditLogEntry.details.contains(f'"identifier": {json.dumps(identifier)}', autoescape=True)


def _last_success(identifier: str):
    """(id, created_at) of the latest successful login, or None."""
    return (
        db.session.query(AuditLogEntry.id, AuditLogEntry.created_at)
        .filter(AuditLogEntry.action == SUCCESS_ACTION, _identifier_filter(identifier))
        .order_by(AuditLogEntry.id.desc())
        .first()
    )


def get_recent_failed_attempts(identifier: str) -> int:
    """Count failed attempts within LOCKOUT_WINDOW since the last successful login."""
    query = db.session.query(AuditLogEntry).filter(
        AuditLogEntry.action == FAILED_ACTION,
        _identifier_filter(identifier),
        AuditLogEntry.created_at >= utcnow() - LOCKOUT_WINDOW,
    )
    # Timestamps are whole seconds; entry ids order attempts within one second
    last_success = _last_success(identifier)
    if last_success is not None:
        query = query.filter(AuditLogEntry.id > last_success.id)
    return query.count()


def is_locked(identifier: str) -> tuple[bool, int | None]:
    """
    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    if get_recent_failed_attempts(identifier) < MAX_FAILED_ATTEMPTS:
        return False, None

    most_recent = (
        db.session.query(AuditLogEntry.created_at)
        .filter(AuditLogEntry.action == FAILED_ACTION, _identifier_filter(identifier))
        .order_by(AuditLogEntry.id.desc())
        .first()
    )
    if most_recent is None:
        return False, None

    lockout_end = most_recent[0] + LOCKOUT_DURATION
    now = utcnow()
    if now < lockout_end:
        return True, int((lockout_end - now).total_seconds())
    return False, None


def record_failed_attempt(
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid PIN",
) -> int:
    """
    Record a failed login attempt. Commits.

    Returns the total number of recent failed attempts.
    """
    log_audit_action(
        action=FAILED_ACTION,
        entity_type="login",
        entity_id=0,
        details={
            "identifier": identifier,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "reason": reason,
        },
    )
    db.session.commit()
    return get_recent_failed_attempts(identifier)


def record_successful_login(
    user_id: int,
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Record a successful login. Commits."""
    log_audit_action(
        action=SUCCESS_ACTION,
        entity_type="user",
        entity_id=user_id,
        user_id=user_id,
        details={
            "identifier": identifier,
            "ip_address": ip_address,
            "user_agent": user_agent,
        },
    )
    db.session.commit()
