# backend/portaria/routes/system.py
"""
System health and version endpoints.

/api/health probes the database and answers 503 while it is unreachable,
so a load balancer (or the terminal client) can tell a dead backend apart
from a live one.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import Ticket, TicketType
from portaria.time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        ticket_type_count = db.session.query(TicketType).count()
        ticket_count = db.session.query(Ticket).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "ticket_types": ticket_type_count,
                "tickets": ticket_count,
            },
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database not available",
        }


def check_integrations() -> dict:
    """Which marketing integrations are configured (keys are never echoed)."""
    return {
        "brevo": bool(current_app.config.get("BREVO_API_KEY")),
        "manychat": bool(current_app.config.get("MANYCHAT_API_TOKEN")),
    }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    start_time = time.time()
    database_health = check_database_health()

    if database_health["status"] == "unhealthy":
        overall_status = "unhealthy"
        http_status = 503
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "integrations": check_integrations(),
        },
    }
    return response, http_status


@system_bp.get("/version")
def version():
    """
    Non-sensitive deployment information.

    Does NOT expose secret keys, PINs or database credentials.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "event_name": current_app.config.get("EVENT_NAME"),
        "oauth_server_url": current_app.config.get("OAUTH_SERVER_URL"),
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
