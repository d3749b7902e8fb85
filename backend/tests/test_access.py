"""
Door access tests.

Verifies:
- access.validate classification: not found, used, cancelled, expired, valid
- access.checkIn admits active, unexpired tickets only
- access.info public pass lookup
"""

from datetime import timedelta

from conftest import make_ticket, rpc_data, rpc_error, rpc_mutation, rpc_query
from portaria.models import AuditLogEntry, Ticket
from portaria.time_utils import utcnow


def _validate(client, headers, token):
    return rpc_data(rpc_mutation(client, "access.validate", {"token": token}, headers=headers))


# =============================================================================
# VALIDATE
# =============================================================================


class TestValidate:

    def test_unknown_token(self, client, admin_headers):
        assert _validate(client, admin_headers, "nope") == {
            "status": "invalid",
            "message": "Ingresso não encontrado",
        }

    def test_valid_ticket(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], customer_name="João")
        result = _validate(client, admin_headers, ticket.qr_token)

        assert result["status"] == "valid"
        assert result["ticket"]["id"] == ticket.id
        assert result["ticket"]["customerName"] == "João"
        assert result["ticket"]["type"] == "Inteira"
        assert result["ticket"]["validUntil"].endswith("Z")

    def test_used_ticket(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], status="used", customer_name="João")
        ticket.used_at = utcnow()
        db_session.commit()

        result = _validate(client, admin_headers, ticket.qr_token)
        assert result["status"] == "used"
        assert result["message"] == "Ingresso já utilizado"
        assert result["customer"] == "João"
        assert result["usedAt"]

    def test_cancelled_ticket(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], status="cancelled")
        assert _validate(client, admin_headers, ticket.qr_token) == {
            "status": "invalid",
            "message": "Ingresso inválido ou cancelado",
        }

    def test_expired_ticket_never_checked_in(self, client, admin_headers, ticket_types, db_session):
        created = utcnow() - timedelta(hours=13)
        ticket = make_ticket(db_session, ticket_types["Inteira"], created_at=created, customer_name="Ana")

        result = _validate(client, admin_headers, ticket.qr_token)
        assert result == {"status": "expired", "message": "QR Code expirado", "customer": "Ana"}

    def test_used_wins_over_expired(self, client, admin_headers, ticket_types, db_session):
        created = utcnow() - timedelta(days=2)
        ticket = make_ticket(db_session, ticket_types["Inteira"], created_at=created, status="used")
        assert _validate(client, admin_headers, ticket.qr_token)["status"] == "used"

    def test_validate_is_read_only(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"])
        _validate(client, admin_headers, ticket.qr_token)

        db_session.expire_all()
        assert db_session.get(Ticket, ticket.id).status == "active"

    def test_ticket_type_deleted_after_sale(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Cortesia"])
        db_session.delete(ticket_types["Cortesia"])
        db_session.commit()

        result = _validate(client, admin_headers, ticket.qr_token)
        assert result["status"] == "valid"
        assert result["ticket"]["type"] is None


# =============================================================================
# CHECK-IN
# =============================================================================


class TestCheckIn:

    def test_check_in_marks_used(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"])

        resp = rpc_mutation(client, "access.checkIn", {"ticketId": ticket.id}, headers=admin_headers)
        assert rpc_data(resp) == {"success": True}

        db_session.expire_all()
        assert db_session.get(Ticket, ticket.id).status == "used"
        assert db_session.query(AuditLogEntry).filter_by(action="use", entity_id=ticket.id).count() == 1
        assert _validate(client, admin_headers, ticket.qr_token)["status"] == "used"

    def test_second_check_in_fails(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"])
        rpc_mutation(client, "access.checkIn", {"ticketId": ticket.id}, headers=admin_headers)

        resp = rpc_mutation(client, "access.checkIn", {"ticketId": ticket.id}, headers=admin_headers)
        assert resp.status_code == 400
        assert rpc_error(resp)["message"] == "Only active tickets can be checked in"

    def test_expired_ticket_is_refused(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], created_at=utcnow() - timedelta(hours=13))

        resp = rpc_mutation(client, "access.checkIn", {"ticketId": ticket.id}, headers=admin_headers)
        assert resp.status_code == 400
        assert rpc_error(resp)["message"] == "Ticket expired"

        db_session.expire_all()
        assert db_session.get(Ticket, ticket.id).status == "active"

    def test_missing_ticket(self, client, admin_headers, db_session):
        resp = rpc_mutation(client, "access.checkIn", {"ticketId": 31337}, headers=admin_headers)
        assert resp.status_code == 404


# =============================================================================
# PUBLIC INFO
# =============================================================================


class TestInfo:

    def test_info_is_public(self, client, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Meia-entrada"], customer_name="Bia")
        data = rpc_data(rpc_query(client, "access.info", {"token": ticket.qr_token}))

        assert data["customerName"] == "Bia"
        assert data["ticketTypeName"] == "Meia-entrada"
        assert data["status"] == "active"
        assert data["qrToken"] == ticket.qr_token

    def test_info_unknown_token_is_null(self, client, db_session):
        assert rpc_data(rpc_query(client, "access.info", {"token": "missing"})) is None
