"""
RPC transport tests.

Verifies:
- Routing: unknown procedures (404) and wrong HTTP method (405)
- Access levels: public, protected (401) and admin (403)
- Input handling: ?input= JSON, {"json": ...} envelope, validation errors (400)
- Database outages surface as SERVICE_UNAVAILABLE (503)
"""

import pytest
from sqlalchemy.exc import OperationalError

from conftest import login, rpc_data, rpc_error, rpc_mutation, rpc_query
from portaria.services import ticket_service


class TestRouting:

    def test_unknown_procedure(self, client, db_session):
        resp = rpc_query(client, "tickets.nope")
        assert resp.status_code == 404
        assert rpc_error(resp)["code"] == "NOT_FOUND"

    def test_query_over_post_is_rejected(self, client, db_session):
        resp = rpc_mutation(client, "system.health", {"timestamp": 1})
        assert resp.status_code == 405
        assert rpc_error(resp)["code"] == "METHOD_NOT_SUPPORTED"

    def test_mutation_over_get_is_rejected(self, client, admin_headers):
        resp = rpc_query(client, "tickets.cancel", {"ticketId": 1, "reason": "x"}, headers=admin_headers)
        assert resp.status_code == 405


class TestAccessLevels:

    def test_public_health(self, client, db_session):
        assert rpc_data(rpc_query(client, "system.health", {"timestamp": 0})) == {"ok": True}

    @pytest.mark.parametrize(
        "kind,name,payload",
        [
            ("query", "tickets.list", None),
            ("query", "ticketTypes.list", None),
            ("query", "reports.stats", None),
            ("mutation", "access.validate", {"token": "abc"}),
            ("mutation", "tickets.markUsed", 1),
        ],
    )
    def test_protected_requires_session(self, client, db_session, kind, name, payload):
        call = rpc_query if kind == "query" else rpc_mutation
        resp = call(client, name, payload)
        assert resp.status_code == 401
        assert rpc_error(resp)["code"] == "UNAUTHORIZED"

    def test_admin_procedure_rejects_plain_user(self, client, user_headers):
        resp = rpc_mutation(client, "ticketTypes.create", {"name": "VIP", "price": 200}, headers=user_headers)
        assert resp.status_code == 403
        assert rpc_error(resp)["code"] == "FORBIDDEN"

    def test_plain_user_can_use_protected_procedures(self, client, user_headers):
        assert rpc_data(rpc_query(client, "tickets.list", headers=user_headers)) == []

    def test_auth_me_is_null_when_anonymous(self, client, db_session):
        assert rpc_data(rpc_query(client, "auth.me")) is None

    def test_auth_me_returns_session_user(self, client, admin_headers):
        assert rpc_data(rpc_query(client, "auth.me", headers=admin_headers))["openId"] == "admin-local"

    def test_auth_logout_clears_cookie(self, client, db_session):
        login(client)
        resp = rpc_mutation(client, "auth.logout")
        assert rpc_data(resp) == {"success": True}
        assert rpc_data(rpc_query(client, "auth.me")) is None


class TestInput:

    def test_negative_timestamp_is_rejected(self, client, db_session):
        resp = rpc_query(client, "system.health", {"timestamp": -1})
        assert resp.status_code == 400
        assert rpc_error(resp)["code"] == "BAD_REQUEST"

    def test_missing_input_is_rejected(self, client, db_session):
        resp = rpc_query(client, "system.health")
        assert resp.status_code == 400

    def test_malformed_json_is_rejected(self, client, db_session):
        resp = client.get("/api/trpc/system.health", query_string={"input": "{not json"})
        assert resp.status_code == 400
        assert rpc_error(resp)["message"] == "Invalid JSON payload"

    def test_json_envelope_is_unwrapped(self, client, db_session):
        resp = rpc_query(client, "system.health", {"json": {"timestamp": 5}})
        assert rpc_data(resp) == {"ok": True}

    def test_json_envelope_on_mutation(self, client, admin_headers):
        resp = rpc_mutation(client, "access.validate", {"json": {"token": "missing"}}, headers=admin_headers)
        assert rpc_data(resp)["status"] == "invalid"


class TestDatabaseErrors:

    def test_operational_error_maps_to_service_unavailable(self, client, admin_headers, monkeypatch):
        def _down(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

        monkeypatch.setattr(ticket_service, "list_tickets", _down)
        resp = rpc_query(client, "tickets.list", headers=admin_headers)
        assert resp.status_code == 503
        assert rpc_error(resp) == {"message": "Database not available", "code": "SERVICE_UNAVAILABLE"}

    def test_unexpected_error_is_internal(self, client, admin_headers, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(ticket_service, "list_tickets", _boom)
        resp = rpc_query(client, "tickets.list", headers=admin_headers)
        assert resp.status_code == 500
        assert rpc_error(resp)["code"] == "INTERNAL_SERVER_ERROR"
