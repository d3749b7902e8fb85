"""System endpoints and CLI bootstrap."""

from conftest import make_ticket
from portaria.models import TicketType, User
from portaria.services import ticket_service


class TestSystemEndpoints:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["integrations"] == {"brevo": False, "manychat": False}

    def test_version(self, client):
        body = client.get("/api/version").get_json()
        assert body["api_version"]
        assert body["event_name"] == "RESERVA SOLAR"
        assert "SECRET_KEY" not in str(body)

    def test_cors_for_known_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert resp.headers["Access-Control-Allow-Credentials"] == "true"

    def test_no_cors_for_unknown_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestCli:

    def test_system_init(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["system", "init"])

        assert result.exit_code == 0, result.output
        assert "Portaria initialized" in result.output
        assert db_session.query(User).filter_by(open_id="admin-local", role="admin").count() == 1
        assert db_session.query(TicketType).count() == 3

        # idempotent
        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output
        assert db_session.query(TicketType).count() == 3

    def test_ticket_types_list(self, app, ticket_types):
        result = app.test_cli_runner().invoke(args=["ticket-types", "list"])
        assert result.exit_code == 0, result.output
        assert "Meia-entrada" in result.output
        assert "R$ 50.00" in result.output

    def test_users_create(self, app, db_session):
        result = app.test_cli_runner().invoke(
            args=["users", "create", "--open-id", "oauth-9", "--name", "Rita", "--role", "admin"],
        )
        assert result.exit_code == 0, result.output
        assert db_session.query(User).filter_by(open_id="oauth-9").one().role == "admin"

    def test_offline_status(self, app, tmp_path, monkeypatch):
        from portaria.terminal import OfflineStore

        path = str(tmp_path / "terminal.sqlite3")
        store = OfflineStore(path)
        store.save_offline_sale([{"ticket_type_id": 1, "quantity": 2}], "dinheiro")
        store.close()

        monkeypatch.setitem(app.config, "OFFLINE_DB_PATH", path)
        result = app.test_cli_runner().invoke(args=["offline", "status"])
        assert result.exit_code == 0, result.output
        assert "Pending offline sales: 1" in result.output
        assert "2 ticket(s)" in result.output

    def test_audit_list_filters_by_entity(self, app, db_session, ticket_types):
        kept = make_ticket(db_session, ticket_types["Inteira"])
        other = make_ticket(db_session, ticket_types["Inteira"])
        ticket_service.cancel_ticket(kept.id, "Cliente desistiu")
        ticket_service.mark_printed(other.id)

        result = app.test_cli_runner().invoke(
            args=["audit", "list", "--entity-type", "ticket", "--entity-id", str(kept.id)],
        )
        assert result.exit_code == 0, result.output
        assert "cancel" in result.output
        assert "Cliente desistiu" in result.output
        assert "print" not in result.output

    def test_audit_list_empty(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["audit", "list", "--action", "use"])
        assert result.exit_code == 0, result.output
        assert "No audit entries found." in result.output
