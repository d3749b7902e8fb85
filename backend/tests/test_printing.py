"""Printable ticket, thermal report and public pass pages."""

from conftest import make_ticket


class TestThermalTicket:

    def test_renders_ticket(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], customer_name="Carlos")
        resp = client.get(f"/print/tickets/{ticket.id}", headers=admin_headers)

        assert resp.status_code == 200
        html = resp.get_data(as_text=True)
        assert f"#{ticket.id}" in html
        assert "Carlos" in html
        assert "Inteira" in html
        assert "R$ 100.00" in html
        assert "data:image/png;base64," in html
        assert "Apresente este ingresso na entrada" in html
        assert "Válido por 12h" in html

    def test_requires_auth(self, client, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"])
        assert client.get(f"/print/tickets/{ticket.id}").status_code == 401

    def test_missing_ticket(self, client, admin_headers):
        assert client.get("/print/tickets/999", headers=admin_headers).status_code == 404


class TestThermalReport:

    def test_renders_summary(self, client, admin_headers, ticket_types, db_session):
        make_ticket(db_session, ticket_types["Inteira"], payment_method="pix")
        make_ticket(db_session, ticket_types["Meia-entrada"], payment_method="cartao", status="cancelled")

        resp = client.get("/print/report", headers=admin_headers)
        assert resp.status_code == 200
        html = resp.get_data(as_text=True)
        assert "Receita Total" in html
        assert "R$ 100.00" in html
        assert "PIX" in html
        assert "Cartão" in html

    def test_invalid_range(self, client, admin_headers):
        resp = client.get("/print/report", query_string={"start": "yesterday"}, headers=admin_headers)
        assert resp.status_code == 400


class TestPublicPass:

    def test_public_pass(self, client, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Meia-entrada"], customer_name="Luiza")
        resp = client.get(f"/ticket/{ticket.qr_token}")

        assert resp.status_code == 200
        html = resp.get_data(as_text=True)
        assert "Luiza" in html
        assert "Meia-entrada" in html
        assert "data:image/png;base64," in html
        assert "CANCELADO" not in html

    def test_cancelled_banner(self, client, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], status="cancelled")
        html = client.get(f"/ticket/{ticket.qr_token}").get_data(as_text=True)
        assert "INGRESSO CANCELADO" in html

    def test_used_banner(self, client, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"], status="used")
        html = client.get(f"/ticket/{ticket.qr_token}").get_data(as_text=True)
        assert "INGRESSO JÁ UTILIZADO" in html

    def test_unknown_token(self, client, db_session):
        assert client.get("/ticket/does-not-exist").status_code == 404
