"""Ticket type catalogue tests (RPC + seeding)."""

from conftest import make_ticket, rpc_data, rpc_error, rpc_mutation, rpc_query
from portaria.models import AuditLogEntry, Ticket, TicketType
from portaria.services import ticket_type_service


class TestListTicketTypes:

    def test_list_in_units(self, client, admin_headers, ticket_types):
        data = rpc_data(rpc_query(client, "ticketTypes.list", headers=admin_headers))
        assert [(t["name"], t["price"]) for t in data] == [
            ("Inteira", 100.0),
            ("Meia-entrada", 50.0),
            ("Cortesia", 0.0),
        ]


class TestCreateTicketType:

    def test_admin_creates_type(self, client, admin_headers, db_session):
        resp = rpc_mutation(
            client, "ticketTypes.create",
            {"name": "VIP", "description": "Área reservada", "price": 250.5},
            headers=admin_headers,
        )
        data = rpc_data(resp)
        assert data["name"] == "VIP"
        assert data["price"] == 250.5
        assert db_session.query(TicketType).filter_by(name="VIP").one().price == 25050

    def test_price_rounds_half_up_to_cents(self, client, admin_headers, db_session):
        data = rpc_data(rpc_mutation(client, "ticketTypes.create", {"name": "Promo", "price": 12.345}, headers=admin_headers))
        assert data["price"] == 12.35

    def test_negative_price_rejected(self, client, admin_headers, db_session):
        resp = rpc_mutation(client, "ticketTypes.create", {"name": "Bad", "price": -1}, headers=admin_headers)
        assert resp.status_code == 400

    def test_blank_name_rejected(self, client, admin_headers, db_session):
        resp = rpc_mutation(client, "ticketTypes.create", {"name": "  ", "price": 10}, headers=admin_headers)
        assert resp.status_code == 400

    def test_create_is_audited(self, client, admin_headers, db_session):
        data = rpc_data(rpc_mutation(client, "ticketTypes.create", {"name": "VIP", "price": 1}, headers=admin_headers))
        entry = db_session.query(AuditLogEntry).filter_by(entity_type="ticket_type", entity_id=data["id"]).one()
        assert entry.action == "create"


class TestDeleteTicketType:

    def test_admin_deletes_type(self, client, admin_headers, ticket_types, db_session):
        type_id = ticket_types["Cortesia"].id
        assert rpc_data(rpc_mutation(client, "ticketTypes.delete", type_id, headers=admin_headers)) == {"success": True}
        db_session.expire_all()
        assert db_session.get(TicketType, type_id) is None

    def test_delete_missing(self, client, admin_headers, db_session):
        resp = rpc_mutation(client, "ticketTypes.delete", 999, headers=admin_headers)
        assert resp.status_code == 404
        assert rpc_error(resp)["message"] == "Ticket type not found"

    def test_sold_tickets_survive_deletion(self, client, admin_headers, ticket_types, db_session):
        ticket = make_ticket(db_session, ticket_types["Inteira"])
        rpc_data(rpc_mutation(client, "ticketTypes.delete", ticket_types["Inteira"].id, headers=admin_headers))

        db_session.expire_all()
        survivor = db_session.get(Ticket, ticket.id)
        assert survivor is not None
        assert survivor.price == 10000

    def test_plain_user_cannot_delete(self, client, user_headers, ticket_types):
        resp = rpc_mutation(client, "ticketTypes.delete", ticket_types["Inteira"].id, headers=user_headers)
        assert resp.status_code == 403


class TestSeed:

    def test_seed_is_idempotent(self, app, db_session):
        first = ticket_type_service.seed_default_ticket_types()
        second = ticket_type_service.seed_default_ticket_types()

        assert [t.name for t in first] == ["Inteira", "Meia-entrada", "Cortesia"]
        assert second == []
        prices = {t.name: t.price for t in ticket_type_service.list_ticket_types()}
        assert prices == {"Inteira": 10000, "Meia-entrada": 5000, "Cortesia": 0}

    def test_seed_skips_existing_names_only(self, app, db_session):
        ticket_type_service.create_ticket_type("Inteira", 12000)
        ticket_type_service.create_ticket_type("Inteira", 15000)

        seeded = ticket_type_service.seed_default_ticket_types()

        assert [t.name for t in seeded] == ["Meia-entrada", "Cortesia"]
        assert db_session.query(TicketType).filter_by(name="Inteira").count() == 2
