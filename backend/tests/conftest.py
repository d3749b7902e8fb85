"""
Pytest fixtures for Portaria backend tests.

Provides test database setup, login helpers, seeded ticket types and test client.
"""

import pytest
from flask import g
from portaria import create_app
from portaria.extensions import db
from portaria.models import TicketType, User


TEST_PIN = "4321"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': 'test-secret',
        'ADMIN_PIN': TEST_PIN,
        'ADMIN_PIN_HASH': None,
        'OWNER_OPEN_ID': 'owner-open-id',
        'BREVO_API_KEY': None,
        'MANYCHAT_API_TOKEN': None,
    })

    # The fixtures keep an app context pushed, which the test client reuses,
    # so g would leak between requests; give each request a fresh g as in
    # production.
    @app.before_request
    def _reset_request_globals():
        g.pop("current_user", None)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def ticket_types(db_session):
    """Inteira (R$ 100), Meia-entrada (R$ 50), Cortesia (R$ 0)."""
    rows = [
        TicketType(name="Inteira", price=10000),
        TicketType(name="Meia-entrada", price=5000),
        TicketType(name="Cortesia", price=0),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {t.name: t for t in rows}


@pytest.fixture(scope='function')
def plain_user(db_session):
    """Non-admin operator."""
    user = User(open_id="operator-1", name="Operador", email="op@example.com", login_method="oauth", role="user")
    db_session.add(user)
    db_session.commit()
    return user


def login(client, pin=TEST_PIN):
    return client.post("/api/auth/login", json={"pin": pin})


def get_auth_token(client, pin=TEST_PIN) -> str:
    response = login(client, pin)
    assert response.status_code == 200, response.get_json()
    return response.get_json()["token"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def admin_headers(client, db_session):
    """Bearer headers for the PIN-authenticated local admin."""
    return auth_headers(get_auth_token(client))


@pytest.fixture(scope='function')
def user_headers(app, plain_user):
    """Bearer headers for a non-admin user."""
    from portaria.services import session_service
    with app.test_request_context():
        token = session_service.create_session_token(plain_user)
    return auth_headers(token)


def rpc_query(client, name, input=None, headers=None):
    import json
    query = {"input": json.dumps(input)} if input is not None else None
    return client.get(f"/api/trpc/{name}", query_string=query, headers=headers or {})


def rpc_mutation(client, name, input=None, headers=None):
    return client.post(f"/api/trpc/{name}", json=input, headers=headers or {})


def rpc_data(response):
    body = response.get_json()
    assert response.status_code == 200, body
    return body["result"]["data"]


def rpc_error(response):
    body = response.get_json()
    assert "error" in body, body
    return body["error"]


def make_ticket(session, ticket_type, *, customer_name="Maria Silva", created_at=None,
                status="active", payment_method="dinheiro", valid_until=None, qr_token=None):
    """Insert a ticket directly (bypasses the service, for time-sensitive setups)."""
    import uuid
    from datetime import timedelta
    from portaria.models import Customer, Ticket
    from portaria.time_utils import utcnow

    created_at = created_at or utcnow()
    customer = Customer(name=customer_name)
    session.add(customer)
    session.flush()

    ticket = Ticket(
        customer_id=customer.id,
        ticket_type_id=ticket_type.id,
        price=ticket_type.price,
        payment_method=payment_method,
        status=status,
        qr_token=qr_token or str(uuid.uuid4()),
        valid_until=valid_until or created_at + timedelta(hours=12),
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(ticket)
    session.commit()
    return ticket
