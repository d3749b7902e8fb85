# Overview: Flask CLI command groups for bootstrap, inspection, and the terminal offline queue.

# backend/portaria/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the local admin user and default ticket types.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Ticket types:
# - python -m flask ticket-types seed
#   Insert Inteira / Meia-entrada / Cortesia when missing.
# - python -m flask ticket-types list
#
# Users:
# - python -m flask users list
# - python -m flask users create --open-id abc123 --name "Maria" --email maria@example.com --role admin
# - python -m flask users hash-pin
#   Print a bcrypt hash for ADMIN_PIN_HASH.
#
# Terminal offline queue (uses OFFLINE_DB_PATH, TERMINAL_SERVER_URL, TERMINAL_TOKEN):
# - python -m flask offline status
# - python -m flask offline sync
# - python -m flask offline clean
#
# Audit log:
# - python -m flask audit list --entity-type ticket --entity-id 12

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import USER_ROLES
from .services import audit_service, auth_service, ticket_type_service
from .services.auth_service import AuthError
from .time_utils import cents_to_units, to_utc_z


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the database: tables, local admin user, default ticket types.

    SECURITY: Change ADMIN_PIN (or set ADMIN_PIN_HASH) in production!
    """
    click.echo("START Initializing Portaria...")

    db.create_all()
    click.echo("PASS Schema ready")

    admin = auth_service.upsert_user(
        auth_service.LOCAL_ADMIN_OPEN_ID,
        name=auth_service.LOCAL_ADMIN_NAME,
        email=auth_service.LOCAL_ADMIN_EMAIL,
        login_method="pin",
        role="admin",
    )
    click.echo(f"PASS Local admin ready: {admin.name} (ID: {admin.id})")

    created = ticket_type_service.seed_default_ticket_types()
    if created:
        click.echo(f"PASS Seeded ticket types: {', '.join(t.name for t in created)}")
    else:
        click.echo("PASS Ticket types already present")

    click.echo("DONE Portaria initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('ticket-types')
def ticket_types_group():
    """Ticket type catalogue."""


@ticket_types_group.command('seed')
@with_appcontext
def seed_ticket_types():
    """Insert the default ticket types that are missing."""
    created = ticket_type_service.seed_default_ticket_types()
    for ticket_type in created:
        click.echo(f"PASS Created {ticket_type.name} (R$ {cents_to_units(ticket_type.price):.2f})")
    if not created:
        click.echo("Nothing to seed.")


@ticket_types_group.command('list')
@with_appcontext
def list_ticket_types():
    ticket_types = ticket_type_service.list_ticket_types()
    if not ticket_types:
        click.echo("No ticket types found.")
        return

    click.echo(f"{'ID':<5} {'Name':<25} {'Price':>12}")
    for t in ticket_types:
        click.echo(f"{t.id:<5} {t.name:<25} {'R$ %.2f' % cents_to_units(t.price):>12}")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'OpenID':<20} {'Name':<20} {'Email':<30} {'Role'}")
    click.echo("=" * 90)
    for user in users:
        click.echo(f"{user.id:<5} {user.open_id:<20} {user.name or '':<20} {user.email or '':<30} {user.role}")
    click.echo("=" * 90 + "\n")


@users_group.command('create')
@click.option('--open-id', prompt=True, help='Identity from the login provider')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', default=None, help='Email address')
@click.option('--role', type=click.Choice(USER_ROLES), default='user', help='Role')
@with_appcontext
def create_user_cli(open_id, name, email, role):
    """Create (or update) a user keyed by open id."""
    try:
        user = auth_service.upsert_user(open_id, name=name, email=email, login_method="cli", role=role)
    except AuthError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"PASS User {user.open_id} saved (ID: {user.id}, role: {user.role})")


@users_group.command('hash-pin')
@click.option('--pin', prompt=True, hide_input=True, confirmation_prompt=True, help='PIN to hash')
def hash_pin_cli(pin):
    """Print a bcrypt hash to use as ADMIN_PIN_HASH."""
    click.echo(auth_service.hash_pin(pin))


@click.group('offline')
def offline_group():
    """Terminal offline queue."""


def _offline_store():
    from .terminal import OfflineStore
    return OfflineStore(current_app.config["OFFLINE_DB_PATH"])


@offline_group.command('status')
@with_appcontext
def offline_status():
    """Show pending offline sales."""
    store = _offline_store()
    try:
        pending = store.get_unsynced_sales()
        click.echo(f"Pending offline sales: {len(pending)}")
        for sale in pending:
            units = sum(item["quantity"] for item in sale.item_list())
            suffix = f" last error: {sale.error}" if sale.error else ""
            click.echo(
                f"  #{sale.id} {sale.timestamp:%Y-%m-%d %H:%M} {units} ticket(s) "
                f"{sale.payment_method} attempts={sale.sync_attempts}{suffix}"
            )
    finally:
        store.close()


@offline_group.command('sync')
@click.option('--server', default=None, help='Backend base URL (defaults to TERMINAL_SERVER_URL)')
@click.option('--token', default=None, help='Session token (defaults to TERMINAL_TOKEN)')
@with_appcontext
def offline_sync(server, token):
    """Replay pending offline sales against the backend."""
    from .terminal import OfflineSync, RpcClient

    store = _offline_store()
    client = RpcClient(
        server or current_app.config["TERMINAL_SERVER_URL"],
        token=token or current_app.config.get("TERMINAL_TOKEN"),
    )
    try:
        sync = OfflineSync(client, store, online=False)
        if not sync.is_online():
            raise click.ClickException("Backend unreachable; nothing synced.")
        result = sync.sync_offline_sales() or {"synced": 0, "failed": 0, "pending": store.get_pending_sales_count()}
        click.echo(f"Synced: {result['synced']}  Failed: {result['failed']}  Pending: {result['pending']}")
    finally:
        client.close()
        store.close()


@offline_group.command('clean')
@with_appcontext
def offline_clean():
    """Delete synced offline sales older than 7 days."""
    store = _offline_store()
    try:
        removed = store.clean_old_synced_sales()
        click.echo(f"Removed {removed} synced offline sale(s).")
    finally:
        store.close()


@click.group('audit')
def audit_group():
    """Read-only view of the audit log."""


@audit_group.command('list')
@click.option('--entity-type', default=None, help='ticket, ticket_type, login, user')
@click.option('--entity-id', type=int, default=None, help='Entity id')
@click.option('--action', default=None, help='create, cancel, print, use, login_failed ...')
@click.option('--limit', type=int, default=200, show_default=True)
@with_appcontext
def audit_list(entity_type, entity_id, action, limit):
    """List audit entries, oldest first."""
    entries = audit_service.list_entries(
        entity_type=entity_type, entity_id=entity_id, action=action, limit=limit,
    )
    if not entries:
        click.echo("No audit entries found.")
        return

    for entry in entries:
        click.echo(
            f"{entry.id:<6} {to_utc_z(entry.created_at)}  {entry.action:<14} "
            f"{entry.entity_type}:{entry.entity_id:<8} user={entry.user_id or '-'} {entry.details or ''}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ticket_types_group)
    app.cli.add_command(users_group)
    app.cli.add_command(offline_group)
    app.cli.add_command(audit_group)
