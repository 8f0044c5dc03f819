# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/wholesale/cli.py
# Commands Legend (run from the backend directory, FLASK_APP=wsgi.py):
#
# System bootstrap/repair:
# - flask system init
#   Create tables (if missing) and seed the default restricted states.
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admins:
# - flask admins create --name "Ops" --email ops@example.com --password "..."
# - flask admins list
#
# Restricted states:
# - flask states list
# - flask states add TX --name Texas --reason "..."
# - flask states remove TX
#
# Invites:
# - flask invites generate --quantity 10
#
# Notifications outbox:
# - flask notifications dispatch [--limit 100]
# - flask notifications list [--status pending]
#
# Maintenance:
# - flask sessions cleanup
# - flask members remind-payments

import click
from flask.cli import with_appcontext

from .errors import DomainError
from .extensions import db
from .models import Admin, RestrictedState
from .services import invite_service, notification_service, session_service
from .services.auth_service import create_admin
from .time_utils import utcnow

DEFAULT_RESTRICTED_STATES = (
    ("ID", "Idaho", "State prohibits hemp-derived cannabinoid products"),
    ("OR", "Oregon", "State restrictions on hemp product shipments"),
    ("SD", "South Dakota", "State prohibits smokable hemp"),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Idempotent bootstrap: tables plus default restricted states."""
    click.echo("START Initializing wholesale backend...")
    db.create_all()

    added = 0
    for code, name, reason in DEFAULT_RESTRICTED_STATES:
        if db.session.get(RestrictedState, code) is None:
            db.session.add(RestrictedState(state_code=code, state_name=name, reason=reason, created_at=utcnow()))
            added += 1
    db.session.commit()

    click.echo(f"PASS Restricted states seeded ({added} added)")
    if db.session.query(Admin).count() == 0:
        click.echo("WARN No admin accounts yet. Run 'flask admins create'.")


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

    click.echo("PASS Database reset complete. Run 'flask system init' to seed.")


@click.group('admins')
def admins_group():
    """Administrator accounts."""


@admins_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin_command(name, email, password):
    try:
        admin = create_admin(name, email, password)
    except DomainError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created admin {admin.email} (ID: {admin.id})")


@admins_group.command('list')
@with_appcontext
def list_admins():
    admins = db.session.query(Admin).order_by(Admin.id.asc()).all()
    if not admins:
        click.echo("No admins found.")
        return
    click.echo(f"{'ID':<5} {'Name':<30} {'Email'}")
    for admin in admins:
        click.echo(f"{admin.id:<5} {admin.name:<30} {admin.email}")


@click.group('states')
def states_group():
    """Restricted state list (blocks applications and shipments)."""


@states_group.command('list')
@with_appcontext
def list_states():
    rows = db.session.query(RestrictedState).order_by(RestrictedState.state_code.asc()).all()
    if not rows:
        click.echo("No restricted states.")
        return
    for row in rows:
        click.echo(f"{row.state_code}  {row.state_name or '':<20} {row.reason or ''}")


@states_group.command('add')
@click.argument('state_code')
@click.option('--name', 'state_name', default=None)
@click.option('--reason', default=None)
@with_appcontext
def add_state(state_code, state_name, reason):
    code = state_code.strip().upper()
    if len(code) != 2 or not code.isalpha():
        raise click.BadParameter("state code must be two letters", param_hint="STATE_CODE")
    if db.session.get(RestrictedState, code) is not None:
        click.echo(f"WARN {code} is already restricted")
        return
    db.session.add(RestrictedState(state_code=code, state_name=state_name, reason=reason, created_at=utcnow()))
    db.session.commit()
    click.echo(f"PASS {code} restricted")


@states_group.command('remove')
@click.argument('state_code')
@with_appcontext
def remove_state(state_code):
    code = state_code.strip().upper()
    row = db.session.get(RestrictedState, code)
    if row is None:
        raise click.ClickException(f"{code} is not restricted")
    db.session.delete(row)
    db.session.commit()
    click.echo(f"PASS {code} removed")


@click.group('invites')
def invites_group():
    """Invite codes."""


@invites_group.command('generate')
@click.option('--quantity', type=click.IntRange(1, invite_service.MAX_ADMIN_BATCH), default=1)
@with_appcontext
def generate_invites(quantity):
    codes = invite_service.generate_admin_codes(quantity)
    for code in codes:
        click.echo(code)
    if len(codes) < quantity:
        click.echo(f"WARN {quantity - len(codes)} duplicate code(s) skipped", err=True)


@click.group('notifications')
def notifications_group():
    """Notification outbox."""


@notifications_group.command('dispatch')
@click.option('--limit', type=int, default=None, help='Max rows to attempt')
@with_appcontext
def dispatch_notifications(limit):
    summary = notification_service.dispatch_pending(limit=limit)
    click.echo(f"sent={summary['sent']} failed={summary['failed']} dead={summary['dead']}")


@notifications_group.command('list')
@click.option('--status', type=click.Choice(['pending', 'sent', 'dead']), default=None)
@click.option('--limit', type=int, default=50)
@with_appcontext
def list_notifications(status, limit):
    rows = notification_service.list_notifications(status=status, limit=limit)
    if not rows:
        click.echo("No notifications.")
        return
    for row in rows:
        click.echo(
            f"{row.id:<6} {row.status:<8} {row.attempts:<3} {row.template:<24} "
            f"{row.recipient:<32} {row.last_error or ''}"
        )


@click.group('sessions')
def sessions_group():
    """Session maintenance."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} expired session(s)")


@click.group('members')
def members_group():
    """Member maintenance."""


@members_group.command('remind-payments')
@with_appcontext
def remind_payments():
    """Queue the monthly membership fee reminder for every active member."""
    count = notification_service.send_payment_reminders()
    click.echo(f"PASS Queued {count} payment reminder(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(states_group)
    app.cli.add_command(invites_group)
    app.cli.add_command(notifications_group)
    app.cli.add_command(sessions_group)
    app.cli.add_command(members_group)
