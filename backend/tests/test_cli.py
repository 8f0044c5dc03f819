"""
Flask CLI command tests.
"""

from datetime import timedelta

from wholesale.extensions import db
from wholesale.models import Admin, InviteCode, RestrictedState, SessionToken
from wholesale.services import session_service

from conftest import create_member_row


def test_system_init_is_idempotent(app, db_session):
    db.session.query(RestrictedState).delete()
    db.session.commit()

    runner = app.test_cli_runner()
    first = runner.invoke(args=["system", "init"])
    assert first.exit_code == 0
    assert "3 added" in first.output

    second = runner.invoke(args=["system", "init"])
    assert "0 added" in second.output
    assert db.session.query(RestrictedState).count() == 3


def test_admins_create_and_list(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "admins", "create", "--name", "Ops", "--email", "Ops@Example.com", "--password", "Password123!",
    ])
    assert result.exit_code == 0, result.output
    assert db.session.query(Admin).one().email == "ops@example.com"

    duplicate = runner.invoke(args=[
        "admins", "create", "--name", "Ops", "--email", "ops@example.com", "--password", "Password123!",
    ])
    assert duplicate.exit_code != 0
    assert "already exists" in duplicate.output

    listing = runner.invoke(args=["admins", "list"])
    assert "ops@example.com" in listing.output


def test_admins_create_rejects_overlong_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "admins", "create", "--name", "Ops", "--email", "ops@example.com", "--password", "p" * 73,
    ])
    assert result.exit_code != 0
    assert "72 bytes" in result.output
    assert db.session.query(Admin).count() == 0


def test_states_add_and_remove(app, db_session):
    runner = app.test_cli_runner()
    assert runner.invoke(args=["states", "add", "tx", "--name", "Texas"]).exit_code == 0
    assert db.session.get(RestrictedState, "TX") is not None

    bad = runner.invoke(args=["states", "add", "Texas"])
    assert bad.exit_code != 0

    assert runner.invoke(args=["states", "remove", "TX"]).exit_code == 0
    assert db.session.get(RestrictedState, "TX") is None
    assert runner.invoke(args=["states", "remove", "TX"]).exit_code != 0


def test_invites_generate(app, db_session):
    result = app.test_cli_runner().invoke(args=["invites", "generate", "--quantity", "3"])
    assert result.exit_code == 0
    codes = [line for line in result.output.splitlines() if line.startswith("HLF-INV-")]
    assert db.session.query(InviteCode).count() == len(codes)


def test_sessions_cleanup(app, db_session):
    row = create_member_row()
    session_service.create_session(row.id, is_admin=False)
    stored = db.session.query(SessionToken).one()
    stored.expires_at = stored.created_at - timedelta(minutes=1)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["sessions", "cleanup"])
    assert "Deleted 1" in result.output
    assert db.session.query(SessionToken).count() == 0


def test_notifications_dispatch_and_remind(app, db_session, sender):
    app.config["NOTIFICATION_DISPATCH"] = "deferred"
    try:
        create_member_row()
        runner = app.test_cli_runner()
        assert "Queued 1" in runner.invoke(args=["members", "remind-payments"]).output
        assert sender.sent == []

        listing = runner.invoke(args=["notifications", "list", "--status", "pending"])
        assert "payment_reminder" in listing.output

        result = runner.invoke(args=["notifications", "dispatch"])
        assert "sent=1 failed=0 dead=0" in result.output
        assert len(sender.sent) == 1
    finally:
        app.config["NOTIFICATION_DISPATCH"] = "inline"
