"""
Pytest fixtures for the wholesale backend tests.

Provides an in-memory app, a per-test table wipe, a recording notification
sender, and factories for admins, members and products.
"""

import itertools
from decimal import Decimal

import pytest

from wholesale import create_app
from wholesale.extensions import db
from wholesale.models import Admin, Member, Product, RestrictedState
from wholesale.services.auth_service import hash_password
from wholesale.time_utils import utcnow

PASSWORD = "Password123!"

_seq = itertools.count(1)


class RecordingSender:
    """Notification sender double; set `fail` to make every send raise."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, recipient, subject, body):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append({"recipient": recipient, "subject": subject, "body": body})

    def templates_to(self, recipient):
        return [m["subject"] for m in self.sent if m["recipient"] == recipient]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'NOTIFICATION_DISPATCH': 'inline',
        'NOTIFICATION_BACKEND': 'log',
        'ADMIN_EMAIL': 'ops@hemplifefarmers.test',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh tables for each test, with the default restricted states."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    for code, name in (("ID", "Idaho"), ("OR", "Oregon"), ("SD", "South Dakota")):
        db.session.add(RestrictedState(state_code=code, state_name=name, created_at=utcnow()))
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def sender(app, db_session):
    recording = RecordingSender()
    previous = app.extensions["notification_sender"]
    app.extensions["notification_sender"] = recording
    yield recording
    app.extensions["notification_sender"] = previous


@pytest.fixture(scope='function')
def client(app, db_session, sender):
    """Create test client."""
    return app.test_client()


# =============================================================================
# FACTORIES
# =============================================================================

def create_admin_row(email="admin@hemplifefarmers.test", password=PASSWORD, name="Ops Admin"):
    admin = Admin(name=name, email=email, password_hash=hash_password(password))
    db.session.add(admin)
    db.session.commit()
    return admin


def create_member_row(status="active", state="TX", email=None, password=PASSWORD, **overrides):
    n = next(_seq)
    fields = dict(
        full_name=f"Member {n}",
        business_name=f"Green Acres {n} LLC",
        email=email or f"member{n}@example.com",
        phone="555-0100",
        street="1 Farm Rd",
        city="Austin",
        state=state,
        zip="73301",
        invite_code_used=f"HLF-INV-{1000 + n}",
        password_hash=hash_password(password),
        personal_ref_code=f"HLF-REF-T{n:05d}",
        status=status,
        monthly_active=status == "active",
        app_fee_paid=True,
        applied_at=utcnow(),
        approved_at=utcnow() if status == "active" else None,
    )
    fields.update(overrides)
    member = Member(**fields)
    db.session.add(member)
    db.session.commit()
    return member


def create_product_row(**overrides):
    n = next(_seq)
    fields = dict(
        sku=f"HLF-SKU-{n}",
        product_name=f"Hemp Flower {n}",
        product_type="flower",
        status="active",
        farm_bill_compliant=True,
        delta9_thc_pct=Decimal("0.2"),
        price_per_lb=Decimal("1000.00"),
        price_5lb=Decimal("900.00"),
        price_10lb=Decimal("800.00"),
        inventory_lbs=None,
        featured=False,
        display_order=0,
        created_at=utcnow(),
    )
    fields.update(overrides)
    product = Product(**fields)
    db.session.add(product)
    db.session.commit()
    return product


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin(db_session):
    return create_admin_row()


@pytest.fixture(scope='function')
def member(db_session):
    return create_member_row(status="active")


@pytest.fixture(scope='function')
def product(db_session):
    return create_product_row()


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))


@pytest.fixture(scope='function')
def member_headers(client, member):
    return auth_headers(get_auth_token(client, member.email))
