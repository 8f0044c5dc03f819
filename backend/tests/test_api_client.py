"""
WholesaleClient tests, driven against the Flask app through httpx's WSGI transport.
"""

import httpx
import pytest

from wholesale.client import ApiError, ClientSessionContext, WholesaleClient

from conftest import PASSWORD, create_product_row


@pytest.fixture
def api(app, client, tmp_path):
    context = ClientSessionContext.load(tmp_path / "session.json")
    with WholesaleClient(
        "http://wholesale.test", context=context, transport=httpx.WSGITransport(app=app),
    ) as wholesale:
        yield wholesale


def test_login_persists_token(api, member):
    api.login(member.email, PASSWORD)
    assert api.context.authenticated
    assert api.context.is_admin is False
    assert ClientSessionContext.load(api.context.path).token == api.context.token
    assert api.me()["email"] == member.email


def test_errors_carry_kind(api, member):
    with pytest.raises(ApiError) as excinfo:
        api.login(member.email, "wrong-password")
    assert excinfo.value.status == 401
    assert excinfo.value.kind == "authentication"
    assert excinfo.value.retryable is False


def test_member_orders_through_client(api, member):
    product = create_product_row()
    api.login(member.email, PASSWORD)

    assert [p["id"] for p in api.list_products()] == [product.id]
    order = api.place_order([{"product_id": product.id, "quantity_lbs": 10}], payment_method="ACH")
    assert order["total"] == "8000.00"
    assert api.get_order(order["id"])["order_number"] == order["order_number"]

    canceled = api.cancel_order(order["id"])
    assert canceled["status"] == "canceled"
    assert [o["status"] for o in api.list_orders()] == ["canceled"]


def test_admin_workflow_through_client(api, admin, member):
    api.login(admin.email, PASSWORD)
    assert api.context.is_admin is True

    codes = api.generate_invites(2)
    assert 1 <= len(codes) <= 2
    assert api.validate_invite(codes[0])["valid"] is True

    created = api.create_product({"sku": "cli-1", "product_name": "Client Kush", "price_per_lb": 500})
    updated = api.update_product(created["id"], {"featured": True})
    assert updated["featured"] is True
    assert api.list_public_products()[0]["sku"] == "CLI-1"

    with pytest.raises(ApiError) as excinfo:
        api.create_product({"sku": "cli-2", "product_name": "Hot", "price_per_lb": 500, "delta9_thc_pct": 1})
    assert excinfo.value.status == 422
    assert excinfo.value.kind == "compliance"

    suspended = api.update_member_status(member.id, "suspended", reason="Missed payment")
    assert suspended["status"] == "suspended"
    assert [m["id"] for m in api.list_members(status="suspended")] == [member.id]


def test_logout_clears_context(api, member):
    api.login(member.email, PASSWORD)
    api.logout()
    assert not api.context.authenticated
    assert ClientSessionContext.load(api.context.path).token is None


def test_public_endpoints(api):
    assert api.health()["status"] == "ok"
    assert [s["state_code"] for s in api.restricted_states()] == ["ID", "OR", "SD"]


def test_transport_failure_is_retryable_dependency_error(tmp_path):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    wholesale = WholesaleClient("http://down.test", transport=httpx.MockTransport(handler))
    with pytest.raises(ApiError) as excinfo:
        wholesale.restricted_states()
    assert excinfo.value.status == 0
    assert excinfo.value.kind == "dependency"
    assert excinfo.value.retryable is True
