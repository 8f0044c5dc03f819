"""
Membership application and lifecycle tests.

Verifies:
- applications need every required field, a real invite and an allowed state
- a successful application redeems the invite and notifies the admin inbox
- admin transitions follow the member state machine
- suspension / cancellation ends sessions
"""

import pytest

from wholesale.errors import ConflictError, ValidationError
from wholesale.extensions import db
from wholesale.models import InviteCode, Member, Notification, Order, SessionToken
from wholesale.services import invite_service, membership_service

from conftest import PASSWORD, auth_headers, create_member_row, create_product_row, get_auth_token


def _application(code, **overrides):
    data = {
        "full_name": "Jamie Grower",
        "business_name": "Sunrise Smoke Shop",
        "email": "Jamie@Example.com",
        "phone": "555-0111",
        "street": "12 Main St",
        "city": "Denver",
        "state": "co",
        "zip": "80202",
        "invite_code": code,
        "password": PASSWORD,
        "how_heard": "Trade show",
    }
    data.update(overrides)
    return data


@pytest.fixture
def invite(db_session):
    return invite_service.generate_admin_codes(1)[0]


class TestApply:

    def test_successful_application(self, client, sender, invite):
        resp = client.post("/api/members/apply", json=_application(invite.lower()))
        assert resp.status_code == 201
        assert resp.json["success"] is True

        member = db.session.get(Member, resp.json["memberId"])
        assert member.status == "pending"
        assert member.email == "jamie@example.com"
        assert member.state == "CO"
        assert member.invite_code_used == invite
        assert member.personal_ref_code.startswith("HLF-REF-")
        assert member.password_hash != PASSWORD

        row = db.session.query(InviteCode).filter_by(code=invite).one()
        assert row.status == "used"
        assert row.used_by == member.id

        assert sender.sent[0]["recipient"] == "ops@hemplifefarmers.test"
        assert "New Application" in sender.sent[0]["subject"]

    def test_missing_fields_are_listed(self, client, invite):
        resp = client.post("/api/members/apply", json=_application(invite, phone="", zip=None))
        assert resp.status_code == 400
        assert set(resp.json["details"]["missing"]) == {"phone", "zip"}

    def test_short_password(self, client, invite):
        resp = client.post("/api/members/apply", json=_application(invite, password="short"))
        assert resp.status_code == 400

    def test_password_over_bcrypt_limit(self, client, invite):
        resp = client.post("/api/members/apply", json=_application(invite, password="x" * 80))
        assert resp.status_code == 400
        assert resp.json["kind"] == "validation"
        assert "72 bytes" in resp.json["error"]
        assert db.session.query(Member).count() == 0
        assert invite_service.validate_code(invite)["valid"] is True

    def test_multibyte_password_counts_bytes(self, client, invite):
        # 30 characters, 90 bytes in UTF-8
        resp = client.post("/api/members/apply", json=_application(invite, password="\u20ac" * 30))
        assert resp.status_code == 400

    def test_list_body_is_rejected(self, client, invite):
        resp = client.post("/api/members/apply", json=[_application(invite)])
        assert resp.status_code == 400
        assert resp.json["kind"] == "validation"

    def test_restricted_state_is_compliance_error(self, client, invite):
        resp = client.post("/api/members/apply", json=_application(invite, state="ID"))
        assert resp.status_code == 422
        assert resp.json["kind"] == "compliance"
        assert db.session.query(Member).count() == 0
        assert invite_service.validate_code(invite)["valid"] is True

    def test_unknown_invite(self, client, db_session):
        resp = client.post("/api/members/apply", json=_application("HLF-INV-0000"))
        assert resp.status_code == 400
        assert "invitation code" in resp.json["error"]

    def test_used_invite_is_rejected(self, client, invite):
        assert client.post("/api/members/apply", json=_application(invite)).status_code == 201
        resp = client.post(
            "/api/members/apply",
            json=_application(invite, email="other@example.com"),
        )
        assert resp.status_code == 400
        assert db.session.query(Member).count() == 1

    def test_duplicate_email_keeps_invite_available(self, client, invite, db_session):
        create_member_row(email="jamie@example.com")
        resp = client.post("/api/members/apply", json=_application(invite))
        assert resp.status_code == 409
        assert invite_service.validate_code(invite)["valid"] is True

    def test_non_json_body(self, client, db_session):
        resp = client.post("/api/members/apply", data="nope", content_type="text/plain")
        assert resp.status_code == 400

    def test_redemption_race_loser_persists_nothing(self, db_session, invite, monkeypatch):
        def lose_race(code, member_id):
            raise ConflictError("Invite code is no longer available")

        monkeypatch.setattr(invite_service, "redeem_code", lose_race)
        with pytest.raises(ConflictError):
            membership_service.apply_for_membership(_application(invite))
        assert db.session.query(Member).count() == 0
        assert db.session.query(Notification).count() == 0


class TestStatusChanges:

    def test_approve_pending_member(self, client, admin_headers, sender, db_session):
        pending = create_member_row(status="pending")
        resp = client.patch(
            f"/api/members/{pending.id}/status",
            json={"status": "active"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["member"]["status"] == "active"
        assert resp.json["member"]["approved_at"] is not None
        assert resp.json["member"]["monthly_active"] is True
        assert "Approved" in sender.templates_to(pending.email)[0]

    def test_deny_with_reason(self, client, admin_headers, sender, db_session):
        pending = create_member_row(status="pending")
        resp = client.patch(
            f"/api/members/{pending.id}/status",
            json={"status": "denied", "reason": "Incomplete license"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["member"]["status_reason"] == "Incomplete license"
        assert "Incomplete license" in sender.sent[-1]["body"]

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "suspended"),
            ("denied", "active"),
            ("canceled", "active"),
            ("active", "denied"),
            ("active", "active"),
        ],
    )
    def test_invalid_transitions(self, db_session, current, target):
        row = create_member_row(status=current)
        with pytest.raises(ValidationError):
            membership_service.change_status(row.id, target)

    def test_unknown_status_value(self, client, admin_headers, member):
        resp = client.patch(
            f"/api/members/{member.id}/status",
            json={"status": "pending"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_suspension_ends_sessions(self, client, admin_headers, member):
        token = get_auth_token(client, member.email)
        client.patch(
            f"/api/members/{member.id}/status",
            json={"status": "suspended"},
            headers=admin_headers,
        )
        assert db.session.query(SessionToken).filter_by(principal_id=member.id, is_admin=False).count() == 0
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
        assert db.session.get(Member, member.id).monthly_active is False

    def test_reactivate_suspended(self, db_session):
        row = create_member_row(status="suspended", monthly_active=False)
        updated = membership_service.change_status(row.id, "active")
        assert updated.status == "active"
        assert updated.monthly_active is True

    def test_member_cannot_change_status(self, client, member, member_headers):
        resp = client.patch(
            f"/api/members/{member.id}/status",
            json={"status": "canceled"},
            headers=member_headers,
        )
        assert resp.status_code == 403


class TestAdminViews:

    def test_list_filters_and_search(self, client, admin_headers, db_session):
        create_member_row(status="pending", business_name="Alpha Farms")
        create_member_row(status="active", business_name="Beta Botanicals")

        pending = client.get("/api/members?status=pending", headers=admin_headers).json
        assert [m["business_name"] for m in pending] == ["Alpha Farms"]

        found = client.get("/api/members?search=beta", headers=admin_headers).json
        assert [m["business_name"] for m in found] == ["Beta Botanicals"]

        assert len(client.get("/api/members?status=all", headers=admin_headers).json) == 2

    def test_get_member(self, client, admin_headers, member):
        resp = client.get(f"/api/members/{member.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["email"] == member.email
        assert "password_hash" not in resp.json

    def test_get_unknown_member(self, client, admin_headers):
        assert client.get("/api/members/9999", headers=admin_headers).status_code == 404

    def test_delete_member_without_orders(self, client, admin_headers, db_session):
        row = create_member_row(status="denied")
        member_id = row.id
        resp = client.delete(f"/api/members/{member_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(Member, member_id) is None

    def test_delete_member_with_orders_is_conflict(self, client, admin_headers, member, member_headers):
        product = create_product_row()
        client.post(
            "/api/orders",
            json={"items": [{"product_id": product.id, "quantity_lbs": 1}]},
            headers=member_headers,
        )
        assert db.session.query(Order).count() == 1
        resp = client.delete(f"/api/members/{member.id}", headers=admin_headers)
        assert resp.status_code == 409
