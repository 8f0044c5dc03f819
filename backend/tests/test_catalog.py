"""
Product catalog tests.

Verifies:
- members see active + compliant products, admins see everything
- the public list hides prices and stock
- writes enforce the THC cap, non-negative numbers and unique SKUs
- partial updates distinguish omitted fields from explicit nulls
"""

from decimal import Decimal

import pytest

from wholesale.errors import ComplianceError, ValidationError
from wholesale.extensions import db
from wholesale.models import Product
from wholesale.services.catalog_service import ProductPatch

from conftest import auth_headers, create_member_row, create_product_row, get_auth_token


def _new_product(**overrides):
    data = {
        "sku": "hlf-sour-01",
        "product_name": "Sour Space Candy",
        "product_type": "flower",
        "delta9_thc_pct": 0.25,
        "price_per_lb": "850.00",
        "price_5lb": 800,
        "restricted_states": ["tx", "ca"],
    }
    data.update(overrides)
    return data


class TestVisibility:

    def test_member_sees_only_active_compliant(self, client, member_headers):
        create_product_row(product_name="Visible")
        create_product_row(product_name="Hidden", status="inactive")
        create_product_row(product_name="Noncompliant", farm_bill_compliant=False)

        resp = client.get("/api/products", headers=member_headers)
        assert resp.status_code == 200
        assert [p["product_name"] for p in resp.json] == ["Visible"]
        assert resp.json[0]["price_per_lb"] == "1000.00"

    def test_admin_sees_all(self, client, admin_headers):
        create_product_row()
        create_product_row(status="inactive")
        assert len(client.get("/api/products", headers=admin_headers).json) == 2

    def test_catalog_ordering(self, client, member_headers):
        create_product_row(product_name="Zeta", display_order=1)
        create_product_row(product_name="Beta", display_order=2)
        create_product_row(product_name="Alpha", display_order=2)
        names = [p["product_name"] for p in client.get("/api/products", headers=member_headers).json]
        assert names == ["Zeta", "Alpha", "Beta"]

    def test_suspended_member_cannot_browse(self, client, db_session):
        create_product_row()
        suspended = create_member_row(status="suspended")
        headers = auth_headers(get_auth_token(client, suspended.email))
        assert client.get("/api/products", headers=headers).status_code == 403

    def test_catalog_requires_auth(self, client, db_session):
        assert client.get("/api/products").status_code == 401

    def test_public_list_hides_price_and_stock(self, client, db_session):
        create_product_row(product_name="Featured", featured=True, inventory_lbs=Decimal("40"))
        create_product_row(product_name="Plain")
        create_product_row(product_name="Featured but off", featured=True, status="inactive")

        resp = client.get("/api/products/public")
        assert resp.status_code == 200
        assert [p["product_name"] for p in resp.json] == ["Featured"]
        assert "price_per_lb" not in resp.json[0]
        assert "inventory_lbs" not in resp.json[0]

    def test_member_cannot_fetch_inactive_product(self, client, member_headers, admin_headers):
        hidden = create_product_row(status="inactive")
        assert client.get(f"/api/products/{hidden.id}", headers=member_headers).status_code == 404
        assert client.get(f"/api/products/{hidden.id}", headers=admin_headers).status_code == 200


class TestWrites:

    def test_create_product(self, client, admin_headers):
        resp = client.post("/api/products", json=_new_product(), headers=admin_headers)
        assert resp.status_code == 201
        body = resp.json
        assert body["sku"] == "HLF-SOUR-01"
        assert body["price_per_lb"] == "850.00"
        assert body["price_5lb"] == "800.00"
        assert body["delta9_thc_pct"] == "0.250"
        assert body["restricted_states"] == ["TX", "CA"]
        assert body["status"] == "active"
        assert body["farm_bill_compliant"] is True
        assert "Farm Bill" in body["compliance_statement"]

    def test_thc_over_cap_is_compliance_error(self, client, admin_headers):
        resp = client.post("/api/products", json=_new_product(delta9_thc_pct="0.31"), headers=admin_headers)
        assert resp.status_code == 422
        assert resp.json["kind"] == "compliance"
        assert db.session.query(Product).count() == 0

    def test_thc_at_cap_is_allowed(self, client, admin_headers):
        resp = client.post("/api/products", json=_new_product(delta9_thc_pct="0.3"), headers=admin_headers)
        assert resp.status_code == 201

    @pytest.mark.parametrize(
        "field,value",
        [
            ("price_per_lb", -1),
            ("price_10lb", "-0.01"),
            ("inventory_lbs", -5),
            ("cbd_pct", -1),
            ("thca_pct", 101),
            ("price_per_lb", "abc"),
            ("display_order", 1.5),
            ("featured", "maybe"),
        ],
    )
    def test_invalid_values(self, client, admin_headers, field, value):
        resp = client.post("/api/products", json=_new_product(**{field: value}), headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_required(self, client, admin_headers):
        data = _new_product()
        del data["price_per_lb"]
        resp = client.post("/api/products", json=data, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_field_rejected(self, client, admin_headers):
        resp = client.post("/api/products", json=_new_product(id=7), headers=admin_headers)
        assert resp.status_code == 400

    def test_bad_restricted_state(self, client, admin_headers):
        resp = client.post("/api/products", json=_new_product(restricted_states=["Texas"]), headers=admin_headers)
        assert resp.status_code == 400

    def test_duplicate_sku(self, client, admin_headers):
        create_product_row(sku="HLF-SOUR-01")
        resp = client.post("/api/products", json=_new_product(), headers=admin_headers)
        assert resp.status_code == 409

    def test_member_cannot_write(self, client, member_headers):
        resp = client.post("/api/products", json=_new_product(), headers=member_headers)
        assert resp.status_code == 403

    @pytest.mark.parametrize("body", ["abc", ["sku", "HLF-SOUR-01"], 42])
    def test_non_object_json_body(self, client, admin_headers, body):
        resp = client.post("/api/products", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["kind"] == "validation"
        assert resp.json["error"] == "Invalid JSON payload"
        assert db.session.query(Product).count() == 0


class TestUpdates:

    def test_partial_update_leaves_omitted_fields(self, client, admin_headers):
        row = create_product_row(short_description="Dense buds", inventory_lbs=Decimal("20"))
        resp = client.put(f"/api/products/{row.id}", json={"price_per_lb": "950"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["price_per_lb"] == "950.00"
        assert resp.json["short_description"] == "Dense buds"
        assert resp.json["inventory_lbs"] == "20.00"
        assert resp.json["updated_at"] is not None

    def test_explicit_null_clears_nullable_field(self, client, admin_headers):
        row = create_product_row(inventory_lbs=Decimal("20"), short_description="Dense buds")
        resp = client.put(
            f"/api/products/{row.id}",
            json={"inventory_lbs": None, "short_description": None},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["inventory_lbs"] is None
        assert resp.json["short_description"] is None

    def test_null_required_field_rejected(self, client, admin_headers):
        row = create_product_row()
        resp = client.put(f"/api/products/{row.id}", json={"price_per_lb": None}, headers=admin_headers)
        assert resp.status_code == 400

    def test_update_thc_over_cap(self, client, admin_headers):
        row = create_product_row()
        resp = client.put(f"/api/products/{row.id}", json={"delta9_thc_pct": 0.5}, headers=admin_headers)
        assert resp.status_code == 422
        assert db.session.get(Product, row.id).delta9_thc_pct == Decimal("0.200")

    def test_update_sku_clash(self, client, admin_headers):
        create_product_row(sku="TAKEN")
        row = create_product_row()
        resp = client.put(f"/api/products/{row.id}", json={"sku": "taken"}, headers=admin_headers)
        assert resp.status_code == 409

    def test_update_unknown_product(self, client, admin_headers):
        assert client.put("/api/products/9999", json={"featured": True}, headers=admin_headers).status_code == 404

    def test_delete_is_soft(self, client, admin_headers, member_headers):
        row = create_product_row()
        resp = client.delete(f"/api/products/{row.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["product"]["status"] == "inactive"
        assert db.session.get(Product, row.id) is not None
        assert client.get("/api/products", headers=member_headers).json == []


class TestProductPatch:

    def test_absent_and_null_are_distinct(self):
        patch = ProductPatch.from_payload({"short_description": None}, partial=True)
        assert patch.has("short_description")
        assert not patch.has("long_description")

    def test_compliance_checked_before_storage(self):
        with pytest.raises(ComplianceError):
            ProductPatch.from_payload({"delta9_thc_pct": "1.0"}, partial=True)

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            ProductPatch.from_payload({"status": "archived"}, partial=True)

    def test_non_dict_payload(self):
        with pytest.raises(ValidationError):
            ProductPatch.from_payload("abc", partial=True)

    def test_missing_body_is_empty_patch(self):
        assert ProductPatch.from_payload(None, partial=True).values == {}
