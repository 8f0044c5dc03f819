# Overview: Product catalog reads per audience and compliance-checked writes.

"""
Catalog service.

Visibility:
- members: status=active and farm_bill_compliant
- admins: everything
- public: active + featured + compliant, rendered without price or stock

Writes go through ProductPatch, which keeps "field absent" and "field set
to null" apart: absent fields are left untouched, explicit nulls clear a
nullable column.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Product
from ..models.catalog import DEFAULT_COMPLIANCE_STATEMENT
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_product,
    json_object,
    normalize_state_list,
    validate_payload,
)
from wholesale.time_utils import utcnow

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "product_name", "product_type", "product_category", "status",
        "cultivation_method", "cultivation_location",
        "delta9_thc_pct", "thca_pct", "cbd_pct",
        "farm_bill_compliant", "compliance_statement",
        "price_per_lb", "price_5lb", "price_10lb", "inventory_lbs",
        "featured", "display_order",
        "short_description", "long_description", "product_image_url",
        "restricted_states",
    },
    required_on_create={"sku", "product_name", "price_per_lb"},
)

PRODUCT_STATUSES = ("active", "inactive")


@dataclass
class ProductPatch:
    """Validated product write. Only keys in `values` were sent by the client."""
    values: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict | None, *, partial: bool) -> "ProductPatch":
        payload = dict(json_object(payload))

        # restricted_states arrives as a list; the column stores CSV
        states_sent = "restricted_states" in payload
        states = payload.pop("restricted_states", None)

        values = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
        if states_sent:
            values["restricted_states"] = normalize_state_list(states)

        if "sku" in values and values["sku"] is not None:
            values["sku"] = values["sku"].upper()
        if "status" in values and values["status"] not in PRODUCT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(PRODUCT_STATUSES)}")

        enforce_rules_product(values)
        return cls(values=values)

    def has(self, name: str) -> bool:
        return name in self.values

    def get(self, name: str, default=None):
        return self.values.get(name, default)

    def apply_to(self, product: Product) -> None:
        for key, value in self.values.items():
            setattr(product, key, value)


def _member_visible(query):
    return query.filter(Product.status == "active", Product.farm_bill_compliant.is_(True))


def _ordered(query):
    return query.order_by(Product.display_order.asc(), Product.product_name.asc(), Product.id.asc())


def list_for_member() -> list[Product]:
    return _ordered(_member_visible(db.session.query(Product))).all()


def list_for_admin() -> list[Product]:
    return _ordered(db.session.query(Product)).all()


def list_public() -> list[dict]:
    rows = _ordered(
        _member_visible(db.session.query(Product)).filter(Product.featured.is_(True))
    ).all()
    return [p.to_public_dict() for p in rows]


def get_product(product_id: int, principal) -> Product:
    query = db.session.query(Product).filter(Product.id == product_id)
    if not principal.is_admin:
        query = _member_visible(query)
    product = query.first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _flush_or_conflict(sku: str | None) -> None:
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"SKU already exists: {sku}")


def create_product(patch: ProductPatch) -> Product:
    sku = patch.get("sku")
    if db.session.query(Product.id).filter_by(sku=sku).first() is not None:
        raise ConflictError(f"SKU already exists: {sku}")

    product = Product(
        status="active",
        farm_bill_compliant=True,
        featured=False,
        display_order=0,
        compliance_statement=DEFAULT_COMPLIANCE_STATEMENT,
        created_at=utcnow(),
    )
    patch.apply_to(product)
    db.session.add(product)
    _flush_or_conflict(sku)
    db.session.commit()
    return product


def update_product(product_id: int, patch: ProductPatch) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    if patch.has("sku") and patch.get("sku") != product.sku:
        clash = (
            db.session.query(Product.id)
            .filter(Product.sku == patch.get("sku"), Product.id != product_id)
            .first()
        )
        if clash is not None:
            raise ConflictError(f"SKU already exists: {patch.get('sku')}")

    patch.apply_to(product)
    product.updated_at = utcnow()
    _flush_or_conflict(product.sku)
    db.session.commit()
    return product


def delete_product(product_id: int) -> Product:
    """Soft delete: historical order items keep pointing at the row."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    product.status = "inactive"
    product.updated_at = utcnow()
    db.session.commit()
    return product
