from __future__ import annotations

from ..extensions import db
from wholesale.money import decimal_str
from wholesale.time_utils import to_utc_z

# Farm Bill ceiling for Delta-9 THC, percent of dry weight
MAX_DELTA9_THC_PCT = "0.3"

DEFAULT_COMPLIANCE_STATEMENT = (
    "All Hemp Life Farmers products are derived from hemp and contain "
    "<=0.3% Delta-9 THC on a dry-weight basis in compliance with the 2018 Farm Bill."
)


class Product(db.Model):
    """
    Wholesale product with tiered per-pound pricing.

    Pricing tiers: price_per_lb (base), price_5lb (qty >= 5), price_10lb
    (qty >= 10). Tier prices are optional; missing tiers fall back to the
    next lower tier.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_status_order", "status", "display_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    product_type = db.Column(db.String(64), nullable=True)
    product_category = db.Column(db.String(64), nullable=True)

    # active | inactive
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    cultivation_method = db.Column(db.String(64), nullable=True)
    cultivation_location = db.Column(db.String(128), nullable=True)

    # Compliance (percent of dry weight)
    delta9_thc_pct = db.Column(db.Numeric(6, 3), nullable=True)
    thca_pct = db.Column(db.Numeric(6, 3), nullable=True)
    cbd_pct = db.Column(db.Numeric(6, 3), nullable=True)
    farm_bill_compliant = db.Column(db.Boolean, nullable=False, default=True)
    compliance_statement = db.Column(db.Text, nullable=True)

    # Tiered pricing (USD per lb)
    price_per_lb = db.Column(db.Numeric(10, 2), nullable=False)
    price_5lb = db.Column(db.Numeric(10, 2), nullable=True)
    price_10lb = db.Column(db.Numeric(10, 2), nullable=True)

    # NULL means stock is not tracked for this product
    inventory_lbs = db.Column(db.Numeric(12, 2), nullable=True)

    featured = db.Column(db.Boolean, nullable=False, default=False)
    display_order = db.Column(db.Integer, nullable=False, default=0)

    short_description = db.Column(db.String(500), nullable=True)
    long_description = db.Column(db.Text, nullable=True)
    product_image_url = db.Column(db.String(500), nullable=True)

    # Comma separated two-letter state codes this product cannot ship to
    restricted_states = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def restricted_state_codes(self) -> list[str]:
        if not self.restricted_states:
            return []
        return [s for s in self.restricted_states.split(",") if s]

    def to_public_dict(self) -> dict:
        """Non-member view: no pricing, no stock."""
        return {
            "sku": self.sku,
            "product_name": self.product_name,
            "product_type": self.product_type,
            "product_category": self.product_category,
            "cultivation_method": self.cultivation_method,
            "short_description": self.short_description,
            "featured": self.featured,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "product_name": self.product_name,
            "product_type": self.product_type,
            "product_category": self.product_category,
            "status": self.status,
            "cultivation_method": self.cultivation_method,
            "cultivation_location": self.cultivation_location,
            "delta9_thc_pct": decimal_str(self.delta9_thc_pct),
            "thca_pct": decimal_str(self.thca_pct),
            "cbd_pct": decimal_str(self.cbd_pct),
            "farm_bill_compliant": self.farm_bill_compliant,
            "compliance_statement": self.compliance_statement,
            "price_per_lb": decimal_str(self.price_per_lb),
            "price_5lb": decimal_str(self.price_5lb),
            "price_10lb": decimal_str(self.price_10lb),
            "inventory_lbs": decimal_str(self.inventory_lbs),
            "featured": self.featured,
            "display_order": self.display_order,
            "short_description": self.short_description,
            "long_description": self.long_description,
            "product_image_url": self.product_image_url,
            "restricted_states": self.restricted_state_codes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class RestrictedState(db.Model):
    """Jurisdiction where applications and shipments are not accepted."""
    __tablename__ = "restricted_states"

    state_code = db.Column(db.String(2), primary_key=True)
    state_name = db.Column(db.String(64), nullable=True)
    reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "state_code": self.state_code,
            "state_name": self.state_name,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
