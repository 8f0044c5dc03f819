from __future__ import annotations

from ..extensions import db
from wholesale.money import decimal_str
from wholesale.time_utils import to_utc_z


class Order(db.Model):
    """
    Wholesale order document.

    Lifecycle: pending_review -> approved -> processing -> shipped -> delivered,
    with canceled reachable from any non-terminal state. Totals are computed
    once at placement from the tiered price schedule and never recomputed.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_member_created", "member_id", "created_at"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "HLF-0042") from OrderSequence
    order_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending_review", index=True)

    payment_method = db.Column(db.String(32), nullable=True)
    ship_state = db.Column(db.String(2), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    # True while stock for this order is deducted from product inventory
    inventory_reserved = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    canceled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    member = db.relationship("Member", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self, *, include_items: bool = True, include_member: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "member_id": self.member_id,
            "status": self.status,
            "payment_method": self.payment_method,
            "ship_state": self.ship_state,
            "notes": self.notes,
            "subtotal": decimal_str(self.subtotal),
            "total": decimal_str(self.total),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "approved_at": to_utc_z(self.approved_at),
            "shipped_at": to_utc_z(self.shipped_at),
            "delivered_at": to_utc_z(self.delivered_at),
            "canceled_at": to_utc_z(self.canceled_at),
        }
        if include_member and self.member is not None:
            data["member_name"] = self.member.full_name
            data["business_name"] = self.member.business_name
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    Line item snapshot taken at order time.

    sku, product_name and price_per_lb are copied from the product so later
    catalog edits never change a placed order.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    sku = db.Column(db.String(64), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    quantity_lbs = db.Column(db.Numeric(10, 2), nullable=False)
    price_per_lb = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "sku": self.sku,
            "product_name": self.product_name,
            "quantity_lbs": decimal_str(self.quantity_lbs),
            "price_per_lb": decimal_str(self.price_per_lb),
            "subtotal": decimal_str(self.subtotal),
        }


class OrderSequence(db.Model):
    """
    Atomic order-number counter.

    One row per sequence name; next_number is incremented with a single
    UPDATE so concurrent placements never share a number.
    """
    __tablename__ = "order_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
