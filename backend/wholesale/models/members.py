from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z

MEMBER_STATUSES = ("pending", "active", "suspended", "denied", "canceled")


class Member(db.Model):
    """
    Wholesale member account (applicant until approved).

    Email is globally unique and stored lower-case. Status changes are
    admin-driven; only the initial "pending" is set at creation.
    """
    __tablename__ = "members"
    __table_args__ = (
        db.Index("ix_members_status_applied", "status", "applied_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Application fields
    full_name = db.Column(db.String(255), nullable=False)
    business_name = db.Column(db.String(255), nullable=False)
    business_type = db.Column(db.String(64), nullable=True)
    license_number = db.Column(db.String(128), nullable=True)
    ein = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(32), nullable=False)

    # Billing address
    street = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(128), nullable=False)
    state = db.Column(db.String(2), nullable=False)
    zip = db.Column(db.String(10), nullable=False)

    # Shipping address (optional; falls back to billing)
    ship_street = db.Column(db.String(255), nullable=True)
    ship_city = db.Column(db.String(128), nullable=True)
    ship_state = db.Column(db.String(2), nullable=True)
    ship_zip = db.Column(db.String(10), nullable=True)

    invite_code_used = db.Column(db.String(32), nullable=False)
    invited_by = db.Column(db.String(255), nullable=True)
    how_heard = db.Column(db.String(255), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    personal_ref_code = db.Column(db.String(32), nullable=False, unique=True)

    # Lifecycle: pending, active, suspended, denied, canceled
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    status_reason = db.Column(db.String(500), nullable=True)

    # "Allowed to transact" flag; set on approval, cleared on suspend/cancel
    monthly_active = db.Column(db.Boolean, nullable=False, default=False)
    app_fee_paid = db.Column(db.Boolean, nullable=False, default=False)
    payment_method = db.Column(db.String(32), nullable=True)

    applied_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def shipping_state(self) -> str:
        return self.ship_state or self.state

    def to_summary(self) -> dict:
        """Admin listing row."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "business_name": self.business_name,
            "email": self.email,
            "state": self.state,
            "invite_code_used": self.invite_code_used,
            "status": self.status,
            "app_fee_paid": self.app_fee_paid,
            "monthly_active": self.monthly_active,
            "applied_at": to_utc_z(self.applied_at),
            "approved_at": to_utc_z(self.approved_at),
        }

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update({
            "business_type": self.business_type,
            "license_number": self.license_number,
            "ein": self.ein,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "zip": self.zip,
            "ship_street": self.ship_street,
            "ship_city": self.ship_city,
            "ship_state": self.ship_state,
            "ship_zip": self.ship_zip,
            "invited_by": self.invited_by,
            "how_heard": self.how_heard,
            "personal_ref_code": self.personal_ref_code,
            "status_reason": self.status_reason,
            "payment_method": self.payment_method,
            "updated_at": to_utc_z(self.updated_at),
        })
        return data


class Admin(db.Model):
    """
    Back-office administrator.

    Separate namespace from Member; shares the session table through the
    is_admin discriminator on SessionToken.
    """
    __tablename__ = "admins"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }
