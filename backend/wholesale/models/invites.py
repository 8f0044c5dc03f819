from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z


class InviteCode(db.Model):
    """
    Single-use invitation code gating membership applications.

    Lifecycle is available -> used, exactly once, in the same transaction
    that creates the applicant.
    """
    __tablename__ = "invite_codes"
    __table_args__ = (
        db.Index("ix_invite_codes_created_by", "created_by"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    status = db.Column(db.String(16), nullable=False, default="available", index=True)

    # Issuer: an admin batch or a member referral
    created_by = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    created_by_admin = db.Column(db.Boolean, nullable=False, default=False)

    used_by = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    used_by_member = db.relationship("Member", foreign_keys=[used_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "created_by": self.created_by,
            "created_by_admin": self.created_by_admin,
            "used_by": self.used_by,
            "used_by_name": self.used_by_member.full_name if self.used_by_member else None,
            "used_at": to_utc_z(self.used_at),
            "created_at": to_utc_z(self.created_at),
        }
