from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z


class SessionToken(db.Model):
    """
    Bearer session for a member or an admin.

    Only the SHA-256 of the token is stored. principal_id points into
    members or admins depending on is_admin; the flag is the sole
    discriminator used when resolving the principal.
    """
    __tablename__ = "sessions"
    __table_args__ = (
        db.Index("ix_sessions_principal", "principal_id", "is_admin"),
        db.Index("ix_sessions_expires", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    principal_id = db.Column(db.Integer, nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    # Client context for security review
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "principal_id": self.principal_id,
            "is_admin": self.is_admin,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
        }
