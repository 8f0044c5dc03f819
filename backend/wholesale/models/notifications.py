from __future__ import annotations

from ..extensions import db
from wholesale.time_utils import to_utc_z


class Notification(db.Model):
    """
    Outbox row for a best-effort e-mail.

    Written in the same transaction as the change that triggers it, delivered
    after commit. pending -> sent on success; pending -> dead once attempts
    reach the retry ceiling.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    template = db.Column(db.String(64), nullable=False, index=True)
    recipient = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    body = db.Column(db.Text, nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_attempt_at = db.Column(db.DateTime(timezone=True), nullable=True)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "template": self.template,
            "recipient": self.recipient,
            "subject": self.subject,
            "status": self.status,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "created_at": to_utc_z(self.created_at),
            "last_attempt_at": to_utc_z(self.last_attempt_at),
            "sent_at": to_utc_z(self.sent_at),
        }
