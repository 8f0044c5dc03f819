# Overview: Notification outbox; enqueue inside business transactions, deliver after commit.

"""
Best-effort notification outbox.

Business services call the notify_* helpers while their transaction is
open; rows land in `notifications` with status=pending and commit (or roll
back) together with the change that caused them. After commit the service
hands the rows to `after_commit()`, which delivers them immediately when
NOTIFICATION_DISPATCH=inline. Anything left pending is drained by
`flask notifications dispatch`.

Delivery never raises. A failed send bumps `attempts`, records
`last_error`, and after MAX_ATTEMPTS moves the row to `dead`.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Member, Notification, Order
from .notifiers import get_sender
from wholesale.time_utils import utcnow

MAX_ATTEMPTS = 5

ORDER_STATUS_MESSAGES = {
    "approved": ("Order Approved", "Your order has been approved. Payment instructions will follow."),
    "processing": ("Order Processing", "Your order is being processed and prepared for shipment."),
    "shipped": ("Order Shipped", "Your order has been shipped. Tracking information will follow separately."),
    "delivered": ("Order Delivered", "Your order has been delivered. Thank you for your business!"),
    "canceled": ("Order Canceled", "Your order has been canceled."),
}


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def enqueue(template: str, recipient: str, subject: str, body: str) -> Notification:
    """Add an outbox row to the current transaction. Caller commits."""
    row = Notification(
        template=template,
        recipient=recipient,
        subject=subject[:255],
        body=body,
        status="pending",
        attempts=0,
        created_at=utcnow(),
    )
    db.session.add(row)
    return row


# =============================================================================
# Templates
# =============================================================================

def notify_admin_new_application(member: Member) -> Notification:
    body = "\n".join([
        "A new membership application requires review.",
        "",
        f"Name: {member.full_name}",
        f"Business: {member.business_name}",
        f"Email: {member.email}",
        f"State: {member.state}",
        f"Invite code: {member.invite_code_used}",
        f"App fee paid: {'Yes' if member.app_fee_paid else 'Not yet'}",
    ])
    return enqueue(
        "admin_new_application",
        current_app.config["ADMIN_EMAIL"],
        f"New Application: {member.full_name} ({member.business_name})",
        body,
    )


def notify_member_approved(member: Member) -> Notification:
    body = "\n".join([
        f"Hi {member.full_name},",
        "",
        "Your Hemp Life Farmers membership application has been approved.",
        "You can now log in to the wholesale catalog and place orders.",
        f"Your personal referral code: {member.personal_ref_code}",
    ])
    return enqueue(
        "member_approved",
        member.email,
        "Your Hemp Life Farmers Membership is Approved!",
        body,
    )


def notify_member_denied(member: Member, reason: str | None = None) -> Notification:
    lines = [
        f"Hi {member.full_name},",
        "",
        "We are unable to approve your membership application at this time.",
    ]
    if reason:
        lines.append(f"Reason: {reason}")
    lines.append("If you believe this was in error, please contact us.")
    return enqueue(
        "member_denied",
        member.email,
        "Hemp Life Farmers - Application Update",
        "\n".join(lines),
    )


def _item_lines(order: Order) -> list[str]:
    return [
        f"- {item.product_name}: {item.quantity_lbs} lb = {_money(item.subtotal)}"
        for item in order.items
    ]


def notify_order_submitted(order: Order, member: Member) -> list[Notification]:
    items = _item_lines(order)
    member_body = "\n".join([
        f"Hi {member.full_name},",
        "",
        f"Your order {order.order_number} has been submitted for review.",
        *items,
        f"Total: {_money(order.total)}",
        f"Payment method: {order.payment_method or 'n/a'}",
    ])
    admin_body = "\n".join([
        f"Member: {member.full_name} ({member.business_name})",
        f"Email: {member.email}",
        f"Ship to: {order.ship_state}",
        f"Payment: {order.payment_method or 'n/a'}",
        *items,
        f"Total: {_money(order.total)}",
    ])
    return [
        enqueue(
            "order_submitted_member",
            member.email,
            f"Order {order.order_number} Submitted - Pending Review",
            member_body,
        ),
        enqueue(
            "order_submitted_admin",
            current_app.config["ADMIN_EMAIL"],
            f"New Order: {order.order_number} - {_money(order.total)}",
            admin_body,
        ),
    ]


def notify_order_status_change(order: Order, member: Member, new_status: str) -> Notification:
    title, message = ORDER_STATUS_MESSAGES.get(
        new_status, ("Order Update", f"Your order status has been updated to: {new_status}")
    )
    body = "\n".join([
        f"Hi {member.full_name},",
        "",
        f"Order {order.order_number}: {message}",
        f"Total: {_money(order.total)}",
    ])
    return enqueue("order_status_change", member.email, f"{title} - {order.order_number}", body)


def notify_payment_reminder(member: Member) -> Notification:
    body = "\n".join([
        f"Hi {member.full_name},",
        "",
        "Your monthly membership fee is due. Please submit payment to keep wholesale access active.",
        f"Method on file: {member.payment_method or 'ACH'}",
        "Missed payments result in membership suspension.",
    ])
    return enqueue(
        "payment_reminder",
        member.email,
        "Hemp Life Farmers - Monthly Membership Payment Due",
        body,
    )


# =============================================================================
# Delivery
# =============================================================================

def _deliver(row: Notification, sender) -> bool:
    row.attempts = (row.attempts or 0) + 1
    row.last_attempt_at = utcnow()
    try:
        sender.send(row.recipient, row.subject, row.body)
    except Exception as exc:  # sender is an external collaborator
        row.last_error = str(exc)[:500]
        if row.attempts >= MAX_ATTEMPTS:
            row.status = "dead"
            current_app.logger.error(
                "Notification %s (%s -> %s) dead after %s attempts: %s",
                row.id, row.template, row.recipient, row.attempts, exc,
            )
        else:
            current_app.logger.warning(
                "Notification %s (%s -> %s) attempt %s failed: %s",
                row.id, row.template, row.recipient, row.attempts, exc,
            )
        return False

    row.status = "sent"
    row.sent_at = utcnow()
    row.last_error = None
    current_app.logger.info("Notification %s sent (%s -> %s)", row.id, row.template, row.recipient)
    return True


def dispatch_pending(*, ids: list[int] | None = None, limit: int | None = None) -> dict:
    """
    Deliver pending outbox rows (optionally only `ids`).

    Returns counts {"sent", "failed", "dead"}. Storage errors are logged
    and rolled back, never raised.
    """
    summary = {"sent": 0, "failed": 0, "dead": 0}
    sender = get_sender()

    try:
        query = db.session.query(Notification).filter(Notification.status == "pending")
        if ids is not None:
            if not ids:
                return summary
            query = query.filter(Notification.id.in_(ids))
        query = query.order_by(Notification.id.asc())
        if limit:
            query = query.limit(limit)

        for row in query.all():
            if _deliver(row, sender):
                summary["sent"] += 1
            elif row.status == "dead":
                summary["dead"] += 1
            else:
                summary["failed"] += 1
            db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Notification dispatch aborted by storage error")

    return summary


def after_commit(rows) -> None:
    """Deliver freshly committed rows when dispatch mode is inline."""
    if current_app.config.get("NOTIFICATION_DISPATCH", "inline") != "inline":
        return
    if isinstance(rows, Notification):
        rows = [rows]
    ids = [row.id for row in rows if row is not None and row.id is not None]
    dispatch_pending(ids=ids)


def list_notifications(status: str | None = None, limit: int = 50) -> list[Notification]:
    query = db.session.query(Notification)
    if status:
        query = query.filter(Notification.status == status)
    return query.order_by(Notification.id.desc()).limit(limit).all()


def send_payment_reminders() -> int:
    """Enqueue a monthly-fee reminder for every active member."""
    members = (
        db.session.query(Member)
        .filter(Member.status == "active")
        .order_by(Member.id.asc())
        .all()
    )
    rows = [notify_payment_reminder(member) for member in members]
    db.session.commit()
    after_commit(rows)
    return len(rows)
