# Overview: Membership applications and the admin-driven member status machine.

"""
Membership lifecycle.

    pending   -> active | denied
    active    -> suspended | canceled
    suspended -> active | canceled

denied and canceled are terminal. Only admins move members between states;
the initial pending is set by apply_for_membership().
"""

from __future__ import annotations

import secrets
import string

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ComplianceError, ConflictError, NotFoundError, ValidationError
from ..models import InviteCode, Member, Order, RestrictedState
from . import invite_service, notification_service, session_service
from .auth_service import hash_password, validate_password_strength
from wholesale.time_utils import utcnow

MEMBER_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"active", "denied"},
    "active": {"suspended", "canceled"},
    "suspended": {"active", "canceled"},
    "denied": set(),
    "canceled": set(),
}

ADMIN_TARGET_STATUSES = ("active", "suspended", "denied", "canceled")

# Entering these states ends every open session of the member
SESSION_ENDING_STATUSES = {"suspended", "canceled", "denied"}

REQUIRED_APPLICATION_FIELDS = (
    "full_name", "business_name", "email", "phone",
    "street", "city", "state", "zip",
    "invite_code", "password",
)

OPTIONAL_APPLICATION_FIELDS = (
    "business_type", "license_number", "ein",
    "ship_street", "ship_city", "ship_state", "ship_zip",
    "invited_by", "how_heard",
)

REF_CODE_PREFIX = "HLF-REF-"
REF_CODE_ALPHABET = string.ascii_uppercase + string.digits
REF_CODE_ATTEMPTS = 10


def is_restricted_state(state_code: str | None) -> bool:
    if not state_code:
        return False
    return db.session.get(RestrictedState, state_code.strip().upper()) is not None


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _generate_ref_code() -> str:
    for _ in range(REF_CODE_ATTEMPTS):
        code = REF_CODE_PREFIX + "".join(secrets.choice(REF_CODE_ALPHABET) for _ in range(6))
        if db.session.query(Member.id).filter_by(personal_ref_code=code).first() is None:
            return code
    raise ConflictError("Could not allocate a referral code, try again")


def apply_for_membership(fields: dict | None) -> Member:
    """
    Create a pending member and redeem the invite code in one transaction.

    Checks, in order: required fields, password length, restricted state,
    invite availability, duplicate email. Nothing is written until they all
    pass. Losing an invite-code race raises ConflictError and persists
    nothing.
    """
    if not isinstance(fields, dict):
        raise ValidationError("Invalid JSON payload")

    data = {key: _clean(fields.get(key)) for key in REQUIRED_APPLICATION_FIELDS + OPTIONAL_APPLICATION_FIELDS}
    # Passwords are taken verbatim
    data["password"] = fields.get("password") if isinstance(fields.get("password"), str) else None

    missing = [key for key in REQUIRED_APPLICATION_FIELDS if not data.get(key)]
    if missing:
        raise ValidationError("Missing required fields", details={"missing": missing})

    validate_password_strength(data["password"])

    state = data["state"].upper()
    ship_state = data["ship_state"].upper() if data["ship_state"] else None
    if len(state) != 2 or (ship_state is not None and len(ship_state) != 2):
        raise ValidationError("State must be a two-letter code")

    if is_restricted_state(state):
        raise ComplianceError(
            f"Applications from {state} are not accepted. "
            "State-level restrictions prevent us from doing business there.",
            details={"state": state},
        )

    invite_code = invite_service.normalize_code(data["invite_code"])
    if not invite_service.validate_code(invite_code)["valid"]:
        raise ValidationError("Invalid or already used invitation code")

    email = data["email"].lower()
    if db.session.query(Member.id).filter_by(email=email).first() is not None:
        raise ConflictError("An account with this email already exists")

    member = Member(
        full_name=data["full_name"],
        business_name=data["business_name"],
        business_type=data["business_type"],
        license_number=data["license_number"],
        ein=data["ein"],
        email=email,
        phone=data["phone"],
        street=data["street"],
        city=data["city"],
        state=state,
        zip=data["zip"],
        ship_street=data["ship_street"],
        ship_city=data["ship_city"],
        ship_state=ship_state,
        ship_zip=data["ship_zip"],
        invite_code_used=invite_code,
        invited_by=data["invited_by"],
        how_heard=data["how_heard"],
        password_hash=hash_password(data["password"]),
        personal_ref_code=_generate_ref_code(),
        status="pending",
        monthly_active=False,
        app_fee_paid=False,
        applied_at=utcnow(),
    )

    try:
        db.session.add(member)
        db.session.flush()
        invite_service.redeem_code(invite_code, member.id)
        note = notification_service.notify_admin_new_application(member)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("An account with this email already exists")
    except ConflictError:
        db.session.rollback()
        raise

    notification_service.after_commit([note])
    return member


def get_member(member_id: int) -> Member:
    member = db.session.get(Member, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    return member


def list_members(status: str | None = None, search: str | None = None) -> list[Member]:
    query = db.session.query(Member)
    if status and status != "all":
        query = query.filter(Member.status == status)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            db.func.lower(Member.full_name).like(pattern),
            db.func.lower(Member.email).like(pattern),
            db.func.lower(Member.business_name).like(pattern),
        ))
    return query.order_by(Member.applied_at.desc(), Member.id.desc()).all()


def change_status(member_id: int, new_status: str, reason: str | None = None) -> Member:
    """
    Admin-driven member transition with its side effects.

    active stamps approved_at and enables transacting; suspended/canceled
    disable it; suspended/canceled/denied end the member's sessions.
    Approval and denial enqueue a member e-mail.
    """
    if new_status not in ADMIN_TARGET_STATUSES:
        raise ValidationError(
            "Invalid status",
            details={"allowed": list(ADMIN_TARGET_STATUSES)},
        )

    member = get_member(member_id)

    if new_status not in MEMBER_TRANSITIONS.get(member.status, set()):
        raise ValidationError(
            f"Invalid transition: {member.status} -> {new_status}",
            details={"from": member.status, "to": new_status},
        )

    now = utcnow()
    member.status = new_status
    member.status_reason = _clean(reason)
    member.updated_at = now

    if new_status == "active":
        member.approved_at = now
        member.monthly_active = True
    elif new_status in ("suspended", "canceled"):
        member.monthly_active = False

    if new_status in SESSION_ENDING_STATUSES:
        session_service.destroy_principal_sessions(member.id, is_admin=False)

    notes = []
    if new_status == "active":
        notes.append(notification_service.notify_member_approved(member))
    elif new_status == "denied":
        notes.append(notification_service.notify_member_denied(member, member.status_reason))

    db.session.commit()
    notification_service.after_commit(notes)
    return member


def delete_member(member_id: int) -> None:
    """Remove a member with no order history, along with their sessions."""
    member = get_member(member_id)

    if db.session.query(Order.id).filter_by(member_id=member.id).first() is not None:
        raise ConflictError("Member has orders and cannot be deleted; cancel the membership instead")

    session_service.destroy_principal_sessions(member.id, is_admin=False)
    db.session.query(InviteCode).filter_by(used_by=member.id).update(
        {"used_by": None}, synchronize_session=False
    )
    db.session.query(InviteCode).filter_by(created_by=member.id).update(
        {"created_by": None}, synchronize_session=False
    )
    db.session.delete(member)
    db.session.commit()
