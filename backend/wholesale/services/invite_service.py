# Overview: Invite code issuance, validation and single-use redemption.

from __future__ import annotations

import secrets

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import AuthorizationError, ConflictError, NotFoundError
from ..models import InviteCode, Member
from wholesale.time_utils import utcnow

CODE_PREFIX = "HLF-INV-"
MAX_ADMIN_BATCH = 50
MEMBER_CODE_ATTEMPTS = 5


def generate_code() -> str:
    return f"{CODE_PREFIX}{1000 + secrets.randbelow(9000)}"


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def _insert_code(**fields) -> InviteCode | None:
    """
    Insert one code inside a SAVEPOINT.

    Returns None when the code already exists; the outer transaction
    is left intact.
    """
    code = InviteCode(**fields)
    try:
        with db.session.begin_nested():
            db.session.add(code)
    except IntegrityError:
        return None
    return code


def generate_admin_codes(quantity) -> list[str]:
    """
    Mint up to MAX_ADMIN_BATCH admin codes.

    Duplicates are skipped, not retried, so the result may hold fewer
    codes than requested.
    """
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        qty = 1
    qty = max(1, min(qty, MAX_ADMIN_BATCH))

    inserted: list[str] = []
    for _ in range(qty):
        row = _insert_code(code=generate_code(), status="available", created_by_admin=True)
        if row is not None:
            inserted.append(row.code)

    db.session.commit()
    return inserted


def generate_member_code(member_id: int) -> str:
    member = db.session.get(Member, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    if member.status != "active":
        raise AuthorizationError("Active membership required")

    for _ in range(MEMBER_CODE_ATTEMPTS):
        row = _insert_code(
            code=generate_code(),
            status="available",
            created_by=member_id,
            created_by_admin=False,
        )
        if row is not None:
            db.session.commit()
            return row.code

    raise ConflictError("Could not allocate a unique invite code, try again")


def validate_code(code: str | None) -> dict:
    normalized = normalize_code(code)
    row = db.session.query(InviteCode).filter_by(code=normalized).first() if normalized else None
    if row is None:
        return {"valid": False, "reason": "Code not found"}
    if row.status != "available":
        return {"valid": False, "reason": "Code already used"}
    return {"valid": True, "code": row.code}


def redeem_code(code: str, member_id: int) -> None:
    """
    Flip an available code to used, exactly once.

    Conditional UPDATE: when two applicants race on the same code only one
    matches status='available'; the other gets ConflictError. Does not
    commit, the caller owns the transaction.
    """
    stmt = (
        update(InviteCode)
        .where(InviteCode.code == normalize_code(code), InviteCode.status == "available")
        .values(status="used", used_by=member_id, used_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount != 1:
        raise ConflictError("Invite code is no longer available")


def list_codes(principal) -> list[dict]:
    query = db.session.query(InviteCode)
    if not principal.is_admin:
        query = query.filter(InviteCode.created_by == principal.id)
    rows = query.order_by(InviteCode.created_at.desc(), InviteCode.id.desc()).all()
    return [row.to_dict() for row in rows]
