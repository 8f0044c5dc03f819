# Overview: Bearer session lifecycle for members and admins.

"""
Session token management.

- 96-hex-char tokens from secrets.token_hex(48); only SHA-256 is stored
- fixed 7-day lifetime, no sliding refresh
- the row's is_admin flag picks the principal table; the resolved
  principal is a tagged MemberPrincipal | AdminPrincipal
- logout deletes the row; deleting an unknown token is a no-op
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Union

from ..extensions import db
from ..models import Admin, Member, SessionToken
from wholesale.time_utils import utcnow

SESSION_TTL = timedelta(days=7)


@dataclass(frozen=True)
class MemberPrincipal:
    member: Member
    is_admin: bool = False

    @property
    def id(self) -> int:
        return self.member.id

    @property
    def status(self) -> str:
        return self.member.status

    def to_dict(self) -> dict:
        data = self.member.to_dict()
        data["is_admin"] = False
        return data


@dataclass(frozen=True)
class AdminPrincipal:
    admin: Admin
    is_admin: bool = True

    @property
    def id(self) -> int:
        return self.admin.id

    def to_dict(self) -> dict:
        data = self.admin.to_dict()
        data["is_admin"] = True
        return data


Principal = Union[MemberPrincipal, AdminPrincipal]


@dataclass
class SessionContext:
    principal: Principal
    session: SessionToken


def generate_token() -> str:
    return secrets.token_hex(48)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    principal_id: int,
    is_admin: bool,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session and return (record, plaintext_token).

    The plaintext token goes to the client once and is never stored.
    """
    token = generate_token()
    now = utcnow()

    session = SessionToken(
        token_hash=hash_token(token),
        principal_id=principal_id,
        is_admin=bool(is_admin),
        created_at=now,
        expires_at=now + SESSION_TTL,
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str | None) -> SessionContext | None:
    """
    Resolve a bearer token to its principal.

    Returns None for unknown or expired tokens and for sessions whose
    principal row no longer exists.
    """
    if not token:
        return None

    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token))
        .filter(SessionToken.expires_at > utcnow())
        .first()
    )
    if session is None:
        return None

    if session.is_admin:
        admin = db.session.get(Admin, session.principal_id)
        if admin is None:
            return None
        return SessionContext(principal=AdminPrincipal(admin=admin), session=session)

    member = db.session.get(Member, session.principal_id)
    if member is None:
        return None
    return SessionContext(principal=MemberPrincipal(member=member), session=session)


def destroy_session(token: str | None) -> None:
    if not token:
        return
    db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).delete(
        synchronize_session=False
    )
    db.session.commit()


def destroy_principal_sessions(principal_id: int, is_admin: bool) -> int:
    """Delete every session of a principal. Caller commits."""
    return (
        db.session.query(SessionToken)
        .filter_by(principal_id=principal_id, is_admin=bool(is_admin))
        .delete(synchronize_session=False)
    )


def cleanup_expired_sessions() -> int:
    deleted = (
        db.session.query(SessionToken)
        .filter(SessionToken.expires_at <= utcnow())
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
