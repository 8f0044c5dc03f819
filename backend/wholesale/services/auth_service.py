# Overview: Password hashing and credential checks for members and admins.

"""
Authentication service.

Passwords are hashed with bcrypt. The cost factor comes from BCRYPT_ROUNDS
(12 in production; the test config lowers it). Login resolves admins first,
then members, and refuses members whose application is not approved.
"""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt
from flask import current_app

from ..extensions import db
from ..errors import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from ..models import Admin, Member

MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes; newer releases refuse anything longer
MAX_PASSWORD_BYTES = 72


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    if not password or not password_hash:
        return False
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class LoginResult:
    principal_id: int
    is_admin: bool
    profile: dict


def authenticate_login(email: str, password: str) -> LoginResult:
    """
    Resolve credentials to an admin or member.

    Raises AuthenticationError for unknown email / bad password and
    AuthorizationError for members whose application is pending or denied.
    """
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required")

    admin = db.session.query(Admin).filter(db.func.lower(Admin.email) == email).first()
    if admin is not None:
        if not verify_password(password, admin.password_hash):
            raise AuthenticationError("Invalid credentials")
        return LoginResult(principal_id=admin.id, is_admin=True, profile=admin.to_dict())

    member = db.session.query(Member).filter_by(email=email).first()
    if member is None or not verify_password(password, member.password_hash):
        raise AuthenticationError("Invalid credentials")

    if member.status == "denied":
        raise AuthorizationError("Your application was denied")
    if member.status == "pending":
        raise AuthorizationError("Your application is still under review")

    return LoginResult(principal_id=member.id, is_admin=False, profile=member.to_dict())


def create_admin(name: str, email: str, password: str) -> Admin:
    email = (email or "").strip().lower()
    if not name or not email:
        raise ValidationError("name and email are required")
    if db.session.query(Admin).filter_by(email=email).first():
        raise ConflictError(f"Admin {email} already exists")

    admin = Admin(name=name.strip(), email=email, password_hash=hash_password(password))
    db.session.add(admin)
    db.session.commit()
    return admin
