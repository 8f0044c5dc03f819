# Overview: Domain error taxonomy shared by services and routes.

"""
Error taxonomy.

Every domain error carries a machine-readable kind, the HTTP status the API
maps it to, and whether a retry could help. Services raise these; routes let
them propagate to the handlers registered in create_app().

- ValidationError, AuthenticationError, AuthorizationError, NotFoundError,
  ConflictError, ComplianceError: caller must change something first.
- DependencyError: storage / collaborator failure, retry may help.
"""

from __future__ import annotations


class DomainError(Exception):
    kind = "internal"
    status_code = 500
    retryable = False

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {
            "error": self.message,
            "kind": self.kind,
            "retryable": self.retryable,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DomainError):
    """400-level input problem. Raised before any storage access."""
    kind = "validation"
    status_code = 400


class AuthenticationError(DomainError):
    """Missing, expired or unknown session token."""
    kind = "authentication"
    status_code = 401


class AuthorizationError(DomainError):
    """Role or membership status insufficient for the operation."""
    kind = "authorization"
    status_code = 403


class NotFoundError(DomainError):
    kind = "not_found"
    status_code = 404


class ConflictError(DomainError):
    """409-level conflict (duplicate email / SKU, invite redemption race loser)."""
    kind = "conflict"
    status_code = 409


class ComplianceError(DomainError):
    """Business compliance rule (THC cap, restricted state)."""
    kind = "compliance"
    status_code = 422


class DependencyError(DomainError):
    """Storage, notification or geo lookup failure."""
    kind = "dependency"
    status_code = 503
    retryable = True
