# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import g, request

from .errors import AuthenticationError, AuthorizationError
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Resolve the bearer token and set request context.

    Sets:
    - g.principal: MemberPrincipal or AdminPrincipal
    - g.session_context: the full SessionContext
    - g.session_token: the raw bearer token (for logout)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise AuthenticationError("Authentication required")

        context = session_service.validate_session(token)
        if context is None:
            raise AuthenticationError("Invalid or expired session")

        g.principal = context.principal
        g.session_context = context
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Admin-only route. Must be stacked under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = getattr(g, "principal", None)
        if principal is None:
            raise AuthenticationError("Authentication required")
        if not principal.is_admin:
            raise AuthorizationError("Admin access required")
        return f(*args, **kwargs)

    return decorated_function


def require_member(f):
    """Member-only route (admins have no member record to act on)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = getattr(g, "principal", None)
        if principal is None:
            raise AuthenticationError("Authentication required")
        if principal.is_admin:
            raise AuthorizationError("Member access required")
        return f(*args, **kwargs)

    return decorated_function


def require_active_member(f):
    """
    Transacting route: admins pass, members must be active.

    Services repeat the check against storage; this one just fails fast.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = getattr(g, "principal", None)
        if principal is None:
            raise AuthenticationError("Authentication required")
        if not principal.is_admin and principal.status != "active":
            raise AuthorizationError("Active membership required")
        return f(*args, **kwargs)

    return decorated_function
