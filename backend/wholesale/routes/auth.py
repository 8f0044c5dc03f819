# Overview: Flask API routes for login, logout and the current principal.

"""
Authentication routes.

Login resolves admins first, then members. Pending and denied members get
403 with the reason; unknown email or wrong password gets 401.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..errors import AuthenticationError
from ..services import auth_service, session_service
from ..time_utils import to_utc_z
from ..validation import json_object

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    data = json_object(request.get_json(silent=True))
    result = auth_service.authenticate_login(data.get("email"), data.get("password"))

    session, token = session_service.create_session(
        principal_id=result.principal_id,
        is_admin=result.is_admin,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    user = dict(result.profile)
    user["is_admin"] = result.is_admin
    current_app.logger.info(
        "Login: %s %s", "admin" if result.is_admin else "member", result.principal_id
    )

    return jsonify({
        "token": token,
        "expiresAt": to_utc_z(session.expires_at),
        "user": user,
    }), 200


@auth_bp.post("/logout")
def logout_route():
    """Delete the caller's session. Unknown or already-deleted tokens still succeed."""
    token = bearer_token()
    if not token:
        raise AuthenticationError("Authorization header required")
    session_service.destroy_session(token)
    return jsonify({"success": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.principal.to_dict()}), 200
