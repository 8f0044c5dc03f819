# Overview: Flask API routes for invite code issuance, listing and validation.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_admin, require_auth, require_member
from ..services import invite_service
from ..validation import json_object

invites_bp = Blueprint("invites", __name__, url_prefix="/api/invites")


@invites_bp.post("/generate")
@require_auth
@require_admin
def generate_route():
    """Admin batch. quantity is clamped to 1..50; duplicates are dropped."""
    data = json_object(request.get_json(silent=True))
    codes = invite_service.generate_admin_codes(data.get("quantity", 1))
    return jsonify({"success": True, "codes": codes}), 201


@invites_bp.post("/member-generate")
@require_auth
@require_member
def member_generate_route():
    code = invite_service.generate_member_code(g.principal.id)
    return jsonify({"success": True, "code": code}), 201


@invites_bp.get("")
@require_auth
def list_route():
    return jsonify(invite_service.list_codes(g.principal)), 200


@invites_bp.get("/validate/<code>")
def validate_route(code: str):
    return jsonify(invite_service.validate_code(code)), 200
