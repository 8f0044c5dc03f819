# Overview: Flask API routes for membership applications and admin member management.

from flask import Blueprint, jsonify, request

from ..decorators import require_admin, require_auth
from ..services import membership_service
from ..validation import json_object

members_bp = Blueprint("members", __name__, url_prefix="/api/members")


@members_bp.post("/apply")
def apply_route():
    """Public membership application. Requires an available invite code."""
    member = membership_service.apply_for_membership(request.get_json(silent=True))
    return jsonify({
        "success": True,
        "message": "Application submitted. You will be notified when reviewed.",
        "memberId": member.id,
    }), 201


@members_bp.get("")
@require_auth
@require_admin
def list_members_route():
    """
    Query params:
    - status: member status, or "all" (default) for no filter
    - search: case-insensitive match on name, email or business
    """
    members = membership_service.list_members(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify([m.to_summary() for m in members]), 200


@members_bp.get("/<int:member_id>")
@require_auth
@require_admin
def get_member_route(member_id: int):
    return jsonify(membership_service.get_member(member_id).to_dict()), 200


@members_bp.patch("/<int:member_id>/status")
@require_auth
@require_admin
def change_status_route(member_id: int):
    data = json_object(request.get_json(silent=True))
    member = membership_service.change_status(
        member_id,
        data.get("status"),
        reason=data.get("reason"),
    )
    return jsonify({"success": True, "member": member.to_dict()}), 200


@members_bp.delete("/<int:member_id>")
@require_auth
@require_admin
def delete_member_route(member_id: int):
    membership_service.delete_member(member_id)
    return jsonify({"success": True}), 200
