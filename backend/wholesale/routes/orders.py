# Overview: Flask API routes for order placement, listing and status changes.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_active_member, require_admin, require_auth, require_member
from ..errors import ValidationError
from ..services import order_service
from ..validation import json_object

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
@require_active_member
def place_order_route():
    """
    Place an order.

    Members order for themselves. Admins order on behalf of a member by
    passing member_id; that member must still be active.
    """
    data = json_object(request.get_json(silent=True))

    if g.principal.is_admin:
        member_id = data.get("member_id")
        if not isinstance(member_id, int) or isinstance(member_id, bool):
            raise ValidationError("member_id is required when an admin places an order")
    else:
        member_id = g.principal.id

    order = order_service.place_order(
        member_id,
        data.get("items"),
        payment_method=data.get("payment_method"),
        ship_state=data.get("ship_state"),
        notes=data.get("notes"),
    )
    return jsonify({"success": True, "order": order.to_dict()}), 201


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Admins see every order (with member name), members only their own.

    Query params: status ("all" for no filter), search (admin only;
    order number or member name).
    """
    orders = order_service.list_orders(
        g.principal,
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify(orders), 200


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    order = order_service.get_order(order_id, g.principal)
    return jsonify(order.to_dict(include_member=g.principal.is_admin)), 200


@orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_admin
def change_status_route(order_id: int):
    data = json_object(request.get_json(silent=True))
    order = order_service.change_status(order_id, data.get("status"))
    return jsonify({"success": True, "order": order.to_dict(include_member=True)}), 200


@orders_bp.patch("/<int:order_id>/cancel")
@require_auth
@require_member
def cancel_order_route(order_id: int):
    order = order_service.cancel_own_order(order_id, g.principal.id)
    return jsonify({"success": True, "order": order.to_dict()}), 200
