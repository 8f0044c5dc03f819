# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

"""
Catalog routes.

- GET  /api/products          active members see the member catalog, admins see all
- GET  /api/products/public   featured products without pricing (no auth)
- GET  /api/products/<id>
- POST /api/products, PUT/DELETE /api/products/<id>   admin only
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_active_member, require_admin, require_auth
from ..services import catalog_service
from ..services.catalog_service import ProductPatch

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_active_member
def list_products_route():
    if g.principal.is_admin:
        products = catalog_service.list_for_admin()
    else:
        products = catalog_service.list_for_member()
    return jsonify([p.to_dict() for p in products]), 200


@products_bp.get("/public")
def list_public_route():
    return jsonify(catalog_service.list_public()), 200


@products_bp.get("/<int:product_id>")
@require_auth
@require_active_member
def get_product_route(product_id: int):
    return jsonify(catalog_service.get_product(product_id, g.principal).to_dict()), 200


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    patch = ProductPatch.from_payload(request.get_json(silent=True), partial=False)
    product = catalog_service.create_product(patch)
    return jsonify(product.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    """Partial update: omitted fields are untouched, null clears a nullable field."""
    patch = ProductPatch.from_payload(request.get_json(silent=True), partial=True)
    product = catalog_service.update_product(product_id, patch)
    return jsonify(product.to_dict()), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    product = catalog_service.delete_product(product_id)
    return jsonify({"success": True, "product": product.to_dict()}), 200
