# Overview: Flask API routes for the product catalog.

from flask import Blueprint, request, jsonify

from ..errors import NotFoundError, PersistenceError
from ..models import Product
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "image_url", "category", "origin_country"},
    required_on_create={"name", "price"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """Catalog entries (id, name, price) ordered by name."""
    return jsonify({"items": [entry.to_dict() for entry in catalog_service.list_products()]}), 200


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = catalog_service.get_product(product_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    return jsonify({"product": product.to_dict()}), 200


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        product = catalog_service.create_product(patch)
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"product": product.to_dict()}), 201
