# Overview: Flask API routes for the supplier directory.

from flask import Blueprint, request, jsonify

from ..errors import NotFoundError, PersistenceError
from ..models import Supplier
from ..services import supplier_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_supplier,
    validate_payload,
)
from ..decorators import require_auth

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "company_name", "contact_name", "email", "phone", "address", "country", "product_categories",
    },
    required_on_create={"company_name"},
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


def _validated(partial: bool) -> dict:
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=partial)
    enforce_rules_supplier(patch)
    return patch


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    """
    List suppliers ordered by company name.

    Query params:
    - search: matches company name, contact name, email or country
    """
    suppliers = supplier_service.list_suppliers(request.args.get("search"))
    return jsonify({"items": [s.to_dict() for s in suppliers]}), 200


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    return jsonify({"supplier": supplier.to_dict()}), 200


@suppliers_bp.post("")
@require_auth
def create_supplier_route():
    try:
        patch = _validated(partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        supplier = supplier_service.create_supplier(patch)
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"supplier": supplier.to_dict()}), 201


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
def update_supplier_route(supplier_id: int):
    try:
        patch = _validated(partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        supplier = supplier_service.update_supplier(supplier_id, patch)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"supplier": supplier.to_dict()}), 200


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
def delete_supplier_route(supplier_id: int):
    try:
        supplier_service.delete_supplier(supplier_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"deleted": supplier_id}), 200
