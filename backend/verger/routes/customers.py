# Overview: Flask API routes for the customer directory.

from flask import Blueprint, request, jsonify

from ..errors import AppError, NotFoundError, PersistenceError
from ..models import Customer
from ..services import customer_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_customer,
    validate_payload,
)
from ..decorators import require_auth

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"company_name", "contact_name", "email", "phone", "address", "city", "country"},
    required_on_create={"company_name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    """Customers for the sale customer selector: [{id, displayName}]."""
    return jsonify({"items": customer_service.list_customers()}), 200


@customers_bp.post("")
@require_auth
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        customer = customer_service.create_customer(patch)
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"customer": customer.to_dict()}), 201


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        customer = customer_service.get_customer(customer_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    """Partial update; omitted fields are left unchanged."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        customer = customer_service.update_customer(customer_id, patch)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"customer": customer.to_dict()}), 200


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    try:
        customer_service.delete_customer(customer_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except AppError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"deleted": customer_id}), 200
