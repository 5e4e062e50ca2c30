# Overview: Flask API routes for inventory levels and stock maintenance.

from flask import Blueprint, request, jsonify

from ..errors import NotFoundError, PersistenceError
from ..models import InventoryRecord
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory,
    validate_payload,
)
from ..decorators import require_auth

INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={"quantity", "unit", "batch_number", "expiration_date", "storage_location"},
    required_on_create={"quantity"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    return jsonify({"items": inventory_service.list_inventory()}), 200


@inventory_bp.put("/<int:product_id>")
@require_auth
def set_stock_route(product_id: int):
    """
    Set the on-hand quantity of a product (restock or correction).

    Body: {"quantity": 120.5, "unit": "kg", "batch_number": ..., ...}
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=InventoryRecord, payload=payload, policy=INVENTORY_POLICY, partial=False)
        enforce_rules_inventory(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        record = inventory_service.set_stock(
            product_id,
            patch["quantity"],
            unit=patch.get("unit") or "kg",
            batch_number=patch.get("batch_number"),
            expiration_date=patch.get("expiration_date"),
            storage_location=patch.get("storage_location"),
        )
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"inventory": record.to_dict()}), 200


@inventory_bp.delete("/<int:product_id>")
@require_auth
def delete_stock_route(product_id: int):
    """Stop tracking stock for a product (it can no longer be sold)."""
    try:
        inventory_service.delete_stock_record(product_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except PersistenceError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"deleted": product_id}), 200
