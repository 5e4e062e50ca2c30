# Overview: Flask API routes for shipments and customs clearance declarations.

from flask import Blueprint, request, jsonify

from ..errors import AppError, NotFoundError
from ..models import CLEARANCE_STATUSES, CustomsClearance, Shipment
from ..services import customs_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_clearance,
    validate_payload,
)
from ..decorators import require_auth

CLEARANCE_POLICY = ModelValidationPolicy(
    writable_fields={
        "shipment_id", "declaration_number", "status", "customs_fees", "clearance_date", "documents_url",
    },
    required_on_create={"shipment_id"},
)

SHIPMENT_POLICY = ModelValidationPolicy(
    writable_fields={"tracking_number", "carrier"},
    required_on_create={"tracking_number"},
)

customs_bp = Blueprint("customs", __name__, url_prefix="/api/customs-clearances")
shipments_bp = Blueprint("shipments", __name__, url_prefix="/api/shipments")


# =============================================================================
# SHIPMENTS
# =============================================================================


@shipments_bp.get("")
@require_auth
def list_shipments_route():
    return jsonify({"items": [s.to_dict() for s in customs_service.list_shipments()]}), 200


@shipments_bp.post("")
@require_auth
def create_shipment_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Shipment, payload=payload, policy=SHIPMENT_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        shipment = customs_service.create_shipment(patch)
    except AppError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"shipment": shipment.to_dict()}), 201


# =============================================================================
# CLEARANCES
# =============================================================================


def _validated(partial: bool) -> dict:
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=CustomsClearance, payload=payload, policy=CLEARANCE_POLICY, partial=partial)
    enforce_rules_clearance(patch, CLEARANCE_STATUSES)
    return patch


@customs_bp.get("")
@require_auth
def list_clearances_route():
    """
    List clearances newest first, each with its shipment.

    Query params:
    - search: matches declaration number, tracking number or status
    """
    clearances = customs_service.list_clearances(request.args.get("search"))
    return jsonify({"items": [c.to_dict() for c in clearances]}), 200


@customs_bp.get("/<int:clearance_id>")
@require_auth
def get_clearance_route(clearance_id: int):
    try:
        clearance = customs_service.get_clearance(clearance_id)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    return jsonify({"clearance": clearance.to_dict()}), 200


@customs_bp.post("")
@require_auth
def create_clearance_route():
    """
    Body: {"shipment_id": 1, "declaration_number": "DAU-...", "status": "pending",
    "customs_fees": 180.0, "clearance_date": "2026-10-19",
    "documents_url": ["https://..."]}
    """
    try:
        patch = _validated(partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        clearance = customs_service.create_clearance(patch)
    except AppError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"clearance": clearance.to_dict()}), 201


@customs_bp.put("/<int:clearance_id>")
@require_auth
def update_clearance_route(clearance_id: int):
    try:
        patch = _validated(partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        clearance = customs_service.update_clearance(clearance_id, patch)
    except AppError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"clearance": clearance.to_dict()}), 200


@customs_bp.delete("/<int:clearance_id>")
@require_auth
def delete_clearance_route(clearance_id: int):
    try:
        customs_service.delete_clearance(clearance_id)
    except AppError as e:
        return jsonify(e.to_dict()), e.status

    return jsonify({"deleted": clearance_id}), 200
