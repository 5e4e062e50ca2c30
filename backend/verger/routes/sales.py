# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales API routes.

Placement outcomes map to HTTP statuses:
- committed        -> 201 (create), 200 (update or replayed request token)
- rejected         -> 422 with `failures` (draft is returned untouched)
- rolled_back      -> 502 (a write failed, completed steps were undone)
- partially_failed -> 500 (undo failed too; `unreconciled` lists what is left)
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import AppError, NotFoundError
from ..services import catalog_service
from ..services import sales_service
from ..services import sale_draft
from ..services.sales_service import PlacementState
from ..validation import ValidationError, parse_id
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

_STATE_STATUS = {
    PlacementState.REJECTED: 422,
    PlacementState.ROLLED_BACK: 502,
    PlacementState.PARTIALLY_FAILED: 500,
}


def _placement_response(result, created: bool):
    if result.ok:
        status = 201 if created and not result.replayed else 200
    else:
        status = _STATE_STATUS[result.state]
    return jsonify(result.to_dict()), status


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - search: matches customer company name, status or payment status
    """
    return jsonify({"items": sales_service.list_sales(request.args.get("search"))}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        return jsonify({"sale": sales_service.get_sale(sale_id)}), 200
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Submit a new sale.

    Body: {"customer_id": 1, "items": [{"product_id": 3, "quantity": 2.5,
    "unit_price": 4.0}], "request_token": "optional-client-key"}
    """
    try:
        draft = sale_draft.draft_from_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = sales_service.place_sale(draft, g.session_context)
    except AppError as e:
        current_app.logger.warning("Sale creation failed before persisting: %s", e.message)
        return jsonify(e.to_dict()), e.status
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Erreur lors de l'enregistrement de la vente"}), 500

    return _placement_response(result, created=True)


@sales_bp.put("/<int:sale_id>")
@require_auth
def update_sale_route(sale_id: int):
    """
    Replace the items and statuses of an existing sale.

    Items carrying an `id` are updated in place, items without one are added,
    and persisted items missing from the body are removed.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    try:
        existing = sales_service.get_sale_model(sale_id)
        draft = sale_draft.draft_from_payload(payload, sale_id=sale_id)
        if payload.get("status") is None:
            draft = sale_draft.set_status(draft, existing.status)
        if payload.get("payment_status") is None:
            draft = sale_draft.set_payment_status(draft, existing.payment_status)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = sales_service.place_sale(draft, g.session_context)
    except AppError as e:
        current_app.logger.warning("Sale %s update failed before persisting: %s", sale_id, e.message)
        return jsonify(e.to_dict()), e.status
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Erreur lors de l'enregistrement de la vente"}), 500

    return _placement_response(result, created=False)


@sales_bp.delete("/<int:sale_id>")
@require_auth
def delete_sale_route(sale_id: int):
    """
    Delete a sale and its items.

    Query params:
    - restock: 1 to give the sold quantities back to inventory (default 0)
    """
    restock = request.args.get("restock", "0").lower() in ("1", "true", "yes")
    try:
        deleted = sales_service.delete_sale(sale_id, restock=restock)
    except NotFoundError as e:
        return jsonify(e.to_dict()), 404
    except AppError as e:
        current_app.logger.warning("Failed to delete sale %s: %s", sale_id, e.message)
        return jsonify({"error": "Erreur lors de la suppression de la vente"}), e.status

    return jsonify({
        "deleted": sale_id,
        "items": len(deleted["items"]),
        "restocked": {str(pid): qty for pid, qty in deleted["restocked"].items()},
    }), 200


@sales_bp.post("/draft/items")
@require_auth
def draft_items_route():
    """
    Apply one line-item transition to a draft and return the new draft.

    Body: {"draft": {...}, "action": "add" | "remove" | "update",
    "index": 0, "field": "product_id", "value": 3}

    Selecting a product fills the line's unit price from the catalog.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    action = payload.get("action")
    try:
        draft = sale_draft.draft_from_payload(payload.get("draft") or {})
        index = parse_id(payload.get("index"), "index")
        if action == "add":
            draft = sale_draft.add_item(draft)
        elif action == "remove":
            draft = sale_draft.remove_item(draft, index if index is not None else -1)
        elif action == "update":
            draft = sale_draft.update_item(
                draft,
                index if index is not None else -1,
                payload.get("field"),
                payload.get("value"),
                catalog=catalog_service.catalog_index(),
            )
        else:
            return jsonify({"error": "action must be add, remove or update"}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except IndexError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"draft": draft.to_dict()}), 200
