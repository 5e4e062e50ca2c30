# Overview: Shipments and their customs clearance declarations.

"""
Customs clearance records.

- Every clearance belongs to an existing shipment; an unknown shipment id is
  an input error, not a missing row.
- Listing joins the shipment so the dashboard can show tracking numbers;
  search matches declaration number, tracking number or status.
"""

from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import AppError, NotFoundError, handle_database_error
from ..models import CustomsClearance, Shipment


class InvalidShipmentError(AppError):
    def __init__(self, shipment_id):
        super().__init__(
            "ID d'expédition invalide",
            code="INVALID_SHIPMENT",
            status=400,
            details={"shipment_id": shipment_id},
        )


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc


def _require_shipment(shipment_id) -> None:
    if shipment_id is None or db.session.get(Shipment, shipment_id) is None:
        raise InvalidShipmentError(shipment_id)


# =============================================================================
# SHIPMENTS
# =============================================================================


def list_shipments() -> list[Shipment]:
    """Shipments for the clearance form selector, newest first."""
    return (
        db.session.query(Shipment)
        .order_by(Shipment.created_at.desc(), Shipment.id.desc())
        .all()
    )


def create_shipment(patch: dict) -> Shipment:
    shipment = Shipment(**patch)
    db.session.add(shipment)
    _commit()
    return shipment


# =============================================================================
# CLEARANCES
# =============================================================================


def list_clearances(search: str | None = None) -> list[CustomsClearance]:
    query = db.session.query(CustomsClearance).join(Shipment, Shipment.id == CustomsClearance.shipment_id)
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(
            func.lower(CustomsClearance.declaration_number).like(pattern),
            func.lower(Shipment.tracking_number).like(pattern),
            func.lower(CustomsClearance.status).like(pattern),
        ))
    return query.order_by(CustomsClearance.created_at.desc(), CustomsClearance.id.desc()).all()


def get_clearance(clearance_id: int) -> CustomsClearance:
    clearance = db.session.get(CustomsClearance, clearance_id)
    if clearance is None:
        raise NotFoundError("Dédouanement introuvable", details={"clearance_id": clearance_id})
    return clearance


def create_clearance(patch: dict) -> CustomsClearance:
    _require_shipment(patch.get("shipment_id"))
    clearance = CustomsClearance(**patch)
    db.session.add(clearance)
    _commit()
    return clearance


def update_clearance(clearance_id: int, patch: dict) -> CustomsClearance:
    clearance = get_clearance(clearance_id)
    if "shipment_id" in patch:
        _require_shipment(patch["shipment_id"])
    for key, value in patch.items():
        setattr(clearance, key, value)
    _commit()
    return clearance


def delete_clearance(clearance_id: int) -> None:
    clearance = get_clearance(clearance_id)
    db.session.delete(clearance)
    _commit()
