# Overview: Supplier directory (growers and exporters) with search and maintenance.

from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import NotFoundError, handle_database_error
from ..models import Supplier


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc


def list_suppliers(search: str | None = None) -> list[Supplier]:
    """
    Suppliers ordered by company name.

    `search` matches company name, contact name, email or country
    (case-insensitive substring).
    """
    query = db.session.query(Supplier)
    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(
            func.lower(Supplier.company_name).like(pattern),
            func.lower(Supplier.contact_name).like(pattern),
            func.lower(Supplier.email).like(pattern),
            func.lower(Supplier.country).like(pattern),
        ))
    return query.order_by(Supplier.company_name.asc(), Supplier.id.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Fournisseur introuvable", details={"supplier_id": supplier_id})
    return supplier


def create_supplier(patch: dict) -> Supplier:
    supplier = Supplier(**patch)
    db.session.add(supplier)
    _commit()
    return supplier


def update_supplier(supplier_id: int, patch: dict) -> Supplier:
    supplier = get_supplier(supplier_id)
    for key, value in patch.items():
        setattr(supplier, key, value)
    _commit()
    return supplier


def delete_supplier(supplier_id: int) -> None:
    supplier = get_supplier(supplier_id)
    db.session.delete(supplier)
    _commit()
