# Overview: Customer directory used to populate the sale customer selector.

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import AppError, NotFoundError, handle_database_error
from ..models import Customer, Sale


def list_customers() -> list[dict]:
    """[{id, displayName}] ordered by company name."""
    customers = (
        db.session.query(Customer)
        .order_by(Customer.company_name.asc(), Customer.id.asc())
        .all()
    )
    return [{"id": c.id, "displayName": c.company_name} for c in customers]


def customer_exists(customer_id: int) -> bool:
    return db.session.get(Customer, customer_id) is not None


def create_customer(patch: dict) -> Customer:
    customer = Customer(**patch)
    db.session.add(customer)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc
    return customer


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Client introuvable", details={"customer_id": customer_id})
    return customer


def update_customer(customer_id: int, patch: dict) -> Customer:
    customer = get_customer(customer_id)
    for key, value in patch.items():
        setattr(customer, key, value)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc
    return customer


def delete_customer(customer_id: int) -> None:
    """Delete a customer. Customers referenced by a sale are kept (409)."""
    customer = get_customer(customer_id)
    sales = db.session.query(Sale.id).filter(Sale.customer_id == customer_id).count()
    if sales:
        raise AppError(
            "Ce client a des ventes enregistrées",
            code="CUSTOMER_HAS_SALES",
            status=409,
            details={"customer_id": customer_id, "sales": sales},
        )
    db.session.delete(customer)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc
