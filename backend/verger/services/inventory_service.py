# Overview: Inventory ledger; on-hand quantity per product and guarded decrements.

"""
Inventory Ledger Invariants (authoritative)

- One InventoryRecord per product; quantity is a mutable float column.
- A missing record means zero availability.
- Sales never drive quantity below zero: `decrement` is a single conditional
  UPDATE (`quantity >= amount` in the WHERE clause), so the availability
  check and the write cannot be interleaved by a concurrent sale.
- `restore` is used by compensating actions and net reductions of an edited
  sale. Restocking from deliveries goes through `set_stock`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import AppError, NotFoundError, handle_database_error
from ..models import InventoryRecord, Product
from ..time_utils import utcnow
from .concurrency import run_with_retry


class InsufficientStockError(AppError):
    """Raised when a guarded decrement finds less stock than requested."""

    def __init__(self, product_ids: list[int]):
        super().__init__(
            "Stock insuffisant pour certains produits",
            code="INSUFFICIENT_STOCK",
            status=409,
            details={"product_ids": product_ids},
        )
        self.product_ids = product_ids


@dataclass(frozen=True)
class LedgerEntry:
    product_id: int
    quantity: float
    unit: str


def _persist(func):
    try:
        return run_with_retry(func)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc


def get_quantity(product_id: int) -> tuple[float, str]:
    """Return (quantity, unit) for a product. Raises NotFoundError when untracked."""
    record = db.session.query(InventoryRecord).filter_by(product_id=product_id).first()
    if record is None:
        raise NotFoundError(details={"product_id": product_id})
    return record.quantity, record.unit


def snapshot(product_ids: Iterable[int] | None = None) -> dict[int, LedgerEntry]:
    """
    Current ledger state keyed by product id.

    Products without a record are simply absent from the mapping.
    """
    query = db.session.query(InventoryRecord)
    if product_ids is not None:
        ids = {pid for pid in product_ids if pid is not None}
        if not ids:
            return {}
        query = query.filter(InventoryRecord.product_id.in_(ids))

    # Expire cached rows so the snapshot reflects committed updates
    db.session.expire_all()
    return {
        rec.product_id: LedgerEntry(rec.product_id, rec.quantity, rec.unit)
        for rec in query.all()
    }


def decrement(product_id: int, amount: float) -> float:
    """
    Reduce on-hand quantity by `amount` if at least `amount` is available.

    Returns the new quantity (may be exactly zero).
    Raises InsufficientStockError if the guard fails, NotFoundError if the
    product has no inventory record.
    """
    if amount < 0:
        raise ValueError("amount must be >= 0")

    def _op():
        result = db.session.execute(
            update(InventoryRecord)
            .where(
                InventoryRecord.product_id == product_id,
                InventoryRecord.quantity >= amount,
            )
            .values(quantity=InventoryRecord.quantity - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.session.rollback()
            exists = db.session.query(InventoryRecord.id).filter_by(product_id=product_id).first()
            if exists is None:
                raise NotFoundError(details={"product_id": product_id})
            raise InsufficientStockError([product_id])
        db.session.commit()
        db.session.expire_all()
        quantity, _ = get_quantity(product_id)
        return quantity

    return _persist(_op)


def restore(product_id: int, amount: float) -> float:
    """Add `amount` back to a product's on-hand quantity. Returns the new quantity."""
    if amount < 0:
        raise ValueError("amount must be >= 0")

    def _op():
        result = db.session.execute(
            update(InventoryRecord)
            .where(InventoryRecord.product_id == product_id)
            .values(quantity=InventoryRecord.quantity + amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.session.rollback()
            raise NotFoundError(details={"product_id": product_id})
        db.session.commit()
        db.session.expire_all()
        quantity, _ = get_quantity(product_id)
        return quantity

    return _persist(_op)


def set_stock(
    product_id: int,
    quantity: float,
    unit: str = "kg",
    batch_number: str | None = None,
    expiration_date: date | None = None,
    storage_location: str | None = None,
) -> InventoryRecord:
    """Create or overwrite the inventory record of a product (stock maintenance)."""
    if quantity < 0:
        raise ValueError("La quantité ne peut pas être négative")

    def _op():
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Produit introuvable", details={"product_id": product_id})

        record = db.session.query(InventoryRecord).filter_by(product_id=product_id).first()
        if record is None:
            record = InventoryRecord(product_id=product_id)
            db.session.add(record)

        record.quantity = quantity
        record.unit = unit
        record.batch_number = batch_number
        record.expiration_date = expiration_date
        record.storage_location = storage_location
        db.session.commit()
        return record

    return _persist(_op)


def list_inventory() -> list[dict]:
    records = (
        db.session.query(InventoryRecord)
        .join(Product, Product.id == InventoryRecord.product_id)
        .order_by(Product.name.asc())
        .all()
    )
    return [rec.to_dict() for rec in records]


def delete_stock_record(product_id: int) -> None:
    """
    Remove a product's inventory record; the product becomes untracked and
    therefore unavailable for sale. Raises NotFoundError when no record exists.
    """
    def _op():
        record = db.session.query(InventoryRecord).filter_by(product_id=product_id).first()
        if record is None:
            raise NotFoundError(details={"product_id": product_id})
        db.session.delete(record)
        db.session.commit()

    _persist(_op)
