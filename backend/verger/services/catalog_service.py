# Overview: Read-only catalog projection (identity and default price) plus product creation.

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import NotFoundError, handle_database_error
from ..models import Product


@dataclass(frozen=True)
class CatalogEntry:
    id: int
    name: str
    price: float

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "price": self.price}


def _entry(product: Product) -> CatalogEntry:
    return CatalogEntry(id=product.id, name=product.name, price=product.price)


def lookup(product_id: int) -> CatalogEntry:
    """Name and default unit price of a product. Raises NotFoundError."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Produit introuvable", details={"product_id": product_id})
    return _entry(product)


def list_products() -> list[CatalogEntry]:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [_entry(p) for p in products]


def catalog_index() -> dict[int, CatalogEntry]:
    """Catalog keyed by product id, as consumed by draft transitions."""
    return {entry.id: entry for entry in list_products()}


def known_product_ids() -> set[int]:
    return {pid for (pid,) in db.session.query(Product.id).all()}


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Produit introuvable", details={"product_id": product_id})
    return product


def create_product(patch: dict) -> Product:
    product = Product(**patch)
    db.session.add(product)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise handle_database_error(exc) from exc
    return product
