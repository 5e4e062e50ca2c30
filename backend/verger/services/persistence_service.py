# Overview: Generic collection-keyed CRUD over the database; one committed unit of work per call.

"""
Persistence Service

Generic `select` / `single` / `insert` / `update` / `upsert` / `delete`
operations keyed by collection name, mirroring the CRUD surface the
dashboard used against its hosted database.

Invariants:
- Every call is its own committed unit of work. Multi-step workflows that
  need all-or-nothing behaviour must register compensating actions (see
  sales_service.SalePlacementWorkflow).
- Rows cross this boundary as plain dicts of column values.
- Any database failure rolls the session back and raises PersistenceError
  with a SQLSTATE-style code; callers treat it as fatal for that step.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import NotFoundError, PersistenceError, handle_database_error
from ..models import Customer, InventoryRecord, Product, Sale, SaleItem
from ..time_utils import to_utc_z
from .concurrency import run_with_retry


COLLECTIONS = {
    "products": Product,
    "inventory": InventoryRecord,
    "customers": Customer,
    "sales": Sale,
    "sale_items": SaleItem,
}


def row_to_dict(obj) -> dict:
    """Column values of a mapped instance (relationships excluded)."""
    return {attr.key: getattr(obj, attr.key) for attr in obj.__mapper__.column_attrs}


def jsonable_row(row: dict | None) -> dict | None:
    """Row dict with datetimes rendered as ISO-8601 strings."""
    if row is None:
        return None
    return {
        key: to_utc_z(value) if isinstance(value, datetime) else value.isoformat() if isinstance(value, date) else value
        for key, value in row.items()
    }


class PersistenceService:
    """Collection-keyed CRUD. Subclass to decorate or fault-inject calls."""

    collections = COLLECTIONS

    def _model(self, collection: str):
        try:
            return self.collections[collection]
        except KeyError:
            raise PersistenceError(
                "Erreur de configuration",
                code="42P01",
                status=500,
                detail=f"unknown collection {collection!r}",
            )

    def _query(self, collection: str, match: dict):
        model = self._model(collection)
        query = db.session.query(model)
        for key, value in match.items():
            column = getattr(model, key, None)
            if column is None:
                raise PersistenceError(
                    "Requête invalide",
                    code="42703",
                    status=400,
                    detail=f"unknown column {collection}.{key}",
                )
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return model, query

    def _execute(self, func):
        try:
            return run_with_retry(func)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise handle_database_error(exc) from exc

    def select(self, collection: str, order_by: str | None = None, **match) -> list[dict]:
        def _op():
            model, query = self._query(collection, match)
            if order_by:
                descending = order_by.startswith("-")
                column = getattr(model, order_by.lstrip("-"))
                query = query.order_by(column.desc() if descending else column.asc())
            return [row_to_dict(obj) for obj in query.all()]

        return self._execute(_op)

    def single(self, collection: str, **match) -> dict:
        rows = self.select(collection, **match)
        if not rows:
            raise NotFoundError(details={"collection": collection, "match": match})
        return rows[0]

    def insert(self, collection: str, rows: dict | Iterable[dict]) -> list[dict]:
        payload = [rows] if isinstance(rows, dict) else list(rows)

        def _op():
            model = self._model(collection)
            objs = [model(**row) for row in payload]
            db.session.add_all(objs)
            db.session.commit()
            return [row_to_dict(obj) for obj in objs]

        return self._execute(_op)

    def update(self, collection: str, values: dict[str, Any], **match) -> list[dict]:
        if not match:
            raise PersistenceError("Requête invalide", code="21000", status=400, detail="update requires a filter")

        def _op():
            _, query = self._query(collection, match)
            objs = query.all()
            for obj in objs:
                for key, value in values.items():
                    setattr(obj, key, value)
            db.session.commit()
            return [row_to_dict(obj) for obj in objs]

        return self._execute(_op)

    def upsert(self, collection: str, rows: dict | Iterable[dict]) -> list[dict]:
        """Insert rows, or update them in place when their `id` already exists."""
        payload = [rows] if isinstance(rows, dict) else list(rows)

        def _op():
            model = self._model(collection)
            objs = []
            for row in payload:
                obj = db.session.get(model, row["id"]) if row.get("id") is not None else None
                if obj is None:
                    obj = model(**row)
                    db.session.add(obj)
                else:
                    for key, value in row.items():
                        setattr(obj, key, value)
                objs.append(obj)
            db.session.commit()
            return [row_to_dict(obj) for obj in objs]

        return self._execute(_op)

    def delete(self, collection: str, **match) -> list[dict]:
        if not match:
            raise PersistenceError("Requête invalide", code="21000", status=400, detail="delete requires a filter")

        def _op():
            _, query = self._query(collection, match)
            objs = query.all()
            deleted = [row_to_dict(obj) for obj in objs]
            for obj in objs:
                db.session.delete(obj)
            db.session.commit()
            return deleted

        return self._execute(_op)
