# Overview: Sale placement workflow (validate, persist, decrement inventory) and sale queries.

"""
Sales Service - sale placement and inventory reconciliation

Placement runs as a saga over the persistence service:

    draft -> validating -> rejected
                        -> persisting -> committed
                                      -> rolled_back       (step failed, compensations applied)
                                      -> partially_failed  (a compensation failed too)

Persisting steps, in order, each registering its compensating action:
  a. insert / update the sale header with the computed total
  b. insert / upsert line items (edit mode also deletes dropped items)
  c. decrement the ledger (edit mode applies the net difference only)
  d. re-read the ledger for the caller

Decrements are conditional updates, so a concurrent sale that drains a
product between validation and step c makes the decrement fail; the saga
rolls back and the submission is rejected as insufficient stock.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..errors import AppError, NotFoundError
from ..models import Customer, Sale
from . import catalog_service
from . import customer_service
from . import inventory_service
from .inventory_service import InsufficientStockError, LedgerEntry
from .persistence_service import PersistenceService, jsonable_row
from .sale_draft import LineItemDraft, SaleDraft, draft_total
from .sale_validation import (
    FailureKind,
    MESSAGES,
    ValidationFailure,
    ValidationResult,
    requested_quantities,
    validate,
)
from .session_service import SessionContext


class PlacementState(str, enum.Enum):
    DRAFT = "draft"
    VALIDATING = "validating"
    REJECTED = "rejected"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    PARTIALLY_FAILED = "partially_failed"


@dataclass
class PlacementResult:
    state: PlacementState
    draft: SaleDraft
    sale: dict | None = None
    items: list[dict] = field(default_factory=list)
    failures: tuple[ValidationFailure, ...] = ()
    error: AppError | None = None
    inventory: dict[int, LedgerEntry] = field(default_factory=dict)
    unreconciled: list[str] = field(default_factory=list)
    replayed: bool = False

    @property
    def ok(self) -> bool:
        return self.state == PlacementState.COMMITTED

    @property
    def message(self) -> str | None:
        if self.failures:
            return self.failures[0].message
        if self.error is not None:
            return self.error.message
        return None

    def to_dict(self) -> dict:
        body = {
            "state": self.state.value,
            "sale": jsonable_row(self.sale),
            "items": [jsonable_row(row) for row in self.items],
            "draft": self.draft.to_dict(),
            "inventory": {
                str(pid): {"quantity": entry.quantity, "unit": entry.unit}
                for pid, entry in self.inventory.items()
            },
            "replayed": self.replayed,
        }
        if self.failures:
            body["failures"] = [f.to_dict() for f in self.failures]
        if self.message:
            body["error"] = self.message
        if self.unreconciled:
            body["unreconciled"] = self.unreconciled
        return body


Compensation = tuple[str, Callable[[], object]]


def _items_from_rows(rows: list[dict]) -> list[LineItemDraft]:
    return [
        LineItemDraft(
            item_id=row["id"],
            product_id=row["product_id"],
            quantity=row["quantity"],
            unit_price=row["unit_price"],
        )
        for row in rows
    ]


class SalePlacementWorkflow:
    """
    Orchestrates one submission of a sale draft.

    One instance handles one submission; `state` follows the saga.
    """

    def __init__(
        self,
        session_context: SessionContext,
        store: PersistenceService | None = None,
        ledger=inventory_service,
        catalog=catalog_service,
    ):
        self.session_context = session_context
        self.store = store or PersistenceService()
        self.ledger = ledger
        self.catalog = catalog
        self.state = PlacementState.DRAFT
        self._compensations: list[Compensation] = []

    # -- submission ---------------------------------------------------------

    def submit(self, draft: SaleDraft) -> PlacementResult:
        self.state = PlacementState.VALIDATING
        self._compensations = []

        # Rules 1-2 need no lookups
        if draft.customer_id is None or not draft.items:
            return self._reject(draft, validate(draft, frozenset(), {}))

        previous_header = None
        previous_items: list[dict] = []
        if draft.is_edit:
            previous_header = self.store.single("sales", id=draft.sale_id)
            previous_items = self.store.select("sale_items", order_by="id", sale_id=draft.sale_id)
        elif draft.request_token:
            existing = self.store.select("sales", request_token=draft.request_token)
            if existing:
                return self._replay(draft, existing[0])

        # A customer deleted since it was selected counts as not selected
        if not customer_service.customer_exists(draft.customer_id):
            return self._reject(draft, ValidationResult((
                ValidationFailure(FailureKind.MISSING_CUSTOMER, MESSAGES[FailureKind.MISSING_CUSTOMER]),
            )))

        result = self._validate(draft, previous_items)
        if not result.ok:
            return self._reject(draft, result)

        foreign = self._foreign_item_ids(draft, previous_items)
        if foreign:
            return self._reject(draft, ValidationResult((
                ValidationFailure(
                    FailureKind.INVALID_LINE_ITEM,
                    f"{MESSAGES[FailureKind.INVALID_LINE_ITEM]} : article inconnu pour cette vente",
                    item_index=foreign[0],
                ),
            )))

        self.state = PlacementState.PERSISTING
        try:
            if draft.is_edit:
                sale, items = self._persist_edit(draft, previous_header, previous_items)
            else:
                sale, items = self._persist_create(draft)
        except AppError as exc:
            return self._fail(draft, exc)
        except Exception:
            current_app.logger.exception("Unexpected error while persisting sale; compensating")
            self._run_compensations()
            self.state = PlacementState.PARTIALLY_FAILED
            raise

        self.state = PlacementState.COMMITTED
        self._compensations = []
        snapshot = self._refresh_inventory(draft, previous_items)
        current_app.logger.info(
            "Sale %s committed (%s items, total %.2f)", sale["id"], len(items), sale["total_amount"]
        )
        return PlacementResult(
            state=self.state, draft=draft, sale=sale, items=items, inventory=snapshot,
        )

    # -- validation ---------------------------------------------------------

    def _validate(self, draft: SaleDraft, previous_items: list[dict]) -> ValidationResult:
        product_ids = {item.product_id for item in draft.items if item.product_id is not None}
        product_ids |= {row["product_id"] for row in previous_items}
        snapshot = self.ledger.snapshot(product_ids)

        availability = {pid: entry.quantity for pid, entry in snapshot.items()}
        # An edited sale may reuse what it already consumed
        for pid, qty in requested_quantities(_items_from_rows(previous_items)).items():
            if pid in availability:
                availability[pid] += qty

        return validate(draft, self.catalog.known_product_ids(), availability)

    @staticmethod
    def _foreign_item_ids(draft: SaleDraft, previous_items: list[dict]) -> list[int]:
        own = {row["id"] for row in previous_items}
        return [
            index for index, item in enumerate(draft.items)
            if item.item_id is not None and item.item_id not in own
        ]

    def _reject(self, draft: SaleDraft, result: ValidationResult) -> PlacementResult:
        self.state = PlacementState.REJECTED
        return PlacementResult(state=self.state, draft=draft, failures=result.failures)

    def _replay(self, draft: SaleDraft, sale: dict) -> PlacementResult:
        self.state = PlacementState.COMMITTED
        items = self.store.select("sale_items", order_by="id", sale_id=sale["id"])
        current_app.logger.info("Sale %s replayed for request token %s", sale["id"], draft.request_token)
        return PlacementResult(
            state=self.state,
            draft=draft,
            sale=sale,
            items=items,
            inventory=self.ledger.snapshot({row["product_id"] for row in items}),
            replayed=True,
        )

    # -- persisting ---------------------------------------------------------

    def _compensate_with(self, description: str, action: Callable[[], object]) -> None:
        self._compensations.append((description, action))

    def _persist_create(self, draft: SaleDraft) -> tuple[dict, list[dict]]:
        store = self.store

        # a. header
        sale = store.insert("sales", {
            "customer_id": draft.customer_id,
            "total_amount": draft_total(draft),
            "status": "pending",
            "payment_status": "pending",
            "created_by": self.session_context.user_id,
            "request_token": draft.request_token,
        })[0]
        sale_id = sale["id"]
        self._compensate_with(f"delete sale {sale_id}", lambda: store.delete("sales", id=sale_id))

        # b. line items
        items = store.insert("sale_items", [
            {
                "sale_id": sale_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            for item in draft.items
        ])
        item_ids = [row["id"] for row in items]
        self._compensate_with(
            f"delete items {item_ids} of sale {sale_id}",
            lambda: store.delete("sale_items", id=item_ids),
        )

        # c. inventory
        self._apply_inventory(requested_quantities(draft.items), {})
        return sale, items

    def _persist_edit(
        self,
        draft: SaleDraft,
        previous_header: dict,
        previous_items: list[dict],
    ) -> tuple[dict, list[dict]]:
        store = self.store
        sale_id = draft.sale_id

        # a. header
        header_fields = ("customer_id", "total_amount", "status", "payment_status")
        restore_header = {key: previous_header[key] for key in header_fields}
        sale = store.update("sales", {
            "customer_id": draft.customer_id,
            "total_amount": draft_total(draft),
            "status": draft.status,
            "payment_status": draft.payment_status,
        }, id=sale_id)[0]
        self._compensate_with(
            f"restore header of sale {sale_id}",
            lambda: store.update("sales", restore_header, id=sale_id),
        )

        # b. line items: drop removed ones, then upsert the rest
        kept_ids = {item.item_id for item in draft.items if item.item_id is not None}
        removed = [row for row in previous_items if row["id"] not in kept_ids]
        if removed:
            removed_ids = [row["id"] for row in removed]
            store.delete("sale_items", id=removed_ids)
            self._compensate_with(
                f"re-insert items {removed_ids} of sale {sale_id}",
                lambda: store.insert("sale_items", removed),
            )

        rows = []
        for item in draft.items:
            row = {
                "sale_id": sale_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            }
            if item.item_id is not None:
                row["id"] = item.item_id
            rows.append(row)
        items = store.upsert("sale_items", rows)

        kept_previous = [row for row in previous_items if row["id"] in kept_ids]
        added_ids = [row["id"] for row in items if row["id"] not in {r["id"] for r in previous_items}]

        def _undo_upsert():
            if added_ids:
                store.delete("sale_items", id=added_ids)
            if kept_previous:
                store.upsert("sale_items", kept_previous)

        self._compensate_with(f"revert items of sale {sale_id}", _undo_upsert)

        # c. inventory: only the difference with what the sale already consumed
        self._apply_inventory(
            requested_quantities(draft.items),
            requested_quantities(_items_from_rows(previous_items)),
        )
        return sale, items

    def _apply_inventory(self, requested: dict[int, float], consumed: dict[int, float]) -> None:
        ledger = self.ledger
        for product_id in dict.fromkeys([*requested, *consumed]):
            delta = requested.get(product_id, 0.0) - consumed.get(product_id, 0.0)
            if delta > 0:
                ledger.decrement(product_id, delta)
                self._compensate_with(
                    f"restore {delta} of product {product_id}",
                    lambda pid=product_id, qty=delta: ledger.restore(pid, qty),
                )
            elif delta < 0:
                try:
                    ledger.get_quantity(product_id)
                except NotFoundError:
                    current_app.logger.warning(
                        "Product %s has no inventory record; %s not returned to stock", product_id, -delta
                    )
                    continue
                ledger.restore(product_id, -delta)
                self._compensate_with(
                    f"take back {-delta} of product {product_id}",
                    lambda pid=product_id, qty=-delta: ledger.decrement(pid, qty),
                )

    def _refresh_inventory(self, draft: SaleDraft, previous_items: list[dict]) -> dict[int, LedgerEntry]:
        product_ids = {item.product_id for item in draft.items}
        product_ids |= {row["product_id"] for row in previous_items}
        return self.ledger.snapshot(product_ids)

    # -- failure handling ---------------------------------------------------

    def _run_compensations(self) -> list[str]:
        """Undo completed steps in reverse order. Returns the ones that failed."""
        unreconciled = []
        while self._compensations:
            description, action = self._compensations.pop()
            try:
                action()
            except AppError as exc:
                current_app.logger.error("Compensation failed (%s): %s", description, exc.message)
                unreconciled.append(description)
            else:
                current_app.logger.warning("Compensation applied: %s", description)
        return unreconciled

    def _fail(self, draft: SaleDraft, exc: AppError) -> PlacementResult:
        current_app.logger.warning(
            "Sale placement failed while persisting (%s): %s", exc.code, exc.details or exc.message
        )
        unreconciled = self._run_compensations()

        if unreconciled:
            self.state = PlacementState.PARTIALLY_FAILED
            current_app.logger.error(
                "Sale placement left partial writes; manual reconciliation needed: %s", unreconciled
            )
            return PlacementResult(state=self.state, draft=draft, error=exc, unreconciled=unreconciled)

        if isinstance(exc, InsufficientStockError):
            self.state = PlacementState.REJECTED
            return PlacementResult(
                state=self.state,
                draft=draft,
                failures=(ValidationFailure(
                    FailureKind.INSUFFICIENT_STOCK,
                    MESSAGES[FailureKind.INSUFFICIENT_STOCK],
                    product_ids=tuple(exc.product_ids),
                ),),
            )

        self.state = PlacementState.ROLLED_BACK
        return PlacementResult(state=self.state, draft=draft, error=exc)


def place_sale(draft: SaleDraft, session_context: SessionContext, store: PersistenceService | None = None) -> PlacementResult:
    return SalePlacementWorkflow(session_context, store=store).submit(draft)


# -- deletion -------------------------------------------------------------------


def delete_sale(sale_id: int, restock: bool = False, store: PersistenceService | None = None) -> dict:
    """
    Delete a sale and its line items.

    Inventory is only given back when `restock` is True.
    """
    store = store or PersistenceService()
    sale = store.single("sales", id=sale_id)
    items = store.delete("sale_items", sale_id=sale_id)
    store.delete("sales", id=sale_id)

    restocked = {}
    if restock:
        for product_id, qty in requested_quantities(_items_from_rows(items)).items():
            try:
                restocked[product_id] = inventory_service.restore(product_id, qty)
            except NotFoundError:
                current_app.logger.warning(
                    "Sale %s deleted; product %s has no inventory record to restock", sale_id, product_id
                )

    current_app.logger.info("Sale %s deleted (%s items, restock=%s)", sale_id, len(items), restock)
    return {"sale": sale, "items": items, "restocked": restocked}


# -- queries --------------------------------------------------------------------


def _sale_payload(sale: Sale) -> dict:
    body = sale.to_dict()
    body["customer"] = {
        "company_name": sale.customer.company_name,
        "contact_name": sale.customer.contact_name,
    } if sale.customer else None
    body["items"] = [item.to_dict() for item in sale.items]
    return body


def get_sale_model(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Vente introuvable", details={"sale_id": sale_id})
    return sale


def get_sale(sale_id: int) -> dict:
    return _sale_payload(get_sale_model(sale_id))


def list_sales(search: str | None = None) -> list[dict]:
    """Newest first, optionally filtered on customer name, status or payment status."""
    query = db.session.query(Sale).outerjoin(Customer, Customer.id == Sale.customer_id)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            db.func.lower(Customer.company_name).like(pattern),
            db.func.lower(Sale.status).like(pattern),
            db.func.lower(Sale.payment_status).like(pattern),
        ))
    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()
    return [_sale_payload(sale) for sale in sales]
