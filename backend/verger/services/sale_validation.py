# Overview: Pure structural and availability validation of a sale draft.

"""
Rules, in order:

1. MISSING_CUSTOMER  - a customer must be selected.
2. EMPTY_ORDER       - at least one line item.
3. INVALID_LINE_ITEM - known product, quantity > 0, unit_price >= 0, both finite.
4. INSUFFICIENT_STOCK - every product can be served from the ledger.

Rules 1-3 stop at the first failure. Rule 4 reports every short product in
a single failure so the whole order can be corrected at once.

Lines that repeat a product are summed before comparing against the ledger;
two lines of 6 kg against 10 kg on hand are rejected.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .sale_draft import LineItemDraft, SaleDraft


class FailureKind(str, enum.Enum):
    MISSING_CUSTOMER = "MissingCustomer"
    EMPTY_ORDER = "EmptyOrder"
    INVALID_LINE_ITEM = "InvalidLineItem"
    INSUFFICIENT_STOCK = "InsufficientStock"


MESSAGES = {
    FailureKind.MISSING_CUSTOMER: "Veuillez sélectionner un client",
    FailureKind.EMPTY_ORDER: "Au moins un article est requis",
    FailureKind.INVALID_LINE_ITEM: "Article invalide",
    FailureKind.INSUFFICIENT_STOCK: "Stock insuffisant pour certains produits",
}


@dataclass(frozen=True)
class ValidationFailure:
    kind: FailureKind
    message: str
    item_index: int | None = None
    product_ids: tuple[int, ...] = ()

    def to_dict(self) -> dict:
        body = {"kind": self.kind.value, "message": self.message}
        if self.item_index is not None:
            body["item_index"] = self.item_index
        if self.product_ids:
            body["product_ids"] = list(self.product_ids)
        return body


@dataclass(frozen=True)
class ValidationResult:
    failures: tuple[ValidationFailure, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def message(self) -> str | None:
        return self.failures[0].message if self.failures else None

    def to_dict(self) -> dict:
        return {"ok": self.ok, "failures": [f.to_dict() for f in self.failures]}


def _failure(kind: FailureKind, **kwargs) -> ValidationResult:
    return ValidationResult((ValidationFailure(kind, MESSAGES[kind], **kwargs),))


def requested_quantities(items: Iterable[LineItemDraft]) -> dict[int, float]:
    """Total requested quantity per product, in order of first appearance."""
    totals: dict[int, float] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0.0) + item.quantity
    return totals


def check_availability(
    items: Iterable[LineItemDraft],
    availability: Mapping[int, float],
) -> list[int]:
    """
    Product ids whose requested quantity exceeds what is available.

    A product with no entry in `availability` has no ledger record and is
    never available.
    """
    short = []
    for product_id, requested in requested_quantities(items).items():
        available = availability.get(product_id)
        if available is None or available < requested:
            short.append(product_id)
    return short


def _invalid_item(item: LineItemDraft, known_product_ids: set[int] | frozenset[int]) -> str | None:
    if item.product_id is None or item.product_id not in known_product_ids:
        return "ID de produit invalide"
    if not (math.isfinite(item.quantity) and item.quantity > 0):
        return "La quantité doit être positive"
    if not (math.isfinite(item.unit_price) and item.unit_price >= 0):
        return "Le prix unitaire doit être positif"
    return None


def validate(
    draft: SaleDraft,
    known_product_ids: set[int] | frozenset[int],
    availability: Mapping[int, float],
) -> ValidationResult:
    """Validate a draft against the catalog and an availability snapshot."""
    if draft.customer_id is None:
        return _failure(FailureKind.MISSING_CUSTOMER)

    if not draft.items:
        return _failure(FailureKind.EMPTY_ORDER)

    for index, item in enumerate(draft.items):
        reason = _invalid_item(item, known_product_ids)
        if reason is not None:
            return ValidationResult((
                ValidationFailure(
                    FailureKind.INVALID_LINE_ITEM,
                    f"{MESSAGES[FailureKind.INVALID_LINE_ITEM]} (ligne {index + 1}) : {reason}",
                    item_index=index,
                    product_ids=(item.product_id,) if item.product_id is not None else (),
                ),
            ))

    short = check_availability(draft.items, availability)
    if short:
        return _failure(FailureKind.INSUFFICIENT_STOCK, product_ids=tuple(short))

    return ValidationResult()
