# Overview: Immutable sale drafts and the transitions an operator applies while editing them.

"""
A SaleDraft is the in-progress, not yet submitted sale. Every transition
returns a new draft; nothing here touches the database, so abandoning a
draft has no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from ..models import PAYMENT_STATUSES, SALE_STATUSES
from ..validation import ValidationError, parse_id, parse_number


LINE_ITEM_FIELDS = ("product_id", "quantity", "unit_price")


@dataclass(frozen=True)
class LineItemDraft:
    product_id: int | None = None
    quantity: float = 1.0
    unit_price: float = 0.0
    # Set once the item has been persisted
    item_id: int | None = None

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price

    def to_dict(self) -> dict:
        return {
            "id": self.item_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class SaleDraft:
    customer_id: int | None = None
    items: tuple[LineItemDraft, ...] = field(default_factory=tuple)
    status: str = "pending"
    payment_status: str = "pending"
    sale_id: int | None = None
    request_token: str | None = None

    @property
    def is_edit(self) -> bool:
        return self.sale_id is not None

    def to_dict(self) -> dict:
        return {
            "sale_id": self.sale_id,
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            "status": self.status,
            "payment_status": self.payment_status,
            "request_token": self.request_token,
            "total_amount": draft_total(self),
        }


def new_draft(request_token: str | None = None) -> SaleDraft:
    return SaleDraft(request_token=request_token)


def draft_from_sale(sale) -> SaleDraft:
    """Open an existing Sale (with its items) for editing."""
    return SaleDraft(
        sale_id=sale.id,
        customer_id=sale.customer_id,
        status=sale.status,
        payment_status=sale.payment_status,
        items=tuple(
            LineItemDraft(
                item_id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in sale.items
        ),
    )


def draft_from_payload(payload: Mapping[str, Any] | None, sale_id: int | None = None) -> SaleDraft:
    """
    Build a draft from a JSON body.

    Only types are checked here; business rules live in sale_validation.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationError("Invalid JSON payload")

    raw_items = payload.get("items") or []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"items[{index}] must be an object")
        items.append(
            LineItemDraft(
                item_id=parse_id(raw.get("id"), f"items[{index}].id"),
                product_id=parse_id(raw.get("product_id"), f"items[{index}].product_id"),
                quantity=parse_number(raw.get("quantity", 0), f"items[{index}].quantity"),
                unit_price=parse_number(raw.get("unit_price", 0), f"items[{index}].unit_price"),
            )
        )

    draft = SaleDraft(
        sale_id=sale_id,
        customer_id=parse_id(payload.get("customer_id"), "customer_id"),
        items=tuple(items),
        request_token=(str(payload["request_token"]).strip() or None) if payload.get("request_token") else None,
    )
    if payload.get("status") is not None:
        draft = set_status(draft, payload["status"])
    if payload.get("payment_status") is not None:
        draft = set_payment_status(draft, payload["payment_status"])
    return draft


def set_customer(draft: SaleDraft, customer_id: int | None) -> SaleDraft:
    return replace(draft, customer_id=customer_id)


def add_item(draft: SaleDraft) -> SaleDraft:
    """Append an empty line (quantity 1, price 0)."""
    return replace(draft, items=draft.items + (LineItemDraft(),))


def remove_item(draft: SaleDraft, index: int) -> SaleDraft:
    if not 0 <= index < len(draft.items):
        raise IndexError(f"no line item at index {index}")
    return replace(draft, items=draft.items[:index] + draft.items[index + 1:])


def update_item(
    draft: SaleDraft,
    index: int,
    field_name: str,
    value: Any,
    catalog: Mapping[int, Any] | None = None,
) -> SaleDraft:
    """
    Set one field of a line item.

    Selecting a product pre-fills unit_price from its catalog price (0 when
    the product is not in `catalog`). Later price edits are left alone.
    """
    if not 0 <= index < len(draft.items):
        raise IndexError(f"no line item at index {index}")
    if field_name not in LINE_ITEM_FIELDS:
        raise ValidationError(f"Unknown line item field: {field_name}")

    item = draft.items[index]
    if field_name == "product_id":
        product_id = parse_id(value, "product_id")
        entry = (catalog or {}).get(product_id)
        price = entry.price if entry is not None else 0.0
        item = replace(item, product_id=product_id, unit_price=price)
    else:
        item = replace(item, **{field_name: parse_number(value, field_name)})

    items = draft.items[:index] + (item,) + draft.items[index + 1:]
    return replace(draft, items=items)


def set_status(draft: SaleDraft, status: str) -> SaleDraft:
    if status not in SALE_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(SALE_STATUSES)}")
    return replace(draft, status=status)


def set_payment_status(draft: SaleDraft, payment_status: str) -> SaleDraft:
    if payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of {', '.join(PAYMENT_STATUSES)}")
    return replace(draft, payment_status=payment_status)


def draft_total(draft: SaleDraft) -> float:
    return sum((item.line_total for item in draft.items), 0.0)
