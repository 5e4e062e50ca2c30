from __future__ import annotations
from datetime import date, datetime
import math
import re

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_datetime


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_number(value: Any, field: str) -> float:
    """Accept ints, floats and numeric strings; reject booleans, blanks, NaN and infinities."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise ValidationError(f"{field} must be a finite number")
    elif isinstance(value, str):
        stripped = value.strip().replace(",", ".")
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number")
    return number


def parse_id(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        parsed = parse_id(value, col.key)
        if parsed is None:
            raise ValidationError(f"{col.key} must be an integer")
        return parsed

    if isinstance(coltype, Float):
        return parse_number(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
        raise ValidationError(f"{col.key} must be a date")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None or (raw == "" and col.nullable):
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    if patch.get("price") is not None and patch["price"] < 0:
        raise ValidationError("Le prix doit être positif")
    if patch.get("image_url") and not URL_RE.match(patch["image_url"]):
        raise ValidationError("URL invalide")


def enforce_rules_customer(patch: dict) -> None:
    if patch.get("email") and not EMAIL_RE.match(patch["email"]):
        raise ValidationError("Email invalide")


def enforce_rules_inventory(patch: dict) -> None:
    if "quantity" not in patch or patch["quantity"] is None:
        raise ValidationError("quantity is required")
    if patch["quantity"] < 0:
        raise ValidationError("La quantité ne peut pas être négative")
    if "unit" in patch and not patch["unit"]:
        raise ValidationError("L'unité est requise")


def _string_list(value: Any, field: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{field} must be a list of strings")
    return [v.strip() for v in value if v.strip()]


def enforce_rules_supplier(patch: dict) -> None:
    if patch.get("email") and not EMAIL_RE.match(patch["email"]):
        raise ValidationError("Email invalide")
    if "product_categories" in patch:
        patch["product_categories"] = _string_list(patch["product_categories"], "product_categories")


def enforce_rules_clearance(patch: dict, statuses: tuple[str, ...]) -> None:
    if "status" in patch and patch["status"] not in statuses:
        raise ValidationError(f"status must be one of: {', '.join(statuses)}")
    if patch.get("customs_fees") is not None and patch["customs_fees"] < 0:
        raise ValidationError("Les frais de douane ne peuvent pas être négatifs")
    if "documents_url" in patch:
        urls = _string_list(patch["documents_url"], "documents_url")
        if urls and not all(URL_RE.match(u) for u in urls):
            raise ValidationError("URL invalide")
        patch["documents_url"] = urls
