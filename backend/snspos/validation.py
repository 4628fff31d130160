from __future__ import annotations
from datetime import datetime
from snspos.time_utils import parse_iso_datetime, from_epoch_seconds

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Float, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


STOCK_ENTRY_TYPES = ("purchase", "sale", "return", "adjustment")
PAYMENT_METHODS = ("CASH", "CARD")
TRANSACTION_STATUSES = ("completed", "pending", "failed", "refunded")

# Upper bound for rates, prices and totals; guards against float overflow junk
MAX_AMOUNT = 9_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing resource."""


class ConflictError(ValueError):
    """409-level business rule conflict (duplicate name/code, referenced row)."""


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


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Floats - quantities and rates; accept numeric strings from form posts
    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValidationError(f"{col.key} must be a number")
        raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (ISO-8601 strings or unix seconds; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return from_epoch_seconds(value)
            except (OverflowError, OSError, ValueError):
                raise ValidationError(f"{col.key} is not a valid timestamp")
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except Exception:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

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

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
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

        if raw is None:
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


def enforce_rules_item_group(patch: dict, *, partial: bool) -> None:
    if partial and not patch.get("name") and not patch.get("code"):
        raise ValidationError("Name or code must be provided")


def enforce_rules_item(patch: dict) -> None:
    if "rate" in patch and patch["rate"] is not None:
        _check_amount("rate", patch["rate"])


def enforce_rules_stock_entry(patch: dict) -> None:
    """
    Ledger rows carry direction in `type`, never in the sign of quantity.
    """
    if "quantity" in patch:
        if patch["quantity"] is None or patch["quantity"] <= 0:
            raise ValidationError("Quantity must be greater than 0")

    if "rate" in patch:
        if patch["rate"] is None:
            raise ValidationError("Rate must be a non-negative number")
        _check_amount("rate", patch["rate"])

    if "type" in patch:
        patch["type"] = normalize_entry_type(patch["type"])


def normalize_entry_type(value: Any) -> str:
    entry_type = str(value or "").strip().lower()
    if entry_type not in STOCK_ENTRY_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(STOCK_ENTRY_TYPES)}")
    return entry_type


def _check_amount(field: str, value: float) -> None:
    if value < 0:
        raise ValidationError(f"{field} must be a non-negative number")
    if value > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT:,.2f}")


def _as_number(field: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    return float(value)


def validate_transaction_payload(payload: Any) -> dict:
    """
    Boundary validation for POST /api/pos/transactions.

    The declared total is checked for shape only; it is not compared with
    the sum of the lines.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if not items or not isinstance(items, list):
        raise ValidationError("Transaction must have at least one item")

    payment_method = payload.get("paymentMethod")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Invalid payment method")

    total = payload.get("total")
    if isinstance(total, bool) or not isinstance(total, (int, float)) or total <= 0:
        raise ValidationError("Invalid transaction total")

    lines = []
    for idx, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {idx} must be an object")
        product_id = raw.get("productId")
        name = raw.get("name")
        if product_id in (None, ""):
            raise ValidationError(f"Item {idx}: productId is required")
        if not name or not str(name).strip():
            raise ValidationError(f"Item {idx}: name is required")

        price = _as_number(f"Item {idx}: price", raw.get("price"))
        if price < 0:
            raise ValidationError(f"Item {idx}: price must be >= 0")

        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0:
            raise ValidationError(f"Item {idx}: quantity must be greater than 0")

        sku = raw.get("sku")
        lines.append({
            "productId": str(product_id),
            "name": str(name).strip(),
            "price": price,
            "quantity": quantity,
            "sku": str(sku) if sku not in (None, "") else None,
        })

    return {
        "items": lines,
        "paymentMethod": payment_method,
        "total": float(total),
    }
