# Overview: Service-layer CRUD for stock entries (the inventory ledger rows).

# backend/snspos/services/stock_entry_service.py
"""
Stock entry rules

- quantity > 0, rate >= 0, unit required, type in
  {purchase, sale, return, adjustment} (default purchase).
- The referenced item must exist.
- store_id is always the default store.
- Updates are partial: only supplied fields are rewritten. Historical rows
  may be edited; on-hand is re-folded on every read, so an edit silently
  changes previously reported balances.
"""
from __future__ import annotations

import csv
import io
import json

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Item, StockEntry
from ..validation import NotFoundError, ValidationError, normalize_entry_type
from snspos.time_utils import to_utc_z, utcnow
from .concurrency import lock_for_update, run_with_retry
from .pagination import like_term, paginate
from .store_service import ensure_default_store


ENTRY_MUTABLE_FIELDS = {
    "item_id", "type", "quantity", "unit", "rate",
    "supplier", "invoice_number", "reference", "notes", "entry_date",
}

EXPORT_COLUMNS = [
    "id", "entry_date", "item_code", "item_name", "type", "quantity",
    "unit", "rate", "supplier", "invoice_number", "reference", "notes",
]


def _require_item(item_id: str) -> Item:
    item = db.session.query(Item).filter_by(id=item_id).first()
    if item is None:
        raise ValidationError("Selected item does not exist")
    return item


def _entries_query(search: str = ""):
    query = db.session.query(StockEntry).join(Item, StockEntry.item_id == Item.id)
    if search:
        term = like_term(search)
        query = query.filter(or_(
            Item.name.ilike(term, escape="\\"),
            Item.item_code.ilike(term, escape="\\"),
            StockEntry.supplier.ilike(term, escape="\\"),
            StockEntry.invoice_number.ilike(term, escape="\\"),
        ))
    return query.order_by(StockEntry.entry_date.desc(), StockEntry.row_id.desc())


def list_stock_entries(*, page: int = 1, limit: int = 10, search: str = "") -> dict:
    entries, pagination = paginate(_entries_query(search), page=page, limit=limit)
    return {
        "entries": [e.to_dict() for e in entries],
        "pagination": pagination,
    }


def get_stock_entry(entry_id: str) -> StockEntry:
    entry = db.session.query(StockEntry).filter_by(id=entry_id).first()
    if entry is None:
        raise NotFoundError("Stock entry not found")
    return entry


def add_stock_entry(patch: dict) -> StockEntry:
    """
    Build and flush a ledger row from a validated patch without committing.

    Shared by create_stock_entry and the stock transactions endpoint.
    """
    if not patch.get("item_id"):
        raise ValidationError("Item is required")
    if patch.get("quantity") is None or patch["quantity"] <= 0:
        raise ValidationError("Quantity must be greater than 0")
    if not patch.get("unit"):
        raise ValidationError("Unit is required")
    if patch.get("rate") is None or patch["rate"] < 0:
        raise ValidationError("Rate must be a non-negative number")

    item = _require_item(patch["item_id"])
    store = ensure_default_store()

    entry = StockEntry(
        item_id=item.id,
        store_id=store.id,
        type=normalize_entry_type(patch.get("type") or "purchase"),
        quantity=patch["quantity"],
        unit=patch["unit"],
        rate=patch["rate"],
        supplier=patch.get("supplier") or None,
        invoice_number=patch.get("invoice_number") or None,
        reference=patch.get("reference") or None,
        notes=patch.get("notes") or None,
        entry_date=patch.get("entry_date") or utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def create_stock_entry(*, patch: dict) -> StockEntry:
    def _op():
        entry = add_stock_entry(patch)
        db.session.commit()
        return entry

    return run_with_retry(_op)


def update_stock_entry(entry_id: str, *, patch: dict) -> StockEntry:
    changes = {k: v for k, v in patch.items() if k in ENTRY_MUTABLE_FIELDS}

    def _op():
        entry = lock_for_update(db.session.query(StockEntry).filter_by(id=entry_id)).first()
        if entry is None:
            raise NotFoundError("Stock entry not found")

        if "item_id" in changes:
            _require_item(changes["item_id"])
        if "unit" in changes and not changes["unit"]:
            raise ValidationError("Unit is required")
        if "quantity" in changes and (changes["quantity"] is None or changes["quantity"] <= 0):
            raise ValidationError("Quantity must be greater than 0")
        if "rate" in changes and (changes["rate"] is None or changes["rate"] < 0):
            raise ValidationError("Rate must be a non-negative number")
        if "type" in changes:
            changes["type"] = normalize_entry_type(changes["type"])

        for key, value in changes.items():
            setattr(entry, key, value)

        db.session.commit()
        return entry

    return run_with_retry(_op)


def delete_stock_entry(entry_id: str) -> None:
    def _op():
        entry = get_stock_entry(entry_id)
        db.session.delete(entry)
        db.session.commit()

    run_with_retry(_op)


def export_stock_entries(fmt: str = "csv") -> tuple[str, str]:
    """
    Render every entry (newest first) as CSV or JSON.

    Returns (body, mimetype).
    """
    fmt = (fmt or "csv").lower()
    if fmt not in ("csv", "json"):
        raise ValidationError("format must be csv or json")

    rows = []
    for entry in _entries_query().all():
        data = entry.to_dict()
        rows.append({col: data.get(col) for col in EXPORT_COLUMNS})

    current_app.logger.info("Exporting %d stock entries as %s", len(rows), fmt)

    if fmt == "json":
        return json.dumps({"exported_at": to_utc_z(utcnow()), "entries": rows}), "application/json"

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue(), "text/csv"
