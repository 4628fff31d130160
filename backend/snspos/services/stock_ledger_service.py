# Overview: Ledger fold (on-hand and latest price) and the signed stock-transaction API.

# backend/snspos/services/stock_ledger_service.py
"""
Stock ledger invariants (authoritative)

- On-hand is ledger-derived, never stored:
      on_hand = sum(purchase + adjustment) - sum(sale + return)
  folded over ALL entries of the item on every read. Order of entries does
  not matter.
- An item with no entries at all is reported with STOCK_FALLBACK_QUANTITY
  on hand (assume-stock-exists policy), not zero.
- Price is the rate of the latest purchase by entry_date (ties: created_at,
  then insertion order). Without a purchase, the item's stored rate; else 0.
- The stock transactions API speaks signed quantities; rows are stored with
  a positive quantity and the direction in `type`.
"""
from __future__ import annotations

from datetime import datetime, time
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..models import Item, StockEntry
from ..models.stock import INBOUND_TYPES, OUTBOUND_TYPES
from ..validation import NotFoundError, ValidationError, normalize_entry_type
from snspos.time_utils import parse_iso_datetime
from .concurrency import run_with_retry
from .pagination import paginate
from .stock_entry_service import add_stock_entry


def fold_stock(entries: Iterable[StockEntry]) -> tuple[float, int]:
    """
    Signed fold over ledger rows.

    Returns (on_hand, entry_count).
    """
    on_hand = 0.0
    count = 0
    for entry in entries:
        count += 1
        if entry.type in INBOUND_TYPES:
            on_hand += entry.quantity
        elif entry.type in OUTBOUND_TYPES:
            on_hand -= entry.quantity
    return on_hand, count


def latest_purchase_rate(entries: Iterable[StockEntry]) -> float | None:
    latest = None
    for entry in entries:
        if entry.type != "purchase":
            continue
        key = (entry.entry_date, entry.created_at or datetime.min, getattr(entry, "row_id", None) or 0)
        if latest is None or key > latest[0]:
            latest = (key, entry.rate)
    return latest[1] if latest else None


def get_item_stock(item: Item) -> dict:
    """
    Fold the full ledger of one item into {inStock, price, entryCount}.

    Full scan per call; no caching.
    """
    entries = db.session.query(StockEntry).filter_by(item_id=item.id).all()

    on_hand, count = fold_stock(entries)
    if count == 0:
        on_hand = float(current_app.config["STOCK_FALLBACK_QUANTITY"])

    price = latest_purchase_rate(entries)
    if price is None:
        price = item.rate if item.rate is not None else 0.0

    return {"inStock": on_hand, "price": price, "entryCount": count}


# =============================================================================
# Stock transactions (signed view over the ledger)
# =============================================================================

def record_stock_transaction(
    *,
    product_id: str,
    quantity: float,
    type: str,
    rate: float | None = None,
    unit: str | None = None,
    reference: str | None = None,
    notes: str | None = None,
    commit: bool = True,
) -> StockEntry:
    """
    Append one ledger row for a signed movement.

    quantity may arrive negative (POS sales send -qty); the stored quantity
    is its absolute value and the direction comes from `type`.
    """
    entry_type = normalize_entry_type(type)

    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity == 0:
        raise ValidationError("quantity must be a non-zero number")
    if rate is not None and (isinstance(rate, bool) or not isinstance(rate, (int, float)) or rate < 0):
        raise ValidationError("rate must be a non-negative number")

    if db.session.query(Item.row_id).filter_by(id=product_id).first() is None:
        raise NotFoundError(f"Item {product_id} not found")

    def _op():
        entry = add_stock_entry({
            "item_id": product_id,
            "type": entry_type,
            "quantity": abs(float(quantity)),
            "unit": unit or current_app.config["DEFAULT_STOCK_UNIT"],
            "rate": float(rate) if rate is not None else 0.0,
            "reference": reference,
            "notes": notes,
        })
        if commit:
            db.session.commit()
        return entry

    return run_with_retry(_op)


def _end_of_day(dt: datetime) -> datetime:
    if dt.time() == time(0, 0):
        return datetime.combine(dt.date(), time.max)
    return dt


def list_stock_transactions(
    *,
    page: int = 1,
    limit: int = 20,
    product_id: str | None = None,
    sku: str | None = None,
    type: str | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
) -> dict:
    """
    Signed movements, newest first.

    to_date given as a bare date includes the whole day.
    """
    query = db.session.query(StockEntry).join(Item, StockEntry.item_id == Item.id)

    if product_id:
        query = query.filter(StockEntry.item_id == product_id)
    if sku:
        query = query.filter(Item.item_code == sku)
    if type:
        query = query.filter(StockEntry.type == normalize_entry_type(type))

    try:
        from_dt = parse_iso_datetime(from_date)
        to_dt = parse_iso_datetime(to_date)
    except ValueError:
        raise ValidationError("fromDate/toDate must be ISO-8601 dates")

    if from_dt is not None:
        query = query.filter(StockEntry.entry_date >= from_dt)
    if to_dt is not None:
        query = query.filter(StockEntry.entry_date <= _end_of_day(to_dt))

    query = query.order_by(StockEntry.entry_date.desc(), StockEntry.row_id.desc())
    entries, pagination = paginate(query, page=page, limit=limit)
    return {
        "transactions": [e.to_movement_dict() for e in entries],
        "pagination": pagination,
    }


def get_stock_transaction(transaction_id: str) -> StockEntry:
    entry = db.session.query(StockEntry).filter_by(id=transaction_id).first()
    if entry is None:
        raise NotFoundError("Stock transaction not found")
    return entry
