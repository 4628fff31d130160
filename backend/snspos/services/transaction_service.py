# Overview: Service-layer operations for POS transactions; persists sales and decrements the stock ledger.

# backend/snspos/services/transaction_service.py
"""
POS transaction recorder

Unit of work for a sale:
1. Header + one line per input item + one outbox event per line are
   committed together. Nothing is written if any of them fails.
2. After the commit, each outbox event is dispatched once through the stock
   ledger client, in line order. A failed dispatch is logged and swallowed;
   the event stays pending for `flask outbox relay`.

A colliding transaction id is regenerated and the write retried.

The sale is reported as successful even when every ledger update failed.
The declared total is stored as given; it is not compared with the lines.
"""
from __future__ import annotations

import time
from typing import Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Transaction, TransactionItem
from ..validation import NotFoundError, PAYMENT_METHODS, TRANSACTION_STATUSES, ValidationError
from snspos.time_utils import utcnow
from .concurrency import run_with_retry
from .ledger_client import get_ledger_client
from .outbox_service import dispatch_event, stage_sale_events
from .pagination import like_term, paginate


def generate_transaction_id(now_ms: Optional[int] = None) -> str:
    """
    "TX-" + last six digits of the epoch milliseconds.

    The six-digit window wraps every ~16.7 minutes; a collision with an
    existing id gets a numeric suffix ("TX-123456-2").
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    base = f"TX-{str(now_ms)[-6:]}"

    candidate = base
    suffix = 2
    while db.session.get(Transaction, candidate) is not None:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def create_transaction(
    *,
    items: Sequence[dict],
    payment_method: str,
    total: float,
    status: str = "completed",
    ledger_client=None,
) -> Transaction:
    """
    Record a sale and apply one stock decrement per line.

    items: [{productId, name, price, quantity, sku?}, ...] in display order.
    """
    if not items:
        raise ValidationError("Transaction must have at least one item")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Invalid payment method")
    if status not in TRANSACTION_STATUSES:
        raise ValidationError("Invalid transaction status")

    def _op():
        txn = Transaction(
            id=generate_transaction_id(),
            date=utcnow(),
            total=float(total),
            payment_method=payment_method,
            status=status,
        )
        for line_number, line in enumerate(items, start=1):
            txn.items.append(TransactionItem(
                line_number=line_number,
                product_id=str(line["productId"]),
                name=line["name"],
                price=float(line["price"]),
                quantity=float(line["quantity"]),
                sku=line.get("sku"),
            ))
        db.session.add(txn)
        db.session.flush()

        events = stage_sale_events(txn)
        db.session.commit()
        return txn, events

    # An unknown STOCK_LEDGER_MODE must fail before anything is written.
    client = ledger_client or get_ledger_client()
    try:
        # Another sale in the same millisecond can take the id between the
        # existence check and the insert; a retry regenerates it.
        txn, events = run_with_retry(_op, retry_on=(IntegrityError,))

        for event in events:
            dispatch_event(event, client)
    finally:
        if ledger_client is None:
            client.close()

    return txn


def list_transactions(*, page: int = 1, limit: int = 10, filter: str = "") -> dict:
    """Newest first; filter is a case-insensitive substring of id or payment method."""
    query = db.session.query(Transaction)
    if filter:
        term = like_term(filter.lower())
        query = query.filter(or_(
            func.lower(Transaction.id).like(term, escape="\\"),
            func.lower(Transaction.payment_method).like(term, escape="\\"),
        ))
    query = query.order_by(Transaction.date.desc(), Transaction.created_at.desc())

    transactions, pagination = paginate(query, page=page, limit=limit)
    return {
        "transactions": [t.to_dict() for t in transactions],
        "pagination": pagination,
    }


def get_transaction(transaction_id: str) -> Transaction:
    txn = db.session.get(Transaction, transaction_id)
    if txn is None:
        raise NotFoundError("Transaction not found")
    return txn


def update_transaction_status(transaction_id: str, *, status: str) -> Transaction:
    """Status only; lines and total are immutable once recorded."""
    if status not in TRANSACTION_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(TRANSACTION_STATUSES)}")

    def _op():
        txn = get_transaction(transaction_id)
        txn.status = status
        db.session.commit()
        return txn

    return run_with_retry(_op)
