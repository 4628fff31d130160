# Overview: Service-layer operations for the stock outbox; records intended ledger mutations and delivers them.

"""
Outbox for stock ledger mutations

- stage_sale_events() adds one pending event per sale line to the current
  session. The caller commits them with the sale header.
- dispatch_event() tries one delivery. Success stamps published_at; failure
  increments publish_attempts and stores last_error. It never raises on a
  delivery failure.
- relay_pending() retries events that are still unpublished and below
  OUTBOX_MAX_ATTEMPTS, oldest first.
"""
from __future__ import annotations

import json

from flask import current_app

from ..extensions import db
from ..models import OutboxEvent, Transaction
from snspos.time_utils import utcnow


SALE_EVENT_TYPE = "stock.sale"
TRANSACTION_AGGREGATE = "transaction"


def stage_sale_events(transaction: Transaction) -> list[OutboxEvent]:
    events = []
    for line in transaction.items:
        payload = {
            "productId": line.product_id,
            "quantity": -line.quantity,
            "type": "sale",
            "reference": transaction.id,
            "rate": line.price,
        }
        event = OutboxEvent(
            event_type=SALE_EVENT_TYPE,
            aggregate_type=TRANSACTION_AGGREGATE,
            aggregate_id=transaction.id,
            payload=json.dumps(payload),
            occurred_at=transaction.date,
        )
        db.session.add(event)
        events.append(event)
    return events


def dispatch_event(event: OutboxEvent, client) -> bool:
    """
    Deliver one event through `client`. Returns True when published.

    The ledger write (for the in-process client) and the published_at stamp
    share one commit, so a failure anywhere leaves neither behind.
    """
    payload = event.payload_data
    aggregate_id, event_id = event.aggregate_id, event.event_id
    try:
        client.record(
            product_id=payload["productId"],
            quantity=payload["quantity"],
            type=payload["type"],
            reference=payload.get("reference"),
            rate=payload.get("rate"),
        )
        event.publish_attempts = (event.publish_attempts or 0) + 1
        event.published_at = utcnow()
        event.last_error = None
        db.session.commit()
        return True
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(
            "Failed to update stock for product %s (%s, event %s): %s",
            payload.get("productId"), aggregate_id, event_id, exc,
        )
        error = str(exc)[:1000]

    try:
        event.publish_attempts = (event.publish_attempts or 0) + 1
        event.last_error = error
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Could not record failed delivery of event %s", event_id)
    return False


def list_events(*, pending_only: bool = False, limit: int = 100) -> list[OutboxEvent]:
    query = db.session.query(OutboxEvent)
    if pending_only:
        query = query.filter(OutboxEvent.published_at.is_(None))
    return query.order_by(OutboxEvent.id.asc()).limit(limit).all()


def relay_pending(client, *, limit: int = 100) -> dict:
    """
    Retry unpublished events, oldest first.

    Returns {"attempted", "published", "failed"} counts.
    """
    max_attempts = current_app.config["OUTBOX_MAX_ATTEMPTS"]
    events = (
        db.session.query(OutboxEvent)
        .filter(
            OutboxEvent.published_at.is_(None),
            OutboxEvent.publish_attempts < max_attempts,
        )
        .order_by(OutboxEvent.id.asc())
        .limit(limit)
        .all()
    )

    published = 0
    for event in events:
        if dispatch_event(event, client):
            published += 1

    if events:
        current_app.logger.info(
            "Outbox relay: %d attempted, %d published", len(events), published
        )
    return {
        "attempted": len(events),
        "published": published,
        "failed": len(events) - published,
    }
