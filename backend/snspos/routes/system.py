# backend/snspos/routes/system.py
"""
System health endpoint.

Reports database connectivity and the outbox backlog (ledger updates that
have not been applied yet).
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Item, OutboxEvent, StockEntry
from snspos.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        item_count = db.session.query(Item).count()
        entry_count = db.session.query(StockEntry).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "items": item_count,
                "stock_entries": entry_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_outbox_health() -> dict:
    """Pending events are degraded, exhausted ones (max attempts reached) too."""
    start_time = time.time()
    try:
        pending = db.session.query(OutboxEvent).filter(
            OutboxEvent.published_at.is_(None)
        ).count()
        exhausted = db.session.query(OutboxEvent).filter(
            OutboxEvent.published_at.is_(None),
            OutboxEvent.publish_attempts >= current_app.config["OUTBOX_MAX_ATTEMPTS"],
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        result = {
            "status": "degraded" if pending else "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "pending": pending,
                "exhausted": exhausted,
            }
        }
        if pending:
            result["warning"] = f"{pending} stock ledger update(s) pending"
        return result
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Outbox health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Outbox error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    outbox_health = check_outbox_health()

    all_checks = [database_health, outbox_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "outbox": outbox_health,
        }
    }, http_status
