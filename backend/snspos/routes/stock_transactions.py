# Overview: Flask API routes for signed stock transactions; the ledger-update endpoint used by the POS.

from flask import Blueprint, current_app, request

from ..services import stock_ledger_service
from ..services.pagination import parse_page_args
from ..validation import ValidationError, NotFoundError

stock_transactions_bp = Blueprint("stock_transactions", __name__, url_prefix="/api/stock/transactions")


@stock_transactions_bp.get("")
def list_stock_transactions():
    """
    Query params:
    - page, limit (default 20)
    - productId, sku, type
    - fromDate, toDate: ISO-8601; a bare toDate includes the whole day
    """
    page, limit = parse_page_args(request.args, default_limit=20)
    try:
        result = stock_ledger_service.list_stock_transactions(
            page=page,
            limit=limit,
            product_id=request.args.get("productId") or None,
            sku=request.args.get("sku") or None,
            type=request.args.get("type") or None,
            from_date=request.args.get("fromDate") or None,
            to_date=request.args.get("toDate") or None,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to fetch stock transactions")
        return {"error": "Internal server error"}, 500

    return result, 200


@stock_transactions_bp.post("")
def create_stock_transaction():
    """
    Body: {productId, quantity (signed), type, rate?, unit?, reference?, notes?}

    A negative quantity is stored as a positive ledger row of the given type.
    """
    data = request.get_json(silent=True) or {}
    if not data.get("productId") or not data.get("quantity") or not data.get("type"):
        return {"error": "Missing required fields"}, 400

    try:
        entry = stock_ledger_service.record_stock_transaction(
            product_id=str(data["productId"]),
            quantity=data["quantity"],
            type=data["type"],
            rate=data.get("rate"),
            unit=data.get("unit"),
            reference=data.get("reference"),
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to record stock transaction")
        return {"error": "Internal server error"}, 500

    return {"success": True, "transaction": entry.to_movement_dict()}, 201


@stock_transactions_bp.get("/<transaction_id>")
def get_stock_transaction(transaction_id: str):
    try:
        entry = stock_ledger_service.get_stock_transaction(transaction_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return entry.to_movement_dict(), 200
