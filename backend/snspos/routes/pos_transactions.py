# Overview: Flask API routes for POS transactions; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..services import transaction_service
from ..services.pagination import parse_page_args
from ..validation import ValidationError, NotFoundError, validate_transaction_payload

pos_transactions_bp = Blueprint("pos_transactions", __name__, url_prefix="/api/pos/transactions")


@pos_transactions_bp.get("")
def list_transactions():
    """
    Query params:
    - page, limit
    - filter: substring of transaction id or payment method
    """
    page, limit = parse_page_args(request.args)
    filter_text = (request.args.get("filter") or "").strip()
    try:
        return transaction_service.list_transactions(page=page, limit=limit, filter=filter_text), 200
    except Exception:
        current_app.logger.exception("Failed to fetch transactions")
        return {"error": "Internal server error"}, 500


@pos_transactions_bp.post("")
def create_transaction():
    """
    Body: {items: [{productId, name, price, quantity, sku?}], paymentMethod, total}

    Stock decrements that fail are logged and left pending in the outbox;
    the sale is still recorded and returned.
    """
    payload = request.get_json(silent=True)
    try:
        data = validate_transaction_payload(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        txn = transaction_service.create_transaction(
            items=data["items"],
            payment_method=data["paymentMethod"],
            total=data["total"],
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return {"error": "Internal server error"}, 500

    return {"success": True, "transaction": txn.to_dict()}, 201


@pos_transactions_bp.get("/<transaction_id>")
def get_transaction(transaction_id: str):
    try:
        txn = transaction_service.get_transaction(transaction_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return txn.to_dict(), 200


@pos_transactions_bp.put("/<transaction_id>")
def update_transaction(transaction_id: str):
    """Body: {status}. Only the status of a recorded sale can change."""
    payload = request.get_json(silent=True) or {}
    try:
        txn = transaction_service.update_transaction_status(
            transaction_id, status=payload.get("status")
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update transaction")
        return {"error": "Internal server error"}, 500

    return {"success": True, "transaction": txn.to_dict()}, 200
