# Overview: Flask API routes for receipt printers; lists printers and prints receipts.

from flask import Blueprint, current_app, request

from ..services import receipt_service
from ..validation import ValidationError, NotFoundError

printers_bp = Blueprint("printers", __name__, url_prefix="/api/pos/printers")


@printers_bp.get("")
def list_printers():
    return {"printers": receipt_service.list_printers()}, 200


@printers_bp.post("")
def print_receipt():
    """
    Body: {transactionId, printerName?, businessName?, businessAddress?,
           businessPhone?, businessEmail?}
    """
    data = request.get_json(silent=True) or {}
    business = {
        "name": data.get("businessName"),
        "address": data.get("businessAddress"),
        "phone": data.get("businessPhone"),
        "email": data.get("businessEmail"),
    }
    try:
        receipt_service.print_receipt(
            data.get("transactionId"),
            business=business,
            printer_name=data.get("printerName"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to print receipt")
        return {"error": "Failed to print receipt"}, 500

    return {"success": True, "message": "Receipt printed successfully"}, 200
