# Overview: Flask API routes for stock entries (ledger rows); parses input and returns JSON responses.

from flask import Blueprint, Response, current_app, request

from ..models import StockEntry
from ..services import stock_entry_service
from ..services.pagination import parse_page_args
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_stock_entry,
    ValidationError,
    NotFoundError,
)

STOCK_ENTRY_POLICY = ModelValidationPolicy(
    writable_fields={
        "item_id", "type", "quantity", "unit", "rate",
        "supplier", "invoice_number", "reference", "notes", "entry_date",
    },
    required_on_create={"item_id", "quantity", "unit", "rate"},
)

stock_entries_bp = Blueprint("stock_entries", __name__, url_prefix="/api/stock/entries")


@stock_entries_bp.get("")
def list_stock_entries():
    """
    Query params:
    - page, limit
    - search: item name/code, supplier or invoice number substring
    """
    page, limit = parse_page_args(request.args)
    search = (request.args.get("search") or "").strip()
    try:
        return stock_entry_service.list_stock_entries(page=page, limit=limit, search=search), 200
    except Exception:
        current_app.logger.exception("Failed to fetch stock entries")
        return {"error": "Internal server error"}, 500


@stock_entries_bp.post("")
def create_stock_entry():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=StockEntry, payload=payload, policy=STOCK_ENTRY_POLICY, partial=False)
        enforce_rules_stock_entry(patch)
        entry = stock_entry_service.create_stock_entry(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create stock entry")
        return {"error": "Internal server error"}, 500

    return entry.to_dict(), 201


@stock_entries_bp.get("/export")
def export_stock_entries():
    """?format=csv (default) or json; served as an attachment."""
    fmt = request.args.get("format", "csv")
    try:
        body, mimetype = stock_entry_service.export_stock_entries(fmt)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to export stock entries")
        return {"error": "Internal server error"}, 500

    extension = "json" if mimetype == "application/json" else "csv"
    return Response(
        body,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename=stock_entries.{extension}"},
    )


@stock_entries_bp.get("/<entry_id>")
def get_stock_entry(entry_id: str):
    try:
        entry = stock_entry_service.get_stock_entry(entry_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return entry.to_dict(), 200


@stock_entries_bp.put("/<entry_id>")
def update_stock_entry(entry_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=StockEntry, payload=payload, policy=STOCK_ENTRY_POLICY, partial=True)
        enforce_rules_stock_entry(patch)
        entry = stock_entry_service.update_stock_entry(entry_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update stock entry")
        return {"error": "Internal server error"}, 500

    return entry.to_dict(), 200


@stock_entries_bp.delete("/<entry_id>")
def delete_stock_entry(entry_id: str):
    try:
        stock_entry_service.delete_stock_entry(entry_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to delete stock entry")
        return {"error": "Internal server error"}, 500

    return {"success": True}, 200
