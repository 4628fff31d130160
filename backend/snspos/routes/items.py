# Overview: Flask API routes for catalog items; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..models import Item
from ..services import catalog_service
from ..services.pagination import parse_page_args
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_item,
    ValidationError,
    NotFoundError,
    ConflictError,
)

# name is not writable: an item takes its group's name on creation
ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"item_code", "item_group_id", "rate"},
    required_on_create={"item_code", "item_group_id"},
)

items_bp = Blueprint("items", __name__, url_prefix="/api/stock/items")


@items_bp.get("")
def list_items():
    """
    Query params:
    - page, limit
    - search: substring of item name/code or group name/code
    """
    page, limit = parse_page_args(request.args)
    search = (request.args.get("search") or "").strip()
    try:
        return catalog_service.list_items(page=page, limit=limit, search=search), 200
    except Exception:
        current_app.logger.exception("Failed to fetch items")
        return {"error": "Internal server error"}, 500


@items_bp.post("")
def create_item():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
        enforce_rules_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        item = catalog_service.create_item(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create item")
        return {"error": "Internal server error"}, 500

    return {"item": item.to_dict()}, 201


@items_bp.get("/<item_id>")
def get_item(item_id: str):
    try:
        item = catalog_service.get_item(item_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"item": item.to_dict()}, 200
