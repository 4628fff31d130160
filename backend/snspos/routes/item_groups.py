# Overview: Flask API routes for item groups; parses input and returns JSON responses.

from flask import Blueprint, current_app, request

from ..models import ItemGroup
from ..services import catalog_service
from ..services.pagination import parse_page_args
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_item_group,
    ValidationError,
    NotFoundError,
    ConflictError,
)

ITEM_GROUP_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code"},
    required_on_create={"name", "code"},
)

item_groups_bp = Blueprint("item_groups", __name__, url_prefix="/api/stock/item-groups")
item_group_search_bp = Blueprint("item_group_search", __name__, url_prefix="/api/item-groups")


@item_groups_bp.get("")
def list_item_groups():
    """
    Query params:
    - page, limit
    - search: substring of name or code (case-insensitive)
    """
    page, limit = parse_page_args(request.args)
    search = (request.args.get("search") or "").strip()
    try:
        return catalog_service.list_item_groups(page=page, limit=limit, search=search), 200
    except Exception:
        current_app.logger.exception("Failed to fetch item groups")
        return {"error": "Internal server error"}, 500


@item_groups_bp.post("")
def create_item_group():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=ItemGroup, payload=payload, policy=ITEM_GROUP_POLICY, partial=False)
        enforce_rules_item_group(patch, partial=False)
        group = catalog_service.create_item_group(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create item group")
        return {"error": "Internal server error"}, 500

    return {"itemGroup": group.to_dict()}, 201


@item_groups_bp.get("/<group_id>")
def get_item_group(group_id: str):
    try:
        group = catalog_service.get_item_group(group_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"itemGroup": group.to_dict()}, 200


@item_groups_bp.put("/<group_id>")
def update_item_group(group_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=ItemGroup, payload=payload, policy=ITEM_GROUP_POLICY, partial=True)
        enforce_rules_item_group(patch, partial=True)
        group = catalog_service.update_item_group(group_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update item group")
        return {"error": "Internal server error"}, 500

    return {"itemGroup": group.to_dict()}, 200


@item_groups_bp.delete("/<group_id>")
def delete_item_group(group_id: str):
    try:
        catalog_service.delete_item_group(group_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to delete item group")
        return {"error": "Internal server error"}, 500

    return {"success": True}, 200


@item_group_search_bp.get("/search")
def search_item_groups():
    """Group picker search: ?q (name/code substring), page, limit (default 20)."""
    page, limit = parse_page_args(request.args, default_limit=20)
    query_text = (request.args.get("q") or "").strip()
    try:
        return catalog_service.search_item_groups(query_text=query_text, page=page, limit=limit), 200
    except Exception:
        current_app.logger.exception("Failed to search item groups")
        return {"error": "Internal server error"}, 500
