# Overview: Flask API routes for the POS till: barcode lookup and sellable products.

from flask import Blueprint, current_app, request

from ..services import lookup_service
from ..services.pagination import parse_page_args
from ..validation import ValidationError, NotFoundError

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.get("/lookup/barcode/<path:code>")
def lookup_barcode(code: str):
    """
    Resolve a scanned code to a Product.

    Tries exact code, exact name, then substring matches; stock and price are
    folded from the ledger on every call.
    """
    try:
        product = lookup_service.resolve_product(code)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to look up barcode %s", code)
        return {"error": "Internal server error"}, 500

    return product, 200


@pos_bp.get("/products")
def list_products():
    page, limit = parse_page_args(request.args)
    search = (request.args.get("search") or "").strip()
    try:
        return lookup_service.list_products(page=page, limit=limit, search=search), 200
    except Exception:
        current_app.logger.exception("Failed to fetch products")
        return {"error": "Internal server error"}, 500


@pos_bp.get("/products/<product_id>")
def get_product(product_id: str):
    try:
        product = lookup_service.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to fetch product %s", product_id)
        return {"error": "Internal server error"}, 500

    return product, 200
