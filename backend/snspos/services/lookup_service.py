# Overview: Service-layer operations for POS product lookup; resolves scanned codes against the catalog.

"""
Product lookup

Resolves a scanned or typed code to a sellable product.

Match order (first hit wins):
1. exact item_code
2. exact name (case-insensitive)
3. item_code contains the code
4. name contains the code (case-insensitive)

Stock and price come from a full ledger fold per item (see
stock_ledger_service.get_item_stock); nothing is cached between calls.
"""
from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Item, ItemGroup
from ..validation import NotFoundError, ValidationError
from snspos.number_utils import as_number
from .pagination import like_term, paginate
from .stock_ledger_service import get_item_stock


def to_product(item: Item) -> dict:
    """Catalog item + ledger fold -> POS Product shape."""
    stock = get_item_stock(item)
    return {
        "id": item.id,
        "name": item.name,
        "price": as_number(stock["price"]),
        "category": item.group.name if item.group else None,
        "barcode": item.item_code,
        "sku": item.item_code,
        "inStock": as_number(stock["inStock"]),
    }


def _find_item(code: str) -> Item | None:
    base = db.session.query(Item)

    item = base.filter(Item.item_code == code).first()
    if item:
        return item

    item = base.filter(func.lower(Item.name) == code.lower()).order_by(Item.row_id.asc()).first()
    if item:
        return item

    term = like_term(code)
    item = base.filter(Item.item_code.like(term, escape="\\")).order_by(Item.row_id.asc()).first()
    if item:
        return item

    return base.filter(Item.name.ilike(term, escape="\\")).order_by(Item.row_id.asc()).first()


def resolve_product(code: str) -> dict:
    code = (code or "").strip()
    if not code:
        raise ValidationError("Barcode is required")

    item = _find_item(code)
    if item is None:
        raise NotFoundError(f"Product with barcode {code} not found")
    return to_product(item)


def list_products(*, page: int = 1, limit: int = 10, search: str = "") -> dict:
    query = db.session.query(Item).outerjoin(ItemGroup, Item.item_group_id == ItemGroup.id)
    if search:
        term = like_term(search)
        query = query.filter(
            Item.name.ilike(term, escape="\\")
            | Item.item_code.ilike(term, escape="\\")
            | ItemGroup.name.ilike(term, escape="\\")
        )
    query = query.order_by(Item.name.asc(), Item.row_id.asc())

    items, pagination = paginate(query, page=page, limit=limit)
    return {
        "products": [to_product(item) for item in items],
        "pagination": pagination,
    }


def get_product(product_id: str) -> dict:
    item = db.session.query(Item).filter_by(id=product_id).first()
    if item is None:
        raise NotFoundError("Product not found")
    return to_product(item)
