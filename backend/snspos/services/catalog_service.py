# Overview: Service-layer operations for item groups and items; uniqueness and referential checks.

# backend/snspos/services/catalog_service.py
"""
Catalog invariants (authoritative)

- ItemGroup.name and ItemGroup.code are each unique; Item.item_code is unique.
- Uniqueness is checked by query before insert/update so callers get a
  specific message. The storage-level unique constraints stay as a backstop:
  an IntegrityError at commit is reported as the same ConflictError.
- An ItemGroup cannot be deleted while any Item references it.
- Items are never deleted through this service.
- An Item's name is copied from its group when the item is created.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Item, ItemGroup
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import run_with_retry
from .pagination import like_term, paginate


GROUP_MUTABLE_FIELDS = {"name", "code"}


def _commit_or_conflict(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(message) from exc


# =============================================================================
# Item groups
# =============================================================================

def list_item_groups(*, page: int = 1, limit: int = 10, search: str = "") -> dict:
    query = db.session.query(ItemGroup)
    if search:
        term = like_term(search)
        query = query.filter(or_(
            ItemGroup.name.ilike(term, escape="\\"),
            ItemGroup.code.ilike(term, escape="\\"),
        ))
    query = query.order_by(ItemGroup.name.asc(), ItemGroup.row_id.asc())

    groups, pagination = paginate(query, page=page, limit=limit)
    return {
        "data": [g.to_dict() for g in groups],
        "pagination": pagination,
    }


def get_item_group(group_id: str) -> ItemGroup:
    group = db.session.query(ItemGroup).filter_by(id=group_id).first()
    if group is None:
        raise NotFoundError("Item group not found")
    return group


def _check_group_duplicates(*, name: str | None, code: str | None, exclude_id: str | None = None) -> None:
    conditions = []
    if name:
        conditions.append(ItemGroup.name == name)
    if code:
        conditions.append(ItemGroup.code == code)
    if not conditions:
        return

    query = db.session.query(ItemGroup).filter(or_(*conditions))
    if exclude_id is not None:
        query = query.filter(ItemGroup.id != exclude_id)

    duplicate = query.first()
    if duplicate is None:
        return
    if name and duplicate.name == name:
        raise ConflictError("An item group with this name already exists")
    raise ConflictError("An item group with this code already exists")


def create_item_group(*, patch: dict) -> ItemGroup:
    """Create a group from a validated patch ({name, code})."""
    name = patch.get("name")
    code = patch.get("code")
    if not name or not code:
        raise ValidationError("Name and code are required")

    def _op():
        _check_group_duplicates(name=name, code=code)

        group = ItemGroup(name=name, code=code)
        db.session.add(group)
        _commit_or_conflict("An item group with this name or code already exists")
        return group

    return run_with_retry(_op)


def update_item_group(group_id: str, *, patch: dict) -> ItemGroup:
    """Partial update; only name/code supplied in the patch are rewritten."""
    changes = {k: v for k, v in patch.items() if k in GROUP_MUTABLE_FIELDS and v}
    if not changes:
        raise ValidationError("Name or code must be provided")

    def _op():
        group = get_item_group(group_id)
        _check_group_duplicates(
            name=changes.get("name"),
            code=changes.get("code"),
            exclude_id=group.id,
        )

        for key, value in changes.items():
            setattr(group, key, value)

        _commit_or_conflict("An item group with this name or code already exists")
        return group

    return run_with_retry(_op)


def delete_item_group(group_id: str) -> None:
    def _op():
        group = get_item_group(group_id)

        in_use = db.session.query(Item.row_id).filter_by(item_group_id=group.id).first()
        if in_use is not None:
            raise ConflictError(
                "Cannot delete this item group because it is being used by one or more items"
            )

        db.session.delete(group)
        db.session.commit()

    run_with_retry(_op)


def search_item_groups(*, query_text: str = "", page: int = 1, limit: int = 20) -> dict:
    """Search endpoint for group pickers; same matching as list_item_groups."""
    result = list_item_groups(page=page, limit=limit, search=query_text)
    return {"itemGroups": result["data"], "pagination": result["pagination"]}


# =============================================================================
# Items
# =============================================================================

def list_items(*, page: int = 1, limit: int = 10, search: str = "") -> dict:
    query = db.session.query(Item).outerjoin(ItemGroup, Item.item_group_id == ItemGroup.id)
    if search:
        term = like_term(search)
        query = query.filter(or_(
            Item.name.ilike(term, escape="\\"),
            Item.item_code.ilike(term, escape="\\"),
            ItemGroup.name.ilike(term, escape="\\"),
            ItemGroup.code.ilike(term, escape="\\"),
        ))
    query = query.order_by(Item.name.asc(), Item.row_id.asc())

    items, pagination = paginate(query, page=page, limit=limit)
    return {
        "items": [i.to_dict() for i in items],
        "pagination": pagination,
    }


def get_item(item_id: str) -> Item:
    item = db.session.query(Item).filter_by(id=item_id).first()
    if item is None:
        raise NotFoundError("Item not found")
    return item


def create_item(*, patch: dict) -> Item:
    """
    Create an item under an existing group.

    The item's name is the group's name at this moment.
    """
    item_code = patch.get("item_code")
    group_id = patch.get("item_group_id")
    if not item_code or not group_id:
        raise ValidationError("Item code and item group are required")

    def _op():
        existing = db.session.query(Item.row_id).filter_by(item_code=item_code).first()
        if existing is not None:
            raise ConflictError(f"Item with code {item_code} already exists")

        group = db.session.query(ItemGroup).filter_by(id=group_id).first()
        if group is None:
            raise NotFoundError(f"Item group with ID {group_id} not found")

        item = Item(
            item_code=item_code,
            item_group_id=group.id,
            name=group.name,
            rate=patch.get("rate"),
        )
        db.session.add(item)
        _commit_or_conflict(f"Item with code {item_code} already exists")
        return item

    return run_with_retry(_op)
