from __future__ import annotations

import uuid

from ..extensions import db
from snspos.number_utils import as_number
from snspos.time_utils import to_utc_z


def new_uuid() -> str:
    return str(uuid.uuid4())


class Store(db.Model):
    """
    Store master data.

    Single-store deployment today: stock entries are always booked against
    the configured default store (see store_service.ensure_default_store).
    """
    __tablename__ = "stores"
    __table_args__ = {"sqlite_autoincrement": True}

    row_id = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, default=new_uuid)
    name = db.Column(db.String(100), nullable=False, unique=True)
    code = db.Column(db.String(50), nullable=False, unique=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Store id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class ItemGroup(db.Model):
    """
    Catalog classification an item belongs to.

    Name and code are each unique. The service layer checks both before
    insert/update; the unique constraints are the backstop.
    A group cannot be deleted while any Item references it.
    """
    __tablename__ = "item_groups"
    __table_args__ = {"sqlite_autoincrement": True}

    row_id = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, default=new_uuid)
    name = db.Column(db.String(100), nullable=False, unique=True)
    code = db.Column(db.String(100), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<ItemGroup id={self.id} code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "created_at": to_utc_z(self.created_at),
        }


class Item(db.Model):
    """
    Sellable catalog item.

    item_code is the scanned barcode/SKU. The display name is copied from the
    group at creation time and does not follow later group renames.
    rate is an optional stored price, used by lookups only when the item has
    no purchase history.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_name", "name"),
        {"sqlite_autoincrement": True},
    )

    row_id = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, default=new_uuid)
    item_code = db.Column(db.String(50), nullable=False, unique=True)
    name = db.Column(db.String(100), nullable=False)
    item_group_id = db.Column(db.String(36), db.ForeignKey("item_groups.id"), nullable=False, index=True)
    rate = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    group = db.relationship("ItemGroup", backref=db.backref("items", lazy=True))

    def __repr__(self) -> str:
        return f"<Item id={self.id} item_code={self.item_code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_code": self.item_code,
            "name": self.name,
            "item_group_id": self.item_group_id,
            "rate": as_number(self.rate),
            "created_at": to_utc_z(self.created_at),
            "groupName": self.group.name if self.group else None,
            "groupCode": self.group.code if self.group else None,
        }
