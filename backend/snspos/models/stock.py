from __future__ import annotations

from ..extensions import db
from .catalog import new_uuid
from snspos.number_utils import as_number
from snspos.time_utils import to_utc_z, utcnow

# Direction of each ledger type when folding on-hand stock
INBOUND_TYPES = ("purchase", "adjustment")
OUTBOUND_TYPES = ("sale", "return")


class StockEntry(db.Model):
    """
    One inventory movement. Append-only ledger row.

    quantity is always stored positive; direction is carried by `type`:
    purchase/adjustment add to on-hand, sale/return subtract.
    On-hand is never stored; it is folded from all rows of an item.
    """
    __tablename__ = "stock_entries"
    __table_args__ = (
        db.Index("ix_stock_entries_item_type_date", "item_id", "type", "entry_date"),
        db.Index("ix_stock_entries_entry_date", "entry_date"),
        {"sqlite_autoincrement": True},
    )

    row_id = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(36), nullable=False, unique=True, default=new_uuid)

    item_id = db.Column(db.String(36), db.ForeignKey("items.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    type = db.Column(db.String(20), nullable=False, default="purchase")
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    rate = db.Column(db.Float, nullable=False)

    supplier = db.Column(db.String(100), nullable=True)
    invoice_number = db.Column(db.String(50), nullable=True)

    # Source document (e.g. "TX-123456" for POS sales)
    reference = db.Column(db.String(64), nullable=True, index=True)
    notes = db.Column(db.String(255), nullable=True)

    # Business time of the movement; created_at is system time
    entry_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    item = db.relationship("Item", backref=db.backref("stock_entries", lazy=True))

    @property
    def signed_quantity(self) -> float:
        if self.type in OUTBOUND_TYPES:
            return -self.quantity
        return self.quantity

    def __repr__(self) -> str:
        return f"<StockEntry id={self.id} item_id={self.item_id} type={self.type} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "store_id": self.store_id,
            "type": self.type,
            "quantity": as_number(self.quantity),
            "unit": self.unit,
            "rate": as_number(self.rate),
            "supplier": self.supplier,
            "invoice_number": self.invoice_number,
            "reference": self.reference,
            "notes": self.notes,
            "entry_date": to_utc_z(self.entry_date),
            "created_at": to_utc_z(self.created_at),
            "item_name": self.item.name if self.item else None,
            "item_code": self.item.item_code if self.item else None,
        }

    def to_movement_dict(self) -> dict:
        """Signed view used by the stock transactions API."""
        return {
            "id": self.id,
            "date": to_utc_z(self.entry_date),
            "productId": self.item_id,
            "sku": self.item.item_code if self.item else "",
            "productName": self.item.name if self.item else "",
            "quantity": as_number(self.signed_quantity),
            "type": self.type,
            "reference": self.reference or "",
            "notes": self.notes or "",
        }
