from __future__ import annotations

import json

from ..extensions import db
from .catalog import new_uuid
from snspos.number_utils import as_number
from snspos.time_utils import to_utc_z, utcnow


class Transaction(db.Model):
    """
    POS sale header.

    id is human-readable and time-derived ("TX-" + last six digits of the
    epoch milliseconds). total is stored as declared by the till.
    """
    __tablename__ = "pos_transactions"
    __table_args__ = (
        db.Index("ix_pos_transactions_date", "date"),
    )

    id = db.Column(db.String(32), primary_key=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    total = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(8), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="completed")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "TransactionItem",
        backref="transaction",
        lazy=True,
        order_by="TransactionItem.line_number",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} total={self.total} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_utc_z(self.date),
            "total": as_number(self.total),
            "paymentMethod": self.payment_method,
            "status": self.status,
            "items": [line.to_dict() for line in self.items],
        }


class TransactionItem(db.Model):
    """Line of a POS sale; name/price are snapshots taken at sale time."""
    __tablename__ = "pos_transaction_items"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", "line_number", name="uq_pos_items_txn_line"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    transaction_id = db.Column(db.String(32), db.ForeignKey("pos_transactions.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    sku = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transactionId": self.transaction_id,
            "productId": self.product_id,
            "name": self.name,
            "price": as_number(self.price),
            "quantity": as_number(self.quantity),
            "sku": self.sku,
        }


class OutboxEvent(db.Model):
    """
    Intended stock-ledger mutation, written in the same commit as the sale.

    Rows with published_at = NULL are pending; the relay retries them until
    OUTBOX_MAX_ATTEMPTS is reached. Rows are never deleted.
    """
    __tablename__ = "outbox_events"
    __table_args__ = (
        db.Index("ix_outbox_published_id", "published_at", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.String(36), nullable=False, unique=True, default=new_uuid)
    event_type = db.Column(db.String(64), nullable=False)  # "stock.sale"
    aggregate_type = db.Column(db.String(64), nullable=False)  # "transaction"
    aggregate_id = db.Column(db.String(64), nullable=False, index=True)

    payload = db.Column(db.Text, nullable=False)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    published_at = db.Column(db.DateTime(timezone=True), nullable=True)
    publish_attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)

    @property
    def payload_data(self) -> dict:
        return json.loads(self.payload)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "event_type": self.event_type,
            "aggregate_type": self.aggregate_type,
            "aggregate_id": self.aggregate_id,
            "payload": self.payload_data,
            "occurred_at": to_utc_z(self.occurred_at),
            "published_at": to_utc_z(self.published_at) if self.published_at else None,
            "publish_attempts": self.publish_attempts,
            "last_error": self.last_error,
        }
