# Overview: Clients that apply sale decrements to the stock ledger, in process or over HTTP.

"""
Stock ledger clients

A client exposes one call:

    record(product_id=..., quantity=..., type=..., reference=..., rate=...)

quantity is signed (sales send the negated line quantity). Any failure is
raised as LedgerUpdateError; callers decide whether to swallow it.

- LocalStockLedgerClient: same database, calls record_stock_transaction and
  leaves the commit to the caller.
- HttpStockLedgerClient: POSTs to {STOCK_LEDGER_URL}/api/stock/transactions.
"""
from __future__ import annotations

from typing import Optional

import httpx
from flask import current_app

from ..extensions import db
from ..validation import NotFoundError, ValidationError


class LedgerUpdateError(Exception):
    """A stock ledger mutation could not be applied."""


class LocalStockLedgerClient:
    """Writes through the current session without committing; the caller commits."""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        pass

    def record(
        self,
        *,
        product_id: str,
        quantity: float,
        type: str,
        reference: Optional[str] = None,
        rate: Optional[float] = None,
    ) -> dict:
        from .stock_ledger_service import record_stock_transaction

        try:
            entry = record_stock_transaction(
                product_id=product_id,
                quantity=quantity,
                type=type,
                rate=rate,
                reference=reference,
                commit=False,
            )
        except (ValidationError, NotFoundError) as exc:
            db.session.rollback()
            raise LedgerUpdateError(str(exc)) from exc
        return entry.to_movement_dict()


class HttpStockLedgerClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout, transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def record(
        self,
        *,
        product_id: str,
        quantity: float,
        type: str,
        reference: Optional[str] = None,
        rate: Optional[float] = None,
    ) -> dict:
        body = {
            "productId": product_id,
            "quantity": quantity,
            "type": type,
            "reference": reference,
        }
        if rate is not None:
            body["rate"] = rate

        try:
            response = self.client.post(f"{self.base_url}/api/stock/transactions", json=body)
        except httpx.HTTPError as exc:
            raise LedgerUpdateError(f"Stock ledger unreachable: {exc}") from exc

        data = _json_object(response)
        if not response.is_success:
            detail = data.get("error") if data is not None else None
            raise LedgerUpdateError(
                f"Stock ledger returned {response.status_code}: {detail or response.text[:200]}"
            )
        if data is None:
            raise LedgerUpdateError(
                f"Stock ledger returned {response.status_code} without a JSON object: {response.text[:200]}"
            )

        return data.get("transaction") or {}

    def close(self) -> None:
        self.client.close()


def _json_object(response: httpx.Response) -> Optional[dict]:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def get_ledger_client():
    """Client selected by STOCK_LEDGER_MODE ("local" or "http")."""
    mode = current_app.config["STOCK_LEDGER_MODE"]
    if mode == "http":
        return HttpStockLedgerClient(
            current_app.config["STOCK_LEDGER_URL"],
            timeout=current_app.config["STOCK_LEDGER_TIMEOUT"],
        )
    if mode == "local":
        return LocalStockLedgerClient()
    raise ValueError(f"Unknown STOCK_LEDGER_MODE: {mode}")
