import json

import httpx
import pytest

from snspos.models import StockEntry
from snspos.services.ledger_client import (
    HttpStockLedgerClient,
    LedgerUpdateError,
    LocalStockLedgerClient,
    get_ledger_client,
)


def test_http_client_posts_signed_sale():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"success": True, "transaction": {"id": "e1", "quantity": -2}})

    client = HttpStockLedgerClient("http://ledger.local/", transport=httpx.MockTransport(handler))
    result = client.record(product_id="P1", quantity=-2, type="sale", reference="TX-000001", rate=23.0)

    assert result == {"id": "e1", "quantity": -2}
    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "http://ledger.local/api/stock/transactions"
    assert json.loads(seen[0].content) == {
        "productId": "P1",
        "quantity": -2,
        "type": "sale",
        "reference": "TX-000001",
        "rate": 23.0,
    }


def test_http_client_raises_on_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Item P1 not found"})

    client = HttpStockLedgerClient("http://ledger.local", transport=httpx.MockTransport(handler))

    with pytest.raises(LedgerUpdateError, match="404.*Item P1 not found"):
        client.record(product_id="P1", quantity=-1, type="sale")


def test_http_client_raises_when_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = HttpStockLedgerClient("http://ledger.local", transport=httpx.MockTransport(handler))

    with pytest.raises(LedgerUpdateError, match="unreachable"):
        client.record(product_id="P1", quantity=-1, type="sale")


def test_http_client_against_stock_transactions_endpoint(app, db_session, polo_item):
    client = HttpStockLedgerClient("http://testserver", transport=httpx.WSGITransport(app=app))

    result = client.record(product_id=polo_item.id, quantity=-3, type="sale", reference="TX-000042")

    assert result["quantity"] == -3
    entry = db_session.query(StockEntry).filter_by(reference="TX-000042").one()
    assert entry.quantity == 3
    assert entry.type == "sale"


def test_local_client_wraps_lookup_errors(db_session):
    with pytest.raises(LedgerUpdateError, match="not found"):
        LocalStockLedgerClient().record(product_id="missing", quantity=-1, type="sale")


def test_get_ledger_client_follows_config(app, monkeypatch):
    assert isinstance(get_ledger_client(), LocalStockLedgerClient)

    monkeypatch.setitem(app.config, "STOCK_LEDGER_MODE", "http")
    assert isinstance(get_ledger_client(), HttpStockLedgerClient)

    monkeypatch.setitem(app.config, "STOCK_LEDGER_MODE", "carrier-pigeon")
    with pytest.raises(ValueError):
        get_ledger_client()


def test_http_client_error_status_with_non_object_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json=["boom"])

    client = HttpStockLedgerClient("http://ledger.local", transport=httpx.MockTransport(handler))

    with pytest.raises(LedgerUpdateError, match=r'500: \["boom"\]'):
        client.record(product_id="P1", quantity=-1, type="sale")


def test_http_client_success_with_non_object_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=[1, 2])

    client = HttpStockLedgerClient("http://ledger.local", transport=httpx.MockTransport(handler))

    with pytest.raises(LedgerUpdateError, match="without a JSON object"):
        client.record(product_id="P1", quantity=-1, type="sale")


def test_http_client_success_without_transaction():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"success": True})

    client = HttpStockLedgerClient("http://ledger.local", transport=httpx.MockTransport(handler))

    assert client.record(product_id="P1", quantity=-1, type="sale") == {}


def test_http_client_closes_as_context_manager():
    transport = httpx.MockTransport(lambda request: httpx.Response(201, json={}))

    with HttpStockLedgerClient("http://ledger.local", transport=transport) as client:
        assert not client.client.is_closed

    assert client.client.is_closed
