import httpx

from snspos.models import Item, OutboxEvent, Store
from snspos.services import lookup_service, transaction_service


def test_seed_loads_demo_catalog(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "seed"])

    assert result.exit_code == 0, result.output
    assert db_session.query(Store).filter_by(code="MAIN").count() == 1
    assert db_session.query(Item).count() == 4
    product = lookup_service.resolve_product("BTS140")
    assert product["inStock"] == 1100
    assert product["price"] == 10


def test_seed_is_idempotent(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["system", "seed"])

    result = runner.invoke(args=["system", "seed"])

    assert result.exit_code == 0, result.output
    assert "already exists" in result.output
    assert lookup_service.resolve_product("BPS30")["inStock"] == 100


def test_outbox_relay_command(app, db_session, polo_item, failing_client):
    transaction_service.create_transaction(
        items=[{"productId": polo_item.id, "name": polo_item.name, "price": 23.0, "quantity": 1}],
        payment_method="CASH",
        total=23.0,
        ledger_client=failing_client,
    )
    runner = app.test_cli_runner()

    listed = runner.invoke(args=["outbox", "list", "--pending"])
    assert "pending" in listed.output

    result = runner.invoke(args=["outbox", "relay"])

    assert result.exit_code == 0, result.output
    assert "1 published" in result.output
    assert db_session.query(OutboxEvent).one().published_at is not None


def test_outbox_relay_closes_ledger_client(app, db_session, polo_item, failing_client, monkeypatch):
    from snspos import cli
    from snspos.services.ledger_client import HttpStockLedgerClient

    transaction_service.create_transaction(
        items=[{"productId": polo_item.id, "name": polo_item.name, "price": 23.0, "quantity": 1}],
        payment_method="CASH",
        total=23.0,
        ledger_client=failing_client,
    )
    transport = httpx.MockTransport(lambda request: httpx.Response(201, json={"transaction": {}}))
    http_client = HttpStockLedgerClient("http://ledger.local", transport=transport)
    monkeypatch.setattr(cli, "get_ledger_client", lambda: http_client)

    result = app.test_cli_runner().invoke(args=["outbox", "relay"])

    assert result.exit_code == 0, result.output
    assert "1 published" in result.output
    assert http_client.client.is_closed
