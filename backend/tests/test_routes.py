"""
HTTP-level tests: status codes, response shapes and error mapping.
"""

from datetime import datetime

from snspos.models import ItemGroup, StockEntry, Transaction


def test_health(client, db_session):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


def test_cors_header_for_frontend_origin(client, db_session):
    response = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"


# =============================================================================
# Item groups
# =============================================================================

def test_create_item_group(client, db_session):
    response = client.post("/api/stock/item-groups", json={"name": "MEN'S WEAR", "code": "MW"})

    assert response.status_code == 201
    assert response.get_json()["itemGroup"]["code"] == "MW"


def test_create_item_group_missing_code(client, db_session):
    response = client.post("/api/stock/item-groups", json={"name": "MEN'S WEAR"})
    assert response.status_code == 400


def test_create_item_group_duplicate(client, db_session, polo_group):
    response = client.post("/api/stock/item-groups", json={"name": "Other", "code": "BPS"})

    assert response.status_code == 409
    assert "code already exists" in response.get_json()["error"]


def test_update_item_group(client, db_session, polo_group):
    response = client.put(f"/api/stock/item-groups/{polo_group.id}", json={"code": "POLO"})

    assert response.status_code == 200
    assert response.get_json()["itemGroup"]["code"] == "POLO"


def test_update_item_group_requires_a_field(client, db_session, polo_group):
    response = client.put(f"/api/stock/item-groups/{polo_group.id}", json={})
    assert response.status_code == 400


def test_delete_item_group_in_use(client, db_session, polo_group, polo_item):
    response = client.delete(f"/api/stock/item-groups/{polo_group.id}")
    assert response.status_code == 409


def test_delete_unknown_item_group(client, db_session):
    response = client.delete("/api/stock/item-groups/nope")
    assert response.status_code == 404


def test_item_groups_pagination(client, db_session):
    for n in range(1, 26):
        db_session.add(ItemGroup(name=f"Group {n:02d}", code=f"G{n:02d}"))
    db_session.commit()

    body = client.get("/api/stock/item-groups?page=2&limit=10").get_json()

    assert len(body["data"]) == 10
    assert body["data"][0]["name"] == "Group 11"
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 25, "totalPages": 3}


def test_item_groups_total_counts_only_matches(client, db_session):
    for n in range(1, 26):
        db_session.add(ItemGroup(name=f"Group {n:02d}", code=f"G{n:02d}"))
    db_session.commit()

    body = client.get("/api/stock/item-groups", query_string={"search": "Group 1", "limit": 5}).get_json()

    assert body["pagination"]["total"] == 10
    assert body["pagination"]["totalPages"] == 2


def test_item_group_search(client, db_session, polo_group, pants_group):
    body = client.get("/api/item-groups/search?q=polo").get_json()

    assert [g["code"] for g in body["itemGroups"]] == ["BPS"]
    assert body["pagination"]["limit"] == 20


# =============================================================================
# Items
# =============================================================================

def test_create_item(client, db_session, pants_group):
    response = client.post("/api/stock/items", json={"item_code": "BTS140", "item_group_id": pants_group.id})

    assert response.status_code == 201
    item = response.get_json()["item"]
    assert item["name"] == "BOY'S SHORT PANT"
    assert item["groupName"] == "BOY'S SHORT PANT"


def test_create_item_duplicate_code(client, db_session, polo_group, polo_item):
    response = client.post("/api/stock/items", json={"item_code": "BPS30", "item_group_id": polo_group.id})
    assert response.status_code == 409


def test_create_item_unknown_group(client, db_session):
    response = client.post("/api/stock/items", json={"item_code": "X1", "item_group_id": "nope"})
    assert response.status_code == 404


def test_create_item_rejects_name(client, db_session, polo_group):
    response = client.post(
        "/api/stock/items",
        json={"item_code": "X1", "item_group_id": polo_group.id, "name": "Custom"},
    )
    assert response.status_code == 400


def test_get_item(client, db_session, polo_item):
    assert client.get(f"/api/stock/items/{polo_item.id}").get_json()["item"]["item_code"] == "BPS30"
    assert client.get("/api/stock/items/nope").status_code == 404


# =============================================================================
# Stock entries
# =============================================================================

def _entry_payload(item, **overrides):
    payload = {"item_id": item.id, "type": "Purchase", "quantity": 100, "unit": "pcs", "rate": 23}
    payload.update(overrides)
    return payload


def test_create_stock_entry(client, db_session, polo_item):
    response = client.post("/api/stock/entries", json=_entry_payload(polo_item, supplier="Acme"))

    assert response.status_code == 201
    body = response.get_json()
    assert body["type"] == "purchase"
    assert body["quantity"] == 100
    assert body["item_code"] == "BPS30"


def test_create_stock_entry_validation(client, db_session, polo_item):
    assert client.post("/api/stock/entries", json=_entry_payload(polo_item, quantity=0)).status_code == 400
    assert client.post("/api/stock/entries", json=_entry_payload(polo_item, rate=-1)).status_code == 400
    assert client.post("/api/stock/entries", json=_entry_payload(polo_item, unit="")).status_code == 400
    assert client.post("/api/stock/entries", json=_entry_payload(polo_item, type="gift")).status_code == 400

    response = client.post("/api/stock/entries", json=_entry_payload(polo_item, item_id="nope"))
    assert response.status_code == 400
    assert response.get_json()["error"] == "Selected item does not exist"

    assert db_session.query(StockEntry).count() == 0


def test_update_and_delete_stock_entry(client, db_session, polo_item, add_entry):
    entry = add_entry(polo_item, "purchase", 10, rate=5.0)

    response = client.put(f"/api/stock/entries/{entry.id}", json={"quantity": 12, "notes": "recount"})
    assert response.status_code == 200
    assert response.get_json()["quantity"] == 12
    assert response.get_json()["rate"] == 5

    assert client.delete(f"/api/stock/entries/{entry.id}").status_code == 200
    assert client.get(f"/api/stock/entries/{entry.id}").status_code == 404


def test_list_stock_entries_newest_first(client, db_session, polo_item, add_entry):
    add_entry(polo_item, "purchase", 10, entry_date=datetime(2024, 1, 1))
    add_entry(polo_item, "sale", 2, entry_date=datetime(2024, 2, 1))

    body = client.get("/api/stock/entries?search=bps").get_json()

    assert [e["type"] for e in body["entries"]] == ["sale", "purchase"]
    assert body["pagination"]["total"] == 2


def test_export_stock_entries(client, db_session, polo_item, add_entry):
    add_entry(polo_item, "purchase", 10, rate=5.0)

    csv_response = client.get("/api/stock/entries/export")
    assert csv_response.status_code == 200
    assert csv_response.mimetype == "text/csv"
    assert csv_response.get_data(as_text=True).splitlines()[0].startswith("id,entry_date,item_code")

    json_response = client.get("/api/stock/entries/export?format=json")
    assert json_response.get_json()["entries"][0]["item_code"] == "BPS30"

    assert client.get("/api/stock/entries/export?format=xml").status_code == 400


# =============================================================================
# Stock transactions
# =============================================================================

def test_post_stock_transaction(client, db_session, polo_item):
    response = client.post(
        "/api/stock/transactions",
        json={"productId": polo_item.id, "quantity": -5, "type": "Sale", "reference": "TX-000007"},
    )

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["transaction"]["quantity"] == -5

    stored = db_session.query(StockEntry).filter_by(reference="TX-000007").one()
    assert stored.quantity == 5
    assert stored.type == "sale"

    movement = client.get(f"/api/stock/transactions/{stored.id}").get_json()
    assert movement["productName"] == "BOY'S POLO SHIRT"


def test_post_stock_transaction_errors(client, db_session, polo_item):
    assert client.post("/api/stock/transactions", json={"productId": polo_item.id}).status_code == 400
    assert client.post(
        "/api/stock/transactions", json={"productId": "nope", "quantity": -1, "type": "sale"}
    ).status_code == 404


def test_list_stock_transactions(client, db_session, polo_item, add_entry):
    add_entry(polo_item, "purchase", 10)
    add_entry(polo_item, "sale", 4, entry_date=datetime(2024, 1, 2))

    body = client.get(f"/api/stock/transactions?productId={polo_item.id}").get_json()

    assert [t["quantity"] for t in body["transactions"]] == [-4, 10]
    assert body["pagination"]["limit"] == 20


# =============================================================================
# POS
# =============================================================================

def test_lookup_barcode(client, db_session, polo_item, add_entry):
    add_entry(polo_item, "purchase", 100, rate=23.0)

    body = client.get("/api/pos/lookup/barcode/BPS30").get_json()
    assert body["inStock"] == 100
    assert body["price"] == 23

    assert client.get("/api/pos/lookup/barcode/NOPE").status_code == 404


def test_products(client, db_session, polo_item):
    body = client.get("/api/pos/products").get_json()
    assert body["products"][0]["inStock"] == 10

    assert client.get(f"/api/pos/products/{polo_item.id}").get_json()["sku"] == "BPS30"
    assert client.get("/api/pos/products/nope").status_code == 404


def _sale(item, quantity=2):
    return {
        "items": [{
            "productId": item.id,
            "name": item.name,
            "price": 23.0,
            "quantity": quantity,
            "sku": item.item_code,
        }],
        "paymentMethod": "CASH",
        "total": 23.0 * quantity,
    }


def test_create_pos_transaction(client, db_session, polo_item, add_entry):
    add_entry(polo_item, "purchase", 100, rate=23.0)

    response = client.post("/api/pos/transactions", json=_sale(polo_item, quantity=2))

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    txn = body["transaction"]
    assert txn["total"] == 46
    assert txn["items"][0]["quantity"] == 2

    assert client.get("/api/pos/lookup/barcode/BPS30").get_json()["inStock"] == 98
    assert client.get(f"/api/pos/transactions/{txn['id']}").get_json()["paymentMethod"] == "CASH"


def test_create_pos_transaction_with_unknown_ledger_mode(app, client, db_session, polo_item, monkeypatch):
    monkeypatch.setitem(app.config, "STOCK_LEDGER_MODE", "htp")

    response = client.post("/api/pos/transactions", json=_sale(polo_item))

    assert response.status_code == 500
    assert db_session.query(Transaction).count() == 0


def test_create_pos_transaction_validation(client, db_session, polo_item):
    bad_method = _sale(polo_item)
    bad_method["paymentMethod"] = "BITCOIN"
    bad_total = _sale(polo_item)
    bad_total["total"] = 0

    for payload in ({"items": [], "paymentMethod": "CASH", "total": 5}, bad_method, bad_total):
        assert client.post("/api/pos/transactions", json=payload).status_code == 400


def test_list_pos_transactions(client, db_session, polo_item):
    client.post("/api/pos/transactions", json=_sale(polo_item))
    card = _sale(polo_item)
    card["paymentMethod"] = "CARD"
    client.post("/api/pos/transactions", json=card)

    body = client.get("/api/pos/transactions?filter=card").get_json()

    assert [t["paymentMethod"] for t in body["transactions"]] == ["CARD"]
    assert client.get("/api/pos/transactions/TX-000000").status_code == 404


def test_update_pos_transaction_status(client, db_session, polo_item):
    txn = client.post("/api/pos/transactions", json=_sale(polo_item)).get_json()["transaction"]

    response = client.put(f"/api/pos/transactions/{txn['id']}", json={"status": "refunded"})
    assert response.get_json()["transaction"]["status"] == "refunded"
    assert client.put(f"/api/pos/transactions/{txn['id']}", json={"status": "x"}).status_code == 400


def test_printers(client, db_session, polo_item):
    printers = client.get("/api/pos/printers").get_json()["printers"]
    assert "POS Printer (58mm)" in printers

    txn = client.post("/api/pos/transactions", json=_sale(polo_item)).get_json()["transaction"]

    response = client.post("/api/pos/printers", json={"transactionId": txn["id"], "printerName": printers[0]})
    assert response.status_code == 200
    assert response.get_json()["success"] is True

    assert client.post("/api/pos/printers", json={}).status_code == 400
    assert client.post("/api/pos/printers", json={"transactionId": "TX-000000"}).status_code == 404
