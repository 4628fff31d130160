"""
Pytest fixtures for SNS POS backend tests.

Provides the app on an in-memory database, a per-test clean session, the
test client and small catalog fixtures.
"""

from datetime import datetime

import pytest
from snspos import create_app
from snspos.extensions import db
from snspos.models import Item, ItemGroup, StockEntry
from snspos.services.store_service import ensure_default_store


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STOCK_LEDGER_MODE': 'local',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all data but keep schema."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def polo_group(db_session):
    group = ItemGroup(name="BOY'S POLO SHIRT", code="BPS")
    db_session.add(group)
    db_session.commit()
    return group


@pytest.fixture(scope='function')
def pants_group(db_session):
    group = ItemGroup(name="BOY'S SHORT PANT", code="BSP")
    db_session.add(group)
    db_session.commit()
    return group


@pytest.fixture(scope='function')
def polo_item(db_session, polo_group):
    item = Item(item_code="BPS30", item_group_id=polo_group.id, name=polo_group.name)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def add_entry(db_session):
    """Factory: add_entry(item, type, quantity, rate=0, entry_date=None) -> StockEntry."""
    def _add(item, type, quantity, rate=0.0, entry_date=None):
        store = ensure_default_store()
        entry = StockEntry(
            item_id=item.id,
            store_id=store.id,
            type=type,
            quantity=quantity,
            unit="pcs",
            rate=rate,
            entry_date=entry_date or datetime(2024, 1, 1, 9, 0, 0),
        )
        db_session.add(entry)
        db_session.commit()
        return entry

    return _add


class RecordingLedgerClient:
    """Ledger client double that records calls and optionally fails."""

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def record(self, *, product_id, quantity, type, reference=None, rate=None):
        self.calls.append({
            "product_id": product_id,
            "quantity": quantity,
            "type": type,
            "reference": reference,
            "rate": rate,
        })
        if self.fail:
            raise RuntimeError("stock ledger unavailable")
        return {}


@pytest.fixture(scope='function')
def recording_client():
    return RecordingLedgerClient()


@pytest.fixture(scope='function')
def failing_client():
    return RecordingLedgerClient(fail=True)
