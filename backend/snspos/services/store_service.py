from __future__ import annotations

from flask import current_app

from snspos.extensions import db
from snspos.models import Store


def ensure_default_store() -> Store:
    """
    Return the configured default store, creating it on first use.

    Flushes but does not commit; callers commit with their own unit of work.
    """
    code = current_app.config["DEFAULT_STORE_CODE"]
    store = db.session.query(Store).filter_by(code=code).first()
    if store:
        return store

    store = Store(name=current_app.config["DEFAULT_STORE_NAME"], code=code)
    db.session.add(store)
    db.session.flush()
    return store
