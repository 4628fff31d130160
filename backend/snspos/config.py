# backend/snspos/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/snspos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///snspos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Single-store deployment: every stock entry is booked against this store
    DEFAULT_STORE_NAME = os.environ.get("DEFAULT_STORE_NAME", "Main Store")
    DEFAULT_STORE_CODE = os.environ.get("DEFAULT_STORE_CODE", "MAIN")

    # Stock lookup
    STOCK_FALLBACK_QUANTITY = int(os.environ.get("STOCK_FALLBACK_QUANTITY", "10"))
    DEFAULT_STOCK_UNIT = os.environ.get("DEFAULT_STOCK_UNIT", "pcs")

    # Where sale decrements are applied: "local" (same database) or "http"
    STOCK_LEDGER_MODE = os.environ.get("STOCK_LEDGER_MODE", "local")
    STOCK_LEDGER_URL = os.environ.get("STOCK_LEDGER_URL", "http://127.0.0.1:5000")
    STOCK_LEDGER_TIMEOUT = float(os.environ.get("STOCK_LEDGER_TIMEOUT", "5.0"))

    OUTBOX_MAX_ATTEMPTS = int(os.environ.get("OUTBOX_MAX_ATTEMPTS", "5"))

    # Receipts
    POS_PRINTERS = _csv(os.environ.get(
        "POS_PRINTERS",
        "POS Printer (58mm),Thermal Receipt Printer (58mm),Cashier Printer (58mm),Office Printer",
    ))
    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "SNS Store")
    BUSINESS_ADDRESS = os.environ.get("BUSINESS_ADDRESS", "123 Main St, City, Country")
    BUSINESS_PHONE = os.environ.get("BUSINESS_PHONE", "+1 (555) 123-4567")
    BUSINESS_EMAIL = os.environ.get("BUSINESS_EMAIL", "info@snsstore.com")
    RECEIPT_CURRENCY = os.environ.get("RECEIPT_CURRENCY", "AED")

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
