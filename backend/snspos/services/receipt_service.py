# Overview: Receipt layout and (simulated) printing for completed POS transactions.

"""
Receipts are laid out for 58mm thermal printers (32 characters per line).
Printing is simulated: the rendered receipt is written to the app log.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app

from ..models import Transaction
from ..validation import ValidationError
from .transaction_service import get_transaction


LINE_WIDTH = 32
ITEM_NAME_WIDTH = 20

BUSINESS_FIELDS = ("name", "address", "phone", "email")


def _center(text: str, width: int = LINE_WIDTH) -> str:
    if len(text) >= width:
        return text[:width]
    return " " * ((width - len(text)) // 2) + text


def _truncate(text: str, max_length: int = ITEM_NAME_WIDTH) -> str:
    if len(text) <= max_length:
        return text.ljust(max_length)
    return text[: max_length - 3] + "..."


def _money(value: float) -> str:
    return f"{value:.2f}"


def _qty(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def default_business_info() -> dict:
    cfg = current_app.config
    return {
        "name": cfg["BUSINESS_NAME"],
        "address": cfg["BUSINESS_ADDRESS"],
        "phone": cfg["BUSINESS_PHONE"],
        "email": cfg["BUSINESS_EMAIL"],
    }


def render_receipt(transaction: Transaction, business: dict, currency: str = "AED") -> str:
    rule = "-" * LINE_WIDTH
    lines = [_center(business.get(field) or "") for field in BUSINESS_FIELDS]
    lines.append(rule)

    lines.append(f"Receipt: {transaction.id}")
    lines.append(f"Date: {transaction.date.strftime('%m/%d/%Y')}")
    lines.append(f"Time: {transaction.date.strftime('%I:%M %p')}")
    lines.append(rule)

    lines.append("ITEM                  QTY   PRICE")
    lines.append(rule)
    for item in transaction.items:
        line_total = f"{currency} {_money(item.price * item.quantity)}"
        lines.append(f"{_truncate(item.name)} {_qty(item.quantity):>3} {line_total:>9}")
    lines.append(rule)

    total = _money(transaction.total)
    lines.append(f"SUBTOTAL:                  {currency} {total}")
    lines.append(f"TAX (0%):                  {currency} 0.00")
    lines.append(f"TOTAL:                     {currency} {total}")
    lines.append(f"PAYMENT: {transaction.payment_method:<15} {currency} {total}")

    lines.append(rule)
    lines.append(_center("Thank you for your purchase!"))
    lines.append(_center("Please come again"))
    return "\n".join(lines)


def list_printers() -> list[str]:
    return list(current_app.config["POS_PRINTERS"])


def print_receipt(
    transaction_id: str,
    *,
    business: Optional[dict] = None,
    printer_name: Optional[str] = None,
) -> str:
    """
    Render the receipt for a stored transaction and send it to a printer.

    business overrides any of name/address/phone/email from config.
    Raises NotFoundError for an unknown transaction.
    """
    if not transaction_id:
        raise ValidationError("Transaction ID is required")

    printers = list_printers()
    if printer_name and printer_name not in printers:
        raise ValidationError(f"Unknown printer: {printer_name}")

    transaction = get_transaction(transaction_id)

    info = default_business_info()
    for key, value in (business or {}).items():
        if key in BUSINESS_FIELDS and value:
            info[key] = value

    content = render_receipt(transaction, info, currency=current_app.config["RECEIPT_CURRENCY"])
    target = printer_name or (printers[0] if printers else "default")
    current_app.logger.info(
        "Printing receipt for transaction %s on %s\n%s", transaction.id, target, content
    )
    return content
