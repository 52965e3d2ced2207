"""Parse invoicing platform payloads into domain records.

Billing data from the platform is routinely incomplete: numbers arrive as
strings, optional keys are missing, nested lists may be null. Parsing
defaults every such field instead of raising.
"""

import math
from typing import Any, Dict, Optional
from roi_gateway.domain.models import (
    Client,
    Invoice,
    LineItem,
    Payment,
    PaymentApplication,
    Product,
)
from roi_gateway.utils.date_utils import parse_date


def to_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def to_str(value: Any) -> str:
    return "" if value is None else str(value)


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def parse_client(raw: Dict[str, Any]) -> Client:
    emails = tuple(
        to_str(contact.get("email"))
        for contact in _list(raw.get("contacts"))
        if isinstance(contact, dict) and contact.get("email")
    )
    return Client(id=to_str(raw.get("id")), name=to_str(raw.get("name")), contact_emails=emails)


def parse_line_item(raw: Dict[str, Any]) -> LineItem:
    return LineItem(
        product_key=to_str(raw.get("product_key")) or None,
        quantity=to_float(raw.get("quantity")),
        cost=to_float(raw.get("cost")),
        discount=to_float(raw.get("discount")),
        line_type=to_str(raw.get("type_id") or raw.get("product_type")),
        description=to_str(raw.get("description") or raw.get("notes")),
    )


def parse_invoice(raw: Dict[str, Any]) -> Invoice:
    return Invoice(
        id=to_str(raw.get("id")),
        number=to_str(raw.get("number")),
        date=parse_date(raw.get("date")),
        due_date=parse_date(raw.get("due_date")),
        amount=to_float(raw.get("amount")),
        status_id=to_int(raw.get("status_id")),
        line_items=[parse_line_item(li) for li in _list(raw.get("line_items")) if isinstance(li, dict)],
    )


def parse_payment(raw: Dict[str, Any]) -> Payment:
    applications = [
        PaymentApplication(invoice_id=to_str(app.get("invoice_id")), amount=to_float(app.get("amount")))
        for app in _list(raw.get("invoices"))
        if isinstance(app, dict)
    ]
    client_id = raw.get("client_id")
    return Payment(
        id=to_str(raw.get("id")),
        date=parse_date(raw.get("date")),
        amount=to_float(raw.get("amount")),
        type=to_str(raw.get("type")),
        type_id=to_int(raw.get("type_id")),
        client_id=to_str(client_id) if client_id not in (None, "") else None,
        applications=applications,
    )


def parse_product(raw: Dict[str, Any]) -> Product:
    return Product(product_key=to_str(raw.get("product_key")), price=to_float(raw.get("price")))
