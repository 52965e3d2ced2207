"""Display shaping for recent invoices and payments"""

from typing import Dict, List, Optional
from roi_gateway.domain.models import Invoice, InvoiceRow, Payment, PaymentRow

UNKNOWN = "unknown"
NOT_APPLIED = "N/A"

INVOICE_STATUSES: Dict[int, str] = {
    1: "draft",
    2: "sent",
    3: "viewed",
    4: "approved",
    5: "partial",
    6: "paid",
}

PAYMENT_METHODS: Dict[int, str] = {
    1: "credit_card",
    2: "bank_transfer",
    3: "paypal",
    4: "cash",
    5: "check",
    6: "credit",
}


def invoice_status(status_id: Optional[int]) -> str:
    return INVOICE_STATUSES.get(status_id, UNKNOWN) if status_id is not None else UNKNOWN


def payment_method(type_id: Optional[int]) -> str:
    return PAYMENT_METHODS.get(type_id, UNKNOWN) if type_id is not None else UNKNOWN


def format_invoices(invoices: List[Invoice]) -> List[InvoiceRow]:
    return [
        InvoiceRow(
            number=invoice.number,
            date=invoice.date.isoformat() if invoice.date else "",
            due_date=invoice.due_date.isoformat() if invoice.due_date else "",
            amount=round(invoice.amount, 2),
            status=invoice_status(invoice.status_id),
        )
        for invoice in invoices
    ]


def format_payments(payments: List[Payment], invoices: List[Invoice]) -> List[PaymentRow]:
    """
    Shape payments for display.

    applied_to is the number of the invoice named by the first application,
    or "N/A" when there is no application or that invoice was not retrieved.
    """
    numbers_by_id = {invoice.id: invoice.number for invoice in invoices}

    rows = []
    for payment in payments:
        applied_to = NOT_APPLIED
        if payment.applications:
            applied_to = numbers_by_id.get(payment.applications[0].invoice_id, NOT_APPLIED)

        rows.append(
            PaymentRow(
                date=payment.date.isoformat() if payment.date else "",
                amount=round(payment.amount, 2),
                method=payment_method(payment.type_id),
                applied_to=applied_to,
            )
        )
    return rows
