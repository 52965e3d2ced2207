"""ROI computation engine - core business logic for client ROI reports"""

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional
from roi_gateway.domain.models import (
    Benefit,
    BillingMetrics,
    Invoice,
    LineItem,
    Payment,
    PlanRule,
    Product,
)
from roi_gateway.utils.date_utils import subtract_months

WINDOW_MONTHS = 12
MAX_SAVINGS_FRACTION = 0.95

NON_DISCOUNT_TERMS = ("tax", "shipping", "fee", "adjustment", "late fee", "setup fee")


def _in_window(day: Optional[date], cutoff: date) -> bool:
    return day is not None and day >= cutoff


def calculate_metrics(
    invoices: List[Invoice],
    payments: List[Payment],
    today: date,
) -> BillingMetrics:
    """
    Trailing 12-month billed/paid totals and on-time payment rate.

    Requirements:
    - Both inputs re-filtered to the rolling window (cutoff inclusive)
    - Refund applications and negative amounts reduce an invoice's paid amount
    - Per-invoice paid amount floored at zero before accumulating
    - Unapplied positive "credit" payments count as paid
    - Invoices without a due date count toward billed only; they take no
      part in payment matching or the on-time rate
    """
    cutoff = subtract_months(today, WINDOW_MONTHS)
    recent_invoices = [i for i in invoices if _in_window(i.date, cutoff)]
    recent_payments = [p for p in payments if _in_window(p.date, cutoff)]

    billed_12m = sum(i.amount for i in recent_invoices)

    paid_12m = 0.0
    on_time_count = 0
    eligible_count = 0

    for invoice in recent_invoices:
        if invoice.due_date is None:
            continue
        eligible_count += 1

        invoice_paid = 0.0
        earliest_payment: Optional[date] = None

        for payment in recent_payments:
            for application in payment.applications:
                if application.invoice_id != invoice.id:
                    continue

                if payment.is_refund or application.amount < 0:
                    invoice_paid -= abs(application.amount)
                else:
                    invoice_paid += application.amount

                if earliest_payment is None or payment.date < earliest_payment:
                    earliest_payment = payment.date

        paid_12m += max(0.0, invoice_paid)
        if earliest_payment is not None and earliest_payment <= invoice.due_date:
            on_time_count += 1

    # Credits not tied to any invoice
    for payment in recent_payments:
        if not payment.applications and payment.is_credit and payment.amount > 0:
            paid_12m += payment.amount

    on_time_rate = on_time_count / eligible_count if eligible_count > 0 else 0.0

    return BillingMetrics(
        billed_12m=round(billed_12m, 2),
        paid_12m=round(paid_12m, 2),
        on_time_rate=round(on_time_rate, 3),
    )


def is_non_discount_line(line: LineItem) -> bool:
    """Tax, shipping, fee and adjustment lines never count toward savings"""
    line_type = (line.line_type or "").lower()
    description = (line.description or "").lower()
    return any(term in line_type or term in description for term in NON_DISCOUNT_TERMS)


def resolve_list_price(
    product_key: Optional[str],
    products_by_key: Mapping[str, Product],
    price_catalog: Mapping[str, float],
) -> float:
    """Live platform price when set, otherwise the static price catalog"""
    if not product_key:
        return 0.0
    product = products_by_key.get(product_key)
    if product is not None and product.price > 0:
        return product.price
    return price_catalog.get(product_key, 0.0)


def calculate_line_savings(line: LineItem, list_price: float) -> float:
    """
    Savings on one line versus list price, capped at 95% of list_price * quantity.
    """
    quantity = max(0.0, line.quantity)
    unit_cost = max(0.0, line.cost)
    discount = max(0.0, line.discount)

    if quantity == 0 or list_price <= 0 or list_price <= unit_cost:
        return 0.0

    per_unit = max(0.0, list_price - unit_cost - discount)
    cap = list_price * quantity * MAX_SAVINGS_FRACTION
    return max(0.0, min(per_unit * quantity, cap))


def calculate_savings_vs_list(
    invoices: List[Invoice],
    products: List[Product],
    price_catalog: Mapping[str, float],
) -> float:
    """Total list-price savings across every supplied invoice line"""
    products_by_key: Dict[str, Product] = {}
    for product in products:
        products_by_key.setdefault(product.product_key, product)

    total = 0.0
    for invoice in invoices:
        for line in invoice.line_items:
            if is_non_discount_line(line):
                continue
            list_price = resolve_list_price(line.product_key, products_by_key, price_catalog)
            total += calculate_line_savings(line, list_price)

    return round(max(0.0, total), 2)


def tally_quantities(invoices: Iterable[Invoice]) -> Dict[str, float]:
    """Total quantity purchased per product key"""
    counts: Dict[str, float] = {}
    for invoice in invoices:
        for line in invoice.line_items:
            if line.product_key:
                counts[line.product_key] = counts.get(line.product_key, 0.0) + line.quantity
    return counts


def calculate_should_be_paying(
    invoices: List[Invoice],
    plans: Mapping[str, PlanRule],
) -> float:
    """
    Monthly cost of the cheapest plan covering the client's purchases.

    Only plans whose included products were actually bought are considered;
    returns 0 when no plan matches anything.
    """
    counts = tally_quantities(invoices)

    best_price: Optional[float] = None
    for plan in plans.values():
        seats = sum(qty for key, qty in counts.items() if key in plan.includes)
        if seats <= 0:
            continue
        monthly = seats * plan.per_seat
        if best_price is None or monthly < best_price:
            best_price = monthly

    return 0.0 if best_price is None else round(best_price, 2)


def extract_benefits(
    invoices: List[Invoice],
    benefit_catalog: Mapping[str, Iterable[str]],
) -> List[Benefit]:
    """Benefit bullets for every distinct product on the invoices, in catalog order"""
    purchased = {
        line.product_key
        for invoice in invoices
        for line in invoice.line_items
        if line.product_key
    }

    return [
        Benefit(product_key=key, bullets=tuple(bullets))
        for key, bullets in benefit_catalog.items()
        if key in purchased
    ]
