"""Domain models - pure Python dataclasses representing business entities"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Mapping, NamedTuple, Optional, Tuple


@dataclass(frozen=True)
class Client:
    """Client record from the invoicing platform"""

    id: str
    name: str
    contact_emails: Tuple[str, ...] = ()


@dataclass
class LineItem:
    """Single line on an invoice"""

    product_key: Optional[str] = None
    quantity: float = 0.0
    cost: float = 0.0  # unit cost actually charged
    discount: float = 0.0  # per-unit discount
    line_type: str = ""  # platform type code or product type
    description: str = ""


@dataclass
class Invoice:
    """Invoice snapshot from the invoicing platform"""

    id: str
    number: str = ""
    date: Optional[date] = None
    due_date: Optional[date] = None
    amount: float = 0.0
    status_id: Optional[int] = None
    line_items: List[LineItem] = field(default_factory=list)


@dataclass
class PaymentApplication:
    """Portion of a payment applied to one invoice"""

    invoice_id: str
    amount: float = 0.0


@dataclass
class Payment:
    """Payment snapshot from the invoicing platform"""

    id: str
    date: Optional[date] = None
    amount: float = 0.0
    type: str = ""  # "refund", "credit", ...
    type_id: Optional[int] = None  # payment method code
    client_id: Optional[str] = None
    applications: List[PaymentApplication] = field(default_factory=list)

    @property
    def is_refund(self) -> bool:
        return self.type.lower() == "refund"

    @property
    def is_credit(self) -> bool:
        return self.type.lower() == "credit"


@dataclass(frozen=True)
class Product:
    """Product with authoritative platform pricing"""

    product_key: str
    price: float = 0.0


@dataclass(frozen=True)
class PlanRule:
    """Named bundle of product keys sold per seat"""

    name: str
    per_seat: float
    includes: Tuple[str, ...]


class Catalogs(NamedTuple):
    """Read-only catalogs loaded once per process"""

    prices: Mapping[str, float]  # product key -> list price
    benefits: Mapping[str, Tuple[str, ...]]  # product key -> bullets
    plans: Mapping[str, PlanRule]  # plan name -> rule


class MatchOutcome(str, Enum):
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ClientMatch:
    """Result of resolving a client by email"""

    outcome: MatchOutcome
    message: str
    client: Optional[Client] = None
    candidates: Tuple[Client, ...] = ()


@dataclass
class BillingMetrics:
    """Trailing 12-month billing totals"""

    billed_12m: float
    paid_12m: float
    on_time_rate: float


@dataclass
class ROIMetrics:
    """Metrics section of the ROI report"""

    billed_12m: float
    paid_12m: float
    on_time_rate: float
    savings_vs_list: float
    should_be: float


@dataclass
class Benefit:
    """Benefit bullets for one purchased product"""

    product_key: str
    bullets: Tuple[str, ...]


@dataclass
class InvoiceRow:
    """Invoice shaped for display"""

    number: str
    date: str
    due_date: str
    amount: float
    status: str


@dataclass
class PaymentRow:
    """Payment shaped for display"""

    date: str
    amount: float
    method: str
    applied_to: str


@dataclass
class ReportClient:
    id: str
    name: str
    email: str


@dataclass
class ROIReport:
    """Per-client ROI report; transient, never persisted"""

    client: ReportClient
    metrics: ROIMetrics
    recent_invoices: List[InvoiceRow]
    recent_payments: List[PaymentRow]
    benefits: List[Benefit]


@dataclass
class ROIResult:
    """Outcome of an ROI request: a report, or the unresolved client match"""

    match: ClientMatch
    report: Optional[ROIReport] = None

    @property
    def success(self) -> bool:
        return self.report is not None
