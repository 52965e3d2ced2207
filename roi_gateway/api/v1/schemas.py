"""Pydantic schemas for API responses"""

from pydantic import BaseModel
from typing import List, Optional

from roi_gateway.domain.models import ClientMatch, ROIReport


class ClientSchema(BaseModel):
    id: str
    name: str
    email: str


class MetricsSchema(BaseModel):
    billed_12m: float
    paid_12m: float
    on_time_rate: float
    savings_vs_list: float
    should_be: float


class InvoiceRowSchema(BaseModel):
    number: str
    date: str
    due_date: str
    amount: float
    status: str


class PaymentRowSchema(BaseModel):
    date: str
    amount: float
    method: str
    applied_to: str


class BenefitSchema(BaseModel):
    product_key: str
    bullets: List[str]


class ROIResponse(BaseModel):
    """Response for GET /v1/roi"""

    client: ClientSchema
    metrics: MetricsSchema
    recent_invoices: List[InvoiceRowSchema]
    recent_payments: List[PaymentRowSchema]
    benefits: List[BenefitSchema]

    @classmethod
    def from_report(cls, report: ROIReport) -> "ROIResponse":
        return cls(
            client=ClientSchema(id=report.client.id, name=report.client.name, email=report.client.email),
            metrics=MetricsSchema(
                billed_12m=report.metrics.billed_12m,
                paid_12m=report.metrics.paid_12m,
                on_time_rate=report.metrics.on_time_rate,
                savings_vs_list=report.metrics.savings_vs_list,
                should_be=report.metrics.should_be,
            ),
            recent_invoices=[InvoiceRowSchema(**vars(row)) for row in report.recent_invoices],
            recent_payments=[PaymentRowSchema(**vars(row)) for row in report.recent_payments],
            benefits=[
                BenefitSchema(product_key=b.product_key, bullets=list(b.bullets))
                for b in report.benefits
            ],
        )


class CandidateSchema(BaseModel):
    """One candidate client in an ambiguous match"""

    id: str
    name: str
    email: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    clients: Optional[List[CandidateSchema]] = None

    @classmethod
    def from_match(cls, match: ClientMatch) -> "ErrorResponse":
        clients = None
        if match.candidates:
            clients = [
                CandidateSchema(
                    id=c.id,
                    name=c.name,
                    email=c.contact_emails[0] if c.contact_emails else None,
                )
                for c in match.candidates
            ]
        return cls(error=match.message, clients=clients)
