"""ROI orchestration - client resolution, concurrent retrieval, report assembly"""

import asyncio
import logging
from datetime import date
from typing import Callable, List

from roi_gateway.config import settings
from roi_gateway.domain.formatting import format_invoices, format_payments
from roi_gateway.domain.models import (
    Catalogs,
    Client,
    Invoice,
    MatchOutcome,
    Payment,
    Product,
    ReportClient,
    ROIMetrics,
    ROIReport,
    ROIResult,
)
from roi_gateway.domain.roi import (
    calculate_metrics,
    calculate_savings_vs_list,
    calculate_should_be_paying,
    extract_benefits,
)
from roi_gateway.infrastructure.clients.invoice_ninja import InvoiceNinjaClient
from roi_gateway.infrastructure.observability.logging import hash_email
from roi_gateway.utils.date_utils import utc_today


def build_report(
    client: Client,
    email: str,
    invoices: List[Invoice],
    payments: List[Payment],
    products: List[Product],
    catalogs: Catalogs,
    today: date,
    recent_items: int = 6,
) -> ROIReport:
    """Run the computation engine over retrieved data and shape the report"""
    metrics = calculate_metrics(invoices, payments, today)

    return ROIReport(
        client=ReportClient(id=client.id, name=client.name, email=email),
        metrics=ROIMetrics(
            billed_12m=metrics.billed_12m,
            paid_12m=metrics.paid_12m,
            on_time_rate=metrics.on_time_rate,
            savings_vs_list=calculate_savings_vs_list(invoices, products, catalogs.prices),
            should_be=calculate_should_be_paying(invoices, catalogs.plans),
        ),
        recent_invoices=format_invoices(invoices[:recent_items]),
        recent_payments=format_payments(payments[:recent_items], invoices),
        benefits=extract_benefits(invoices, catalogs.benefits),
    )


class ROIService:
    """Computes ROI reports for clients looked up by email"""

    def __init__(
        self,
        invoicing: InvoiceNinjaClient,
        catalogs: Catalogs,
        clock: Callable[[], date] = utc_today,
    ):
        self.invoicing = invoicing
        self.catalogs = catalogs
        self.clock = clock
        self.record_limit = settings.roi_record_limit
        self.months_back = settings.roi_months_back
        self.recent_items = settings.recent_items

    async def get_client_roi(self, email: str) -> ROIResult:
        """
        Main entry point: resolve the client and compute their ROI report.

        Flow:
        1. Resolve client by email; ambiguous/not-found results return as-is
        2. Fetch invoices, payments and products concurrently; the first
           failure cancels the fetches still in flight
        3. Compute metrics, savings, plan cost and benefits

        Raises:
            AuthenticationFailure: Invoicing platform rejected credentials
            UpstreamError: Any retrieval failed; no partial report is produced
        """
        email_hash = hash_email(email)
        logging.info("Starting ROI analysis", extra={"email_hash": email_hash})

        match = await self.invoicing.resolve_client(email)
        if match.outcome is not MatchOutcome.UNIQUE:
            return ROIResult(match=match)

        client = match.client
        today = self.clock()

        fetches = [
            asyncio.ensure_future(
                self.invoicing.fetch_invoices(client.id, self.record_limit, self.months_back, today)
            ),
            asyncio.ensure_future(
                self.invoicing.fetch_payments(client.id, self.record_limit, self.months_back, today)
            ),
            asyncio.ensure_future(self.invoicing.fetch_products()),
        ]
        try:
            invoices, payments, products = await asyncio.gather(*fetches)
        except Exception:
            # One failure ends the report; stop the remaining walks
            for fetch in fetches:
                fetch.cancel()
            raise

        report = build_report(
            client,
            email,
            invoices,
            payments,
            products,
            self.catalogs,
            today,
            recent_items=self.recent_items,
        )

        logging.info(
            "ROI analysis completed",
            extra={
                "email_hash": email_hash,
                "client_id": client.id,
                "invoices": len(invoices),
                "payments": len(payments),
            },
        )
        return ROIResult(match=match, report=report)
