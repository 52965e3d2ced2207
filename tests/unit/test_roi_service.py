"""Unit tests for ROI orchestration"""

import asyncio
import pytest
from datetime import date
from unittest.mock import AsyncMock
from roi_gateway.domain.exceptions import AuthenticationFailure, UpstreamError
from roi_gateway.domain.matching import FUZZY_MESSAGE, MULTIPLE_EXACT_MESSAGE, NOT_FOUND_MESSAGE
from roi_gateway.domain.models import (
    Client,
    ClientMatch,
    Invoice,
    LineItem,
    MatchOutcome,
    Payment,
    PaymentApplication,
    Product,
)
from roi_gateway.services.roi_service import ROIService


def _unique(client: Client) -> ClientMatch:
    return ClientMatch(outcome=MatchOutcome.UNIQUE, message="Client found", client=client)


def _stub_history(mock_invoicing: AsyncMock, invoices=(), payments=(), products=()) -> None:
    mock_invoicing.fetch_invoices.return_value = list(invoices)
    mock_invoicing.fetch_payments.return_value = list(payments)
    mock_invoicing.fetch_products.return_value = list(products)


async def test_unique_client_with_no_history(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client):
    """Test a resolved client with no invoices yields an all-zero report"""
    mock_invoicing.resolve_client.return_value = _unique(acme)
    _stub_history(mock_invoicing)

    result = await roi_service.get_client_roi("ops@acme.test")

    assert result.success is True
    report = result.report
    assert report.client.id == "c1"
    assert report.client.name == "Acme Ltd"
    assert report.client.email == "ops@acme.test"
    assert report.metrics.billed_12m == 0
    assert report.metrics.paid_12m == 0
    assert report.metrics.on_time_rate == 0
    assert report.metrics.savings_vs_list == 0
    assert report.metrics.should_be == 0
    assert report.recent_invoices == []
    assert report.recent_payments == []
    assert report.benefits == []
    mock_invoicing.resolve_client.assert_awaited_once_with("ops@acme.test")


async def test_retrieval_bounds_passed_through(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client, today: date):
    mock_invoicing.resolve_client.return_value = _unique(acme)
    _stub_history(mock_invoicing)

    await roi_service.get_client_roi("ops@acme.test")

    mock_invoicing.fetch_invoices.assert_awaited_once_with("c1", 12, 12, today)
    mock_invoicing.fetch_payments.assert_awaited_once_with("c1", 12, 12, today)
    mock_invoicing.fetch_products.assert_awaited_once_with()


async def test_full_report(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client):
    """Test metrics, savings, plan fit, benefits and display rows together"""
    invoices = [
        Invoice(
            id="i2",
            number="INV-002",
            date=date(2026, 5, 1),
            due_date=date(2026, 5, 31),
            amount=100.0,
            status_id=6,
            line_items=[LineItem(product_key="EDR", quantity=10, cost=10.0)],
        ),
        Invoice(
            id="i1",
            number="INV-001",
            date=date(2026, 4, 1),
            due_date=date(2026, 4, 30),
            amount=40.0,
            status_id=2,
            line_items=[
                LineItem(product_key="MDM", quantity=5, cost=5.0, discount=1.0),
                LineItem(description="Sales tax", quantity=1, cost=3.0),
            ],
        ),
    ]
    payments = [
        Payment(id="p2", date=date(2026, 5, 10), amount=100.0, type_id=1, applications=[PaymentApplication("i2", 100.0)]),
        Payment(id="p1", date=date(2026, 5, 5), amount=40.0, type_id=5, applications=[PaymentApplication("i1", 40.0)]),
    ]
    mock_invoicing.resolve_client.return_value = _unique(acme)
    _stub_history(mock_invoicing, invoices, payments, [Product(product_key="EDR", price=16.0)])

    result = await roi_service.get_client_roi("ops@acme.test")

    metrics = result.report.metrics
    assert metrics.billed_12m == 140.0
    assert metrics.paid_12m == 140.0
    assert metrics.on_time_rate == 0.5  # i1 paid after its due date
    assert metrics.savings_vs_list == 70.0  # (16-10)*10 + (8-5-1)*5
    assert metrics.should_be == 250.0  # basic: 10 EDR seats * 25
    assert [b.product_key for b in result.report.benefits] == ["EDR", "MDM"]
    assert [row.status for row in result.report.recent_invoices] == ["paid", "sent"]
    assert [row.applied_to for row in result.report.recent_payments] == ["INV-002", "INV-001"]
    assert [row.method for row in result.report.recent_payments] == ["credit_card", "check"]


async def test_recent_lists_capped_at_six(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client):
    invoices = [Invoice(id=str(i), number=f"INV-{i}", date=date(2026, 5, 28 - i), amount=1.0) for i in range(12)]
    payments = [Payment(id=f"p{i}", date=date(2026, 5, 28 - i), amount=1.0) for i in range(12)]
    mock_invoicing.resolve_client.return_value = _unique(acme)
    _stub_history(mock_invoicing, invoices, payments)

    result = await roi_service.get_client_roi("ops@acme.test")

    assert [row.number for row in result.report.recent_invoices] == [f"INV-{i}" for i in range(6)]
    assert len(result.report.recent_payments) == 6
    assert result.report.metrics.billed_12m == 12.0


@pytest.mark.parametrize(
    "match",
    [
        ClientMatch(
            outcome=MatchOutcome.AMBIGUOUS,
            message=MULTIPLE_EXACT_MESSAGE,
            candidates=(Client(id="1", name="Client 1"), Client(id="2", name="Client 2")),
        ),
        ClientMatch(
            outcome=MatchOutcome.AMBIGUOUS,
            message=FUZZY_MESSAGE,
            candidates=(Client(id="1", name="Similar"),),
        ),
        ClientMatch(outcome=MatchOutcome.NOT_FOUND, message=NOT_FOUND_MESSAGE),
    ],
)
async def test_unresolved_match_returned_unchanged(roi_service: ROIService, mock_invoicing: AsyncMock, match: ClientMatch):
    """Test ambiguous/not-found outcomes skip retrieval entirely"""
    mock_invoicing.resolve_client.return_value = match

    result = await roi_service.get_client_roi("test@example.com")

    assert result.success is False
    assert result.report is None
    assert result.match is match
    mock_invoicing.fetch_invoices.assert_not_awaited()
    mock_invoicing.fetch_payments.assert_not_awaited()
    mock_invoicing.fetch_products.assert_not_awaited()


async def test_retrievals_run_concurrently(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client):
    """Test all three fetches are in flight before any completes"""
    started = []
    gate = asyncio.Event()

    def slow(name, value):
        async def fetch(*args, **kwargs):
            started.append(name)
            if len(started) == 3:
                gate.set()
            await asyncio.wait_for(gate.wait(), timeout=1.0)
            return value
        return fetch

    mock_invoicing.resolve_client.return_value = _unique(acme)
    mock_invoicing.fetch_invoices.side_effect = slow("invoices", [])
    mock_invoicing.fetch_payments.side_effect = slow("payments", [])
    mock_invoicing.fetch_products.side_effect = slow("products", [])

    result = await roi_service.get_client_roi("ops@acme.test")

    assert result.success is True
    assert sorted(started) == ["invoices", "payments", "products"]


@pytest.mark.parametrize("error", [UpstreamError("boom"), AuthenticationFailure("bad token")])
async def test_retrieval_failure_aborts_report(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client, error):
    """Test any single retrieval failure propagates and no report is produced"""
    mock_invoicing.resolve_client.return_value = _unique(acme)
    _stub_history(mock_invoicing)
    mock_invoicing.fetch_payments.side_effect = error

    with pytest.raises(type(error)):
        await roi_service.get_client_roi("ops@acme.test")


async def test_resolution_failure_propagates(roi_service: ROIService, mock_invoicing: AsyncMock):
    mock_invoicing.resolve_client.side_effect = AuthenticationFailure("bad token")

    with pytest.raises(AuthenticationFailure):
        await roi_service.get_client_roi("ops@acme.test")


async def test_failure_cancels_fetches_in_flight(roi_service: ROIService, mock_invoicing: AsyncMock, acme: Client):
    """Test a failed retrieval stops the sibling walks still running"""
    cancelled = []

    def pending(name):
        async def fetch(*args, **kwargs):
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(name)
                raise
        return fetch

    async def failing(*args, **kwargs):
        await asyncio.sleep(0)
        raise UpstreamError("Invoicing API error on payments: 502")

    mock_invoicing.resolve_client.return_value = _unique(acme)
    mock_invoicing.fetch_invoices.side_effect = pending("invoices")
    mock_invoicing.fetch_payments.side_effect = failing
    mock_invoicing.fetch_products.side_effect = pending("products")

    with pytest.raises(UpstreamError):
        await roi_service.get_client_roi("ops@acme.test")

    for _ in range(3):
        await asyncio.sleep(0)
    assert sorted(cancelled) == ["invoices", "products"]
