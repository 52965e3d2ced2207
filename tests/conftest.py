"""Pytest fixtures for testing"""

import pytest
from datetime import date
from types import MappingProxyType
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from roi_gateway.api.main import create_app
from roi_gateway.api.dependencies import get_roi_service
from roi_gateway.domain.models import Catalogs, Client, PlanRule
from roi_gateway.infrastructure.clients.invoice_ninja import InvoiceNinjaClient
from roi_gateway.services.roi_service import ROIService
from roi_gateway.utils.date_utils import subtract_months

# Fixed clock for every window-sensitive test
TODAY = date(2026, 6, 15)


def months_ago(months: int) -> date:
    return subtract_months(TODAY, months)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def catalogs() -> Catalogs:
    """Small catalog set mirroring data/*.json shapes"""
    return Catalogs(
        prices=MappingProxyType({"EDR": 15.0, "MDM": 8.0}),
        benefits=MappingProxyType(
            {
                "EDR": ("24/7 monitoring", "Ransomware protection"),
                "MDM": ("Device management", "Remote wipe"),
            }
        ),
        plans=MappingProxyType(
            {
                "basic": PlanRule(name="basic", per_seat=25.0, includes=("EDR",)),
                "standard": PlanRule(name="standard", per_seat=40.0, includes=("EDR", "MDM")),
            }
        ),
    )


@pytest.fixture
def acme() -> Client:
    return Client(id="c1", name="Acme Ltd", contact_emails=("ops@acme.test", "billing@acme.test"))


@pytest.fixture
def mock_invoicing() -> AsyncMock:
    """Invoicing client double with async methods"""
    return AsyncMock(spec=InvoiceNinjaClient)


@pytest.fixture
def roi_service(mock_invoicing: AsyncMock, catalogs: Catalogs) -> ROIService:
    return ROIService(mock_invoicing, catalogs, clock=lambda: TODAY)


@pytest.fixture
def client(roi_service: ROIService) -> TestClient:
    """Create FastAPI test client wired to the mocked invoicing platform"""
    app = create_app()
    app.dependency_overrides[get_roi_service] = lambda: roi_service
    return TestClient(app)
