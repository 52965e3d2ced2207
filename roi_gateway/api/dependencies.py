"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from fastapi import Depends, Request
from roi_gateway.infrastructure.catalogs import CatalogStore
from roi_gateway.infrastructure.clients.invoice_ninja import InvoiceNinjaClient
from roi_gateway.services.roi_service import ROIService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache(maxsize=1)
def get_catalog_store() -> CatalogStore:
    """One catalog store per process"""
    return CatalogStore.from_settings()


def get_invoicing_client() -> InvoiceNinjaClient:
    """Provide invoicing platform client instance"""
    return InvoiceNinjaClient()


def get_roi_service(
    invoicing: InvoiceNinjaClient = Depends(get_invoicing_client),
    store: CatalogStore = Depends(get_catalog_store),
) -> ROIService:
    """Provide ROI orchestrator wired to the shared catalogs"""
    return ROIService(invoicing, store.load())
