"""Invoice Ninja HTTP client for client lookup and billing history"""

import logging
from contextlib import aclosing
from datetime import date
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, TypeVar

import httpx

from roi_gateway.config import settings
from roi_gateway.domain.exceptions import AuthenticationFailure, UpstreamError
from roi_gateway.domain.matching import classify_client_matches
from roi_gateway.domain.models import ClientMatch, Invoice, Payment, Product
from roi_gateway.infrastructure.clients.records import (
    parse_client,
    parse_invoice,
    parse_payment,
    parse_product,
)
from roi_gateway.infrastructure.observability.logging import hash_email
from roi_gateway.infrastructure.observability.metrics import (
    invoicing_failure_counter,
    invoicing_latency_histogram,
    invoicing_pages_counter,
)
from roi_gateway.utils.date_utils import subtract_months, utc_today

Record = TypeVar("Record", Invoice, Payment)

DATE_DESC = "date|desc"


class InvoiceNinjaClient:
    """Read-only client for the external invoicing platform"""

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        page_size: int | None = None,
        max_pages: int | None = None,
        payments_server_side_filter: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.invoicing_base_url).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.invoicing_api_token
        self.timeout = timeout or settings.http_timeout_seconds
        self.page_size = page_size or settings.page_size
        self.max_pages = max_pages or settings.max_pages
        self.payments_server_side_filter = (
            settings.payments_server_side_filter
            if payments_server_side_filter is None
            else payments_server_side_filter
        )
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v1",
            headers={
                "X-API-Token": self.api_token,
                "X-Requested-With": "XMLHttpRequest",
                "Accept": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        resource: str,
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        GET one resource page.

        Raises:
            AuthenticationFailure: On HTTP 401
            UpstreamError: On timeout, other HTTP errors, or a non-JSON body
        """
        try:
            with invoicing_latency_histogram.labels(resource=resource).time():
                response = await client.get(f"/{resource}", params=params)
            response.raise_for_status()
            payload = response.json()

        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                invoicing_failure_counter.labels(reason="auth").inc()
                logging.error("Invoicing API authentication failed - check token and permissions")
                raise AuthenticationFailure(
                    "Invoicing API authentication failed: invalid token or insufficient permissions"
                ) from e
            invoicing_failure_counter.labels(reason="http").inc()
            raise UpstreamError(f"Invoicing API error on {resource}: {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            invoicing_failure_counter.labels(reason="timeout").inc()
            raise UpstreamError(f"Invoicing API timeout after {self.timeout}s on {resource}") from e
        except httpx.RequestError as e:
            invoicing_failure_counter.labels(reason="transport").inc()
            raise UpstreamError(f"Invoicing API unreachable on {resource}: {e}") from e
        except ValueError as e:
            invoicing_failure_counter.labels(reason="payload").inc()
            raise UpstreamError(f"Invalid JSON from invoicing API on {resource}") from e

        if not isinstance(payload, dict):
            invoicing_failure_counter.labels(reason="payload").inc()
            raise UpstreamError(f"Unexpected payload from invoicing API on {resource}")
        return payload

    async def _iter_pages(
        self,
        client: httpx.AsyncClient,
        resource: str,
        params: Dict[str, Any],
    ) -> AsyncIterator[List[Dict[str, Any]]]:
        """Yield pages in order until a short page signals the end"""
        for page in range(1, self.max_pages + 1):
            payload = await self._get_json(
                client, resource, {**params, "per_page": self.page_size, "page": page}
            )
            invoicing_pages_counter.labels(resource=resource).inc()
            records = [r for r in payload.get("data") or [] if isinstance(r, dict)]
            yield records
            if len(records) < self.page_size:
                return

        logging.warning(
            "Page limit reached, history truncated",
            extra={"resource": resource, "max_pages": self.max_pages},
        )

    async def _collect_recent(
        self,
        resource: str,
        params: Dict[str, Any],
        parse: Callable[[Dict[str, Any]], Record],
        limit: int,
        cutoff: date,
        keep: Optional[Callable[[Record], bool]] = None,
    ) -> List[Record]:
        """
        Walk date-descending pages, newest first.

        Stops at whichever comes first:
        - `limit` records collected
        - a record dated before `cutoff` (not returned; all later ones are older)
        - a short page
        """
        collected: List[Record] = []
        if limit <= 0:
            return collected

        async with self._client() as client, aclosing(self._iter_pages(client, resource, params)) as pages:
            async for page in pages:
                for raw in page:
                    record = parse(raw)
                    if keep is not None and not keep(record):
                        continue
                    if record.date is not None and record.date < cutoff:
                        return collected
                    collected.append(record)
                    if len(collected) >= limit:
                        return collected
        return collected

    async def resolve_client(self, email: str) -> ClientMatch:
        """Look up clients by email and classify the result as unique, ambiguous or not found"""
        email_hash = hash_email(email)
        logging.info("Searching for client by email", extra={"email_hash": email_hash})

        async with self._client() as client:
            payload = await self._get_json(
                client,
                "clients",
                {"filter": email, "per_page": settings.client_search_page_size},
            )

        clients = [parse_client(raw) for raw in payload.get("data") or [] if isinstance(raw, dict)]
        match = classify_client_matches(email, clients)

        logging.info(
            "Client search classified",
            extra={
                "email_hash": email_hash,
                "outcome": match.outcome.value,
                "candidates": len(match.candidates),
            },
        )
        return match

    async def fetch_invoices(
        self,
        client_id: str,
        limit: int = 12,
        months_back: int = 12,
        today: date | None = None,
    ) -> List[Invoice]:
        """
        Fetch the client's most recent invoices within `months_back` months, newest first.

        Raises:
            AuthenticationFailure: On HTTP 401
            UpstreamError: On any other transport or protocol failure
        """
        cutoff = subtract_months(today or utc_today(), months_back)
        logging.info("Fetching invoices", extra={"client_id": client_id, "cutoff": cutoff.isoformat()})

        return await self._collect_recent(
            "invoices",
            {"client_id": client_id, "sort": DATE_DESC},
            parse_invoice,
            limit,
            cutoff,
        )

    async def fetch_payments(
        self,
        client_id: str,
        limit: int = 12,
        months_back: int = 12,
        today: date | None = None,
    ) -> List[Payment]:
        """
        Fetch the client's most recent payments within `months_back` months, newest first.

        Records that name another client are dropped before the limit applies.
        """
        cutoff = subtract_months(today or utc_today(), months_back)
        logging.info("Fetching payments", extra={"client_id": client_id, "cutoff": cutoff.isoformat()})

        params: Dict[str, Any] = {"sort": DATE_DESC}
        if self.payments_server_side_filter:
            params["client_id"] = client_id

        def belongs_to_client(payment: Payment) -> bool:
            if payment.client_id is None:
                return self.payments_server_side_filter
            return payment.client_id == client_id

        return await self._collect_recent(
            "payments",
            params,
            parse_payment,
            limit,
            cutoff,
            keep=belongs_to_client,
        )

    async def fetch_products(self) -> List[Product]:
        """Fetch one page of products with platform list prices"""
        logging.info("Fetching products")

        async with self._client() as client:
            payload = await self._get_json(
                client, "products", {"per_page": settings.products_page_size}
            )

        return [
            product
            for product in (parse_product(raw) for raw in payload.get("data") or [] if isinstance(raw, dict))
            if product.product_key
        ]
