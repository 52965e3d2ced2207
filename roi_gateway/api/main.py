"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from roi_gateway.api.dependencies import get_catalog_store
from roi_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from roi_gateway.api.v1 import roi
from roi_gateway.infrastructure.observability.logging import setup_logging
from roi_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Catalogs are required to serve any report; a bad catalog stops startup
    get_catalog_store().load()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Client ROI Gateway",
        description="Per-client return-on-investment reports from invoicing history",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(roi.router, prefix="/v1", tags=["roi"])

    return app


app = create_app()
