"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from tradehub.api.errors import register_error_handlers
from tradehub.api.middleware import RequestIDMiddleware, MetricsMiddleware
from tradehub.api.v1 import (
    admin,
    agents,
    cards,
    documents,
    notifications,
    profiles,
    recipients,
    transactions,
    transfers,
    verification,
)
from tradehub.infrastructure.database.session import init_db
from tradehub.infrastructure.observability.logging import setup_logging
from tradehub.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="TradeHub Gateway",
        description="Digital banking accounts, transfers, cards and agent network",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(profiles.router, prefix="/v1", tags=["profiles"])
    app.include_router(transfers.router, prefix="/v1", tags=["transfers"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(recipients.router, prefix="/v1", tags=["recipients"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(agents.router, prefix="/v1", tags=["agents"])
    app.include_router(documents.router, prefix="/v1", tags=["documents"])
    app.include_router(notifications.router, prefix="/v1", tags=["notifications"])
    app.include_router(verification.router, prefix="/v1", tags=["verification"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
