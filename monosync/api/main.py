"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from monosync.api.middleware import RequestIDMiddleware, MetricsMiddleware
from monosync.api.v1 import accounts, sync, transactions
from monosync.infrastructure.observability.logging import setup_logging
from monosync.config import get_settings


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()
    setup_logging(settings.log_level, settings.service_name)

    app = FastAPI(
        title="monosync",
        description="Monobank statement import into the ledger",
        version="0.1.0",
    )
    app.state.sync_running = False

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(sync.router, prefix="/v1", tags=["sync"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])

    return app
