"""
Channel CRUD API Server

Entry point for the FastAPI application.
"""

from __future__ import annotations

from typing import Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse

from app.api import router as api_router
from app.api.errors import register_error_handlers
from app.core.config import Settings, get_settings
from app.core.database import ConnectionPool, get_pool
from app.core.logging import configure_logging
from app.core.metrics import MetricsCollector
from app.core.middleware import RequestContextMiddleware

log = structlog.get_logger()


def create_app(
    settings: Optional[Settings] = None,
    pool: Optional[ConnectionPool] = None,
    metrics: Optional[MetricsCollector] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``pool`` is given it is used as-is and left open on shutdown;
    otherwise a pool is built from ``settings`` at startup and disposed at
    shutdown. Pass the pool's ``metrics`` collector to expose its gauges.
    """
    settings = settings or get_settings()
    metrics = metrics or MetricsCollector()
    owns_pool = pool is None

    app = FastAPI(
        title="Channel CRUD API",
        description="RESTful access to the channel table over a pooled database connection.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.pool = pool

    app.add_middleware(RequestContextMiddleware, metrics=metrics)
    register_error_handlers(app)

    app.include_router(api_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(pool: ConnectionPool = Depends(get_pool)):
        """Readiness check: the database must answer through the pool."""
        await pool.ping()
        return {"status": "ready", "pool": pool.status()}

    @app.get("/metrics", response_class=PlainTextResponse, tags=["System"])
    async def metrics_export():
        return metrics.to_prometheus()

    @app.on_event("startup")
    async def on_startup():
        configure_logging(settings.log_level, settings.log_format)
        if app.state.pool is None:
            app.state.pool = ConnectionPool(settings, metrics)
        log.info("Channel API starting", pool_size=settings.pool_size)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Channel API shutting down")
        if owns_pool and app.state.pool is not None:
            await app.state.pool.dispose()
            app.state.pool = None

    return app


app = create_app()


def run() -> None:
    """CLI entry point: serve the app with uvicorn."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
