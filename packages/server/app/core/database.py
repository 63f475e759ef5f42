"""
Database connection pool.

A bounded pool of live connections built on SQLAlchemy's async engine. The
pool is constructed once at startup, stored on ``app.state.pool`` and handed
to request handlers through the ``get_pool`` dependency.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from fastapi import Request
from sqlalchemy import exc, text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool
from sqlmodel import SQLModel

from app.core.config import Settings
from app.core.errors import ConnectFailed, PoolExhausted
from app.core.metrics import MetricsCollector

log = structlog.get_logger()


class ConnectionPool:
    """
    Lends connections to request handlers.

    Capacity is a hard bound (no overflow). When every connection is lent,
    ``acquire()`` suspends for up to ``pool_timeout_seconds`` and then raises
    ``PoolExhausted``. Each statement runs in AUTOCOMMIT mode, so no explicit
    transactions are opened.
    """

    def __init__(self, settings: Settings, metrics: Optional[MetricsCollector] = None):
        self._size = settings.pool_size
        self._timeout = settings.pool_timeout_seconds
        self._metrics = metrics or MetricsCollector()
        self._in_use = 0
        self._engine: AsyncEngine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=settings.pool_size,
            max_overflow=0,
            pool_timeout=settings.pool_timeout_seconds,
            pool_pre_ping=True,
            isolation_level="AUTOCOMMIT",
        )
        self._metrics.set_pool_usage(self._size, 0)
        log.info(
            "pool.created",
            url=settings.database_url.render_as_string(hide_password=True),
            size=self._size,
            timeout_seconds=self._timeout,
        )

    @property
    def size(self) -> int:
        return self._size

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def _track(self, delta: int) -> None:
        self._in_use += delta
        self._metrics.set_pool_usage(self._size, self._in_use)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncConnection]:
        """Borrow a connection for the duration of the ``async with`` block.

        Raises:
            PoolExhausted: no connection was released within the timeout.
            ConnectFailed: a new connection could not be established.
        """
        try:
            conn = await self._engine.connect()
        except exc.TimeoutError as err:
            self._metrics.observe_pool_event("exhausted")
            log.warning("pool.exhausted", size=self._size, timeout_seconds=self._timeout)
            raise PoolExhausted() from err
        except Exception as err:
            self._metrics.observe_pool_event("connect_failed")
            log.error("pool.connect_failed", error_type=type(err).__name__)
            raise ConnectFailed() from err

        self._metrics.observe_pool_event("acquired")
        self._track(1)
        try:
            yield conn
        finally:
            try:
                await conn.close()
            finally:
                self._track(-1)

    async def ping(self) -> None:
        """Round-trip a trivial statement; used by the readiness probe."""
        async with self.acquire() as conn:
            try:
                await conn.execute(text("SELECT 1"))
            except exc.SQLAlchemyError as err:
                raise ConnectFailed() from err

    def status(self) -> dict[str, Any]:
        return {
            "size": self._size,
            "in_use": self._in_use,
            "timeout_seconds": self._timeout,
        }

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self._engine.dispose()
        log.info("pool.disposed")


async def init_db(pool: ConnectionPool) -> None:
    """Create the channel table (development and tests only; production owns its schema)."""
    import app.models  # noqa: F401

    async with pool.acquire() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def get_pool(request: Request) -> ConnectionPool:
    """FastAPI dependency returning the application's connection pool."""
    pool = getattr(request.app.state, "pool", None)
    if pool is None:
        raise ConnectFailed("Connection pool is not initialised.")
    return pool
