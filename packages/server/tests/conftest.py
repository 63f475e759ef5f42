"""
Shared fixtures.

Real-SQL tests run against an on-disk SQLite database (via aiosqlite) behind
a real ConnectionPool; failure-path tests swap in ``FakePool``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.core.database import ConnectionPool, init_db
from app.core.metrics import MetricsCollector
from app.main import create_app


@pytest.fixture
def settings_factory(tmp_path):
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "database_url_override": f"sqlite+aiosqlite:///{tmp_path / 'channels.db'}",
            "pool_size": 3,
            "pool_timeout_seconds": 5.0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
async def pool(settings, metrics):
    p = ConnectionPool(settings, metrics)
    await init_db(p)
    yield p
    await p.dispose()


@pytest.fixture
async def client(settings, pool, metrics):
    app = create_app(settings, pool=pool, metrics=metrics)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Fakes for failure paths
# ---------------------------------------------------------------------------


class FakeConnection:
    """Connection whose every statement fails with ``error``."""

    def __init__(self, error: Exception):
        self.error = error
        self.executed: list[Any] = []

    async def execute(self, stmt):
        self.executed.append(stmt)
        raise self.error


class FakePool:
    """Stand-in for ConnectionPool that records acquire/release pairs."""

    def __init__(self, conn: Optional[FakeConnection] = None, acquire_error: Optional[Exception] = None):
        self.conn = conn
        self.acquire_error = acquire_error
        self.acquired = 0
        self.released = 0

    @asynccontextmanager
    async def acquire(self):
        if self.acquire_error is not None:
            raise self.acquire_error
        self.acquired += 1
        try:
            yield self.conn
        finally:
            self.released += 1

    async def ping(self) -> None:
        async with self.acquire():
            pass

    def status(self) -> dict[str, Any]:
        return {"size": 1, "in_use": self.acquired - self.released, "timeout_seconds": 1.0}


@pytest.fixture
def fake_client_factory():
    """Build an HTTP client over an app wired to the given fake pool."""

    @asynccontextmanager
    async def _make(fake_pool: FakePool):
        app = create_app(Settings(), pool=fake_pool)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

    return _make
