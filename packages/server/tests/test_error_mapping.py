"""
Tests for failure classification and HTTP status translation.

A fake pool stands in for the database so every failure path can be forced:
constraint violations, generic statement failures, pool exhaustion and
unreachable databases. The error body must never echo SQL or driver text.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import exc

from app.api.errors import ERROR_STATUS, status_for
from app.core.config import Settings
from app.core.errors import (
    ChannelServiceError,
    ConnectFailed,
    ConstraintViolation,
    DatabaseError,
    MalformedRequest,
    NotFound,
    PoolExhausted,
)
from app.core.metrics import MetricsCollector
from app.main import create_app
from conftest import FakeConnection, FakePool


def _integrity_error() -> exc.IntegrityError:
    return exc.IntegrityError(
        "INSERT INTO channel (name) VALUES ($1)",
        {"name": "dup"},
        Exception('duplicate key value violates unique constraint "channel_pkey"'),
    )


def _operational_error() -> exc.OperationalError:
    return exc.OperationalError(
        "SELECT channel.id FROM channel WHERE channel.id = $1",
        {"id_1": 1},
        Exception("server closed the connection unexpectedly"),
    )


class TestStatusTable:

    def test_every_classification_has_a_status(self):
        assert status_for(NotFound()) == 404
        assert status_for(ConstraintViolation()) == 409
        assert status_for(PoolExhausted()) == 503
        assert status_for(ConnectFailed()) == 503
        assert status_for(DatabaseError()) == 500
        assert status_for(MalformedRequest()) == 400

    def test_unclassified_falls_back_to_500(self):
        assert status_for(ChannelServiceError()) == 500
        assert ChannelServiceError not in ERROR_STATUS


class TestStatementFailures:

    async def test_constraint_violation_on_create_is_409(self, fake_client_factory):
        fake = FakePool(conn=FakeConnection(_integrity_error()))
        async with fake_client_factory(fake) as client:
            response = await client.post("/channel", json={"name": "dup"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONSTRAINT_VIOLATION"
        assert "INSERT" not in response.text
        assert "duplicate key" not in response.text
        assert fake.acquired == fake.released == 1

    async def test_constraint_violation_on_update_is_409(self, fake_client_factory):
        fake = FakePool(conn=FakeConnection(_integrity_error()))
        async with fake_client_factory(fake) as client:
            response = await client.put("/channel/1", json={"name": "dup"})

        assert response.status_code == 409

    @pytest.mark.parametrize(
        "method, path, body",
        [
            ("GET", "/channel/1", None),
            ("PUT", "/channel/1", {"name": "x"}),
            ("DELETE", "/channel/1", None),
            ("POST", "/channel", {"name": "x"}),
        ],
    )
    async def test_database_error_is_500(self, fake_client_factory, method, path, body):
        fake = FakePool(conn=FakeConnection(_operational_error()))
        async with fake_client_factory(fake) as client:
            response = await client.request(method, path, json=body)

        assert response.status_code == 500
        error = response.json()["error"]
        assert error == {
            "code": "DATABASE_ERROR",
            "message": "The database failed to execute the statement.",
            "status": 500,
        }
        assert "SELECT" not in response.text
        assert fake.acquired == fake.released == 1


class TestUnclassifiedFailures:

    async def test_unexpected_exception_is_500_and_counted(self):
        fake = FakePool(conn=FakeConnection(RuntimeError("driver bug")))
        metrics = MetricsCollector()
        app = create_app(Settings(), pool=fake, metrics=metrics)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/channel/1")

        assert response.status_code == 500
        assert response.json()["error"] == {
            "code": "INTERNAL_ERROR",
            "message": "Internal server error.",
            "status": 500,
        }
        assert "driver bug" not in response.text
        assert metrics.responses("5xx") == 1
        assert fake.acquired == fake.released == 1


class TestPoolFailures:

    async def test_pool_exhausted_is_503(self, fake_client_factory):
        fake = FakePool(acquire_error=PoolExhausted())
        async with fake_client_factory(fake) as client:
            response = await client.get("/channel/1")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "POOL_EXHAUSTED"
        assert response.headers["Retry-After"] == "1"

    async def test_connect_failed_is_503(self, fake_client_factory):
        fake = FakePool(acquire_error=ConnectFailed())
        async with fake_client_factory(fake) as client:
            response = await client.post("/channel", json={"name": "x"})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "DATABASE_UNAVAILABLE"

    async def test_missing_pool_is_503(self, fake_client_factory):
        async with fake_client_factory(None) as client:
            response = await client.get("/channel/1")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "DATABASE_UNAVAILABLE"


class TestParsingShortCircuits:

    async def test_malformed_body_never_touches_pool(self, fake_client_factory):
        fake = FakePool(acquire_error=AssertionError("pool must not be used"))
        async with fake_client_factory(fake) as client:
            response = await client.post("/channel", json={"title": "no name"})

        assert response.status_code == 400
        assert fake.acquired == 0

    async def test_bad_path_id_never_touches_pool(self, fake_client_factory):
        fake = FakePool(acquire_error=AssertionError("pool must not be used"))
        async with fake_client_factory(fake) as client:
            response = await client.delete("/channel/1.5")

        assert response.status_code == 400
        assert fake.acquired == 0

    async def test_out_of_range_id_never_touches_pool(self, fake_client_factory):
        fake = FakePool(acquire_error=AssertionError("pool must not be used"))
        async with fake_client_factory(fake) as client:
            response = await client.get(f"/channel/{2**63}")

        assert response.status_code == 400
        assert fake.acquired == 0

    async def test_validation_details_are_reported(self, fake_client_factory):
        async with fake_client_factory(FakePool()) as client:
            response = await client.post("/channel", json={"name": ""})

        details = response.json()["error"]["details"]
        assert any(d["loc"][-1] == "name" for d in details)
