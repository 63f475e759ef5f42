"""
Request middleware: request ids, access logging, response counters.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.core.metrics import MetricsCollector

log = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id into the structlog context for the lifetime of the
    request and log one ``request.completed`` line per response.

    An incoming ``X-Request-ID`` header is reused; otherwise one is generated.
    Unclassified exceptions are recorded as 500 here and re-raised; the
    outermost server-error handler renders their body.
    """

    def __init__(self, app: ASGIApp, metrics: MetricsCollector):
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as err:
            self._record(request, 500, start, error_type=type(err).__name__)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        self._record(request, response.status_code, start)
        return response

    def _record(self, request: Request, status_code: int, start: float, **extra) -> None:
        latency_ms = int((time.perf_counter() - start) * 1000)
        self._metrics.observe_response(request.method, status_code)
        log.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status=status_code,
            latency_ms=latency_ms,
            **extra,
        )
