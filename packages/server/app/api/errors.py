"""
Translation of classified failures into HTTP responses.

Every error leaves the service in the same envelope:
``{"error": {"code": ..., "message": ..., "status": ...}}``.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from app.core.errors import (
    ChannelServiceError,
    ConnectFailed,
    ConstraintViolation,
    DatabaseError,
    MalformedRequest,
    NotFound,
    PoolExhausted,
)

log = structlog.get_logger()

ERROR_STATUS: dict[type[ChannelServiceError], int] = {
    MalformedRequest: 400,
    NotFound: 404,
    ConstraintViolation: 409,
    DatabaseError: 500,
    PoolExhausted: 503,
    ConnectFailed: 503,
}

RETRY_AFTER_SECONDS = 1


def status_for(err: ChannelServiceError) -> int:
    for cls in type(err).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def error_response(err: ChannelServiceError, status: Optional[int] = None) -> JSONResponse:
    status = status or status_for(err)
    body = {"code": err.code, "message": err.message, "status": status}
    if isinstance(err, MalformedRequest) and err.details:
        body["details"] = err.details

    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if status == 503 else None
    return JSONResponse(status_code=status, content={"error": body}, headers=headers)


async def _service_error_handler(request: Request, err: ChannelServiceError) -> JSONResponse:
    status = status_for(err)
    if status >= 500:
        log.error(
            "request.failed",
            code=err.code,
            path=request.url.path,
            cause=type(err.__cause__).__name__ if err.__cause__ else None,
        )
    return error_response(err, status)


async def _validation_error_handler(request: Request, err: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(item.get("loc", ())), "msg": item.get("msg", "")}
        for item in err.errors()
    ]
    log.info("request.malformed", path=request.url.path, errors=len(details))
    return error_response(MalformedRequest("Request validation failed.", details))


async def _unhandled_error_handler(request: Request, err: Exception) -> JSONResponse:
    """Last resort for exceptions nothing classified, i.e. server bugs."""
    log.error("request.unhandled", path=request.url.path, exc_info=err)
    return error_response(ChannelServiceError(), 500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChannelServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
