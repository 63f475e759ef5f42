"""
Classified failures raised by the pool and the channel repository.

Each carries a client-safe ``message``. Driver exceptions are chained as
``__cause__`` and never reach the response body; status codes are assigned
in ``app.api.errors``.
"""

from __future__ import annotations

from typing import Any, Optional


class ChannelServiceError(Exception):
    """Base class for every classified failure."""

    code = "INTERNAL_ERROR"
    default_message = "Internal server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ChannelServiceError):
    code = "NOT_FOUND"
    default_message = "Resource not found."


class ConstraintViolation(ChannelServiceError):
    code = "CONSTRAINT_VIOLATION"
    default_message = "The request conflicts with an existing record."


class PoolExhausted(ChannelServiceError):
    code = "POOL_EXHAUSTED"
    default_message = "No database connection became available in time."


class ConnectFailed(ChannelServiceError):
    code = "DATABASE_UNAVAILABLE"
    default_message = "The database could not be reached."


class DatabaseError(ChannelServiceError):
    code = "DATABASE_ERROR"
    default_message = "The database failed to execute the statement."


class MalformedRequest(ChannelServiceError):
    code = "MALFORMED_REQUEST"
    default_message = "The request could not be parsed."

    def __init__(self, message: Optional[str] = None, details: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.details = details or []
