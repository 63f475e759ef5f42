"""
Channel repository — parameterized SQL for the channel table.

Every function takes a connection borrowed from ``ConnectionPool.acquire()``
and issues exactly one statement built from SQLAlchemy Core expressions, so
user input only ever travels as bound parameters.
"""

from __future__ import annotations

import structlog
from sqlalchemy import delete, exc, insert, select, update
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncConnection

from app.core.errors import (
    ChannelServiceError,
    ConstraintViolation,
    DatabaseError,
    NotFound,
)
from app.models.channel import MAX_CHANNEL_ID, MIN_CHANNEL_ID, MUTABLE_COLUMNS, Channel
from channel_crud_shared.schemas.channels import ChannelFields, ChannelResponse

log = structlog.get_logger()

channel_table = Channel.__table__

_RETURNED = (channel_table.c.id, *(channel_table.c[name] for name in MUTABLE_COLUMNS))


def _values(fields: ChannelFields) -> dict:
    # Full replace: absent optional fields are written as NULL.
    return {name: getattr(fields, name) for name in MUTABLE_COLUMNS}


def _to_response(row: Row) -> ChannelResponse:
    return ChannelResponse.model_validate(dict(row._mapping))


def _check_id(channel_id: int) -> None:
    # The driver cannot bind ids beyond the column type; no such row exists.
    if not MIN_CHANNEL_ID <= channel_id <= MAX_CHANNEL_ID:
        raise _not_found(channel_id)


def _not_found(channel_id: int) -> NotFound:
    return NotFound(f"Channel {channel_id} not found.")


def _classify(err: exc.SQLAlchemyError, action: str) -> ChannelServiceError:
    """Map a driver failure onto the client-safe taxonomy."""
    if isinstance(err, exc.IntegrityError):
        log.warning("channel.constraint_violation", action=action)
        return ConstraintViolation()
    log.error("channel.database_error", action=action, error_type=type(err).__name__)
    return DatabaseError()


async def create_channel(fields: ChannelFields, conn: AsyncConnection) -> ChannelResponse:
    """Insert a channel and return it with its generated id."""
    stmt = insert(channel_table).values(**_values(fields)).returning(*_RETURNED)
    try:
        result = await conn.execute(stmt)
        row = result.one()
    except exc.SQLAlchemyError as err:
        raise _classify(err, "create") from err

    log.info("channel.created", channel_id=row.id)
    return _to_response(row)


async def get_channel(channel_id: int, conn: AsyncConnection) -> ChannelResponse:
    _check_id(channel_id)
    stmt = select(*_RETURNED).where(channel_table.c.id == channel_id)
    try:
        result = await conn.execute(stmt)
        row = result.first()
    except exc.SQLAlchemyError as err:
        raise _classify(err, "read") from err

    if row is None:
        raise _not_found(channel_id)
    return _to_response(row)


async def update_channel(
    channel_id: int, fields: ChannelFields, conn: AsyncConnection
) -> ChannelResponse:
    """Overwrite every mutable column of an existing channel. Never inserts."""
    _check_id(channel_id)
    stmt = (
        update(channel_table)
        .where(channel_table.c.id == channel_id)
        .values(**_values(fields))
        .returning(*_RETURNED)
    )
    try:
        result = await conn.execute(stmt)
        row = result.first()
    except exc.SQLAlchemyError as err:
        raise _classify(err, "update") from err

    if row is None:
        raise _not_found(channel_id)
    log.info("channel.updated", channel_id=channel_id)
    return _to_response(row)


async def delete_channel(channel_id: int, conn: AsyncConnection) -> None:
    _check_id(channel_id)
    stmt = delete(channel_table).where(channel_table.c.id == channel_id)
    try:
        result = await conn.execute(stmt)
    except exc.SQLAlchemyError as err:
        raise _classify(err, "delete") from err

    if result.rowcount == 0:
        raise _not_found(channel_id)
    log.info("channel.deleted", channel_id=channel_id)
