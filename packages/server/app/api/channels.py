"""
Channel CRUD endpoints.

POST   /channel               — Create a channel (id generated by the database)
GET    /channel/{channel_id}  — Read a channel
PUT    /channel/{channel_id}  — Replace every writable field of a channel
DELETE /channel/{channel_id}  — Delete a channel

Bodies and path ids are validated before the handler runs, so malformed
requests never borrow a connection. Each handler holds exactly one pooled
connection for exactly one statement.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.core.database import ConnectionPool, get_pool
from app.models.channel import MAX_CHANNEL_ID, MIN_CHANNEL_ID
from app.services import channels as channel_repo
from channel_crud_shared.schemas.channels import ChannelFields, ChannelResponse
from channel_crud_shared.schemas.common import ErrorResponse

router = APIRouter()

# Ids outside the column range can never exist; reject them before borrowing a connection.
ChannelId = Annotated[int, Path(ge=MIN_CHANNEL_ID, le=MAX_CHANNEL_ID)]

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Malformed request"},
    500: {"model": ErrorResponse, "description": "Statement failed"},
    503: {"model": ErrorResponse, "description": "Database unavailable or pool exhausted"},
}
_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Channel not found"}}
_CONFLICT = {409: {"model": ErrorResponse, "description": "Constraint violation"}}


@router.post(
    "",
    response_model=ChannelResponse,
    response_model_exclude_none=True,
    status_code=201,
    responses={**_ERRORS, **_CONFLICT},
)
async def create_channel(
    body: ChannelFields,
    pool: ConnectionPool = Depends(get_pool),
):
    """Create a channel. The response carries the generated id."""
    async with pool.acquire() as conn:
        return await channel_repo.create_channel(body, conn)


@router.get(
    "/{channel_id}",
    response_model=ChannelResponse,
    response_model_exclude_none=True,
    responses={**_ERRORS, **_NOT_FOUND},
)
async def get_channel(
    channel_id: ChannelId,
    pool: ConnectionPool = Depends(get_pool),
):
    async with pool.acquire() as conn:
        return await channel_repo.get_channel(channel_id, conn)


@router.put(
    "/{channel_id}",
    response_model=ChannelResponse,
    response_model_exclude_none=True,
    responses={**_ERRORS, **_NOT_FOUND, **_CONFLICT},
)
async def update_channel(
    channel_id: ChannelId,
    body: ChannelFields,
    pool: ConnectionPool = Depends(get_pool),
):
    """Replace a channel. Fields omitted from the body are cleared."""
    async with pool.acquire() as conn:
        return await channel_repo.update_channel(channel_id, body, conn)


@router.delete("/{channel_id}", status_code=204, responses={**_ERRORS, **_NOT_FOUND})
async def delete_channel(
    channel_id: ChannelId,
    pool: ConnectionPool = Depends(get_pool),
):
    async with pool.acquire() as conn:
        await channel_repo.delete_channel(channel_id, conn)
