"""Channel request/response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ChannelFields(BaseModel):
    """Client-writable channel fields. Used for both create (POST) and full replace (PUT)."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    guild_id: Optional[int] = None
    guild_name: Optional[str] = Field(default=None, max_length=200)
    added_by: Optional[int] = None
    suppress: Optional[bool] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ChannelResponse(BaseModel):
    """A stored channel. Null fields are omitted on the wire."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    guild_id: Optional[int] = None
    guild_name: Optional[str] = None
    added_by: Optional[int] = None
    suppress: Optional[bool] = None
