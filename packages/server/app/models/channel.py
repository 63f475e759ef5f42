"""Channel table model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


class Channel(SQLModel, table=True):
    __tablename__ = "channel"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    guild_id: Optional[int] = Field(default=None, sa_type=sa.BigInteger)
    guild_name: Optional[str] = Field(default=None)
    added_by: Optional[int] = Field(default=None, sa_type=sa.BigInteger)
    suppress: Optional[bool] = Field(default=None)
    added_at: Optional[datetime] = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.text("CURRENT_TIMESTAMP")},
    )


# Columns a client may write; everything else is owned by the database.
MUTABLE_COLUMNS = ("name", "guild_id", "guild_name", "added_by", "suppress")

# ``id`` is SERIAL: a 4-byte integer the sequence starts at 1.
MIN_CHANNEL_ID = 1
MAX_CHANNEL_ID = 2**31 - 1
