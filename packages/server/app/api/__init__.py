"""
API Router

The channel resource is mounted at /channel.
"""

from fastapi import APIRouter
from . import channels

router = APIRouter()

router.include_router(channels.router, prefix="/channel", tags=["Channels"])
