"""Routers package."""

from . import (
    health,
    auth,
    videos,
    categories,
    discovery,
    bootstrap,
)
