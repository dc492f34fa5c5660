"""Routers package."""

from . import (
    health,
    auth,
    video,
    image,
)
