"""API routers module."""

from . import auth, badge, debug, health, index

__all__ = ["auth", "badge", "debug", "health", "index"]
