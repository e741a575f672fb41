"""Database storage module."""

from .models import Base, UserToken
from .repository import Database, UserTokenRepository

__all__ = ["Base", "UserToken", "Database", "UserTokenRepository"]
