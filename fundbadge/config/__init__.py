"""Configuration module for fundbadge."""

from .settings import settings
from .constants import Platform, CACHE_KEY_PREFIX, LOW_QUOTA_THRESHOLD

__all__ = ["settings", "Platform", "CACHE_KEY_PREFIX", "LOW_QUOTA_THRESHOLD"]
