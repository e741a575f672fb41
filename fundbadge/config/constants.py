"""Platform constants and enumerations."""

from enum import Enum


class Platform(str, Enum):
    """Supported funding platforms."""

    GITHUB = "github"


class BadgeStyle(str, Enum):
    """Badge rendering styles."""

    FLAT = "flat"
    FLAT_SQUARE = "flat-square"
    FOR_THE_BADGE = "for-the-badge"


CACHE_KEY_PREFIX = "funding"

# Upstream quota below this many calls is considered scarce
LOW_QUOTA_THRESHOLD = 100

# Retry policy for upstream calls
MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0

GITHUB_USERNAME_MAX_LENGTH = 39

OAUTH_STATE_TTL = 300  # 5 minutes
OAUTH_SCOPE = "read:user read:org"

DEFAULT_GOAL = 5000
MAX_AMOUNT = 1_000_000_000

# Progress colour thresholds (percentage upper bound, hex colour)
PROGRESS_COLORS: list[tuple[float, str]] = [
    (20, "e74c3c"),  # red - critical
    (40, "e67e22"),  # orange - needs attention
    (60, "f39c12"),  # yellow-orange
    (80, "f1c40f"),  # yellow
    (100, "2ecc71"),  # green - almost there
    (150, "27ae60"),  # darker green - goal reached
]
EXCEEDED_COLOR = "9b59b6"
ERROR_COLOR = "9f9f9f"
