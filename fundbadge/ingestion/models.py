"""Funding data models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fundbadge.config.constants import LOW_QUOTA_THRESHOLD


@dataclass(frozen=True)
class RateLimitInfo:
    """Upstream quota snapshot."""

    remaining: int
    limit: int
    reset: datetime

    @property
    def is_low(self) -> bool:
        return self.remaining < LOW_QUOTA_THRESHOLD

    def to_dict(self) -> dict[str, Any]:
        return {
            "remaining": self.remaining,
            "limit": self.limit,
            "reset": self.reset.isoformat(),
        }

    @classmethod
    def from_graphql(cls, data: dict[str, Any]) -> "RateLimitInfo":
        """Build from a GraphQL ``rateLimit`` object."""
        return cls(
            remaining=int(data["remaining"]),
            limit=int(data["limit"]),
            reset=datetime.fromisoformat(data["resetAt"].replace("Z", "+00:00")),
        )


@dataclass(frozen=True)
class SponsorshipPayload:
    """Raw sponsorship query result together with its quota snapshot."""

    user: dict[str, Any] | None
    rate_limit: RateLimitInfo


@dataclass(frozen=True)
class FundingRecord:
    """Immutable snapshot of a sponsee's funding state."""

    platform: str
    username: str
    current_amount: float
    currency: str = "USD"
    is_recurring: bool = True
    breakdown: dict[str, Any] | None = None
    last_updated: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.current_amount < 0:
            raise ValueError("current_amount must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "username": self.username,
            "current_amount": self.current_amount,
            "currency": self.currency,
            "is_recurring": self.is_recurring,
            "breakdown": self.breakdown,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FundingRecord":
        return cls(
            platform=data["platform"],
            username=data["username"],
            current_amount=data["current_amount"],
            currency=data.get("currency", "USD"),
            is_recurring=data.get("is_recurring", True),
            breakdown=data.get("breakdown"),
            last_updated=datetime.fromisoformat(data["last_updated"]),
        )
