"""SQLAlchemy database models."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

from fundbadge.config.constants import GITHUB_USERNAME_MAX_LENGTH

Base = declarative_base()


class UserToken(Base):
    """Encrypted OAuth token linked to a GitHub account."""

    __tablename__ = "user_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    github_username = Column(String(GITHUB_USERNAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    github_user_id = Column(String(64), nullable=False)
    access_token = Column(Text, nullable=False)  # Fernet ciphertext
    scope = Column(String(256), nullable=False, default="")
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
    last_used_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_user_tokens_github_user_id", "github_user_id"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "github_username": self.github_username,
            "github_user_id": self.github_user_id,
            "scope": self.scope,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_used_at": self.last_used_at.isoformat() if self.last_used_at else None,
        }
