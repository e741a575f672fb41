"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "test", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # GitHub API (service-level token is only used for quota checks)
    github_token: SecretStr | None = None
    github_api_url: str = "https://api.github.com/graphql"
    github_api_timeout: float = 10.0

    # GitHub OAuth
    github_oauth_client_id: str = ""
    github_oauth_client_secret: SecretStr | None = None
    github_oauth_callback_url: str = "http://localhost:3000/auth/github/callback"

    # Database (SQLite for dev, PostgreSQL for prod)
    database_url: str = "sqlite+aiosqlite:///./fundbadge.db"

    # Token encryption
    encryption_secret: SecretStr | None = None

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Cache TTL (seconds)
    cache_default_ttl: int = 300  # 5 minutes
    cache_max_ttl: int = 3600  # 1 hour, used when upstream quota runs low

    # Inbound rate limit (requests per window, window in seconds)
    rate_limit_max: int = 100
    rate_limit_window: int = 60

    # CORS
    allowed_origins: str = "*"

    # Landing page
    public_base_url: str | None = None
    badge_example_username: str | None = None

    @field_validator("encryption_secret")
    @classmethod
    def validate_encryption_secret(cls, v: SecretStr | None) -> SecretStr | None:
        if v is not None and len(v.get_secret_value()) < 32:
            raise ValueError("Encryption secret must be at least 32 characters")
        return v

    @field_validator("cache_default_ttl", "cache_max_ttl", "rate_limit_max", "rate_limit_window")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
