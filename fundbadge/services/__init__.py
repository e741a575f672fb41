"""Application services."""

from .badge import BadgeGenerator
from .encryption import TokenEncryptor
from .funding_data import CredentialStore, FundingDataService
from .oauth import GitHubOAuthService, OAuthStateStore
from .token_storage import TokenStorage

__all__ = [
    "BadgeGenerator",
    "TokenEncryptor",
    "CredentialStore",
    "FundingDataService",
    "GitHubOAuthService",
    "OAuthStateStore",
    "TokenStorage",
]
