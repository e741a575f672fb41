"""Custom exceptions for funding data retrieval.

Every failure the funding pipeline surfaces to its callers is one of the
``FundingError`` subclasses below. ``label`` and ``error_cache_seconds``
tell the HTTP layer what to print on the error badge and how long that
badge may be cached.
"""


class FundingError(Exception):
    """Base exception for all funding data errors."""

    label = "Error"
    error_cache_seconds = 60


class InvalidUsername(FundingError):
    """Raised when a username fails the platform's handle grammar."""

    label = "Invalid Username"
    error_cache_seconds = 3600

    def __init__(self, username: str) -> None:
        super().__init__(f"Invalid GitHub username: {username}")
        self.username = username


class CredentialRequired(FundingError):
    """Raised when an upstream call is attempted without a credential."""

    label = "Token Required"
    error_cache_seconds = 300


class NotAuthorized(FundingError):
    """Raised when no stored credential exists for a username."""

    label = "Not Authorized - Connect GitHub"
    error_cache_seconds = 300

    def __init__(self, username: str) -> None:
        super().__init__(
            f"User {username} has not authorized this service. "
            "Please visit /auth/github to connect your GitHub account."
        )
        self.username = username


class UserNotFound(FundingError):
    """Raised when the upstream reports the account does not exist."""

    label = "User Not Found"
    error_cache_seconds = 3600

    def __init__(self, username: str) -> None:
        super().__init__(f"GitHub user not found: {username}")
        self.username = username


class AccessDenied(FundingError):
    """Raised when the account exists but its sponsorship data is not visible."""

    label = "Access Denied"
    error_cache_seconds = 1800

    def __init__(self, username: str) -> None:
        super().__init__(
            f"Cannot access sponsor data for {username}. "
            "The provided token does not have permission to view this user's sponsors."
        )
        self.username = username


class RateLimitExceeded(FundingError):
    """Raised when the upstream forbids a call because its quota is exhausted."""

    label = "Rate Limited"
    error_cache_seconds = 300

    def __init__(self, message: str = "GitHub API rate limit exceeded") -> None:
        super().__init__(message)


class UnsupportedPlatform(FundingError):
    """Raised when no provider is registered for a platform."""

    label = "Invalid Platform"
    error_cache_seconds = 3600

    def __init__(self, platform: str) -> None:
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform


class MaxRetriesExceeded(FundingError):
    """Raised when a transient upstream failure outlives the retry budget."""

    label = "Upstream Unavailable"
    error_cache_seconds = 60

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Max retries exceeded after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class UpstreamError(Exception):
    """Retryable transport or protocol failure talking to the upstream API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OAuthError(Exception):
    """Raised when the OAuth code exchange or user lookup fails."""
