"""Typed error taxonomy for PokeAPI fetches.

Every failure surfaced by the HTTP client is one of the `PokeApiError`
subclasses below. Each carries a user-facing description and a recovery
suggestion. `ErrorRecord` is the immutable snapshot kept as "last error"
state for UIs to poll; it is never cached alongside entities.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class PokeApiError(Exception):
    """Base class for every classified fetch failure."""

    kind = "unknown"
    recovery_suggestion = "Please try again."

    def __init__(self, description: str, status_code: Optional[int] = None):
        self.description = description
        self.status_code = status_code
        super().__init__(description)


class InvalidEndpointError(PokeApiError):
    kind = "invalid_endpoint"
    recovery_suggestion = "Check the endpoint path or base URL configuration."

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Invalid URL: {endpoint!r}")


class NetworkFailedError(PokeApiError):
    kind = "network_failed"
    recovery_suggestion = "Check your internet connection and try again."

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Network error: {cause or type(cause).__name__}")


class DecodingFailedError(PokeApiError):
    kind = "decoding_failed"
    recovery_suggestion = "The API response format may have changed. Please try again later."

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Data parsing error: {cause}")


class NotFoundError(PokeApiError):
    kind = "not_found"
    recovery_suggestion = "Check the Pokemon name or ID and try again."

    def __init__(self, url: str = ""):
        self.url = url
        super().__init__("Resource not found", status_code=404)


class RateLimitedError(PokeApiError):
    kind = "rate_limited"
    recovery_suggestion = "Wait a moment before making another request."

    def __init__(self):
        super().__init__("Too many requests. Please try again later.", status_code=429)


class ServerError(PokeApiError):
    kind = "server_error"
    recovery_suggestion = "The Pokemon API may be experiencing issues."

    def __init__(self, status_code: int = 500):
        super().__init__("Server error. Please try again later.", status_code=status_code)


class HTTPStatusError(PokeApiError):
    kind = "http_error"

    def __init__(self, status_code: int):
        super().__init__(f"HTTP error: {status_code}", status_code=status_code)


@dataclass(frozen=True)
class ErrorRecord:
    """Tagged outcome of a failed fetch, kept for UI consumption."""
    kind: str
    description: str
    recovery_suggestion: str
    status_code: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_error(cls, error: PokeApiError) -> "ErrorRecord":
        return cls(
            kind=error.kind,
            description=error.description,
            recovery_suggestion=error.recovery_suggestion,
            status_code=error.status_code,
        )

    def __str__(self) -> str:
        return f"{self.description} ({self.recovery_suggestion})"
