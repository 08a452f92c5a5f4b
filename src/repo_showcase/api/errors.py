"""
Error classes and result types for API access.

This module defines the error classes raised by the dispatch layer and the
FetchResult value that domain operations receive instead of exceptions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for all API-related errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Initialize API error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class GitHubAPIError(APIError):
    """Error in GitHub API requests."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 endpoint: Optional[str] = None):
        """
        Initialize GitHub API error.

        Args:
            message: Error message
            status_code: HTTP status code, None for connection failures
            endpoint: Endpoint the failed request was sent to
        """
        super().__init__(message, status_code)
        self.endpoint = endpoint


class NotFoundError(GitHubAPIError):
    """Resource was not found."""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message, 404, endpoint)


class ConnectionFailedError(GitHubAPIError):
    """The API could not be reached at all (DNS, refused connection, timeout)."""


class RateLimitedError(GitHubAPIError):
    """Request rejected because the rate limit window is used up."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 endpoint: Optional[str] = None, reset_at: Optional[float] = None):
        super().__init__(message, status_code, endpoint)
        self.reset_at = reset_at


@dataclass
class FetchResult:
    """
    Outcome of one dispatched request.

    Exactly one of ``value`` and ``error`` is meaningful: ``ok`` tells
    which. Domain operations branch on ``ok`` and pick their fallback.
    """

    endpoint: str
    value: Any = None
    error: Optional[GitHubAPIError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, endpoint: str, value: Any) -> 'FetchResult':
        return cls(endpoint=endpoint, value=value)

    @classmethod
    def failure(cls, endpoint: str, error: GitHubAPIError) -> 'FetchResult':
        return cls(endpoint=endpoint, error=error)

    def unwrap(self) -> Any:
        """Return the value or raise the recorded error."""
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: Any) -> Any:
        """Return the value, or ``default`` when the request failed."""
        return self.value if self.error is None else default
