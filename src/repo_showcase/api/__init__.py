"""
API package for the repository showcase.

This package provides the asynchronous GitHub API client and its parts:

1. GitHub API client with caching, rate limit tracking and queuing
2. Retry policy with exponential backoff and a bounded error log
3. Error classes and the FetchResult value used by domain operations
"""

from .cache import MemoryCache, make_cache_key
from .errors import (
    APIError, GitHubAPIError, NotFoundError, ConnectionFailedError, RateLimitedError, FetchResult
)
from .rate_limit import RateLimitTracker, RateLimitState
from .request_queue import RequestQueue, QueuedRequest
from .retry import RetryPolicy, ErrorLog
from .github_api import GitHubAPIClient, analyze_learning_structure

__all__ = [
    'MemoryCache',
    'make_cache_key',
    'APIError',
    'GitHubAPIError',
    'NotFoundError',
    'ConnectionFailedError',
    'RateLimitedError',
    'FetchResult',
    'RateLimitTracker',
    'RateLimitState',
    'RequestQueue',
    'QueuedRequest',
    'RetryPolicy',
    'ErrorLog',
    'GitHubAPIClient',
    'analyze_learning_structure'
]
