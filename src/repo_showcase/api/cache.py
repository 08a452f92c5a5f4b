"""
Simplified Cache Implementation for API Requests.

This module implements a simple memory caching strategy for API responses
to reduce the number of network requests and conserve the rate limit.
Entries expire after a fixed time-to-live and are evicted lazily on lookup.
"""

import json
import time
import logging
from typing import Dict, Any, Optional, Callable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0  # 5 minutes

_MISSING = object()


def make_cache_key(endpoint: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a cache key from the full request identity.

    Options are serialised as canonical JSON (sorted keys, no whitespace) so
    equal requests always share a key and different requests never do.

    Args:
        endpoint: API endpoint relative to the base URL
        options: Query parameters, headers and other request options

    Returns:
        Cache key string
    """
    canonical = json.dumps(options or {}, sort_keys=True, separators=(',', ':'), default=str)
    return f"{endpoint}#{canonical}"


class MemoryCache:
    """
    Simple in-memory cache with per-entry expiry.

    There is no size bound: the cache lives only as long as one client and
    holds one entry per distinct request.
    """

    def __init__(self, name: str, ttl: float = DEFAULT_TTL,
                 clock: Callable[[], float] = time.time):
        """
        Initialize cache.

        Args:
            name: Name of the cache (for logging)
            ttl: Lifetime of an entry in seconds
            clock: Function returning the current time in seconds
        """
        self.name = name
        self.ttl = ttl
        self.clock = clock
        self.cache: Dict[str, Dict[str, Any]] = {}
        logger.debug(f"Memory cache '{name}' initialized (ttl={ttl}s)")

    def get(self, key: str, default: Any = None) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key
            default: Returned when the key is missing or expired

        Returns:
            Stored value (which may itself be None) or ``default``
        """
        entry = self.cache.get(key)
        if entry is None:
            logger.debug(f"Cache miss for '{key}' in '{self.name}'")
            return default

        if self.clock() - entry['timestamp'] >= self.ttl:
            logger.debug(f"Cache entry '{key}' in '{self.name}' has expired")
            self.remove(key)
            return default

        logger.debug(f"Cache hit for '{key}' in '{self.name}'")
        return entry['value']

    def set(self, key: str, value: Any) -> None:
        """
        Store value in cache, replacing any previous entry.

        Args:
            key: Cache key
            value: Value to store
        """
        self.cache[key] = {
            'value': value,
            'timestamp': self.clock()
        }
        logger.debug(f"Value for '{key}' cached in '{self.name}'")

    def remove(self, key: str) -> None:
        """Remove entry from cache."""
        if self.cache.pop(key, None) is not None:
            logger.debug(f"Entry '{key}' removed from '{self.name}'")

    def clear(self) -> None:
        """Clear the entire cache."""
        self.cache.clear()
        logger.info(f"Cache '{self.name}' cleared")

    def __len__(self) -> int:
        return len(self.cache)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING
