"""
Rate limit tracking for the GitHub API.

This module keeps the remaining request budget of one API client up to date
from the ``X-RateLimit-*`` response headers and answers whether another
request may be sent now or has to wait for the next window.
"""

import time
import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

LIMIT_HEADER = 'x-ratelimit-limit'
REMAINING_HEADER = 'x-ratelimit-remaining'
RESET_HEADER = 'x-ratelimit-reset'


@dataclass
class RateLimitState:
    """Current request budget. ``reset_at`` is a unix timestamp in seconds."""
    limit: int
    remaining: int
    reset_at: float
    used: int = 0


def _parse_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unparsable header {name}={value!r}")
        return None


class RateLimitTracker:
    """
    Request budget of one API client.

    The state is only changed by ``update``, which is fed the headers of
    every response. The tracker keeps ``reserve`` requests as headroom: it
    reports no budget once ``remaining`` drops to the reserve, unless the
    reset time has already passed.

    Attributes:
        state: Current RateLimitState
        reserve: Number of requests held back
    """

    def __init__(self, limit: int = 60, window: float = 3600, reserve: int = 1,
                 clock: Callable[[], float] = time.time):
        """
        Initialize tracker.

        Args:
            limit: Assumed limit until the first response reports one
            window: Assumed seconds until the first reset
            reserve: Requests kept as headroom
            clock: Function returning the current time in seconds
        """
        self.clock = clock
        self.reserve = reserve
        self.state = RateLimitState(
            limit=limit,
            remaining=limit,
            reset_at=clock() + window,
            used=0
        )
        self._observed = False

    def update(self, headers: Mapping[str, Any]) -> None:
        """
        Update the state from response headers.

        Missing or unparsable headers leave the matching field unchanged.
        Within one window ``remaining`` only goes down; a higher value is
        accepted when the response reports a later reset time or the
        current window has already elapsed.

        Args:
            headers: Response headers (any mapping; names are matched case-insensitively)
        """
        lowered = {str(k).lower(): v for k, v in headers.items()}
        limit = _parse_int(lowered, LIMIT_HEADER)
        remaining = _parse_int(lowered, REMAINING_HEADER)
        reset = _parse_int(lowered, RESET_HEADER)

        state = self.state
        new_window = (
            not self._observed
            or (reset is not None and reset > state.reset_at)
            or self.clock() >= state.reset_at
        )

        if limit is not None:
            state.limit = limit
        if remaining is not None:
            if remaining <= state.remaining or new_window:
                state.remaining = remaining
            else:
                logger.debug(f"Ignoring stale remaining={remaining} (tracked {state.remaining})")
            self._observed = True
        if reset is not None:
            state.reset_at = float(reset)

        state.used = state.limit - state.remaining

        if state.remaining <= self.reserve:
            logger.warning(f"Rate limit nearly exhausted: {state.remaining}/{state.limit} remaining")
        else:
            logger.debug(f"Rate limit: {state.remaining}/{state.limit}")

    def has_budget(self) -> bool:
        """Return True when a request may be sent now."""
        return self.state.remaining > self.reserve or self.clock() >= self.state.reset_at

    def seconds_until_reset(self) -> float:
        """Seconds until the current window resets, never negative."""
        return max(0.0, self.state.reset_at - self.clock())

    def snapshot(self) -> Dict[str, Any]:
        """Return a copy of the state as a plain dictionary."""
        return asdict(self.state)
