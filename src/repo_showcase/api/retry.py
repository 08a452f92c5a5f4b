"""
Retry utilities with exponential backoff for transient API failures.

The RetryPolicy wraps a single request attempt. Every failure, including
the ones that are retried, is recorded in a bounded ErrorLog so recent
problems stay visible in the client status even when a domain operation
falls back silently.
"""

import asyncio
import time
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple, Type, TypeVar

from .errors import GitHubAPIError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorLog:
    """Most recent request failures, oldest first."""

    def __init__(self, max_entries: int = 10, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)

    def record(self, endpoint: str, error: BaseException) -> None:
        self._entries.append({
            'endpoint': endpoint,
            'message': str(error),
            'timestamp': self.clock()
        })

    def recent(self) -> List[Dict[str, Any]]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RetryPolicy:
    """
    Exponential backoff around one request attempt.

    After a failed attempt with index ``i`` (zero-based) the policy waits
    ``base_delay * 2 ** i`` seconds before the next one. Once
    ``max_attempts`` attempts have failed the last error is re-raised.
    Errors matching ``give_up_on`` are recorded and re-raised at once.
    """

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0,
                 error_log: Optional[ErrorLog] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 retry_on: Tuple[Type[BaseException], ...] = (GitHubAPIError,),
                 give_up_on: Tuple[Type[BaseException], ...] = ()):
        """
        Args:
            max_attempts: Total number of attempts, including the first
            base_delay: Delay after the first failure in seconds
            error_log: Log receiving every failure
            sleep: Coroutine function used for the backoff wait
            retry_on: Exception types treated as retryable failures
            give_up_on: Exception types that are never retried
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.error_log = error_log if error_log is not None else ErrorLog()
        self.sleep = sleep
        self.retry_on = retry_on
        self.give_up_on = give_up_on

    def delay_for(self, attempt_index: int) -> float:
        """Backoff delay after the failed attempt ``attempt_index``."""
        return self.base_delay * (2 ** attempt_index)

    async def execute(self, attempt: Callable[[], Awaitable[T]], endpoint: str = "") -> T:
        """
        Run ``attempt`` until it succeeds or the attempts are used up.

        Args:
            attempt: Coroutine function performing one request
            endpoint: Endpoint name used in logs and the error log

        Returns:
            The first successful result

        Raises:
            The last failure once ``max_attempts`` attempts have failed,
            or the first failure matching ``give_up_on``
        """
        attempt_count = 0
        while True:
            try:
                return await attempt()
            except self.give_up_on as e:
                self.error_log.record(endpoint, e)
                logger.warning(f"Request to {endpoint} not retried: {e}")
                raise
            except self.retry_on as e:
                self.error_log.record(endpoint, e)
                attempt_count += 1

                if attempt_count >= self.max_attempts:
                    logger.error(f"Request to {endpoint} failed after {self.max_attempts} attempts: {e}")
                    raise

                delay = self.delay_for(attempt_count - 1)
                logger.warning(
                    f"Attempt {attempt_count}/{self.max_attempts} for {endpoint} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await self.sleep(delay)
