"""
Queue for requests that arrive while the rate limit is exhausted.

Queued requests are dispatched strictly in arrival order once the rate
limit window resets. Draining runs as a single asyncio task; callers only
ever await the future returned by ``enqueue``.
"""

import asyncio
import time
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Optional

from .errors import RateLimitedError
from .rate_limit import RateLimitTracker

logger = logging.getLogger(__name__)

Dispatcher = Callable[[str, Dict[str, Any]], Awaitable[Any]]


@dataclass
class QueuedRequest:
    """A request waiting for rate limit budget."""
    endpoint: str
    options: Dict[str, Any]
    enqueued_at: float
    future: asyncio.Future = field(repr=False)


class RequestQueue:
    """
    FIFO queue drained when the rate limit resets.

    Attributes:
        tracker: Rate limit tracker deciding when requests may run
        dispatch: Coroutine function sending a request through the normal path
    """

    def __init__(self, tracker: RateLimitTracker, dispatch: Dispatcher,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 clock: Callable[[], float] = time.time):
        self.tracker = tracker
        self.dispatch = dispatch
        self.sleep = sleep
        self.clock = clock
        self._pending: Deque[QueuedRequest] = deque()
        self._draining = False
        self._drain_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def enqueue(self, endpoint: str, options: Optional[Dict[str, Any]] = None) -> asyncio.Future:
        """
        Queue a request and make sure a drain is scheduled.

        Args:
            endpoint: API endpoint
            options: Request options passed back to the dispatcher

        Returns:
            Future resolved with the response data or the final failure
        """
        loop = asyncio.get_running_loop()
        request = QueuedRequest(
            endpoint=endpoint,
            options=dict(options or {}),
            enqueued_at=self.clock(),
            future=loop.create_future()
        )
        self._pending.append(request)
        logger.warning(f"Rate limit reached, queued request to {endpoint} ({len(self._pending)} waiting)")
        self._schedule_drain()
        return request.future

    def _schedule_drain(self) -> None:
        if self._draining or (self._drain_task is not None and not self._drain_task.done()):
            return
        self._drain_task = asyncio.get_running_loop().create_task(self.drain())

    async def drain(self) -> None:
        """
        Dispatch queued requests once budget is available.

        Waits for the rate limit reset, then dispatches requests oldest first
        while the tracker reports budget. A call while a drain is already
        running returns immediately. If requests are still waiting when the
        budget runs out, or a dispatched request is rejected by the rate limit,
        another drain is scheduled, which waits for the next reset.
        """
        if self._draining:
            return
        self._draining = True

        try:
            wait_time = self.tracker.seconds_until_reset()
            if self._pending and wait_time > 0:
                logger.info(f"Waiting {wait_time:.1f}s for rate limit reset ({len(self._pending)} queued)")
                await self.sleep(wait_time)

            while self._pending and self.tracker.has_budget():
                request = self._pending.popleft()
                try:
                    result = await self.dispatch(request.endpoint, request.options)
                except RateLimitedError as e:
                    # Keeps its place at the head; the next drain waits for the new reset
                    logger.warning(f"Rate limit hit while draining {request.endpoint}: {e}")
                    self._pending.appendleft(request)
                    break
                except Exception as e:
                    if not request.future.done():
                        request.future.set_exception(e)
                else:
                    if not request.future.done():
                        request.future.set_result(result)
        finally:
            self._draining = False

        if self._pending:
            logger.info(f"Rate limit exhausted during drain, {len(self._pending)} requests still queued")
            self._drain_task = asyncio.get_running_loop().create_task(self.drain())
