"""Tests for the rate limit request queue."""

import asyncio

import pytest

from repo_showcase.api.errors import GitHubAPIError, RateLimitedError
from repo_showcase.api.rate_limit import RateLimitTracker
from repo_showcase.api.request_queue import RequestQueue


class RecordingDispatcher:
    """Dispatcher that records call order and reports the rate limit like the API would."""

    def __init__(self, tracker, clock, remaining_after=None, fail_for=(), rate_limited_once=()):
        self.tracker = tracker
        self.clock = clock
        self.calls = []
        self.remaining_after = list(remaining_after or [])
        self.fail_for = set(fail_for)
        self.rate_limited_once = set(rate_limited_once)

    async def __call__(self, endpoint, options):
        self.calls.append((endpoint, self.clock.now))
        if self.remaining_after:
            self.tracker.update({
                'x-ratelimit-remaining': str(self.remaining_after.pop(0)),
                'x-ratelimit-reset': str(int(self.clock.now) + 60)
            })
        await asyncio.sleep(0)
        if endpoint in self.rate_limited_once:
            self.rate_limited_once.discard(endpoint)
            self.tracker.update({
                'x-ratelimit-remaining': '0',
                'x-ratelimit-reset': str(int(self.clock.now) + 60)
            })
            raise RateLimitedError(f"HTTP 403 for {endpoint}", status_code=403)
        if endpoint in self.fail_for:
            raise GitHubAPIError(f"HTTP 500 for {endpoint}", status_code=500)
        return {'endpoint': endpoint, 'options': options}


@pytest.fixture
def exhausted_tracker(clock):
    tracker = RateLimitTracker(limit=60, clock=clock)
    tracker.update({'x-ratelimit-remaining': '0', 'x-ratelimit-reset': str(int(clock.now) + 2)})
    return tracker


@pytest.mark.asyncio
async def test_requests_wait_for_reset(exhausted_tracker, clock):
    dispatcher = RecordingDispatcher(exhausted_tracker, clock)
    queue = RequestQueue(exhausted_tracker, dispatcher, sleep=clock.sleep, clock=clock)
    start = clock.now

    result = await queue.enqueue('/users/acme', {'params': {'a': 1}})

    assert result == {'endpoint': '/users/acme', 'options': {'params': {'a': 1}}}
    assert clock.sleeps == [2.0]
    assert dispatcher.calls[0][1] - start >= 2
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_fifo_order(exhausted_tracker, clock):
    dispatcher = RecordingDispatcher(exhausted_tracker, clock)
    queue = RequestQueue(exhausted_tracker, dispatcher, sleep=clock.sleep, clock=clock)

    futures = [queue.enqueue(f'/repos/acme/repo-{i}') for i in range(5)]
    assert len(queue) == 5

    results = await asyncio.gather(*futures)

    assert [call[0] for call in dispatcher.calls] == [f'/repos/acme/repo-{i}' for i in range(5)]
    assert [r['endpoint'] for r in results] == [f'/repos/acme/repo-{i}' for i in range(5)]


@pytest.mark.asyncio
async def test_failure_is_delivered_to_its_caller_only(exhausted_tracker, clock):
    dispatcher = RecordingDispatcher(exhausted_tracker, clock, fail_for={'/bad'})
    queue = RequestQueue(exhausted_tracker, dispatcher, sleep=clock.sleep, clock=clock)

    bad = queue.enqueue('/bad')
    good = queue.enqueue('/good')

    with pytest.raises(GitHubAPIError):
        await bad
    assert (await good)['endpoint'] == '/good'


@pytest.mark.asyncio
async def test_drain_is_idempotent(exhausted_tracker, clock):
    dispatcher = RecordingDispatcher(exhausted_tracker, clock)
    queue = RequestQueue(exhausted_tracker, dispatcher, sleep=clock.sleep, clock=clock)

    future = queue.enqueue('/users/acme')
    # The scheduled drain starts on the next loop iteration; these calls overlap it
    await asyncio.gather(queue.drain(), queue.drain(), queue.drain())
    await future

    assert len(dispatcher.calls) == 1
    assert clock.sleeps == [2.0]


@pytest.mark.asyncio
async def test_budget_exhausted_mid_drain_resumes_after_next_reset(exhausted_tracker, clock):
    # After the first dispatched request the API reports the budget used up again
    dispatcher = RecordingDispatcher(exhausted_tracker, clock, remaining_after=[1, 59])
    queue = RequestQueue(exhausted_tracker, dispatcher, sleep=clock.sleep, clock=clock)

    first = queue.enqueue('/first')
    second = queue.enqueue('/second')

    await first
    assert len(queue) == 1

    await second
    assert [call[0] for call in dispatcher.calls] == ['/first', '/second']
    # Second request waited for the reset reported by the first response
    assert clock.sleeps == [2.0, 60.0]


@pytest.mark.asyncio
async def test_no_wait_when_reset_already_passed(clock):
    tracker = RateLimitTracker(limit=60, clock=clock)
    tracker.update({'x-ratelimit-remaining': '0', 'x-ratelimit-reset': str(int(clock.now) - 1)})
    dispatcher = RecordingDispatcher(tracker, clock)
    queue = RequestQueue(tracker, dispatcher, sleep=clock.sleep, clock=clock)

    await queue.enqueue('/users/acme')

    assert clock.sleeps == []
    assert len(dispatcher.calls) == 1


@pytest.mark.asyncio
async def test_rate_limited_request_keeps_its_place(exhausted_tracker, clock):
    dispatcher = RecordingDispatcher(exhausted_tracker, clock, rate_limited_once={'/first'})
    queue = RequestQueue(exhausted_tracker, dispatcher, sleep=clock.sleep, clock=clock)

    first = queue.enqueue('/first')
    second = queue.enqueue('/second')

    results = await asyncio.gather(first, second)

    assert [r['endpoint'] for r in results] == ['/first', '/second']
    assert [call[0] for call in dispatcher.calls] == ['/first', '/first', '/second']
    assert clock.sleeps == [2.0, 60.0]
