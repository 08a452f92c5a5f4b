"""Tests for rate limit tracking."""

import itertools

import pytest

from repo_showcase.api.rate_limit import RateLimitTracker

from conftest import FakeClock


@pytest.fixture
def tracker(clock):
    return RateLimitTracker(limit=60, window=3600, reserve=1, clock=clock)


def test_initial_state(tracker, clock):
    state = tracker.snapshot()
    assert state['limit'] == 60
    assert state['remaining'] == 60
    assert state['used'] == 0
    assert state['reset_at'] == clock.now + 3600
    assert tracker.has_budget()


def test_update_from_all_headers(tracker, clock):
    reset = int(clock.now) + 1800
    tracker.update({
        'X-RateLimit-Limit': '60',
        'X-RateLimit-Remaining': '42',
        'X-RateLimit-Reset': str(reset)
    })
    assert tracker.state.limit == 60
    assert tracker.state.remaining == 42
    assert tracker.state.reset_at == reset
    assert tracker.state.used == 18


def test_missing_headers_leave_state_unchanged(tracker):
    tracker.update({'x-ratelimit-remaining': '50'})
    before = tracker.snapshot()
    tracker.update({'content-type': 'application/json'})
    assert tracker.snapshot() == before


def test_unparsable_header_is_ignored(tracker):
    tracker.update({'x-ratelimit-remaining': 'plenty'})
    assert tracker.state.remaining == 60


def test_used_invariant_holds_for_partial_updates(clock):
    """used == limit - remaining after every update, whatever subset of headers arrives."""
    tracker = RateLimitTracker(limit=60, clock=clock)
    reset = int(clock.now) + 1000
    updates = [
        {'x-ratelimit-limit': '60'},
        {'x-ratelimit-remaining': '55'},
        {'x-ratelimit-reset': str(reset)},
        {'x-ratelimit-limit': '100', 'x-ratelimit-remaining': '90'},
        {'x-ratelimit-remaining': '30', 'x-ratelimit-reset': str(reset + 3600)},
        {'x-ratelimit-limit': '5000'},
        {},
    ]
    for sequence in itertools.permutations(updates, 4):
        tracker = RateLimitTracker(limit=60, clock=clock)
        for headers in sequence:
            tracker.update(headers)
            assert tracker.state.used == tracker.state.limit - tracker.state.remaining


def test_remaining_does_not_increase_within_window(tracker, clock):
    reset = str(int(clock.now) + 1800)
    tracker.update({'x-ratelimit-remaining': '40', 'x-ratelimit-reset': reset})
    tracker.update({'x-ratelimit-remaining': '45', 'x-ratelimit-reset': reset})
    assert tracker.state.remaining == 40
    assert tracker.state.used == 20


def test_remaining_jumps_up_for_new_window(tracker, clock):
    reset = int(clock.now) + 1800
    tracker.update({'x-ratelimit-remaining': '3', 'x-ratelimit-reset': str(reset)})
    tracker.update({'x-ratelimit-remaining': '59', 'x-ratelimit-reset': str(reset + 3600)})
    assert tracker.state.remaining == 59
    assert tracker.state.reset_at == reset + 3600


def test_remaining_jumps_up_after_window_elapsed(tracker, clock):
    reset = int(clock.now) + 10
    tracker.update({'x-ratelimit-remaining': '0', 'x-ratelimit-reset': str(reset)})
    clock.advance(11)
    tracker.update({'x-ratelimit-remaining': '59'})
    assert tracker.state.remaining == 59


def test_has_budget_keeps_one_request_in_reserve(tracker, clock):
    reset = str(int(clock.now) + 600)
    tracker.update({'x-ratelimit-remaining': '2', 'x-ratelimit-reset': reset})
    assert tracker.has_budget()
    tracker.update({'x-ratelimit-remaining': '1', 'x-ratelimit-reset': reset})
    assert not tracker.has_budget()


def test_has_budget_after_reset_time_passed(tracker, clock):
    tracker.update({'x-ratelimit-remaining': '0', 'x-ratelimit-reset': str(int(clock.now) + 5)})
    assert not tracker.has_budget()
    assert tracker.seconds_until_reset() == pytest.approx(5)
    clock.advance(5)
    assert tracker.has_budget()
    assert tracker.seconds_until_reset() == 0


def test_custom_reserve():
    clock = FakeClock()
    tracker = RateLimitTracker(limit=60, reserve=0, clock=clock)
    tracker.update({'x-ratelimit-remaining': '1', 'x-ratelimit-reset': str(int(clock.now) + 60)})
    assert tracker.has_budget()
