"""Test configuration and fixtures."""

import asyncio
import os
from datetime import datetime, timezone

import pytest
import responses

from repo_showcase.api.github_api import GitHubAPIClient
from repo_showcase.config import ShowcaseConfig, GitHubConfig, CacheConfig, FallbackConfig

API_URL = "https://api.github.com"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock whose sleep returns immediately."""

    def __init__(self, start: float = START_TIME):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)

    def iso(self, offset_days: float = 0) -> str:
        moment = datetime.fromtimestamp(self.now - offset_days * 86400, tz=timezone.utc)
        return moment.strftime('%Y-%m-%dT%H:%M:%SZ')


@pytest.fixture(autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    # Save original environment
    original_env = dict(os.environ)

    os.environ.update({
        'GITHUB_USERNAME': 'acme',
        'GITHUB_API_URL': API_URL,
        'GITHUB_RETRY_COUNT': '3',
        'GITHUB_RETRY_DELAY': '1.0',
        'CACHE_TTL': '300',
        'SNAPSHOT_MAX_AGE': '3600'
    })

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    return ShowcaseConfig(
        github=GitHubConfig(username='acme', focus_repository='handbook'),
        cache=CacheConfig(snapshot_path=tmp_path / 'snapshot.json'),
        fallback=FallbackConfig(
            display_name='Acme Corp',
            bio='Building things in public.',
            repository_name='showcase',
            repository_description='Collected notes and projects',
            repository_topics=['learning', 'notes']
        )
    )


@pytest.fixture
def client(config, clock):
    api_client = GitHubAPIClient(config, clock=clock, sleep=clock.sleep)
    yield api_client
    api_client.close()


@pytest.fixture
def mocked_responses():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def make_repo(clock: FakeClock, name: str = 'widget', **overrides):
    """Sample repository record as returned by the API."""
    repo = {
        'id': 1,
        'name': name,
        'full_name': f'acme/{name}',
        'description': 'A small widget library',
        'html_url': f'https://github.com/acme/{name}',
        'language': 'Python',
        'stargazers_count': 5,
        'forks_count': 1,
        'size': 2048,
        'license': {'key': 'mit', 'name': 'MIT License'},
        'topics': ['python', 'widgets'],
        'updated_at': clock.iso(),
    }
    repo.update(overrides)
    return repo
