"""
Central configuration for the repository showcase client.

This module provides unified configuration classes for all components of the
showcase client, including:
- GitHub API access (base URL, headers, retries, rate limit defaults)
- The in-memory response cache and the on-disk snapshot
- Fallback data returned when the API cannot be reached
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


def _env_list(name: str, default: str) -> List[str]:
    """Read a comma-separated list from the environment."""
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


@dataclass
class GitHubConfig:
    """
    GitHub API configuration.

    Contains all settings for accessing the public GitHub API, including
    the showcased user, retry behaviour and rate limit bookkeeping.
    """

    username: str
    api_url: str = "https://api.github.com"
    user_agent: str = "RepoShowcase/1.0"
    request_timeout: float = 30.0  # Timeout for a single HTTP request in seconds
    retry_count: int = 3  # Total attempts for a failed request
    retry_delay: float = 1.0  # Base delay for exponential backoff in seconds
    default_rate_limit: int = 60  # Unauthenticated limit per window
    rate_limit_window: int = 3600  # Assumed window length before the first response
    rate_limit_reserve: int = 1  # Requests kept in reserve before queuing
    error_log_size: int = 10  # Number of failures kept for diagnostics
    focus_repository: str = ""  # Repository that is always featured
    contributors_per_page: int = 10

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.username:
            raise ValueError("GitHub username is required")
        if self.retry_count < 1:
            raise ValueError("retry_count must be at least 1")
        self.api_url = self.api_url.rstrip('/')

    @classmethod
    def from_env(cls) -> 'GitHubConfig':
        """Create configuration from environment variables."""
        username = os.getenv('GITHUB_USERNAME')
        if not username:
            raise ValueError("GitHub username not found in environment variables. "
                             "Please set GITHUB_USERNAME.")

        return cls(
            username=username,
            api_url=os.getenv('GITHUB_API_URL', 'https://api.github.com'),
            user_agent=os.getenv('GITHUB_USER_AGENT', 'RepoShowcase/1.0'),
            request_timeout=float(os.getenv('GITHUB_REQUEST_TIMEOUT', '30')),
            retry_count=int(os.getenv('GITHUB_RETRY_COUNT', '3')),
            retry_delay=float(os.getenv('GITHUB_RETRY_DELAY', '1.0')),
            default_rate_limit=int(os.getenv('GITHUB_DEFAULT_RATE_LIMIT', '60')),
            rate_limit_reserve=int(os.getenv('GITHUB_RATE_LIMIT_RESERVE', '1')),
            error_log_size=int(os.getenv('GITHUB_ERROR_LOG_SIZE', '10')),
            focus_repository=os.getenv('GITHUB_FOCUS_REPOSITORY', ''),
            contributors_per_page=int(os.getenv('GITHUB_CONTRIBUTORS_PER_PAGE', '10'))
        )


@dataclass
class CacheConfig:
    """
    Cache configuration for API responses and the persisted snapshot.

    The response cache lives in memory for the lifetime of one client; the
    snapshot is written to disk and survives restarts.
    """

    enabled: bool = True
    ttl: float = 300.0  # Response cache lifetime in seconds (5 minutes)
    snapshot_path: Path = field(default_factory=lambda: Path("/tmp/repo-showcase/snapshot.json"))
    snapshot_max_age: float = 3600.0  # Snapshot staleness window in seconds (1 hour)

    @classmethod
    def from_env(cls) -> 'CacheConfig':
        """Create cache configuration from environment variables."""
        return cls(
            enabled=os.getenv('CACHE_ENABLED', 'true').lower() in ('true', '1', 'yes'),
            ttl=float(os.getenv('CACHE_TTL', '300')),
            snapshot_path=Path(os.getenv('SNAPSHOT_PATH', '/tmp/repo-showcase/snapshot.json')),
            snapshot_max_age=float(os.getenv('SNAPSHOT_MAX_AGE', '3600'))
        )


@dataclass
class FallbackConfig:
    """
    Data returned in place of API results when every attempt has failed.

    Counts default to zero so a fallback never claims activity that
    could not be observed.
    """

    display_name: str = ""
    bio: str = ""
    repository_name: str = ""
    repository_description: str = ""
    repository_language: str = "Multiple"
    repository_topics: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> 'FallbackConfig':
        """Create fallback configuration from environment variables."""
        return cls(
            display_name=os.getenv('FALLBACK_DISPLAY_NAME', ''),
            bio=os.getenv('FALLBACK_BIO', ''),
            repository_name=os.getenv('FALLBACK_REPOSITORY_NAME', ''),
            repository_description=os.getenv('FALLBACK_REPOSITORY_DESCRIPTION', ''),
            repository_language=os.getenv('FALLBACK_REPOSITORY_LANGUAGE', 'Multiple'),
            repository_topics=_env_list('FALLBACK_REPOSITORY_TOPICS', '')
        )


@dataclass
class ShowcaseConfig:
    """
    Central showcase configuration.

    Integrates all configuration components: GitHub API access, caching
    and fallback data.
    """

    github: GitHubConfig
    cache: CacheConfig = field(default_factory=CacheConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    learning_keywords: List[str] = field(default_factory=lambda: [
        'tech-mastery', 'learning', 'tutorial', 'chapter', 'course',
        'study', 'practice', 'exercise', 'c-programming', 'programming-language'
    ])

    @classmethod
    def for_user(cls, username: str, **github_options) -> 'ShowcaseConfig':
        """Create a default configuration for a single user."""
        return cls(github=GitHubConfig(username=username, **github_options))

    @classmethod
    def from_env(cls) -> 'ShowcaseConfig':
        """Create configuration from environment variables."""
        config = cls(
            github=GitHubConfig.from_env(),
            cache=CacheConfig.from_env(),
            fallback=FallbackConfig.from_env()
        )
        keywords = _env_list('LEARNING_KEYWORDS', '')
        if keywords:
            config.learning_keywords = keywords
        return config


def load_config() -> ShowcaseConfig:
    """
    Central function for loading the configuration.

    Loads the configuration from environment variables and returns it.

    Returns:
        ShowcaseConfig: Fully initialized showcase configuration
    """
    try:
        config = ShowcaseConfig.from_env()
        logger.info(f"Configuration loaded for GitHub user '{config.github.username}'")
        return config
    except Exception as e:
        logger.error(f"Error loading configuration: {e}")
        raise
