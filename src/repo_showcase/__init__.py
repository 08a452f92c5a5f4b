"""
GitHub API client for a personal repository showcase.

Fetches user and repository data from the public GitHub API with response
caching, rate limit tracking, request queuing and retries, and enriches the
repositories with presentation fields.
"""

from .config import ShowcaseConfig, GitHubConfig, load_config
from .api import GitHubAPIClient
from .showcase_loader import ShowcaseLoader
from .persistence import ShowcaseData, SnapshotStore

__version__ = "0.1.0"

__all__ = [
    'ShowcaseConfig',
    'GitHubConfig',
    'load_config',
    'GitHubAPIClient',
    'ShowcaseLoader',
    'ShowcaseData',
    'SnapshotStore'
]
