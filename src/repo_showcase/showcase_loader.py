"""
Showcase loading orchestration.

Assembles the data for one showcase render: the user profile, the enriched
repository list with the focus repository in full detail, and the overview
statistics. A fresh snapshot on disk short-circuits all API calls.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .aggregation.statistics import compute_statistics
from .api.github_api import GitHubAPIClient
from .persistence.snapshot_store import ShowcaseData, SnapshotStore

logger = logging.getLogger(__name__)


def merge_focus_repository(repositories: List[Dict[str, Any]],
                           focus: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Replace the entry with the same name as ``focus``, or put ``focus`` first."""
    merged = list(repositories)
    for index, repo in enumerate(merged):
        if repo.get('name') == focus.get('name'):
            merged[index] = focus
            return merged
    merged.insert(0, focus)
    return merged


class ShowcaseLoader:
    """
    Loads everything the showcase page displays.

    Attributes:
        client: GitHub API client
        store: Optional snapshot store used as a durable cache
    """

    def __init__(self, client: GitHubAPIClient, store: Optional[SnapshotStore] = None):
        self.client = client
        self.store = store

    async def load(self, force_refresh: bool = False) -> ShowcaseData:
        """
        Load the showcase data.

        Args:
            force_refresh: Ignore a fresh snapshot and query the API

        Returns:
            ShowcaseData; never raises for API failures, which surface as
            fallback records instead
        """
        if self.store is not None and not force_refresh:
            cached = self.store.load_fresh()
            if cached is not None:
                logger.info("Using cached showcase snapshot")
                return cached

        username = self.client.github.username
        user, repositories = await asyncio.gather(
            self.client.get_user(username),
            self.client.get_user_repositories(username)
        )

        focus_name = self.client.github.focus_repository
        if focus_name:
            focus = await self.client.get_repository(username, focus_name)
            if focus is not None:
                focus['is_featured'] = True
                repositories = merge_focus_repository(repositories, focus)

        now = datetime.fromtimestamp(self.client.clock(), tz=timezone.utc)
        data = ShowcaseData(
            user=user,
            repositories=repositories,
            stats=compute_statistics(repositories, now),
            timestamp=self.client.clock()
        )

        is_fallback = user.get('is_fallback') or any(repo.get('is_fallback') for repo in repositories)
        if self.store is not None:
            if is_fallback:
                logger.warning("Showcase data contains fallback records, snapshot not updated")
            else:
                self.store.save(data)

        return data
