"""Statistics over a user's repositories for the showcase overview."""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..enrichment.repository_enricher import get_language_color, parse_timestamp

logger = logging.getLogger(__name__)

TOP_LANGUAGES = 8
TOP_TOPICS = 10
RECENT_ACTIVITY = 10


def language_statistics(repos: Iterable[Dict[str, Any]], limit: int = TOP_LANGUAGES) -> List[Dict[str, Any]]:
    """
    Count primary languages across repositories.

    Returns:
        Up to ``limit`` entries with name, count, rounded percentage and
        display colour, most common first
    """
    counts = Counter(repo['language'] for repo in repos if repo.get('language'))
    total = sum(counts.values())

    return [
        {
            'name': name,
            'count': count,
            'percentage': round(count / total * 100),
            'color': get_language_color(name)
        }
        for name, count in counts.most_common(limit)
    ]


def topic_statistics(repos: Iterable[Dict[str, Any]], limit: int = TOP_TOPICS) -> List[Dict[str, Any]]:
    """Count topics across repositories, most common first."""
    counts = Counter(topic for repo in repos for topic in (repo.get('topics') or []))
    return [{'name': name, 'count': count} for name, count in counts.most_common(limit)]


def recent_activity(repos: Iterable[Dict[str, Any]], limit: int = RECENT_ACTIVITY) -> List[Dict[str, Any]]:
    """List the most recently updated repositories as activity entries."""
    dated = []
    for repo in repos:
        try:
            updated = parse_timestamp(repo.get('updated_at'))
        except (TypeError, ValueError) as e:
            logger.debug(f"Skipping {repo.get('name')} in recent activity: {e}")
            continue
        if updated is not None:
            dated.append((updated, repo))

    dated.sort(key=lambda item: item[0], reverse=True)
    return [
        {
            'type': 'update',
            'repo': repo.get('name'),
            'description': f"Updated {repo.get('name')}",
            'time': repo.get('updated_at'),
            'url': repo.get('html_url')
        }
        for _, repo in dated[:limit]
    ]


def compute_statistics(repos: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Aggregate figures for the showcase overview.

    Args:
        repos: Repository records (raw or enriched)
        now: Time the statistics were computed, recorded as ``computed_at``

    Returns:
        Dictionary with totals, language and topic breakdowns and recent activity
    """
    stats = {
        'total_repos': len(repos),
        'total_stars': sum(repo.get('stargazers_count') or 0 for repo in repos),
        'total_forks': sum(repo.get('forks_count') or 0 for repo in repos),
        'languages': language_statistics(repos),
        'topics': topic_statistics(repos),
        'recent_activity': recent_activity(repos)
    }
    if now is not None:
        stats['computed_at'] = now.isoformat()

    logger.info(f"Statistics calculated: {stats['total_repos']} repos, "
                f"{stats['total_stars']} stars, {len(stats['languages'])} languages")
    return stats
