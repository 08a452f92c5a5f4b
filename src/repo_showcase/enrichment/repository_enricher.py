"""
Repository enrichment for the showcase.

Computes presentation fields from raw GitHub repository records: language
colour, human-readable size and update time, a health score, a priority
score and whether the repository is featured. The functions here are pure;
enriched records are new dictionaries and the input is never modified.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_COLOR = '#8b949e'

LANGUAGE_COLORS = {
    'C': '#555555',
    'JavaScript': '#f1e05a',
    'TypeScript': '#2b7489',
    'Python': '#3572A5',
    'HTML': '#e34c26',
    'CSS': '#563d7c',
    'Java': '#b07219',
    'C++': '#f34b7d',
    'Go': '#00ADD8',
    'Rust': '#dea584',
    'Multiple': '#2f81f7'
}

SECONDS_PER_DAY = 24 * 60 * 60
RECENT_UPDATE_DAYS = 6 * 30  # Health score window ("six months")
HEALTH_SIGNAL_WEIGHT = 20

Repository = Dict[str, Any]
FeaturedPredicate = Callable[[Repository], bool]


def get_language_color(language: Optional[str]) -> str:
    """Return the display colour for a programming language."""
    if not language:
        return DEFAULT_LANGUAGE_COLOR
    return LANGUAGE_COLORS.get(language, DEFAULT_LANGUAGE_COLOR)


def format_size(size_kb: Optional[Union[int, float]]) -> str:
    """
    Format a repository size reported in kilobytes.

    Examples:
        500 -> "500 KB", 2048 -> "2.0 MB", 2097152 -> "2.0 GB"
    """
    size_kb = size_kb or 0
    if size_kb < 1024:
        return f"{size_kb} KB"
    if size_kb < 1024 * 1024:
        return f"{size_kb / 1024:.1f} MB"
    return f"{size_kb / (1024 * 1024):.1f} GB"


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from the API into an aware datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(value: Union[str, datetime, None], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since ``value``; timestamps in the future count as 0."""
    timestamp = parse_timestamp(value)
    if timestamp is None:
        return None
    now = now or datetime.now(timezone.utc)
    elapsed = (now - timestamp).total_seconds()
    return max(0, int(elapsed // SECONDS_PER_DAY))


def format_relative_date(value: Union[str, datetime, None], now: Optional[datetime] = None) -> str:
    """
    Describe how long ago a timestamp was.

    Returns "Today", "Yesterday", "N days ago", "N weeks ago",
    "N months ago" or "N years ago", and "Unknown" for a missing value.
    """
    days = days_since(value, now)
    if days is None:
        return 'Unknown'
    if days == 0:
        return 'Today'
    if days == 1:
        return 'Yesterday'
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


def is_learning_repository(repo: Repository, keywords: Iterable[str]) -> bool:
    """Check whether the name or description mentions a learning keyword."""
    name = (repo.get('name') or '').lower()
    description = (repo.get('description') or '').lower()
    return any(keyword in name or keyword in description for keyword in keywords)


def calculate_health_score(repo: Repository, now: Optional[datetime] = None) -> int:
    """
    Score a repository from 0 to 100.

    Each present signal adds 20 points: a description, topics, an update
    within the last six months, at least one star and a license.
    """
    score = 0

    if repo.get('description'):
        score += HEALTH_SIGNAL_WEIGHT
    if repo.get('topics'):
        score += HEALTH_SIGNAL_WEIGHT

    days = days_since(repo.get('updated_at'), now)
    if days is not None and days < RECENT_UPDATE_DAYS:
        score += HEALTH_SIGNAL_WEIGHT

    if (repo.get('stargazers_count') or 0) > 0:
        score += HEALTH_SIGNAL_WEIGHT
    if repo.get('license'):
        score += HEALTH_SIGNAL_WEIGHT

    return min(score, 100)


def calculate_priority(repo: Repository, focus_repository: str = '',
                       keywords: Iterable[str] = (), now: Optional[datetime] = None) -> int:
    """Ordering score: focus repository first, then learning and recently active ones."""
    priority = 0

    if focus_repository and repo.get('name') == focus_repository:
        priority += 100
    if is_learning_repository(repo, keywords):
        priority += 50

    days = days_since(repo.get('updated_at'), now)
    if days is not None:
        if days < 7:
            priority += 20
        if days < 30:
            priority += 10

    if repo.get('description'):
        priority += 5

    return priority


# Featured predicates

def name_match(names: Iterable[str]) -> FeaturedPredicate:
    """Featured when the repository name is one of ``names``."""
    wanted = {name for name in names if name}
    return lambda repo: repo.get('name') in wanted


def signal_count(min_signals: int = 2, min_topics: int = 2) -> FeaturedPredicate:
    """
    Featured when at least ``min_signals`` positive signals are present.

    Signals: a description, at least one star, at least ``min_topics``
    topics, at least one fork.
    """
    def predicate(repo: Repository) -> bool:
        signals = [
            bool(repo.get('description')),
            (repo.get('stargazers_count') or 0) > 0,
            len(repo.get('topics') or []) >= min_topics,
            (repo.get('forks_count') or 0) > 0
        ]
        return sum(signals) >= min_signals

    return predicate


def any_of(*predicates: FeaturedPredicate) -> FeaturedPredicate:
    """Featured when any of ``predicates`` holds."""
    return lambda repo: any(predicate(repo) for predicate in predicates)


class RepositoryEnricher:
    """
    Adds presentation fields to raw repository records.

    Attributes:
        focus_repository: Name of the repository that is always prioritised
        learning_keywords: Keywords marking learning repositories
        featured_predicate: Decides the ``is_featured`` field
    """

    def __init__(self, focus_repository: str = '',
                 learning_keywords: Sequence[str] = (),
                 featured_predicate: Optional[FeaturedPredicate] = None,
                 now: Optional[Callable[[], datetime]] = None):
        self.focus_repository = focus_repository
        self.learning_keywords = [keyword.lower() for keyword in learning_keywords]
        self.featured_predicate = featured_predicate or any_of(
            name_match([focus_repository]),
            signal_count(min_signals=2)
        )
        self.now = now or (lambda: datetime.now(timezone.utc))

    def enrich_repository(self, repo: Repository, now: Optional[datetime] = None) -> Repository:
        """
        Return a copy of ``repo`` with the computed fields added.

        Args:
            repo: Raw repository record from the API
            now: Reference time for date-based fields

        Returns:
            New dictionary containing the raw fields and the computed ones
        """
        now = now or self.now()
        return {
            **repo,
            'language_color': get_language_color(repo.get('language')),
            'size_formatted': format_size(repo.get('size')),
            'updated_formatted': format_relative_date(repo.get('updated_at'), now),
            'is_learning_repo': is_learning_repository(repo, self.learning_keywords),
            'is_featured': bool(self.featured_predicate(repo)),
            'health_score': calculate_health_score(repo, now),
            'priority_score': calculate_priority(repo, self.focus_repository,
                                                 self.learning_keywords, now)
        }

    def enrich_repositories(self, repos: Iterable[Repository]) -> List[Repository]:
        """
        Enrich every repository and order them by priority, highest first.

        A record that cannot be enriched (for example because of a malformed
        timestamp) is kept as an unchanged copy.
        """
        now = self.now()
        enriched = []
        for repo in repos:
            try:
                enriched.append(self.enrich_repository(repo, now))
            except (TypeError, ValueError, OverflowError) as e:
                logger.warning(f"Failed to enrich repository {repo.get('name')}: {e}")
                enriched.append(dict(repo))

        return sorted(enriched, key=lambda r: r.get('priority_score', 0), reverse=True)
