"""
GitHub API Client Implementation.

This module provides the asynchronous interface to the public GitHub API
used by the showcase, with support for:
- An in-memory response cache with a fixed time-to-live
- Rate limit tracking from response headers, with queuing once the
  budget is exhausted
- Exponential backoff retries for failed requests
- Domain operations that never raise and fall back to configured data

HTTP requests are sent with a requests.Session in the event loop's default
executor; all client state is only touched on the event loop thread.
"""

import asyncio
import base64
import binascii
import copy
import functools
import re
import time
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

import requests

from ..config import ShowcaseConfig
from ..enrichment import RepositoryEnricher
from .cache import MemoryCache, make_cache_key
from .errors import ConnectionFailedError, FetchResult, GitHubAPIError, NotFoundError, RateLimitedError
from .rate_limit import RateLimitTracker
from .request_queue import RequestQueue
from .retry import ErrorLog, RetryPolicy

logger = logging.getLogger(__name__)

# Constants for API endpoints
USERS_ENDPOINT = "/users"
REPOS_ENDPOINT = "/repos"
SEARCH_REPOS_ENDPOINT = "/search/repositories"

DEFAULT_ACCEPT = 'application/vnd.github.v3+json'
TOPICS_ACCEPT = 'application/vnd.github.mercy-preview+json'
RATE_LIMIT_STATUSES = (403, 429)

_CACHE_MISS = object()

LEARNING_CONTENT_PATTERN = re.compile(
    r'chapter|lesson|exercise|practice|tutorial|example|assignment|homework',
    re.IGNORECASE
)


def _iso_now(clock: Callable[[], float]) -> str:
    return datetime.fromtimestamp(clock(), tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def analyze_learning_structure(contents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Describe the top-level directories of a repository as learning units.

    Chapters are ordered by the first number in their name, everything else
    alphabetically after them.
    """
    directories = []
    for item in contents:
        if item.get('type') != 'dir':
            continue
        name = item.get('name', '')
        directories.append({
            'name': name,
            'path': item.get('path', name),
            'type': 'directory',
            'is_chapter': 'chapter' in name.lower(),
            'is_learning_content': bool(LEARNING_CONTENT_PATTERN.search(name))
        })

    def sort_key(entry):
        if entry['is_chapter']:
            match = re.search(r'\d+', entry['name'])
            return (0, int(match.group()) if match else 0, entry['name'])
        return (1, 0, entry['name'])

    return sorted(directories, key=sort_key)


class GitHubAPIClient:
    """
    Asynchronous GitHub API client for the showcase.

    One instance owns its cache, rate limit tracker, retry policy and
    request queue. Clock, sleep and HTTP session can be injected, which
    keeps tests independent of wall-clock time and the network.
    """

    def __init__(self, config: ShowcaseConfig,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        """
        Initialize GitHub API client.

        Args:
            config: Showcase configuration
            session: Optional preconfigured requests session
            clock: Function returning the current time in seconds
            sleep: Coroutine function used for every wait
        """
        self.config = config
        self.github = config.github
        self.clock = clock

        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': DEFAULT_ACCEPT,
            'User-Agent': self.github.user_agent
        })

        self.cache = MemoryCache('responses', ttl=config.cache.ttl, clock=clock)
        self.rate_limit = RateLimitTracker(
            limit=self.github.default_rate_limit,
            window=self.github.rate_limit_window,
            reserve=self.github.rate_limit_reserve,
            clock=clock
        )
        self.errors = ErrorLog(max_entries=self.github.error_log_size, clock=clock)
        self.retry_policy = RetryPolicy(
            max_attempts=self.github.retry_count,
            base_delay=self.github.retry_delay,
            error_log=self.errors,
            sleep=sleep,
            give_up_on=(RateLimitedError,)
        )
        self.queue = RequestQueue(self.rate_limit, self._dispatch_queued, sleep=sleep, clock=clock)
        self.enricher = RepositoryEnricher(
            focus_repository=self.github.focus_repository,
            learning_keywords=config.learning_keywords,
            now=lambda: datetime.fromtimestamp(self.clock(), tz=timezone.utc)
        )
        self.is_online = True

        logger.info(f"GitHub API client initialized for user '{self.github.username}'")

    async def __aenter__(self) -> 'GitHubAPIClient':
        return self

    async def __aexit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    # Dispatch

    async def _send(self, endpoint: str, options: Dict[str, Any]) -> requests.Response:
        """Send one GET request without blocking the event loop."""
        url = f"{self.github.api_url}{endpoint}"
        call = functools.partial(
            self.session.get,
            url,
            params=options.get('params'),
            headers=options.get('headers'),
            timeout=self.github.request_timeout
        )
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, call)

    async def _attempt(self, endpoint: str, options: Dict[str, Any]) -> Any:
        """
        Make a single request and decode its JSON body.

        Raises:
            NotFoundError: When the resource does not exist
            RateLimitedError: When the API rejected the request for lack of budget
            ConnectionFailedError: When the API could not be reached
            GitHubAPIError: For any other unsuccessful response
        """
        logger.debug(f"Making request to {endpoint}")
        try:
            response = await self._send(endpoint, options)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            self.is_online = False
            raise ConnectionFailedError(f"Connection error: {e}", endpoint=endpoint)
        except requests.exceptions.RequestException as e:
            raise GitHubAPIError(f"API request error: {e}", endpoint=endpoint)

        self.is_online = True
        self.rate_limit.update(response.headers)

        if response.status_code in RATE_LIMIT_STATUSES and not self.rate_limit.has_budget():
            raise RateLimitedError(
                f"HTTP {response.status_code}: rate limit exceeded",
                status_code=response.status_code,
                endpoint=endpoint,
                reset_at=self.rate_limit.state.reset_at
            )
        if response.status_code == 404:
            raise NotFoundError(f"Resource not found: {endpoint}", endpoint=endpoint)
        if not response.ok:
            raise GitHubAPIError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                endpoint=endpoint
            )

        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(f"Invalid JSON from {endpoint}: {e}",
                                 status_code=response.status_code, endpoint=endpoint)

    async def _dispatch(self, endpoint: str, options: Optional[Dict[str, Any]] = None) -> Any:
        """
        Resolve one logical request: cache, then budget, then network.

        Raises:
            GitHubAPIError: The last failure once all retries are used up
        """
        options = options or {}
        cached = self._cached(endpoint, options)
        if cached is not _CACHE_MISS:
            return cached

        if not self.rate_limit.has_budget():
            return await self.queue.enqueue(endpoint, options)

        try:
            return await self._fetch(endpoint, options)
        except RateLimitedError as e:
            logger.warning(f"Rate limit hit for {endpoint}, queuing until reset: {e}")
            return await self.queue.enqueue(endpoint, options)

    async def _dispatch_queued(self, endpoint: str, options: Dict[str, Any]) -> Any:
        """
        Resolve a request taken from the queue.

        Unlike ``_dispatch`` this never queues; a RateLimitedError goes back
        to the queue, which keeps the request for its next drain.
        """
        cached = self._cached(endpoint, options)
        if cached is not _CACHE_MISS:
            return cached
        return await self._fetch(endpoint, options)

    def _cached(self, endpoint: str, options: Dict[str, Any]) -> Any:
        """Return a copy of the cached response, or _CACHE_MISS."""
        if not self.config.cache.enabled:
            return _CACHE_MISS
        cached = self.cache.get(make_cache_key(endpoint, options), _CACHE_MISS)
        if cached is _CACHE_MISS:
            return _CACHE_MISS
        logger.debug(f"Using cached response for {endpoint}")
        return copy.deepcopy(cached)

    async def _fetch(self, endpoint: str, options: Dict[str, Any]) -> Any:
        """Send the request under the retry policy and cache the response."""
        data = await self.retry_policy.execute(
            lambda: self._attempt(endpoint, options),
            endpoint=endpoint
        )

        if self.config.cache.enabled:
            # Callers own the returned object; the cache keeps its own copy
            self.cache.set(make_cache_key(endpoint, options), copy.deepcopy(data))
        logger.debug(f"Request successful: {endpoint}")
        return data

    async def request(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
                      headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """
        Request an endpoint and report the outcome as a FetchResult.

        Args:
            endpoint: API endpoint relative to the base URL
            params: Optional query parameters
            headers: Optional extra headers

        Returns:
            FetchResult holding either the decoded JSON or the final error
        """
        options: Dict[str, Any] = {}
        if params:
            options['params'] = params
        if headers:
            options['headers'] = headers

        try:
            return FetchResult.success(endpoint, await self._dispatch(endpoint, options))
        except GitHubAPIError as e:
            return FetchResult.failure(endpoint, e)

    # Domain operations

    async def get_user(self, username: Optional[str] = None) -> Dict[str, Any]:
        """
        Get a user profile.

        Args:
            username: GitHub login, defaults to the configured user

        Returns:
            Profile dictionary, or the configured fallback profile on failure
        """
        username = username or self.github.username
        result = await self.request(f"{USERS_ENDPOINT}/{username}")
        if result.ok:
            logger.info(f"User data fetched for {username}")
            return result.value

        logger.error(f"Failed to fetch user data for {username}: {result.error}")
        return self.fallback_user(username)

    async def get_user_repositories(self, username: Optional[str] = None, sort: str = 'updated',
                                    direction: str = 'desc', per_page: int = 100,
                                    type: str = 'owner') -> List[Dict[str, Any]]:
        """
        Get the repositories of a user, enriched and ordered by priority.

        Args:
            username: GitHub login, defaults to the configured user
            sort: Sort field (created, updated, pushed, full_name)
            direction: Sort direction (asc, desc)
            per_page: Results per page (max 100)
            type: Repository type filter (all, owner, member)

        Returns:
            List of enriched repositories; the fallback list on failure
        """
        username = username or self.github.username
        params = {
            'sort': sort,
            'direction': direction,
            'per_page': min(per_page, 100),
            'type': type
        }
        result = await self.request(f"{USERS_ENDPOINT}/{username}/repos", params=params)
        if not result.ok or not isinstance(result.value, list):
            logger.error(f"Failed to fetch repositories for {username}: {result.error}")
            return self.fallback_repositories(username)

        repositories = self.enricher.enrich_repositories(result.value)
        learning_count = sum(1 for repo in repositories if repo.get('is_learning_repo'))
        logger.info(f"Fetched {len(repositories)} repositories for {username} "
                    f"({learning_count} learning repos)")
        return repositories

    async def get_repository(self, owner: str, name: str) -> Optional[Dict[str, Any]]:
        """
        Get one repository together with its languages, topics and contributors.

        The sub-resources are fetched concurrently; each falls back to an
        empty value on its own. For the focus repository the top-level
        contents and learning metadata are added as well.

        Args:
            owner: Repository owner
            name: Repository name

        Returns:
            Enriched repository dictionary or None if it could not be fetched
        """
        result = await self.request(f"{REPOS_ENDPOINT}/{owner}/{name}")
        if not result.ok:
            if isinstance(result.error, NotFoundError):
                logger.warning(f"Repository not found: {owner}/{name}")
            else:
                logger.error(f"Failed to fetch repository {owner}/{name}: {result.error}")
            return None
        if not isinstance(result.value, dict):
            logger.error(f"Unexpected payload for repository {owner}/{name}: "
                         f"{type(result.value).__name__}")
            return None

        is_focus = bool(self.github.focus_repository) and name == self.github.focus_repository
        lookups = [
            self.get_repository_languages(owner, name),
            self.get_repository_topics(owner, name),
            self.get_repository_contributors(owner, name)
        ]
        if is_focus:
            lookups.append(self.get_repository_contents(owner, name))

        outcomes = await asyncio.gather(*lookups, return_exceptions=True)
        defaults = [{}, [], [], []]
        languages, topics, contributors, *rest = [
            default if isinstance(outcome, BaseException) else outcome
            for outcome, default in zip(outcomes, defaults)
        ]

        repository = {
            **result.value,
            'languages': languages,
            'topics': topics,
            'contributors': contributors
        }
        if is_focus:
            contents = rest[0]
            repository['contents'] = contents
            repository['learning_metadata'] = await self.get_learning_metadata(owner, name, contents)

        try:
            return self.enricher.enrich_repository(repository)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Failed to enrich repository {owner}/{name}: {e}")
            return repository

    async def get_repository_languages(self, owner: str, name: str) -> Dict[str, int]:
        """Get the language breakdown (bytes per language) of a repository."""
        result = await self.request(f"{REPOS_ENDPOINT}/{owner}/{name}/languages")
        if not result.ok:
            logger.warning(f"Failed to fetch languages for {owner}/{name}: {result.error}")
        return result.value_or({})

    async def get_repository_topics(self, owner: str, name: str) -> List[str]:
        """Get the topic names of a repository."""
        result = await self.request(
            f"{REPOS_ENDPOINT}/{owner}/{name}/topics",
            headers={'Accept': TOPICS_ACCEPT}
        )
        if not result.ok:
            logger.warning(f"Failed to fetch topics for {owner}/{name}: {result.error}")
            return []
        return (result.value or {}).get('names', [])

    async def get_repository_contributors(self, owner: str, name: str) -> List[Dict[str, Any]]:
        """Get the top contributors of a repository."""
        result = await self.request(
            f"{REPOS_ENDPOINT}/{owner}/{name}/contributors",
            params={'per_page': self.github.contributors_per_page}
        )
        if not result.ok:
            logger.warning(f"Failed to fetch contributors for {owner}/{name}: {result.error}")
        return result.value_or([])

    async def get_repository_contents(self, owner: str, name: str, path: str = '') -> List[Dict[str, Any]]:
        """Get the directory listing at ``path`` in a repository."""
        result = await self.request(f"{REPOS_ENDPOINT}/{owner}/{name}/contents/{path}")
        if not result.ok:
            logger.warning(f"Failed to fetch contents for {owner}/{name}/{path}: {result.error}")
            return []
        # A file path returns a single object instead of a listing
        return result.value if isinstance(result.value, list) else [result.value]

    async def get_readme(self, owner: str, name: str) -> Optional[str]:
        """Get the decoded README of a repository, or None."""
        result = await self.request(f"{REPOS_ENDPOINT}/{owner}/{name}/readme")
        if not result.ok:
            logger.warning(f"Failed to fetch README for {owner}/{name}: {result.error}")
            return None

        content = (result.value or {}).get('content')
        if not content:
            return None
        try:
            return base64.b64decode(content).decode('utf-8', errors='replace')
        except (binascii.Error, ValueError) as e:
            logger.warning(f"Could not decode README for {owner}/{name}: {e}")
            return None

    async def get_learning_metadata(self, owner: str, name: str,
                                    contents: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Summarise the README and chapter layout of a learning repository."""
        readme = await self.get_readme(owner, name)
        if contents is None:
            contents = await self.get_repository_contents(owner, name)
        return {
            'has_readme': readme is not None,
            'readme_content': readme,
            'learning_structure': analyze_learning_structure(contents)
        }

    async def search_repositories(self, query: str, sort: str = 'updated', order: str = 'desc',
                                  per_page: int = 30) -> List[Dict[str, Any]]:
        """
        Search the configured user's repositories.

        Args:
            query: Search query string
            sort: Sort field (stars, forks, updated)
            order: Sort order (desc, asc)
            per_page: Results per page

        Returns:
            List of matching repositories; empty on failure
        """
        params = {
            'q': f"{query} user:{self.github.username}",
            'sort': sort,
            'order': order,
            'per_page': per_page
        }
        result = await self.request(SEARCH_REPOS_ENDPOINT, params=params)
        if not result.ok:
            logger.error(f"Search failed for query '{query}': {result.error}")
            return []
        return (result.value or {}).get('items', [])

    # Fallbacks

    def fallback_user(self, username: Optional[str] = None) -> Dict[str, Any]:
        """Profile returned when the user could not be fetched."""
        username = username or self.github.username
        fallback = self.config.fallback
        now = _iso_now(self.clock)
        return {
            'login': username,
            'name': fallback.display_name or username,
            'bio': fallback.bio,
            'public_repos': 0,
            'followers': 0,
            'following': 0,
            'created_at': now,
            'updated_at': now,
            'is_fallback': True
        }

    def fallback_repositories(self, username: Optional[str] = None) -> List[Dict[str, Any]]:
        """Single-entry repository list returned when the list could not be fetched."""
        username = username or self.github.username
        fallback = self.config.fallback
        name = fallback.repository_name or self.github.focus_repository or username
        repository = self.enricher.enrich_repository({
            'name': name,
            'full_name': f"{username}/{name}",
            'description': fallback.repository_description,
            'html_url': f"https://github.com/{username}/{name}",
            'language': fallback.repository_language,
            'stargazers_count': 0,
            'forks_count': 0,
            'size': 0,
            'license': None,
            'updated_at': _iso_now(self.clock),
            'topics': list(fallback.repository_topics),
            'is_fallback': True
        })
        repository['is_featured'] = True
        return [repository]

    # Diagnostics

    def get_status(self) -> Dict[str, Any]:
        """
        Get API status and diagnostics.

        Returns:
            Dictionary with rate limit state, cache size, queue length,
            the most recent errors and the last known connectivity
        """
        return {
            'rate_limit_info': self.rate_limit.snapshot(),
            'cache_size': len(self.cache),
            'queue_length': len(self.queue),
            'recent_errors': self.errors.recent(),
            'is_online': self.is_online
        }

    def clear_cache(self) -> None:
        """Clear the response cache."""
        self.cache.clear()
