"""Command-line entry point for the repository showcase client.

Runs the client's domain operations against the public GitHub API and prints
the results as JSON, which is handy for checking what the showcase page
would receive.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, List, Optional

from dotenv import load_dotenv

from .api.github_api import GitHubAPIClient
from .config import ShowcaseConfig, load_config
from .persistence.snapshot_store import SnapshotStore
from .showcase_loader import ShowcaseLoader

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Repository showcase - fetch and enrich GitHub data for a personal showcase"
    )
    parser.add_argument(
        "--username",
        default=None,
        help="GitHub user to showcase (default: GITHUB_USERNAME from the environment)"
    )
    parser.add_argument(
        "--focus-repository",
        default=None,
        help="Repository that is always featured (default: GITHUB_FOCUS_REPOSITORY)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("user", help="Show the user profile")

    repos_parser = subparsers.add_parser("repos", help="List enriched repositories")
    repos_parser.add_argument("--sort", default="updated", choices=["created", "updated", "pushed", "full_name"])
    repos_parser.add_argument("--direction", default="desc", choices=["asc", "desc"])
    repos_parser.add_argument("--per-page", type=int, default=100)

    repo_parser = subparsers.add_parser("repo", help="Show one repository in detail")
    repo_parser.add_argument("owner")
    repo_parser.add_argument("name")

    search_parser = subparsers.add_parser("search", help="Search the user's repositories")
    search_parser.add_argument("query")
    search_parser.add_argument("--sort", default="updated", choices=["stars", "forks", "updated"])
    search_parser.add_argument("--order", default="desc", choices=["asc", "desc"])

    showcase_parser = subparsers.add_parser("showcase", help="Assemble the full showcase data")
    showcase_parser.add_argument("--refresh", action="store_true", help="Ignore the stored snapshot")

    subparsers.add_parser("status", help="Show rate limit and client diagnostics after one user request")

    return parser


def build_config(args: argparse.Namespace) -> ShowcaseConfig:
    """Load configuration from the environment, with command-line overrides."""
    if args.username:
        os.environ['GITHUB_USERNAME'] = args.username
    if args.focus_repository:
        os.environ['GITHUB_FOCUS_REPOSITORY'] = args.focus_repository

    return load_config()


async def run_command(args: argparse.Namespace, config: ShowcaseConfig) -> Any:
    """Execute the selected command and return its JSON-serialisable result."""
    async with GitHubAPIClient(config) as client:
        if args.command == "user":
            return await client.get_user()
        if args.command == "repos":
            return await client.get_user_repositories(
                sort=args.sort, direction=args.direction, per_page=args.per_page
            )
        if args.command == "repo":
            return await client.get_repository(args.owner, args.name)
        if args.command == "search":
            return await client.search_repositories(args.query, sort=args.sort, order=args.order)
        if args.command == "showcase":
            store = SnapshotStore(config.cache.snapshot_path, max_age=config.cache.snapshot_max_age)
            data = await ShowcaseLoader(client, store).load(force_refresh=args.refresh)
            return data.to_dict()
        if args.command == "status":
            await client.get_user()
            return client.get_status()
        raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        result = asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
