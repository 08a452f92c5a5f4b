"""
Configuration package for the repository showcase client.

This package provides a unified configuration interface for the API client,
its response cache, the fallback data and the snapshot store.
"""

from .config import (
    GitHubConfig,
    CacheConfig,
    FallbackConfig,
    ShowcaseConfig,
    load_config
)

__all__ = [
    'GitHubConfig',
    'CacheConfig',
    'FallbackConfig',
    'ShowcaseConfig',
    'load_config'
]
