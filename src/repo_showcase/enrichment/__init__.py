"""
Enrichment package.

Pure functions that derive presentation fields from raw repository records.
"""

from .repository_enricher import (
    DEFAULT_LANGUAGE_COLOR,
    RepositoryEnricher,
    get_language_color,
    format_size,
    format_relative_date,
    calculate_health_score,
    calculate_priority,
    is_learning_repository,
    name_match,
    signal_count,
    any_of
)

__all__ = [
    'DEFAULT_LANGUAGE_COLOR',
    'RepositoryEnricher',
    'get_language_color',
    'format_size',
    'format_relative_date',
    'calculate_health_score',
    'calculate_priority',
    'is_learning_repository',
    'name_match',
    'signal_count',
    'any_of'
]
