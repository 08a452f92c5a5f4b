"""Aggregate statistics over repository lists."""

from .statistics import compute_statistics, language_statistics, topic_statistics, recent_activity

__all__ = ['compute_statistics', 'language_statistics', 'topic_statistics', 'recent_activity']
