"""Durable storage for assembled showcase data."""

from .snapshot_store import ShowcaseData, SnapshotStore

__all__ = ['ShowcaseData', 'SnapshotStore']
