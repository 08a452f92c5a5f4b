"""
Durable snapshot of the showcase data.

The snapshot keeps the last successfully assembled user, repositories and
statistics on disk so a restart can show data without touching the API.
It has its own staleness window, independent of the response cache.
"""

import json
import os
import tempfile
import time
import logging
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class ShowcaseData:
    """Everything the presentation layer needs for one page render."""
    user: Dict[str, Any]
    repositories: List[Dict[str, Any]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ShowcaseData':
        return cls(
            user=data['user'],
            repositories=data.get('repositories', []),
            stats=data.get('stats', {}),
            timestamp=float(data['timestamp'])
        )


class SnapshotStore:
    """
    JSON file holding the most recent ShowcaseData.

    Attributes:
        path: Location of the snapshot file
        max_age: Seconds after which a snapshot is considered stale
    """

    def __init__(self, path: Union[str, Path], max_age: float = 3600.0,
                 clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self.max_age = max_age
        self.clock = clock

    def save(self, data: ShowcaseData) -> bool:
        """
        Write the snapshot, replacing the previous one atomically.

        Returns:
            True if the snapshot was written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data.to_dict(), f)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save snapshot to {self.path}: {e}")
            return False

        logger.info(f"Snapshot saved to {self.path}")
        return True

    def load(self) -> Optional[ShowcaseData]:
        """Read the snapshot regardless of its age; None if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding='utf-8') as f:
                return ShowcaseData.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to read snapshot {self.path}: {e}")
            return None

    def is_fresh(self, data: ShowcaseData) -> bool:
        return self.clock() - data.timestamp < self.max_age

    def load_fresh(self) -> Optional[ShowcaseData]:
        """Read the snapshot only if it is younger than ``max_age``."""
        data = self.load()
        if data is None:
            return None
        if not self.is_fresh(data):
            logger.debug(f"Snapshot {self.path} is stale")
            return None
        return data

    def clear(self) -> None:
        """Delete the snapshot file if it exists."""
        try:
            self.path.unlink()
            logger.info(f"Snapshot {self.path} removed")
        except FileNotFoundError:
            pass
