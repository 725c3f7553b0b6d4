from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Deque, Iterable, List, Optional

from .config import DEFAULT_HISTORY_LIMIT
from .errors import NotFoundError
from .models import Snapshot, StudyTask
from .store import TaskStore

logger = logging.getLogger(__name__)


class SnapshotHistory:
    """Bounded log of task-collection snapshots, oldest evicted first.

    Versions start at 1 and are never reused, even once the snapshot that
    carried them has been evicted.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT, snapshots: Optional[Iterable[Snapshot]] = None) -> None:
        if limit < 1:
            raise ValueError("history limit must be positive")
        self._limit = limit
        self._entries: Deque[Snapshot] = deque(maxlen=limit)
        self._last_version = 0
        if snapshots is not None:
            self.hydrate(snapshots)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def last_version(self) -> int:
        return self._last_version

    def hydrate(self, snapshots: Iterable[Snapshot]) -> None:
        ordered = sorted(snapshots, key=lambda snapshot: snapshot.version)
        self._entries = deque(ordered[-self._limit :], maxlen=self._limit)
        self._last_version = max([self._last_version] + [snapshot.version for snapshot in ordered])

    def push(self, tasks: Iterable[StudyTask], *, now: datetime) -> Snapshot:
        self._last_version += 1
        snapshot = Snapshot(
            version=self._last_version,
            timestamp=now,
            tasks=[task.to_dict() for task in tasks],
        )
        if len(self._entries) == self._limit:
            logger.debug("Evicting snapshot v%s", self._entries[0].version)
        self._entries.append(snapshot)
        return snapshot

    def get(self, version: int) -> Snapshot:
        for snapshot in self._entries:
            if snapshot.version == version:
                return snapshot
        raise NotFoundError(f"Snapshot not found: v{version}")

    def restore(self, version: int, store: TaskStore) -> Snapshot:
        """Replace the live collection in ``store``; no new snapshot is recorded."""

        snapshot = self.get(version)
        store.hydrate(snapshot.restore_tasks())
        logger.info("Restored snapshot v%s (%d tasks)", version, len(snapshot.tasks))
        return snapshot

    def list(self) -> List[Snapshot]:
        return list(reversed(self._entries))

    def to_records(self) -> List[dict]:
        return [snapshot.to_dict() for snapshot in self._entries]


__all__ = ["SnapshotHistory"]
