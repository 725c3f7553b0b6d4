from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..config import AppSettings, get_settings
from ..core import (
    DEFAULT_HISTORY_LIMIT,
    JsonFileStore,
    KeyValueStore,
    PersistenceGateway,
    SaveReport,
    Settings,
    Snapshot,
    SnapshotHistory,
    StudyTask,
    TaskDraft,
    TaskQuery,
    TaskStore,
    Tier,
    ValidationError,
    classify,
)
from ..core.persistence import ImportResult, export_filename

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class StudySession:
    """Per-session aggregate of the task store, its history and its persistence.

    Operations that change the task collection run as one unit under ``_lock``:
    mutate the store, push a snapshot, then save. Progress, plan-day and settings
    changes are saved without a snapshot. A failed save never undoes the
    in-memory change; the report is kept on ``last_save``. Reads take the same
    lock, so a view never iterates the collection while another thread mutates it.
    """

    gateway: PersistenceGateway
    history_limit: int = DEFAULT_HISTORY_LIMIT
    clock: Clock = local_now
    store: TaskStore = field(init=False)
    history: SnapshotHistory = field(init=False)
    settings: Settings = field(init=False)
    last_save: Optional[SaveReport] = field(init=False, default=None)
    load_warnings: List[str] = field(init=False, default_factory=list)
    _lock: threading.RLock = field(init=False, repr=False, default_factory=threading.RLock)

    def __post_init__(self) -> None:
        self.store = TaskStore()
        self.history = SnapshotHistory(limit=self.history_limit)
        self.settings = Settings()
        self.reload()

    @classmethod
    def open(
        cls,
        *,
        store: Optional[KeyValueStore] = None,
        settings: Optional[AppSettings] = None,
        clock: Clock = local_now,
    ) -> "StudySession":
        app_settings = settings or get_settings()
        backend = store or JsonFileStore(app_settings.storage.data_dir)
        return cls(
            gateway=PersistenceGateway(backend),
            history_limit=app_settings.storage.history_limit,
            clock=clock,
        )

    def reload(self) -> None:
        with self._lock:
            loaded = self.gateway.load()
            try:
                self.store.hydrate(loaded.tasks)
            except ValidationError as exc:
                loaded.warnings.append(str(exc))
                self.store.hydrate([])
            self.history.hydrate(loaded.history)
            self.settings = loaded.settings
            self.load_warnings = loaded.warnings

    # Internal sequencing -----------------------------------------------------

    def _save(self) -> SaveReport:
        report = self.gateway.save(self.store.list_tasks(), self.history, self.settings)
        self.last_save = report
        return report

    def _commit(self, now: datetime) -> Snapshot:
        snapshot = self.history.push(self.store.list_tasks(), now=now)
        self._save()
        return snapshot

    # Task operations ---------------------------------------------------------

    def create_task(self, draft: Union[TaskDraft, Dict[str, Any]]) -> StudyTask:
        with self._lock:
            now = self.clock()
            task = self.store.create(draft, now=now)
            self._commit(now)
            return task

    def toggle_complete(self, task_id: str) -> StudyTask:
        with self._lock:
            now = self.clock()
            task = self.store.toggle_complete(task_id, now=now)
            self._commit(now)
            return task

    def delete_task(self, task_id: str) -> None:
        with self._lock:
            self.store.delete(task_id)
            self._commit(self.clock())

    def reallocate(self, task_id: str) -> StudyTask:
        with self._lock:
            now = self.clock()
            task = self.store.reallocate(task_id, now=now)
            self._commit(now)
            return task

    def clear_all(self) -> int:
        with self._lock:
            removed = self.store.clear()
            self._commit(self.clock())
            logger.info("Cleared %d tasks", removed)
            return removed

    def set_progress(self, task_id: str, value: int) -> StudyTask:
        with self._lock:
            task = self.store.set_progress(task_id, value, now=self.clock())
            self._save()
            return task

    def toggle_plan_day(self, task_id: str, day: date) -> StudyTask:
        with self._lock:
            task = self.store.toggle_plan_day(task_id, day)
            self._save()
            return task

    # History -----------------------------------------------------------------

    def list_history(self) -> List[Snapshot]:
        with self._lock:
            return self.history.list()

    def restore(self, version: int) -> Snapshot:
        with self._lock:
            snapshot = self.history.restore(version, self.store)
            self._save()
            return snapshot

    # Settings ----------------------------------------------------------------

    def update_settings(self, **changes: Any) -> Settings:
        with self._lock:
            candidate = Settings.from_dict(self.settings.to_dict())
            for attr, value in changes.items():
                try:
                    candidate.apply(attr, value)
                except ValueError as exc:
                    raise ValidationError(str(exc)) from exc
            self.settings = candidate
            self._save()
            return candidate

    # Views -------------------------------------------------------------------

    def query(self, query: Optional[TaskQuery] = None, *, search_query: str = "") -> List[StudyTask]:
        with self._lock:
            query = query or TaskQuery.from_settings(self.settings, search_query=search_query)
            return self.store.query(query, now=self.clock())

    def tier_of(self, task: StudyTask) -> Tier:
        return classify(task.due_date, self.clock())

    def stats(self) -> Dict[str, float]:
        with self._lock:
            return self.store.stats(now=self.clock())

    def due_on(self, day: date) -> List[StudyTask]:
        with self._lock:
            return self.store.due_on(day)

    def urgent_due_on(self, day: date) -> int:
        with self._lock:
            return self.store.urgent_due_on(day, now=self.clock())

    # Exchange files ----------------------------------------------------------

    def export_document(self) -> Dict[str, Any]:
        with self._lock:
            return self.gateway.export_snapshot(self.store.list_tasks(), self.settings, now=self.clock())

    def export_to(self, path: Path) -> Path:
        target = Path(path).expanduser()
        with self._lock:
            now = self.clock()
            if target.is_dir():
                target = target / export_filename(now)
            return self.gateway.write_export(target, self.store.list_tasks(), self.settings, now=now)

    def import_document(self, document: Union[Dict[str, Any], str, bytes]) -> ImportResult:
        return self._apply_import(self.gateway.import_snapshot(document))

    def import_from(self, path: Path) -> ImportResult:
        return self._apply_import(self.gateway.read_import(path))

    def _apply_import(self, result: ImportResult) -> ImportResult:
        with self._lock:
            self.store.hydrate(result.tasks)
            self.settings = result.settings
            self._commit(self.clock())
            logger.info("Imported %d tasks (format %s)", len(result.tasks), result.version or "unknown")
            return result


__all__ = ["Clock", "StudySession", "local_now"]
