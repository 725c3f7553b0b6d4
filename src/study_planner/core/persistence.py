from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .config import (
    EXPORT_FORMAT_VERSION,
    HISTORY_KEY,
    LEGACY_THEME_KEY,
    SETTINGS_KEY,
    TASKS_KEY,
)
from .errors import FormatError, StorageError
from .history import SnapshotHistory
from .models import Settings, Snapshot, StudyTask
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExchangeDocument(BaseModel):
    """Wire shape of an export file; unknown top-level fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tasks: List[Dict[str, Any]]
    settings: Any = Field(default=None)
    export_date: Any = Field(default=None, alias="exportDate")
    version: Any = Field(default=None)


@dataclass
class SaveReport:
    written: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class LoadResult:
    tasks: List[StudyTask] = field(default_factory=list)
    history: List[Snapshot] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ImportResult:
    tasks: List[StudyTask]
    settings: Settings
    version: Optional[str] = None


def _parse_tasks(records: Any) -> List[StudyTask]:
    if not isinstance(records, list):
        raise TypeError("tasks must be a list")
    tasks = [StudyTask.from_dict(item) for item in records]
    seen: set[str] = set()
    for task in tasks:
        if task.id in seen:
            raise ValueError(f"duplicate task id {task.id}")
        seen.add(task.id)
    return tasks


def _parse_history(records: Any) -> List[Snapshot]:
    if not isinstance(records, list):
        raise TypeError("history must be a list")
    snapshots = [Snapshot.from_dict(item) for item in records]
    for snapshot in snapshots:
        _parse_tasks(snapshot.tasks)
    return snapshots


def _parse_settings(record: Any) -> Settings:
    if not isinstance(record, dict):
        raise TypeError("settings must be an object")
    return Settings.from_dict(record)


class PersistenceGateway:
    """Moves the session state in and out of a key-value store and export files.

    Each of the three keys is read and written on its own: a failure on one key
    is logged and reported, never allowed to block the others.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    # Key-value persistence ---------------------------------------------------

    def save(self, tasks: Iterable[StudyTask], history: SnapshotHistory, settings: Settings) -> SaveReport:
        report = SaveReport()
        sections = (
            (TASKS_KEY, lambda: [task.to_dict() for task in tasks]),
            (HISTORY_KEY, history.to_records),
            (SETTINGS_KEY, settings.to_dict),
        )
        for key, build in sections:
            try:
                payload = orjson.dumps(build()).decode("utf-8")
                self._store.set(key, payload)
            except (StorageError, TypeError, ValueError) as exc:
                logger.warning("Failed to save %s: %s", key, exc)
                report.failed[key] = str(exc)
            else:
                report.written.append(key)
        return report

    def load(self) -> LoadResult:
        result = LoadResult()
        result.tasks = self._load_section(TASKS_KEY, _parse_tasks, list, result.warnings)
        result.history = self._load_section(HISTORY_KEY, _parse_history, list, result.warnings)
        result.settings = self._load_section(SETTINGS_KEY, _parse_settings, self._legacy_settings, result.warnings)
        logger.info(
            "Loaded %d tasks, %d snapshots (%d warnings)",
            len(result.tasks),
            len(result.history),
            len(result.warnings),
        )
        return result

    def _load_section(
        self,
        key: str,
        parse: Callable[[Any], T],
        default: Callable[[], T],
        warnings: List[str],
    ) -> T:
        try:
            raw = self._store.get(key)
        except StorageError as exc:
            logger.warning("Failed to read %s: %s", key, exc)
            warnings.append(str(exc))
            return default()
        if raw is None:
            return default()
        try:
            return parse(orjson.loads(raw))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding corrupt %s: %s", key, exc)
            warnings.append(f"{key}: {exc}")
            return default()

    def _legacy_settings(self) -> Settings:
        settings = Settings()
        try:
            theme = self._store.get(LEGACY_THEME_KEY)
        except StorageError:
            return settings
        settings.is_dark_mode = theme == "dark"
        return settings

    def purge(self) -> SaveReport:
        report = SaveReport()
        for key in (TASKS_KEY, HISTORY_KEY, SETTINGS_KEY):
            try:
                self._store.remove(key)
            except StorageError as exc:
                logger.warning("Failed to remove %s: %s", key, exc)
                report.failed[key] = str(exc)
            else:
                report.written.append(key)
        return report

    # Exchange documents ------------------------------------------------------

    def export_snapshot(self, tasks: Iterable[StudyTask], settings: Settings, *, now: datetime) -> Dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in tasks],
            "settings": settings.to_dict(),
            "exportDate": now.isoformat(),
            "version": EXPORT_FORMAT_VERSION,
        }

    def import_snapshot(self, document: Union[Mapping[str, Any], str, bytes]) -> ImportResult:
        if isinstance(document, (str, bytes)):
            try:
                document = orjson.loads(document)
            except orjson.JSONDecodeError as exc:
                raise FormatError(f"Import file is not valid JSON: {exc}") from exc
        if not isinstance(document, Mapping):
            raise FormatError("Import document must be a JSON object")
        try:
            parsed = ExchangeDocument.model_validate(dict(document))
        except PydanticValidationError as exc:
            raise FormatError("Import document needs a 'tasks' array of task objects") from exc
        try:
            tasks = _parse_tasks(parsed.tasks)
        except (KeyError, TypeError, ValueError) as exc:
            raise FormatError(f"Import document has an invalid task: {exc}") from exc
        settings = Settings.from_dict(parsed.settings if isinstance(parsed.settings, dict) else None)
        version = None if parsed.version is None else str(parsed.version)
        return ImportResult(tasks=tasks, settings=settings, version=version)

    def write_export(self, path: Path, tasks: Iterable[StudyTask], settings: Settings, *, now: datetime) -> Path:
        document = self.export_snapshot(tasks, settings, now=now)
        path = Path(path).expanduser()
        path.write_bytes(orjson.dumps(document, option=orjson.OPT_INDENT_2) + b"\n")
        logger.info("Exported %d tasks to %s", len(document["tasks"]), path)
        return path

    def read_import(self, path: Path) -> ImportResult:
        path = Path(path).expanduser()
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise FormatError(f"Cannot read import file {path}: {exc}") from exc
        return self.import_snapshot(raw)


def export_filename(now: datetime) -> str:
    return f"study-planner-backup-{now.date().isoformat()}.json"


__all__ = [
    "ExchangeDocument",
    "ImportResult",
    "LoadResult",
    "PersistenceGateway",
    "SaveReport",
    "export_filename",
]
