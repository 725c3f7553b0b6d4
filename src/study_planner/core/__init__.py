"""Core domain models, scheduling rules and persistence utilities."""

from .config import (
    APP_NAME,
    DATA_DIR,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_SETTINGS,
    EXPORT_FORMAT_VERSION,
    HISTORY_KEY,
    SETTINGS_KEY,
    TASKS_KEY,
    ensure_data_dir,
)
from .enums import DeclaredPriority, SortKey, SortOrder, TaskType, Tier, ViewMode
from .errors import FormatError, NotFoundError, StorageError, StudyPlannerError, ValidationError
from .history import SnapshotHistory
from .models import DayPlan, Settings, Snapshot, StudyTask, TaskDraft
from .persistence import ExchangeDocument, ImportResult, LoadResult, PersistenceGateway, SaveReport
from .priority import classify, days_until
from .scheduler import allocate
from .storage import JsonFileStore, KeyValueStore, MemoryKeyValueStore
from .store import TaskQuery, TaskStore

__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_SETTINGS",
    "EXPORT_FORMAT_VERSION",
    "HISTORY_KEY",
    "SETTINGS_KEY",
    "TASKS_KEY",
    "ensure_data_dir",
    "DayPlan",
    "DeclaredPriority",
    "ExchangeDocument",
    "FormatError",
    "ImportResult",
    "JsonFileStore",
    "KeyValueStore",
    "LoadResult",
    "MemoryKeyValueStore",
    "NotFoundError",
    "PersistenceGateway",
    "SaveReport",
    "Settings",
    "Snapshot",
    "SnapshotHistory",
    "SortKey",
    "SortOrder",
    "StorageError",
    "StudyPlannerError",
    "StudyTask",
    "TaskDraft",
    "TaskQuery",
    "TaskStore",
    "TaskType",
    "Tier",
    "ValidationError",
    "ViewMode",
    "allocate",
    "classify",
    "days_until",
]
