from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .config import DEFAULT_SETTINGS
from .enums import PRIORITY_FILTERS, DeclaredPriority, SortKey, SortOrder, TaskType, ViewMode


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp; values without an offset are taken as local time."""

    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.astimezone()
    raise ValueError(f"Unsupported datetime value: {value!r}")


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            return parse_datetime(text).date()
        return date.fromisoformat(text)
    raise ValueError(f"Unsupported date value: {value!r}")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(slots=True)
class DayPlan:
    date: date
    hours: float
    is_weekend: bool
    completed: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "DayPlan":
        day = parse_date(data["date"])
        return cls(
            date=day,
            hours=float(data.get("hours", 0.0)),
            is_weekend=bool(data.get("isWeekend", day.weekday() >= 5)),
            completed=bool(data.get("completed", False)),
        )

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "hours": self.hours,
            "isWeekend": self.is_weekend,
            "completed": self.completed,
        }


@dataclass(slots=True)
class StudyTask:
    id: str
    title: str
    due_date: date
    created_at: datetime
    subject: str = ""
    type: TaskType = TaskType.ASSIGNMENT
    estimated_hours: float = 1.0
    priority: DeclaredPriority = DeclaredPriority.MEDIUM
    description: str = ""
    completed: bool = False
    completed_at: Optional[datetime] = None
    progress: int = 0
    study_plan: List[DayPlan] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "StudyTask":
        progress = max(0, min(100, int(data.get("progress") or 0)))
        completed = bool(data.get("completed", False)) or progress == 100
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            due_date=parse_date(data["dueDate"]),
            created_at=parse_datetime(data["createdAt"]),
            subject=data.get("subject") or "",
            type=TaskType(data.get("type") or TaskType.ASSIGNMENT),
            estimated_hours=float(data.get("estimatedHours", 1.0)),
            priority=DeclaredPriority(data.get("priority") or DeclaredPriority.MEDIUM),
            description=data.get("description") or "",
            completed=completed,
            completed_at=parse_datetime(data["completedAt"]) if data.get("completedAt") else None,
            progress=100 if completed else progress,
            study_plan=[DayPlan.from_dict(item) for item in data.get("studyPlan") or []],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "subject": self.subject,
            "type": self.type.value,
            "dueDate": self.due_date.isoformat(),
            "estimatedHours": self.estimated_hours,
            "priority": self.priority.value,
            "description": self.description,
            "completed": self.completed,
            "completedAt": _iso(self.completed_at),
            "createdAt": self.created_at.isoformat(),
            "progress": self.progress,
            "studyPlan": [entry.to_dict() for entry in self.study_plan],
        }

    def copy(self) -> "StudyTask":
        return deepcopy(self)


@dataclass(slots=True)
class TaskDraft:
    """User input for a new task, validated by ``TaskStore.create``."""

    title: str
    due_date: Optional[date]
    subject: str = ""
    type: str = TaskType.ASSIGNMENT.value
    estimated_hours: float = 1.0
    priority: str = DeclaredPriority.MEDIUM.value
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "TaskDraft":
        due_raw = data.get("dueDate")
        return cls(
            title=data.get("title") or "",
            due_date=parse_date(due_raw) if due_raw else None,
            subject=data.get("subject") or "",
            type=data.get("type") or TaskType.ASSIGNMENT.value,
            estimated_hours=float(data.get("estimatedHours", 1.0)),
            priority=data.get("priority") or DeclaredPriority.MEDIUM.value,
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class Snapshot:
    version: int
    timestamp: datetime
    tasks: List[Dict[str, Any]]

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        return cls(
            version=int(data["version"]),
            timestamp=parse_datetime(data["timestamp"]),
            tasks=deepcopy(list(data.get("tasks") or [])),
        )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "tasks": deepcopy(self.tasks),
        }

    def restore_tasks(self) -> List[StudyTask]:
        return [StudyTask.from_dict(item) for item in self.tasks]


_SETTINGS_FIELDS = {
    "is_dark_mode": "isDarkMode",
    "view_mode": "viewMode",
    "sort_by": "sortBy",
    "sort_order": "sortOrder",
    "show_completed_tasks": "showCompletedTasks",
    "filter_priority": "filterPriority",
}
_SETTINGS_ATTRS = {key: attr for attr, key in _SETTINGS_FIELDS.items()}


@dataclass(slots=True)
class Settings:
    is_dark_mode: bool = DEFAULT_SETTINGS["isDarkMode"]
    view_mode: ViewMode = ViewMode(DEFAULT_SETTINGS["viewMode"])
    sort_by: SortKey = SortKey(DEFAULT_SETTINGS["sortBy"])
    sort_order: SortOrder = SortOrder(DEFAULT_SETTINGS["sortOrder"])
    show_completed_tasks: bool = DEFAULT_SETTINGS["showCompletedTasks"]
    filter_priority: str = DEFAULT_SETTINGS["filterPriority"]

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Settings":
        """Merge ``data`` over the defaults, dropping unknown or invalid fields one by one."""

        settings = cls()
        if not isinstance(data, dict):
            return settings
        for attr, key in _SETTINGS_FIELDS.items():
            if key in data:
                try:
                    settings.apply(attr, data[key])
                except ValueError:
                    continue
        return settings

    def apply(self, attr: str, value: Any) -> None:
        """Set one field by attribute or wire name, raising ValueError when invalid."""

        attr = _SETTINGS_ATTRS.get(attr, attr)
        if attr not in _SETTINGS_FIELDS:
            raise ValueError(f"Unknown setting: {attr}")
        if attr in ("is_dark_mode", "show_completed_tasks"):
            if not isinstance(value, bool):
                raise ValueError(f"{attr} must be a boolean")
            setattr(self, attr, value)
        elif attr == "view_mode":
            self.view_mode = ViewMode(value)
        elif attr == "sort_by":
            self.sort_by = SortKey(value)
        elif attr == "sort_order":
            self.sort_order = SortOrder(value)
        elif value in PRIORITY_FILTERS:
            self.filter_priority = value
        else:
            raise ValueError(f"Unsupported priority filter: {value!r}")

    def to_dict(self) -> dict:
        return {
            "isDarkMode": self.is_dark_mode,
            "viewMode": self.view_mode.value,
            "sortBy": self.sort_by.value,
            "sortOrder": self.sort_order.value,
            "showCompletedTasks": self.show_completed_tasks,
            "filterPriority": self.filter_priority,
        }
