from __future__ import annotations

from enum import Enum


class TaskType(str, Enum):
    ASSIGNMENT = "assignment"
    EXAM = "exam"
    PROJECT = "project"
    REVIEW = "review"


class DeclaredPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Tier(str, Enum):
    """Computed urgency, declared from most to least urgent."""

    OVERDUE = "overdue"
    TODAY = "today"
    URGENT = "urgent"
    WARNING = "warning"
    NORMAL = "normal"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)


_TIER_ORDER = list(Tier)


class SortKey(str, Enum):
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    CREATED = "created"
    TITLE = "title"
    SUBJECT = "subject"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ViewMode(str, Enum):
    LIST = "list"
    WEEK = "week"
    MONTH = "month"


STATUS_FILTERS = ("all", "completed", "pending")
PRIORITY_FILTERS = STATUS_FILTERS + tuple(tier.value for tier in Tier)
