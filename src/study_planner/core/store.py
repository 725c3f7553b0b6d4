from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Union

from .enums import PRIORITY_FILTERS, DeclaredPriority, SortKey, SortOrder, TaskType, Tier
from .errors import NotFoundError, ValidationError
from .models import Settings, StudyTask, TaskDraft, parse_date
from .priority import classify
from .scheduler import allocate

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^task_(\d+)$")


@dataclass(slots=True)
class TaskQuery:
    search_query: str = ""
    filter_priority: str = "all"
    show_completed: bool = True
    sort_by: SortKey = SortKey.DUE_DATE
    sort_order: SortOrder = SortOrder.ASC

    @classmethod
    def from_settings(cls, settings: Settings, *, search_query: str = "") -> "TaskQuery":
        return cls(
            search_query=search_query,
            filter_priority=settings.filter_priority,
            show_completed=settings.show_completed_tasks,
            sort_by=settings.sort_by,
            sort_order=settings.sort_order,
        )


def _matches_search(task: StudyTask, needle: str) -> bool:
    if not needle:
        return True
    return any(needle in value.lower() for value in (task.title, task.subject, task.description))


def _matches_filter(task: StudyTask, filter_priority: str, now: datetime) -> bool:
    if filter_priority == "all":
        return True
    if filter_priority == "completed":
        return task.completed
    if filter_priority == "pending":
        return not task.completed
    return classify(task.due_date, now).value == filter_priority


def _sort_key(sort_by: SortKey, now: datetime) -> Callable[[StudyTask], object]:
    if sort_by is SortKey.PRIORITY:
        return lambda task: (classify(task.due_date, now).rank, task.due_date)
    if sort_by is SortKey.CREATED:
        return lambda task: task.created_at
    if sort_by is SortKey.TITLE:
        return lambda task: task.title.casefold()
    if sort_by is SortKey.SUBJECT:
        return lambda task: task.subject.casefold()
    return lambda task: task.due_date


class TaskStore:
    """In-memory task collection.

    Every operation either completes or raises before touching state. Returned
    tasks are copies; callers never hold references into the collection.
    """

    def __init__(self, tasks: Optional[Iterable[StudyTask]] = None) -> None:
        self._tasks: Dict[str, StudyTask] = {}
        self._counter = 0
        if tasks is not None:
            self.hydrate(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def hydrate(self, tasks: Iterable[StudyTask]) -> None:
        incoming: Dict[str, StudyTask] = {}
        for task in tasks:
            if task.id in incoming:
                raise ValidationError(f"Duplicate task id: {task.id}")
            incoming[task.id] = task.copy()
        self._tasks = incoming
        # ids stay unique for the whole session, even across restores
        self._counter = max(
            [self._counter] + [int(match.group(1)) for match in map(_ID_PATTERN.match, incoming) if match]
        )
        logger.debug("TaskStore hydrated with %d tasks", len(incoming))

    def list_tasks(self) -> List[StudyTask]:
        return [task.copy() for task in self._tasks.values()]

    def to_records(self) -> List[dict]:
        return [task.to_dict() for task in self._tasks.values()]

    def get(self, task_id: str) -> StudyTask:
        return self._require(task_id).copy()

    def _require(self, task_id: str) -> StudyTask:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise NotFoundError(f"Task not found: {task_id}") from None

    def _next_id(self) -> str:
        while True:
            self._counter += 1
            candidate = f"task_{self._counter:06d}"
            if candidate not in self._tasks:
                return candidate

    # Mutations ---------------------------------------------------------------

    def create(self, draft: Union[TaskDraft, dict], *, now: datetime) -> StudyTask:
        if isinstance(draft, dict):
            try:
                draft = TaskDraft.from_dict(draft)
            except (TypeError, ValueError) as exc:
                raise ValidationError(str(exc)) from exc

        title = (draft.title or "").strip()
        if not title:
            raise ValidationError("title is required")
        if draft.due_date is None:
            raise ValidationError("dueDate is required")
        try:
            due_date = parse_date(draft.due_date)
            task_type = TaskType(draft.type)
            priority = DeclaredPriority(draft.priority)
            hours = float(draft.estimated_hours)
        except (TypeError, ValueError) as exc:
            raise ValidationError(str(exc)) from exc
        if not math.isfinite(hours) or hours < 0.5 or not (hours * 2).is_integer():
            raise ValidationError("estimatedHours must be at least 0.5 in steps of 0.5")

        task = StudyTask(
            id=self._next_id(),
            title=title,
            due_date=due_date,
            created_at=now,
            subject=(draft.subject or "").strip(),
            type=task_type,
            estimated_hours=hours,
            priority=priority,
            description=draft.description or "",
            study_plan=allocate(due_date, hours, now),
        )
        self._tasks[task.id] = task
        logger.info("Task created id=%s due=%s hours=%s", task.id, due_date, hours)
        return task.copy()

    def toggle_complete(self, task_id: str, *, now: datetime) -> StudyTask:
        task = self._require(task_id)
        task.completed = not task.completed
        task.completed_at = now if task.completed else None
        task.progress = 100 if task.completed else 0
        logger.debug("Task %s completed=%s", task_id, task.completed)
        return task.copy()

    def set_progress(self, task_id: str, value: int, *, now: datetime) -> StudyTask:
        task = self._require(task_id)
        progress = max(0, min(100, int(value)))
        completed = progress == 100
        if completed != task.completed:
            task.completed_at = now if completed else None
        task.completed = completed
        task.progress = progress
        return task.copy()

    def delete(self, task_id: str) -> None:
        self._require(task_id)
        del self._tasks[task_id]
        logger.info("Task deleted id=%s", task_id)

    def clear(self) -> int:
        removed = len(self._tasks)
        self._tasks = {}
        return removed

    def reallocate(self, task_id: str, *, now: datetime) -> StudyTask:
        task = self._require(task_id)
        task.study_plan = allocate(task.due_date, task.estimated_hours, now)
        return task.copy()

    def toggle_plan_day(self, task_id: str, day: date) -> StudyTask:
        task = self._require(task_id)
        for entry in task.study_plan:
            if entry.date == day:
                entry.completed = not entry.completed
                return task.copy()
        raise NotFoundError(f"Task {task_id} has no study plan entry for {day.isoformat()}")

    # Views -------------------------------------------------------------------

    def query(self, query: Optional[TaskQuery] = None, *, now: datetime) -> List[StudyTask]:
        query = query or TaskQuery()
        if query.filter_priority not in PRIORITY_FILTERS:
            raise ValidationError(f"Unsupported priority filter: {query.filter_priority!r}")
        needle = query.search_query.strip().lower()
        selected = [
            task
            for task in self._tasks.values()
            if _matches_search(task, needle)
            and _matches_filter(task, query.filter_priority, now)
            and (query.show_completed or not task.completed)
        ]
        key = _sort_key(SortKey(query.sort_by), now)
        descending = SortOrder(query.sort_order) is SortOrder.DESC
        pending = sorted((task for task in selected if not task.completed), key=key, reverse=descending)
        done = sorted((task for task in selected if task.completed), key=key, reverse=descending)
        return [task.copy() for task in pending + done]

    def due_on(self, day: date) -> List[StudyTask]:
        return [task.copy() for task in self._tasks.values() if task.due_date == day]

    def urgent_due_on(self, day: date, *, now: datetime) -> int:
        return sum(
            1
            for task in self._tasks.values()
            if task.due_date == day and not task.completed and classify(task.due_date, now) is Tier.URGENT
        )

    def stats(self, *, now: datetime) -> Dict[str, float]:
        tasks = list(self._tasks.values())
        completed = [task for task in tasks if task.completed]
        open_tiers = [classify(task.due_date, now) for task in tasks if not task.completed]
        return {
            "total": len(tasks),
            "completed": len(completed),
            "pending": len(tasks) - len(completed),
            "urgent": open_tiers.count(Tier.URGENT),
            "overdue": open_tiers.count(Tier.OVERDUE),
            "totalStudyHours": sum(task.estimated_hours for task in tasks),
            "completedStudyHours": sum(task.estimated_hours for task in completed),
            "completionRate": round(len(completed) / len(tasks) * 100) if tasks else 0,
        }


__all__ = ["TaskQuery", "TaskStore"]
