from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from ..core import TaskQuery, ValidationError
from ..services import StudySession
from .registry import register_api
from .serializers import serialize_task


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid ISO date: {value}") from exc


def _serialize(session: StudySession, task) -> dict:
    return serialize_task(task, session.tier_of(task))


@register_api(
    "create_study_task",
    description="Create a study task and allocate its daily study plan.",
    category="tasks",
    tags=("create", "task"),
)
def create_study_task(
    session: StudySession,
    title: str,
    due_date: str,
    subject: str = "",
    type: str = "assignment",
    estimated_hours: float = 1.0,
    priority: str = "medium",
    description: str = "",
) -> Dict[str, object]:
    task = session.create_task(
        {
            "title": title,
            "dueDate": due_date,
            "subject": subject,
            "type": type,
            "estimatedHours": estimated_hours,
            "priority": priority,
            "description": description,
        }
    )
    return {"task": _serialize(session, task)}


@register_api(
    "toggle_task_completed",
    description="Flip a task between completed and pending.",
    category="tasks",
    tags=("status", "complete"),
)
def toggle_task_completed(session: StudySession, task_id: str) -> Dict[str, object]:
    return {"task": _serialize(session, session.toggle_complete(task_id))}


@register_api(
    "set_task_progress",
    description="Set a task's progress percentage; 100 completes the task.",
    category="tasks",
    tags=("status", "progress"),
)
def set_task_progress(session: StudySession, task_id: str, progress: int) -> Dict[str, object]:
    return {"task": _serialize(session, session.set_progress(task_id, progress))}


@register_api(
    "delete_task",
    description="Delete a task by its identifier.",
    category="tasks",
    tags=("delete", "task"),
)
def delete_task(session: StudySession, task_id: str) -> Dict[str, object]:
    session.delete_task(task_id)
    return {"deleted": task_id}


@register_api(
    "reallocate_study_plan",
    description="Recompute a task's study plan from today until its due date.",
    category="planning",
    tags=("planning", "reallocate"),
)
def reallocate_study_plan(session: StudySession, task_id: str) -> Dict[str, object]:
    return {"task": _serialize(session, session.reallocate(task_id))}


@register_api(
    "toggle_plan_day",
    description="Mark one day of a task's study plan as done or not done.",
    category="planning",
    tags=("planning", "progress"),
)
def toggle_plan_day(session: StudySession, task_id: str, day: str) -> Dict[str, object]:
    return {"task": _serialize(session, session.toggle_plan_day(task_id, _parse_day(day)))}


@register_api(
    "query_tasks",
    description="List tasks filtered and sorted by the saved view settings, optionally searching text.",
    category="tasks",
    tags=("list", "search"),
)
def query_tasks(
    session: StudySession,
    search_query: str = "",
    filter_priority: Optional[str] = None,
) -> Dict[str, List[dict]]:
    query = TaskQuery.from_settings(session.settings, search_query=search_query)
    if filter_priority is not None:
        query.filter_priority = filter_priority
    return {"tasks": [_serialize(session, task) for task in session.query(query)]}


@register_api(
    "list_tasks_due_on",
    description="List tasks due on a specific day and count the open urgent ones.",
    category="tasks",
    tags=("list", "calendar"),
)
def list_tasks_due_on(session: StudySession, day: str) -> Dict[str, object]:
    target = _parse_day(day)
    return {
        "date": target.isoformat(),
        "tasks": [_serialize(session, task) for task in session.due_on(target)],
        "urgent_count": session.urgent_due_on(target),
    }


@register_api(
    "task_statistics",
    description="Summarize task counts, study hours and completion rate.",
    category="tasks",
    tags=("stats",),
)
def task_statistics(session: StudySession) -> Dict[str, object]:
    return {"stats": session.stats()}
