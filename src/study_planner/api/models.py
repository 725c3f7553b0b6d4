from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core import DayPlan, Snapshot, StudyTask, Tier


class DayPlanPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    hours: float
    is_weekend: bool
    completed: bool = Field(default=False)

    @classmethod
    def from_domain(cls, entry: DayPlan) -> "DayPlanPayload":
        return cls(
            date=entry.date.isoformat(),
            hours=entry.hours,
            is_weekend=entry.is_weekend,
            completed=entry.completed,
        )


class TaskPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    subject: str = Field(default="")
    type: str
    due_date: str
    estimated_hours: float
    priority: str
    tier: str
    description: str = Field(default="")
    completed: bool
    completed_at: Optional[str] = Field(default=None)
    created_at: str
    progress: int
    study_plan: List[DayPlanPayload] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, task: StudyTask, tier: Tier) -> "TaskPayload":
        return cls(
            id=task.id,
            title=task.title,
            subject=task.subject,
            type=task.type.value,
            due_date=task.due_date.isoformat(),
            estimated_hours=task.estimated_hours,
            priority=task.priority.value,
            tier=tier.value,
            description=task.description,
            completed=task.completed,
            completed_at=_iso(task.completed_at),
            created_at=task.created_at.isoformat(),
            progress=task.progress,
            study_plan=[DayPlanPayload.from_domain(entry) for entry in task.study_plan],
        )


class SnapshotPayload(BaseModel):
    version: int
    timestamp: str
    task_count: int

    @classmethod
    def from_domain(cls, snapshot: Snapshot) -> "SnapshotPayload":
        return cls(
            version=snapshot.version,
            timestamp=snapshot.timestamp.isoformat(),
            task_count=len(snapshot.tasks),
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
