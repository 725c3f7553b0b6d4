from __future__ import annotations

from typing import Any, Dict

from ..core import Snapshot, StudyTask, Tier
from .models import SnapshotPayload, TaskPayload


def serialize_task(task: StudyTask, tier: Tier) -> Dict[str, Any]:
    return TaskPayload.from_domain(task, tier).model_dump()


def serialize_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
    return SnapshotPayload.from_domain(snapshot).model_dump()
