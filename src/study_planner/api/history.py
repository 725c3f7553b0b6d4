from __future__ import annotations

from typing import Any, Dict, List

from ..services import StudySession
from .registry import register_api
from .serializers import serialize_snapshot


@register_api(
    "list_history_snapshots",
    description="List saved snapshots of the task collection, newest first.",
    category="history",
    tags=("history", "list"),
)
def list_history_snapshots(session: StudySession) -> Dict[str, List[dict]]:
    return {"snapshots": [serialize_snapshot(snapshot) for snapshot in session.list_history()]}


@register_api(
    "restore_history_snapshot",
    description="Replace the task collection with a saved snapshot.",
    category="history",
    tags=("history", "restore"),
)
def restore_history_snapshot(session: StudySession, version: int) -> Dict[str, object]:
    return {"restored": serialize_snapshot(session.restore(version))}


@register_api(
    "export_tasks",
    description="Build an exchange document with every task and the view settings.",
    category="exchange",
    tags=("export",),
)
def export_tasks(session: StudySession) -> Dict[str, Any]:
    return session.export_document()


@register_api(
    "import_tasks",
    description="Replace tasks and settings from an exchange document.",
    category="exchange",
    tags=("import",),
)
def import_tasks(session: StudySession, document: Dict[str, Any]) -> Dict[str, object]:
    result = session.import_document(document)
    return {"imported": len(result.tasks), "version": result.version}


@register_api(
    "update_view_settings",
    description="Change view settings such as sort order or the priority filter.",
    category="settings",
    tags=("settings",),
)
def update_view_settings(session: StudySession, changes: Dict[str, Any]) -> Dict[str, object]:
    return {"settings": session.update_settings(**changes).to_dict()}
