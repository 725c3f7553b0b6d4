# tests/test_api.py

from __future__ import annotations

import pytest

from study_planner.api import call_api, get_api_functions
from study_planner.core import NotFoundError, ValidationError
from study_planner.services import StudySession


def test_registry_lists_every_operation() -> None:
    names = {fn.name for fn in get_api_functions()}

    assert {
        "create_study_task",
        "toggle_task_completed",
        "set_task_progress",
        "delete_task",
        "reallocate_study_plan",
        "toggle_plan_day",
        "query_tasks",
        "list_tasks_due_on",
        "task_statistics",
        "list_history_snapshots",
        "restore_history_snapshot",
        "export_tasks",
        "import_tasks",
        "update_view_settings",
    } <= names
    assert {fn.name for fn in get_api_functions("history")} == {"list_history_snapshots", "restore_history_snapshot"}


def test_tool_schema_hides_the_session_parameter() -> None:
    create = next(fn for fn in get_api_functions("tasks") if fn.name == "create_study_task")
    tool = create.as_tool()
    schema = tool["function"]["parameters"]

    assert tool["type"] == "function"
    assert "session" not in schema["properties"]
    assert schema["required"] == ["title", "due_date"]
    assert schema["properties"]["estimated_hours"]["type"] == "number"
    assert schema["properties"]["estimated_hours"]["default"] == 1.0
    assert schema["properties"]["subject"]["default"] == ""
    assert schema["additionalProperties"] is False


def test_create_and_query_through_the_registry(session: StudySession) -> None:
    created = call_api(session, "create_study_task", title="Essay", due_date="2024-05-18", estimated_hours=6)
    task = created["task"]

    assert task["tier"] == "warning"
    assert [entry["hours"] for entry in task["study_plan"]] == [2.0, 2.0, 2.0]

    listed = call_api(session, "query_tasks", search_query="ess")
    assert [item["id"] for item in listed["tasks"]] == [task["id"]]

    due = call_api(session, "list_tasks_due_on", day="2024-05-18")
    assert due["date"] == "2024-05-18"
    assert len(due["tasks"]) == 1
    assert due["urgent_count"] == 0


def test_history_and_settings_operations(session: StudySession) -> None:
    call_api(session, "create_study_task", title="Essay", due_date="2024-05-18")
    call_api(session, "create_study_task", title="Quiz", due_date="2024-05-20")

    snapshots = call_api(session, "list_history_snapshots")["snapshots"]
    assert [item["version"] for item in snapshots] == [2, 1]
    assert snapshots[0]["task_count"] == 2

    restored = call_api(session, "restore_history_snapshot", version=1)
    assert restored["restored"]["task_count"] == 1

    settings = call_api(session, "update_view_settings", changes={"sortBy": "title"})
    assert settings["settings"]["sortBy"] == "title"


def test_errors_propagate_from_operations(session: StudySession) -> None:
    with pytest.raises(NotFoundError):
        call_api(session, "toggle_task_completed", task_id="missing")


def test_unknown_operation_raises_key_error(session: StudySession) -> None:
    with pytest.raises(KeyError):
        call_api(session, "launch_rocket")


def test_arguments_are_validated_before_the_call(session: StudySession) -> None:
    with pytest.raises(ValidationError):
        call_api(session, "set_task_progress", task_id="task_000001")
    with pytest.raises(ValidationError):
        call_api(session, "task_statistics", verbose=True)
    with pytest.raises(ValidationError):
        call_api(session, "restore_history_snapshot", version="latest")
