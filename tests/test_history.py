# tests/test_history.py

from __future__ import annotations

from datetime import timedelta

import pytest

from study_planner.core import NotFoundError, Snapshot, SnapshotHistory, TaskStore

from .conftest import NOW, draft


def _push_many(history: SnapshotHistory, store: TaskStore, count: int) -> None:
    for index in range(count):
        store.create(draft(f"Task {index}"), now=NOW)
        history.push(store.list_tasks(), now=NOW + timedelta(minutes=index))


def test_oldest_snapshots_are_evicted() -> None:
    history, store = SnapshotHistory(limit=10), TaskStore()
    _push_many(history, store, 15)

    versions = [snapshot.version for snapshot in history.list()]
    assert versions == list(range(15, 5, -1))
    assert len(history) == 10
    with pytest.raises(NotFoundError):
        history.get(5)


def test_snapshots_do_not_follow_later_changes() -> None:
    history, store = SnapshotHistory(), TaskStore()
    task = store.create(draft(), now=NOW)
    snapshot = history.push(store.list_tasks(), now=NOW)
    store.toggle_complete(task.id, now=NOW)

    assert snapshot.tasks[0]["completed"] is False
    assert history.get(1).tasks[0]["completed"] is False


def test_restore_replaces_tasks_without_pushing() -> None:
    history, store = SnapshotHistory(), TaskStore()
    first = store.create(draft("First"), now=NOW)
    history.push(store.list_tasks(), now=NOW)
    store.create(draft("Second"), now=NOW)
    history.push(store.list_tasks(), now=NOW)

    restored = history.restore(1, store)

    assert restored.version == 1
    assert [task.id for task in store.list_tasks()] == [first.id]
    assert len(history) == 2
    assert history.last_version == 2


def test_restore_keeps_ids_unique() -> None:
    history, store = SnapshotHistory(), TaskStore()
    store.create(draft("First"), now=NOW)
    history.push(store.list_tasks(), now=NOW)
    second = store.create(draft("Second"), now=NOW)

    history.restore(1, store)
    third = store.create(draft("Third"), now=NOW)

    assert third.id != second.id


def test_restore_unknown_version_leaves_store_alone() -> None:
    history, store = SnapshotHistory(), TaskStore()
    store.create(draft(), now=NOW)

    with pytest.raises(NotFoundError):
        history.restore(42, store)
    assert len(store) == 1


def test_hydrate_truncates_and_continues_versions() -> None:
    source, store = SnapshotHistory(limit=20), TaskStore()
    _push_many(source, store, 12)

    history = SnapshotHistory(limit=10, snapshots=reversed(source.list()))
    assert [snapshot.version for snapshot in history.list()][-1] == 3
    assert history.push(store.list_tasks(), now=NOW).version == 13


def test_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SnapshotHistory(limit=0)


def test_decoded_snapshot_does_not_share_nested_plans() -> None:
    store = TaskStore()
    store.create(draft(), now=NOW)
    record = SnapshotHistory().push(store.list_tasks(), now=NOW).to_dict()

    snapshot = Snapshot.from_dict(record)
    record["tasks"][0]["studyPlan"][0]["completed"] = True

    assert snapshot.tasks[0]["studyPlan"][0]["completed"] is False
