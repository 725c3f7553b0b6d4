# tests/test_persistence.py

from __future__ import annotations

from datetime import date

import orjson
import pytest

from study_planner.core import (
    HISTORY_KEY,
    SETTINGS_KEY,
    TASKS_KEY,
    FormatError,
    JsonFileStore,
    MemoryKeyValueStore,
    PersistenceGateway,
    Settings,
    SnapshotHistory,
    SortKey,
    StorageError,
    TaskStore,
    ViewMode,
)
from study_planner.core.persistence import export_filename

from .conftest import NOW, draft


class FlakyStore(MemoryKeyValueStore):
    """Memory store that refuses to write the keys it is told to fail on."""

    def __init__(self, failing: set) -> None:
        super().__init__()
        self.failing = failing

    def set(self, key: str, value: str) -> None:
        if key in self.failing:
            raise StorageError(key, "quota exceeded")
        super().set(key, value)


def _state():
    store, history = TaskStore(), SnapshotHistory()
    store.create(draft("Essay", subject="History"), now=NOW)
    history.push(store.list_tasks(), now=NOW)
    settings = Settings(is_dark_mode=True, sort_by=SortKey.TITLE)
    return store, history, settings


def test_save_then_load_round_trips_state(kv: MemoryKeyValueStore, gateway: PersistenceGateway) -> None:
    store, history, settings = _state()
    report = gateway.save(store.list_tasks(), history, settings)

    assert report.ok
    assert set(report.written) == {TASKS_KEY, HISTORY_KEY, SETTINGS_KEY}

    loaded = gateway.load()
    assert [task.to_dict() for task in loaded.tasks] == store.to_records()
    assert [snapshot.version for snapshot in loaded.history] == [1]
    assert loaded.settings == settings
    assert loaded.warnings == []


def test_stored_records_use_wire_names(kv: MemoryKeyValueStore, gateway: PersistenceGateway) -> None:
    store, history, settings = _state()
    gateway.save(store.list_tasks(), history, settings)

    record = orjson.loads(kv.values[TASKS_KEY])[0]
    assert record["dueDate"] == "2024-05-18"
    assert record["studyPlan"][0]["isWeekend"] is False
    assert orjson.loads(kv.values[SETTINGS_KEY])["sortBy"] == "title"


def test_one_failing_key_does_not_block_the_others() -> None:
    kv = FlakyStore({HISTORY_KEY})
    gateway = PersistenceGateway(kv)
    store, history, settings = _state()

    report = gateway.save(store.list_tasks(), history, settings)

    assert not report.ok
    assert set(report.failed) == {HISTORY_KEY}
    assert TASKS_KEY in kv.values
    assert SETTINGS_KEY in kv.values


def test_load_with_empty_store_gives_defaults(gateway: PersistenceGateway) -> None:
    loaded = gateway.load()

    assert loaded.tasks == []
    assert loaded.history == []
    assert loaded.settings == Settings()


def test_corrupt_key_falls_back_alone(kv: MemoryKeyValueStore, gateway: PersistenceGateway) -> None:
    store, history, settings = _state()
    gateway.save(store.list_tasks(), history, settings)
    kv.values[TASKS_KEY] = "{not json"

    loaded = gateway.load()

    assert loaded.tasks == []
    assert len(loaded.history) == 1
    assert loaded.settings.is_dark_mode is True
    assert len(loaded.warnings) == 1


def test_legacy_theme_key_seeds_dark_mode() -> None:
    gateway = PersistenceGateway(MemoryKeyValueStore({"studyPlannerTheme": "dark"}))
    assert gateway.load().settings.is_dark_mode is True


def test_settings_merge_over_defaults(kv: MemoryKeyValueStore, gateway: PersistenceGateway) -> None:
    kv.values[SETTINGS_KEY] = orjson.dumps({"sortBy": "subject", "viewMode": "calendar", "extra": 1}).decode()

    settings = gateway.load().settings

    assert settings.sort_by is SortKey.SUBJECT
    assert settings.view_mode is ViewMode.LIST


def test_purge_removes_every_key(kv: MemoryKeyValueStore, gateway: PersistenceGateway) -> None:
    store, history, settings = _state()
    gateway.save(store.list_tasks(), history, settings)

    assert gateway.purge().ok
    assert kv.values == {}


def test_export_document_shape(gateway: PersistenceGateway) -> None:
    store, _, settings = _state()
    document = gateway.export_snapshot(store.list_tasks(), settings, now=NOW)

    assert set(document) == {"tasks", "settings", "exportDate", "version"}
    assert document["version"] == "2.1"
    assert document["exportDate"] == NOW.isoformat()
    assert document["settings"]["isDarkMode"] is True


def test_export_import_round_trip_through_bytes(gateway: PersistenceGateway) -> None:
    store, _, settings = _state()
    raw = orjson.dumps(gateway.export_snapshot(store.list_tasks(), settings, now=NOW))

    result = gateway.import_snapshot(raw)

    assert [task.to_dict() for task in result.tasks] == store.to_records()
    assert result.settings == settings
    assert result.version == "2.1"


def test_import_accepts_documents_from_older_exports(gateway: PersistenceGateway) -> None:
    document = {
        "tasks": [
            {
                "id": "1715769000000",
                "title": "Lab report",
                "subject": "Biology",
                "type": "project",
                "dueDate": "2024-05-20",
                "estimatedHours": 3,
                "priority": "high",
                "completed": False,
                "createdAt": "2024-05-15T10:30:00.000Z",
                "progress": 30,
                "studyPlan": [{"date": "2024-05-18", "hours": 1.5, "isWeekend": True, "completed": True}],
            }
        ],
        "exportDate": "2024-05-15T11:00:00.000Z",
    }

    result = gateway.import_snapshot(document)
    task = result.tasks[0]

    assert task.id == "1715769000000"
    assert task.progress == 30
    assert task.study_plan[0].date == date(2024, 5, 18)
    assert task.study_plan[0].completed is True
    assert result.settings == Settings()
    assert result.version is None


@pytest.mark.parametrize(
    "document",
    [
        b"not json",
        "[1, 2]",
        {"settings": {}},
        {"tasks": "nope"},
        {"tasks": [{"title": "no id"}]},
        {"tasks": [{"id": "a", "title": "x", "dueDate": "2024-05-20", "createdAt": "2024-05-15T00:00:00"}] * 2},
    ],
)
def test_import_rejects_malformed_documents(gateway: PersistenceGateway, document) -> None:
    with pytest.raises(FormatError):
        gateway.import_snapshot(document)


def test_write_export_and_read_import(tmp_path, gateway: PersistenceGateway) -> None:
    store, _, settings = _state()
    target = tmp_path / export_filename(NOW)

    written = gateway.write_export(target, store.list_tasks(), settings, now=NOW)
    result = gateway.read_import(written)

    assert written.name == "study-planner-backup-2024-05-15.json"
    assert [task.title for task in result.tasks] == ["Essay"]


def test_read_import_missing_file(tmp_path, gateway: PersistenceGateway) -> None:
    with pytest.raises(FormatError):
        gateway.read_import(tmp_path / "missing.json")


def test_json_file_store_keeps_one_file_per_key(tmp_path) -> None:
    backend = JsonFileStore(tmp_path / "data")
    backend.set(TASKS_KEY, "[]")

    assert (tmp_path / "data" / f"{TASKS_KEY}.json").exists()
    assert backend.get(TASKS_KEY).strip() == "[]"
    assert backend.get(HISTORY_KEY) is None

    backend.remove(TASKS_KEY)
    assert backend.get(TASKS_KEY) is None
