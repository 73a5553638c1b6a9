import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

from taskpad.models import Priority, Task
from taskpad.storage import JsonFileSlot, TaskStorage, deserialize_tasks, serialize_tasks


def _sample_tasks():
    return [
        Task(
            id="1710406800000",
            text="Write report",
            description="Quarterly numbers",
            created_at=datetime(2024, 3, 14, 9, 0, 0, 123000),
            priority=Priority.HIGH,
        ),
        Task(
            id="1710406700000",
            text="Pay rent",
            created_at=datetime(2024, 3, 14, 8, 58, 20),
            deadline=datetime(2024, 3, 15, 17, 0),
            completed=True,
        ),
        Task(
            id="1710406600000",
            text="Call mum",
            created_at=datetime(2024, 3, 14, 8, 56, 40),
            priority=Priority.LOW,
        ),
    ]


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    storage = TaskStorage(JsonFileSlot(tmp_path / "todos.json"))
    tasks = _sample_tasks()

    storage.save(tasks)

    assert storage.load() == tasks


def test_save_omits_absent_optional_fields(tmp_path: Path) -> None:
    path = tmp_path / "todos.json"
    TaskStorage(JsonFileSlot(path)).save(_sample_tasks())

    data = json.loads(path.read_text(encoding="utf-8"))

    assert [entry["id"] for entry in data] == ["1710406800000", "1710406700000", "1710406600000"]
    assert data[0]["description"] == "Quarterly numbers"
    assert "deadline" not in data[0]
    assert data[1]["deadline"] == "2024-03-15T17:00:00"
    assert "description" not in data[1]
    assert "description" not in data[2] and "deadline" not in data[2]
    assert data[0]["createdAt"] == "2024-03-14T09:00:00.123000"
    assert data[2]["priority"] == "low"


def test_save_replaces_previous_content(tmp_path: Path) -> None:
    storage = TaskStorage(JsonFileSlot(tmp_path / "todos.json"))
    storage.save(_sample_tasks())
    storage.save(_sample_tasks()[:1])
    assert len(storage.load()) == 1


def test_load_missing_file_returns_empty(tmp_path: Path) -> None:
    storage = TaskStorage(JsonFileSlot(tmp_path / "nothing-here.json"))
    assert storage.load() == []


def test_load_malformed_payload_returns_empty(tmp_path: Path) -> None:
    path = tmp_path / "todos.json"
    storage = TaskStorage(JsonFileSlot(path))

    path.write_text("{not json", encoding="utf-8")
    assert storage.load() == []

    path.write_text('{"id": "1"}', encoding="utf-8")
    assert storage.load() == []

    path.write_bytes(b"\xff\xfe\x00garbage")
    assert storage.load() == []

    path.write_text("[" * 200000, encoding="utf-8")
    assert storage.load() == []


def test_invalid_entries_are_skipped() -> None:
    payload = json.dumps([
        {"id": "1", "text": "Good", "completed": False, "createdAt": "2024-03-14T09:00:00", "priority": "medium"},
        {"id": "2", "text": "   ", "completed": False, "createdAt": "2024-03-14T09:00:00", "priority": "medium"},
        {"id": "3", "text": "Bad priority", "completed": False, "createdAt": "2024-03-14T09:00:00", "priority": "urgent"},
        {"id": "4", "text": "Bad date", "completed": False, "createdAt": "yesterday", "priority": "low"},
        {"id": "1", "text": "Duplicate", "completed": False, "createdAt": "2024-03-14T09:00:00", "priority": "low"},
        {"id": "5", "text": "Far future", "completed": False, "createdAt": "9999-12-31T23:00:00-05:00", "priority": "low"},
        {"id": "6", "text": "Stringly done", "completed": "false", "createdAt": "2024-03-14T09:00:00", "priority": "low"},
        {"id": "7", "text": None, "completed": False, "createdAt": "2024-03-14T09:00:00", "priority": "low"},
        "not an object",
    ])

    tasks = deserialize_tasks(payload)

    assert [task.text for task in tasks] == ["Good"]


def test_browser_timestamps_become_local_time() -> None:
    payload = json.dumps([
        {
            "id": "1710406800000",
            "text": "From the web version",
            "completed": False,
            "createdAt": "2024-03-14T09:00:00.000Z",
            "priority": "high",
            "deadline": "2024-03-15T17:00:00.000Z",
        }
    ])

    (task,) = deserialize_tasks(payload)

    expected_created = datetime(2024, 3, 14, 9, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert task.created_at == expected_created
    assert task.deadline.tzinfo is None
    assert task.deadline - task.created_at == timedelta(days=1, hours=8)


def test_serialized_order_matches_collection() -> None:
    tasks = _sample_tasks()
    assert [entry["text"] for entry in json.loads(serialize_tasks(tasks))] == [task.text for task in tasks]


def test_stored_descriptions_are_trimmed_and_blank_means_absent() -> None:
    payload = json.dumps([
        {"id": "1", "text": "Blank", "description": "", "completed": False,
         "createdAt": "2024-03-14T09:00:00", "priority": "medium"},
        {"id": "2", "text": "Padded", "description": "  notes  ", "completed": True,
         "createdAt": "2024-03-14T09:00:00", "priority": "medium"},
    ])

    blank, padded = deserialize_tasks(payload)

    assert blank.description is None
    assert padded.description == "notes"
    assert padded.completed is True

