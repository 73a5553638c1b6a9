"""JSON persistence for the task collection.

The whole collection is stored as one JSON array in a durable slot and is
rewritten in full after every change. Optional fields are omitted rather
than written as null.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .models import Priority, Task
from .queries import to_local_naive

logger = logging.getLogger(__name__)


class Slot(Protocol):
    """A single named location holding the serialized collection."""

    def read(self) -> Optional[str]: ...

    def write(self, payload: str) -> None: ...


class JsonFileSlot:
    """Slot backed by a UTF-8 JSON file on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(self.path)

    def __repr__(self) -> str:
        return f"JsonFileSlot({str(self.path)!r})"


class TaskStorage:
    """Loads and saves the task collection through a slot."""

    def __init__(self, slot: Slot) -> None:
        self.slot = slot

    def load(self) -> List[Task]:
        """Return the saved tasks, or an empty list when nothing usable is stored."""
        try:
            payload = self.slot.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read saved tasks from %r: %s", self.slot, exc)
            return []
        if payload is None:
            return []
        try:
            tasks = deserialize_tasks(payload)
        except ValueError as exc:
            logger.warning("Discarding malformed saved tasks in %r: %s", self.slot, exc)
            return []
        logger.info("Loaded %d task(s) from %r", len(tasks), self.slot)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        """Replace the slot contents with the full collection."""
        self.slot.write(serialize_tasks(tasks))


def serialize_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([serialize_task(task) for task in tasks], indent=2)


def deserialize_tasks(payload: str) -> List[Task]:
    """Parse a stored JSON array, skipping entries that are not valid tasks."""
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise ValueError(f"Invalid task data: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError("Invalid task data: expected a JSON array")

    tasks: List[Task] = []
    seen_ids = set()
    for index, raw in enumerate(data):
        try:
            task = deserialize_task(raw)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            logger.warning("Skipping saved task #%d: %s", index, exc)
            continue
        if task.id in seen_ids:
            logger.warning("Skipping saved task #%d: duplicate id %s", index, task.id)
            continue
        seen_ids.add(task.id)
        tasks.append(task)
    return tasks


def serialize_task(task: Task) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
        "createdAt": task.created_at.isoformat(),
        "priority": task.priority.value,
    }
    if task.description is not None:
        data["description"] = task.description
    if task.deadline is not None:
        data["deadline"] = task.deadline.isoformat()
    return data


def deserialize_task(data: Dict[str, Any]) -> Task:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    text = data["text"]
    if not isinstance(text, str):
        raise TypeError(f"expected text to be a string, got {text!r}")
    text = text.strip()
    if not text:
        raise ValueError("empty text")
    description = data.get("description")
    if description is not None and not isinstance(description, str):
        raise TypeError(f"expected description to be a string, got {description!r}")
    completed = data.get("completed", False)
    if not isinstance(completed, bool):
        raise TypeError(f"expected completed to be a boolean, got {completed!r}")
    return Task(
        id=str(data["id"]),
        text=text,
        description=(description or "").strip() or None,
        completed=completed,
        created_at=_parse_timestamp(data["createdAt"]),
        priority=Priority(data.get("priority", Priority.MEDIUM.value)),
        deadline=_parse_optional_timestamp(data.get("deadline")),
    )


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"expected an ISO-8601 string, got {value!r}")
    return to_local_naive(datetime.fromisoformat(value))


def _parse_optional_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return _parse_timestamp(value)
