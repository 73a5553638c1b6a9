"""Authoritative in-memory task collection."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .models import Priority, Task
from .queries import parse_deadline
from .storage import TaskStorage

logger = logging.getLogger(__name__)


class TaskStore:
    """Owns the task list and writes it through to storage after every change.

    Mutations never raise for bad input: empty text and unknown ids are
    no-ops that leave the collection untouched. New tasks are prepended, so
    the collection reads newest-first.
    """

    def __init__(
        self,
        storage: Optional[TaskStorage] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._tasks: List[Task] = storage.load() if storage is not None else []
        self._last_id = max((_numeric_id(task.id) for task in self._tasks), default=0)

    @property
    def tasks(self) -> Tuple[Task, ...]:
        """Immutable snapshot of the collection in display order."""
        return tuple(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        index = self._index_of(task_id)
        return None if index is None else self._tasks[index]

    def create(
        self,
        text: str,
        description: Optional[str] = None,
        priority: Priority | str = Priority.MEDIUM,
        deadline: Optional[str] = None,
    ) -> Optional[Task]:
        """Add a task at the front of the list; returns None when `text` is blank."""
        title = (text or "").strip()
        if not title:
            return None
        note = (description or "").strip()
        now = self._clock()
        task = Task(
            id=self._allocate_id(now),
            text=title,
            description=note or None,
            created_at=now,
            priority=Priority(priority),
            deadline=parse_deadline(deadline),
        )
        self._tasks.insert(0, task)
        logger.debug("Created task %s", task.id)
        self._persist()
        return task

    def toggle(self, task_id: str) -> bool:
        index = self._index_of(task_id)
        if index is None:
            return False
        task = self._tasks[index]
        self._tasks[index] = replace(task, completed=not task.completed)
        logger.debug("Toggled task %s (completed=%s)", task_id, not task.completed)
        self._persist()
        return True

    def remove(self, task_id: str) -> bool:
        index = self._index_of(task_id)
        if index is None:
            return False
        del self._tasks[index]
        logger.debug("Removed task %s", task_id)
        self._persist()
        return True

    def edit_text(self, task_id: str, new_text: str) -> bool:
        """Retitle a task; blank input keeps the current title."""
        title = (new_text or "").strip()
        index = self._index_of(task_id)
        if not title or index is None:
            return False
        self._tasks[index] = replace(self._tasks[index], text=title)
        logger.debug("Edited task %s", task_id)
        self._persist()
        return True

    def _index_of(self, task_id: str) -> Optional[int]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return None

    def _allocate_id(self, now: datetime) -> str:
        """Millisecond timestamp ids, bumped so they always increase."""
        candidate = int(now.timestamp() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return str(candidate)

    def _persist(self) -> None:
        if self._storage is not None:
            self._storage.save(self._tasks)


def _numeric_id(task_id: str) -> int:
    try:
        return int(task_id)
    except ValueError:
        return 0
