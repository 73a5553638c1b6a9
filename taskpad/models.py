"""Data models shared across the task list application."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class FilterMode(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class Task:
    """A single to-do item.

    Instances are immutable; the store swaps in a modified copy (same `id`)
    whenever a task is toggled or edited.
    """

    id: str
    text: str
    created_at: datetime
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    description: Optional[str] = None
    deadline: Optional[datetime] = None

    def has_description(self) -> bool:
        return self.description is not None

    def has_deadline(self) -> bool:
        return self.deadline is not None


@dataclass(frozen=True, slots=True)
class Counts:
    active: int
    completed: int
    total: int
