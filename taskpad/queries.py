"""Derived views over the task collection.

Everything here is a pure function of its arguments: filtered lists, counts
and overdue flags are recomputed from the current snapshot on demand.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .models import Counts, FilterMode, Task

logger = logging.getLogger(__name__)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

EMPTY_MESSAGES = {
    FilterMode.ALL: "No tasks yet. Add one above!",
    FilterMode.ACTIVE: "No active tasks",
    FilterMode.COMPLETED: "No completed tasks yet",
}


def filtered(tasks: Iterable[Task], mode: FilterMode) -> List[Task]:
    """Return the tasks visible under `mode`, keeping source order."""
    mode = FilterMode(mode)
    if mode is FilterMode.ACTIVE:
        return [task for task in tasks if not task.completed]
    if mode is FilterMode.COMPLETED:
        return [task for task in tasks if task.completed]
    return list(tasks)


def counts(tasks: Iterable[Task]) -> Counts:
    task_list = list(tasks)
    completed = sum(1 for task in task_list if task.completed)
    return Counts(active=len(task_list) - completed, completed=completed, total=len(task_list))


def is_overdue(task: Task, now: datetime) -> bool:
    """A task is overdue when it has a deadline in the past and is still open."""
    if task.deadline is None or task.completed:
        return False
    return now > task.deadline


def format_deadline(deadline: datetime, now: datetime) -> str:
    """Render a deadline relative to `now` ("Today at 09:30", "Oct 3, 17:00")."""
    clock = f"{deadline.hour:02d}:{deadline.minute:02d}"
    if deadline.date() == now.date():
        return f"Today at {clock}"
    if deadline.date() == (now + timedelta(hours=24)).date():
        return f"Tomorrow at {clock}"
    return f"{_MONTHS[deadline.month - 1]} {deadline.day}, {clock}"


def format_created(created_at: datetime) -> str:
    return _format_date(created_at.date())


def empty_message(mode: FilterMode) -> str:
    return EMPTY_MESSAGES[FilterMode(mode)]


def parse_deadline(raw: Optional[str]) -> Optional[datetime]:
    """Parse a deadline entered as an ISO-8601 string; bad input means no deadline."""
    text = raw.strip() if raw is not None else ""
    if not text:
        return None
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        logger.warning("Ignoring unparseable deadline %r", raw)
        return None


def to_local_naive(value: datetime) -> datetime:
    """Convert offset-aware timestamps to naive local time so they compare with `datetime.now()`."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _format_date(value: date) -> str:
    return f"{_MONTHS[value.month - 1]} {value.day}, {value.year}"
