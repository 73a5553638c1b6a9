"""CSV export of a task list."""
from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .models import Task
from .queries import format_deadline, is_overdue

CSV_HEADERS = ["Task", "Description", "Priority", "Status", "Deadline", "Created"]


def export_as_csv(path: Path | str, tasks: Iterable[Task], now: datetime) -> None:
    """Export tasks with display-ready status and deadline columns."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADERS)
        for task in tasks:
            writer.writerow([
                task.text,
                task.description or "",
                task.priority.label,
                task_status(task, now),
                format_deadline(task.deadline, now) if task.deadline else "",
                task.created_at.strftime("%Y-%m-%d %H:%M"),
            ])


def task_status(task: Task, now: datetime) -> str:
    if task.completed:
        return "Completed"
    if is_overdue(task, now):
        return "Overdue"
    return "Active"
