"""UI-only interaction state sitting between the widgets and the task store.

Each axis (inline edit, detail view, filter, new-task draft) is tracked on
its own. The edit and detail axes are small tagged variants so that, for
example, an edit session without a task id cannot exist.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Union

from . import queries
from .models import Counts, FilterMode, Priority, Task
from .store import TaskStore


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Editing:
    task_id: str
    text: str


@dataclass(frozen=True, slots=True)
class Hidden:
    pass


@dataclass(frozen=True, slots=True)
class Shown:
    task_id: str


EditState = Union[Idle, Editing]
DetailState = Union[Hidden, Shown]


@dataclass(frozen=True, slots=True)
class Draft:
    """Fields of the task being composed; `deadline` is the raw input string."""

    text: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM
    deadline: str = ""


class TodoSession:
    """Entry points the presentation layer calls into.

    The detail axis remembers only the id of the shown task and reads the
    task itself from the store, so toggling from the detail view can never
    leave a stale copy behind.
    """

    def __init__(self, store: TaskStore) -> None:
        self.store = store
        self.edit: EditState = Idle()
        self.detail: DetailState = Hidden()
        self.filter_mode = FilterMode.ALL
        self.draft = Draft()

    # --- Draft axis -----------------------------------------------------------

    def update_draft(self, **fields) -> Draft:
        if "priority" in fields:
            fields["priority"] = Priority(fields["priority"])
        self.draft = replace(self.draft, **fields)
        return self.draft

    def clear_draft_deadline(self) -> None:
        self.draft = replace(self.draft, deadline="")

    def on_create(
        self,
        text: str,
        description: str = "",
        priority: Priority | str = Priority.MEDIUM,
        deadline: str = "",
    ) -> Optional[Task]:
        task = self.store.create(text, description, priority, deadline)
        if task is not None:
            self.draft = Draft()
        return task

    def on_submit_draft(self) -> Optional[Task]:
        draft = self.draft
        return self.on_create(draft.text, draft.description, draft.priority, draft.deadline)

    # --- Task actions ---------------------------------------------------------

    def on_toggle(self, task_id: str) -> bool:
        return self.store.toggle(task_id)

    def on_delete(self, task_id: str) -> bool:
        removed = self.store.remove(task_id)
        if removed:
            if isinstance(self.edit, Editing) and self.edit.task_id == task_id:
                self.edit = Idle()
            if isinstance(self.detail, Shown) and self.detail.task_id == task_id:
                self.detail = Hidden()
        return removed

    # --- Edit axis ------------------------------------------------------------

    def on_start_edit(self, task_id: str, text: str) -> None:
        """Begin editing `task_id`; an unfinished session is replaced and its text dropped."""
        self.edit = Editing(task_id=task_id, text=text)

    def update_edit_text(self, text: str) -> None:
        if isinstance(self.edit, Editing):
            self.edit = replace(self.edit, text=text)

    def on_commit_edit(self) -> bool:
        edit = self.edit
        self.edit = Idle()
        if not isinstance(edit, Editing):
            return False
        return self.store.edit_text(edit.task_id, edit.text)

    def on_cancel_edit(self) -> None:
        self.edit = Idle()

    def editing_id(self) -> Optional[str]:
        return self.edit.task_id if isinstance(self.edit, Editing) else None

    # --- Detail axis ----------------------------------------------------------

    def on_open_detail(self, task_id: str) -> bool:
        if self.store.get(task_id) is None:
            return False
        self.detail = Shown(task_id=task_id)
        return True

    def on_close_detail(self) -> None:
        self.detail = Hidden()

    def on_toggle_from_detail(self) -> Optional[Task]:
        task = self.detail_task()
        if task is None:
            return None
        self.store.toggle(task.id)
        return self.store.get(task.id)

    def on_edit_from_detail(self) -> bool:
        task = self.detail_task()
        if task is None:
            return False
        self.on_start_edit(task.id, task.text)
        self.detail = Hidden()
        return True

    def detail_task(self) -> Optional[Task]:
        """The task shown in the detail view, read from the store."""
        if not isinstance(self.detail, Shown):
            return None
        task = self.store.get(self.detail.task_id)
        if task is None:
            self.detail = Hidden()
        return task

    # --- Filter axis ----------------------------------------------------------

    def on_filter_change(self, mode: FilterMode | str) -> None:
        self.filter_mode = FilterMode(mode)

    # --- Read-only accessors --------------------------------------------------

    def get_filtered_list(self) -> List[Task]:
        return queries.filtered(self.store.tasks, self.filter_mode)

    def get_counts(self) -> Counts:
        return queries.counts(self.store.tasks)

    def get_empty_message(self) -> str:
        return queries.empty_message(self.filter_mode)

    def is_overdue(self, task_id: str, now: Optional[datetime] = None) -> bool:
        task = self.store.get(task_id)
        if task is None:
            return False
        return queries.is_overdue(task, now or datetime.now())

    def format_deadline(self, task_id: str, now: Optional[datetime] = None) -> Optional[str]:
        task = self.store.get(task_id)
        if task is None or task.deadline is None:
            return None
        return queries.format_deadline(task.deadline, now or datetime.now())
