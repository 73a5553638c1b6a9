"""Main PyQt application entry point."""
from __future__ import annotations

import logging
import sys
import traceback
from datetime import datetime
from typing import Dict, List, Optional

from PyQt6.QtCore import QDateTime, QPoint, QTimer, Qt, pyqtSignal
from PyQt6.QtGui import QAction, QBrush, QColor, QKeySequence
from PyQt6.QtWidgets import (
    QAbstractItemDelegate,
    QAbstractItemView,
    QApplication,
    QButtonGroup,
    QCheckBox,
    QDateTimeEdit,
    QDialog,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTabBar,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from .config import APP_NAME, load_settings
from .exporters import export_as_csv
from .logging_setup import setup_logging
from .models import FilterMode, Priority, Task
from .queries import format_created, format_deadline, is_overdue
from .session import TodoSession
from .storage import JsonFileSlot, TaskStorage
from .store import TaskStore

logger = logging.getLogger(__name__)

TASK_HEADERS = ["", "Task", "Priority", "Deadline", "Created"]
DONE_COL, TEXT_COL, PRIORITY_COL, DEADLINE_COL, CREATED_COL = range(len(TASK_HEADERS))
FILTER_TABS = [(FilterMode.ALL, "All"), (FilterMode.ACTIVE, "Active"), (FilterMode.COMPLETED, "Completed")]

PRIORITY_COLORS: Dict[Priority, QColor] = {
    Priority.HIGH: QColor("#c62828"),
    Priority.MEDIUM: QColor("#f9a825"),
    Priority.LOW: QColor("#2e7d32"),
}
OVERDUE_BACKGROUND = QColor("#fdecea")
COMPLETED_BACKGROUND = QColor("#f5f5f5")
COMPLETED_FOREGROUND = QColor("#9e9e9e")
_STATUS_TIMEOUT_MS = 3000
_TASK_ID_ROLE = Qt.ItemDataRole.UserRole


class TaskTableWidget(QTableWidget):
    """List of tasks with a checkable done column and inline title editing.

    The widget never keeps task state of its own: every user action goes
    through the session, after which `tasks_changed` asks the owner to
    redraw from the store.
    """

    tasks_changed = pyqtSignal()
    detail_requested = pyqtSignal(str)

    def __init__(self, session: TodoSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(0, len(TASK_HEADERS), parent)
        self.session = session
        self._block_cell = False
        self._setup_table()

    def _setup_table(self) -> None:
        self.setHorizontalHeaderLabels(TASK_HEADERS)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)
        self.cellChanged.connect(self._handle_cell_changed)
        self.cellDoubleClicked.connect(self._handle_double_click)
        self.verticalHeader().setVisible(False)

        header = self.horizontalHeader()
        header.setSectionResizeMode(DONE_COL, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(TEXT_COL, QHeaderView.ResizeMode.Stretch)
        for col in (PRIORITY_COL, DEADLINE_COL, CREATED_COL):
            header.setSectionResizeMode(col, QHeaderView.ResizeMode.ResizeToContents)

    def _make_cell(self, text: str = "", *, editable: bool = False) -> QTableWidgetItem:
        item = QTableWidgetItem(text)
        flags = Qt.ItemFlag.ItemIsSelectable | Qt.ItemFlag.ItemIsEnabled
        if editable:
            flags |= Qt.ItemFlag.ItemIsEditable
        item.setFlags(flags)
        return item

    def set_tasks(self, tasks: List[Task], now: datetime) -> None:
        self._block_cell = True
        self.setRowCount(0)
        for task in tasks:
            row = self.rowCount()
            self.insertRow(row)

            done_item = self._make_cell()
            done_item.setFlags(done_item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            done_item.setCheckState(Qt.CheckState.Checked if task.completed else Qt.CheckState.Unchecked)
            done_item.setData(_TASK_ID_ROLE, task.id)
            self.setItem(row, DONE_COL, done_item)

            title = task.text + ("  (OVERDUE)" if is_overdue(task, now) else "")
            text_item = self._make_cell(title, editable=True)
            text_item.setToolTip(task.description or "")
            font = text_item.font()
            font.setStrikeOut(task.completed)
            text_item.setFont(font)
            self.setItem(row, TEXT_COL, text_item)

            priority_item = self._make_cell(task.priority.label)
            priority_item.setForeground(QBrush(PRIORITY_COLORS[task.priority]))
            self.setItem(row, PRIORITY_COL, priority_item)

            deadline = format_deadline(task.deadline, now) if task.deadline else ""
            self.setItem(row, DEADLINE_COL, self._make_cell(deadline))
            self.setItem(row, CREATED_COL, self._make_cell(format_created(task.created_at)))
            self._recolor_row(row, task, now)
        self._block_cell = False

    def _recolor_row(self, row: int, task: Task, now: datetime) -> None:
        """Tint overdue rows red and grey out completed ones."""
        background: Optional[QColor] = None
        if is_overdue(task, now):
            background = OVERDUE_BACKGROUND
        elif task.completed:
            background = COMPLETED_BACKGROUND
        for col in range(self.columnCount()):
            item = self.item(row, col)
            if item is None:
                continue
            if background is not None:
                item.setBackground(QBrush(background))
            if task.completed and col != PRIORITY_COL:
                item.setForeground(QBrush(COMPLETED_FOREGROUND))

    def task_id_at(self, row: int) -> Optional[str]:
        item = self.item(row, DONE_COL)
        if item is None:
            return None
        value = item.data(_TASK_ID_ROLE)
        return str(value) if value is not None else None

    def row_of(self, task_id: str) -> Optional[int]:
        for row in range(self.rowCount()):
            if self.task_id_at(row) == task_id:
                return row
        return None

    def start_editing(self, task_id: str) -> None:
        """Open the inline editor on the title cell of `task_id`."""
        row = self.row_of(task_id)
        task = self.session.store.get(task_id)
        if row is None or task is None:
            return
        self.session.on_start_edit(task_id, task.text)
        item = self.item(row, TEXT_COL)
        self._block_cell = True
        item.setText(task.text)
        self._block_cell = False
        self.setCurrentItem(item)
        self.editItem(item)

    def _handle_cell_changed(self, row: int, column: int) -> None:
        if self._block_cell or column != DONE_COL:
            return
        task_id = self.task_id_at(row)
        if task_id is None:
            return
        self.session.on_toggle(task_id)
        self._emit_tasks_changed()

    def _handle_double_click(self, row: int, column: int) -> None:
        task_id = self.task_id_at(row)
        if task_id is None:
            return
        if column == TEXT_COL:
            self.start_editing(task_id)
        elif column != DONE_COL:
            self.detail_requested.emit(task_id)

    def closeEditor(self, editor, hint):  # type: ignore[override]
        """Finish the inline edit: Escape cancels, anything else commits."""
        super().closeEditor(editor, hint)
        task_id = self.session.editing_id()
        if task_id is None:
            return
        if hint == QAbstractItemDelegate.EndEditHint.RevertModelCache:
            self.session.on_cancel_edit()
        else:
            row = self.row_of(task_id)
            item = self.item(row, TEXT_COL) if row is not None else None
            if item is not None:
                self.session.update_edit_text(item.text())
            self.session.on_commit_edit()
        self._emit_tasks_changed()

    def _emit_tasks_changed(self) -> None:
        # Rebuilding rows from inside an item/editor callback is unsafe; redraw on the next loop turn.
        QTimer.singleShot(0, self.tasks_changed.emit)

    def _show_context_menu(self, position: QPoint) -> None:
        """Provide quick row actions (details/edit/toggle/delete)."""
        index = self.indexAt(position)
        if not index.isValid():
            return
        task_id = self.task_id_at(index.row())
        task = self.session.store.get(task_id) if task_id else None
        if task is None:
            return
        menu = QMenu(self)
        detail_action = menu.addAction("View details")
        edit_action = menu.addAction("Edit")
        toggle_action = menu.addAction("Mark as Active" if task.completed else "Mark as Complete")
        menu.addSeparator()
        delete_action = menu.addAction("Delete")
        action = menu.exec(self.viewport().mapToGlobal(position))
        if action == detail_action:
            self.detail_requested.emit(task.id)
        elif action == edit_action:
            self.start_editing(task.id)
        elif action == toggle_action:
            self.session.on_toggle(task.id)
            self._emit_tasks_changed()
        elif action == delete_action:
            self.session.on_delete(task.id)
            self._emit_tasks_changed()


class TaskDetailDialog(QDialog):
    """Read-focused view of a single task."""

    tasks_changed = pyqtSignal()
    edit_requested = pyqtSignal(str)

    def __init__(self, session: TodoSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.session = session
        self.setWindowTitle("Task Details")
        self.setModal(True)

        self.title_label = QLabel()
        self.title_label.setWordWrap(True)
        self.description_label = QLabel()
        self.description_label.setWordWrap(True)
        self.description_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.priority_label = QLabel()
        self.status_label = QLabel()
        self.deadline_label = QLabel()
        self.created_label = QLabel()

        form = QFormLayout()
        form.addRow("Title", self.title_label)
        form.addRow("Description", self.description_label)
        form.addRow("Priority", self.priority_label)
        form.addRow("Status", self.status_label)
        form.addRow("Deadline", self.deadline_label)
        form.addRow("Created", self.created_label)
        self._form = form

        self.toggle_button = QPushButton()
        self.toggle_button.clicked.connect(self._handle_toggle)
        edit_button = QPushButton("Edit")
        edit_button.clicked.connect(self._handle_edit)
        close_button = QPushButton("Close")
        close_button.clicked.connect(self.reject)

        buttons = QHBoxLayout()
        buttons.addWidget(self.toggle_button)
        buttons.addWidget(edit_button)
        buttons.addWidget(close_button)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(buttons)

        self.finished.connect(lambda _result: self.session.on_close_detail())
        self.refresh()

    def refresh(self) -> None:
        task = self.session.detail_task()
        if task is None:
            return
        now = datetime.now()
        font = self.title_label.font()
        font.setStrikeOut(task.completed)
        self.title_label.setFont(font)
        self.title_label.setText(task.text)

        self.description_label.setText(task.description or "")
        self._form.setRowVisible(self.description_label, task.has_description())

        self.priority_label.setText(task.priority.label)
        self.priority_label.setStyleSheet(f"color: {PRIORITY_COLORS[task.priority].name()};")
        self.status_label.setText("Completed" if task.completed else "Active")

        if task.deadline is not None:
            label = format_deadline(task.deadline, now)
            if is_overdue(task, now):
                label += "  OVERDUE"
            self.deadline_label.setText(label)
        self._form.setRowVisible(self.deadline_label, task.has_deadline())

        self.created_label.setText(task.created_at.strftime("%Y-%m-%d %H:%M:%S"))
        self.toggle_button.setText("Mark as Active" if task.completed else "Mark as Complete")

    def _handle_toggle(self) -> None:
        if self.session.on_toggle_from_detail() is None:
            self.reject()
            return
        self.refresh()
        self.tasks_changed.emit()

    def _handle_edit(self) -> None:
        task = self.session.detail_task()
        if task is None or not self.session.on_edit_from_detail():
            self.reject()
            return
        self.accept()
        self.edit_requested.emit(task.id)


class MainWindow(QMainWindow):
    """Primary window: new-task form, counts, filter tabs and the task list."""

    def __init__(self, session: TodoSession) -> None:
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.session = session
        self.table = TaskTableWidget(session)
        self.table.tasks_changed.connect(self.refresh)
        self.table.detail_requested.connect(self.open_detail)
        self.detail_dialog: Optional[TaskDetailDialog] = None
        self._build_layout()
        self._build_menu()
        self._load_draft()
        self.refresh()
        self.resize(720, 640)

    def _build_layout(self) -> None:
        container = QWidget()
        layout = QVBoxLayout(container)
        layout.addLayout(self._build_draft_form())

        counts_row = QHBoxLayout()
        self.active_label = QLabel()
        self.completed_label = QLabel()
        self.total_label = QLabel()
        for label in (self.active_label, self.completed_label, self.total_label):
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            counts_row.addWidget(label)
        layout.addLayout(counts_row)

        self.filter_tabs = QTabBar()
        for _mode, title in FILTER_TABS:
            self.filter_tabs.addTab(title)
        self.filter_tabs.currentChanged.connect(self._handle_filter_changed)
        layout.addWidget(self.filter_tabs)

        self.empty_label = QLabel()
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.empty_label)
        layout.addWidget(self.table)
        self.setCentralWidget(container)

    def _build_draft_form(self) -> QFormLayout:
        """Inputs for composing a new task; every edit is mirrored into the session draft."""
        form = QFormLayout()

        title_row = QHBoxLayout()
        self.title_edit = QLineEdit()
        self.title_edit.setPlaceholderText("What needs to be done?")
        self.title_edit.textChanged.connect(lambda text: self.session.update_draft(text=text))
        self.title_edit.returnPressed.connect(self.add_task)
        add_button = QPushButton("Add")
        add_button.clicked.connect(self.add_task)
        title_row.addWidget(self.title_edit)
        title_row.addWidget(add_button)
        form.addRow(title_row)

        priority_row = QHBoxLayout()
        self.priority_group = QButtonGroup(self)
        self.priority_group.setExclusive(True)
        self.priority_buttons: Dict[Priority, QPushButton] = {}
        for priority in Priority:
            button = QPushButton(priority.label)
            button.setCheckable(True)
            button.clicked.connect(lambda _checked, p=priority: self.session.update_draft(priority=p))
            self.priority_group.addButton(button)
            self.priority_buttons[priority] = button
            priority_row.addWidget(button)
        priority_row.addStretch(1)
        form.addRow("Priority:", priority_row)

        deadline_row = QHBoxLayout()
        self.deadline_check = QCheckBox()
        self.deadline_edit = QDateTimeEdit()
        self.deadline_edit.setCalendarPopup(True)
        self.deadline_edit.setDisplayFormat("yyyy-MM-dd HH:mm")
        self.deadline_check.toggled.connect(self._handle_deadline_toggled)
        self.deadline_edit.dateTimeChanged.connect(self._sync_draft_deadline)
        deadline_row.addWidget(self.deadline_check)
        deadline_row.addWidget(self.deadline_edit, 1)
        form.addRow("Deadline:", deadline_row)

        self.description_edit = QPlainTextEdit()
        self.description_edit.setPlaceholderText("Add a description (optional)...")
        self.description_edit.setMaximumHeight(64)
        self.description_edit.textChanged.connect(
            lambda: self.session.update_draft(description=self.description_edit.toPlainText())
        )
        form.addRow("Description:", self.description_edit)
        return form

    def _build_menu(self) -> None:
        menu = self.menuBar()
        file_menu = menu.addMenu("File")

        export_action = QAction("Export CSV...", self)
        export_action.triggered.connect(self.action_export)
        file_menu.addAction(export_action)

        file_menu.addSeparator()
        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def _load_draft(self) -> None:
        """Push the session draft back into the form widgets."""
        draft = self.session.draft
        self.title_edit.setText(draft.text)
        self.description_edit.setPlainText(draft.description)
        self.priority_buttons[draft.priority].setChecked(True)
        has_deadline = bool(draft.deadline)
        self.deadline_check.setChecked(has_deadline)
        self.deadline_edit.setEnabled(has_deadline)
        if not has_deadline:
            self.deadline_edit.setDateTime(QDateTime.currentDateTime())

    def _handle_deadline_toggled(self, checked: bool) -> None:
        self.deadline_edit.setEnabled(checked)
        if checked:
            self._sync_draft_deadline()
        else:
            self.session.clear_draft_deadline()

    def _sync_draft_deadline(self, *_args) -> None:
        if not self.deadline_check.isChecked():
            return
        value = self.deadline_edit.dateTime().toPyDateTime()
        self.session.update_draft(deadline=value.isoformat(timespec="minutes"))

    def _handle_filter_changed(self, index: int) -> None:
        mode, _title = FILTER_TABS[index]
        self.session.on_filter_change(mode)
        self.refresh()

    def add_task(self) -> None:
        task = self.session.on_submit_draft()
        if task is None:
            return
        self._load_draft()
        self.refresh()
        self.statusBar().showMessage(f"Added \"{task.text}\"", _STATUS_TIMEOUT_MS)

    def open_detail(self, task_id: str) -> None:
        if not self.session.on_open_detail(task_id):
            return
        dialog = TaskDetailDialog(self.session, self)
        dialog.tasks_changed.connect(self.refresh)
        dialog.edit_requested.connect(self._edit_after_detail)
        self.detail_dialog = dialog
        dialog.exec()
        self.detail_dialog = None

    def _edit_after_detail(self, task_id: str) -> None:
        self.refresh()
        self.table.start_editing(task_id)

    def refresh(self) -> None:
        """Redraw counts and the visible list from the store."""
        now = datetime.now()
        tasks = self.session.get_filtered_list()
        self.table.set_tasks(tasks, now)

        counts = self.session.get_counts()
        self.active_label.setText(f"{counts.active} active")
        self.completed_label.setText(f"{counts.completed} completed")
        self.total_label.setText(f"{counts.total} total")

        self.empty_label.setText(self.session.get_empty_message())
        self.empty_label.setVisible(not tasks)
        self.table.setVisible(bool(tasks))

    def action_export(self) -> None:
        """Export the currently visible tasks to CSV."""
        path, _ = QFileDialog.getSaveFileName(self, "Export tasks", filter="CSV Files (*.csv)")
        if not path:
            return
        export_as_csv(path, self.session.get_filtered_list(), datetime.now())
        self.statusBar().showMessage(f"Exported CSV to {path}", _STATUS_TIMEOUT_MS)


def _report_exception(exc_type, exc_value, exc_tb) -> None:  # pragma: no cover - requires UI
    """Log uncaught errors from Qt slots and show them instead of aborting."""
    logger.error("Unhandled error", exc_info=(exc_type, exc_value, exc_tb))
    message = "".join(traceback.format_exception_only(exc_type, exc_value)).strip()
    QMessageBox.critical(None, APP_NAME, message)


def run() -> None:
    """Entry point used by `python -m taskpad`."""
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    settings = load_settings()
    setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)
    sys.excepthook = _report_exception

    logger.info("Using task storage %s", settings.storage_path)
    store = TaskStore(TaskStorage(JsonFileSlot(settings.storage_path)))
    window = MainWindow(TodoSession(store))
    window.show()
    app.exec()


if __name__ == "__main__":
    run()
