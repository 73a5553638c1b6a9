from datetime import datetime, timedelta

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QApplication

from taskpad.app import DONE_COL, OVERDUE_BACKGROUND, TEXT_COL, MainWindow, TaskTableWidget
from taskpad.session import TodoSession
from taskpad.store import TaskStore


def test_table_lists_tasks_and_marks_overdue(qapp: QApplication, store: TaskStore) -> None:
    session = TodoSession(store)
    now = datetime(2024, 3, 14, 12, 0)
    late = session.on_create("Late", deadline=(now - timedelta(hours=1)).isoformat())
    done = session.on_create("Done")
    session.on_toggle(done.id)

    table = TaskTableWidget(session)
    table.set_tasks(session.get_filtered_list(), now)

    assert table.rowCount() == 2
    assert table.task_id_at(0) == done.id
    assert table.item(0, DONE_COL).checkState() == Qt.CheckState.Checked
    assert table.item(1, TEXT_COL).text().startswith("Late")
    assert "OVERDUE" in table.item(1, TEXT_COL).text()
    assert table.item(1, TEXT_COL).background().color() == OVERDUE_BACKGROUND
    assert table.row_of(late.id) == 1


def test_checking_done_cell_toggles_task(qapp: QApplication, store: TaskStore) -> None:
    session = TodoSession(store)
    task = session.on_create("Buy milk")
    table = TaskTableWidget(session)
    table.set_tasks(session.get_filtered_list(), datetime.now())

    table.item(0, DONE_COL).setCheckState(Qt.CheckState.Checked)

    assert store.get(task.id).completed is True


def test_main_window_add_and_filter(qapp: QApplication, store: TaskStore) -> None:
    window = MainWindow(TodoSession(store))
    assert window.empty_label.text() == "No tasks yet. Add one above!"

    window.title_edit.setText("Buy milk")
    window.add_task()

    assert len(store) == 1
    assert window.title_edit.text() == ""
    assert window.table.rowCount() == 1
    assert window.total_label.text() == "1 total"

    window.filter_tabs.setCurrentIndex(2)
    assert window.table.rowCount() == 0
    assert window.empty_label.text() == "No completed tasks yet"
