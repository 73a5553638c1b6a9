import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication  # noqa: E402

from taskpad.storage import JsonFileSlot, TaskStorage  # noqa: E402
from taskpad.store import TaskStore  # noqa: E402


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture(scope="session")
def qapp():
    """Provide a shared QApplication for tests that instantiate widgets."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


@pytest.fixture
def clock() -> StepClock:
    return StepClock(datetime(2024, 3, 14, 9, 0, 0))


@pytest.fixture
def storage(tmp_path: Path) -> TaskStorage:
    return TaskStorage(JsonFileSlot(tmp_path / "todos.json"))


@pytest.fixture
def store(storage: TaskStorage, clock: StepClock) -> TaskStore:
    return TaskStore(storage, clock=clock)
