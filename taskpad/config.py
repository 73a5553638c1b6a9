"""Application settings."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from PyQt6.QtCore import QStandardPaths

APP_NAME = "Taskpad"
STORAGE_KEY = "todos"
_FALLBACK_DATA_DIR = Path.home() / ".taskpad"


@dataclass(frozen=True, slots=True)
class Settings:
    data_dir: Path
    storage_key: str = STORAGE_KEY
    log_level: int = logging.INFO

    @property
    def storage_path(self) -> Path:
        return self.data_dir / f"{self.storage_key}.json"


def load_settings() -> Settings:
    """Resolve the per-user data directory; call after the application name is set."""
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.AppDataLocation)
    data_dir = Path(location) if location else _FALLBACK_DATA_DIR
    return Settings(data_dir=data_dir)
