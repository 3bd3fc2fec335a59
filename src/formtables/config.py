from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

FORM_SUFFIX = ".f8p"
FIELD_TYPES = {
    "string",
    "email",
    "date",
    "datetime",
    "int",
    "float",
    "text",
    "select",
    "multi_display_select",
    "single_display_select",
    "check",
}


class Settings:
    def __init__(self) -> None:
        self.forms_dir = Path(os.getenv("FORMS_DIR", "./forms"))
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        self.sqlite_path = Path(os.getenv("SQLITE_PATH", "./data/app.db"))
        self.json_path = Path(os.getenv("JSON_PATH", "./data/tables.json"))
        self.host = os.getenv("HOST", "0.0.0.0")
        port_value = os.getenv("PORT", "8000")
        try:
            self.port = int(port_value)
        except ValueError:
            self.port = 8000
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


def ensure_dirs(settings: Settings) -> None:
    path = settings.json_path if settings.storage_backend == "json" else settings.sqlite_path
    path.parent.mkdir(parents=True, exist_ok=True)
