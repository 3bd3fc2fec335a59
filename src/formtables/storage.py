from __future__ import annotations

from formtables.backend_json import JSONBackend
from formtables.backend_sqlite import SQLiteBackend
from formtables.config import Settings, ensure_dirs
from formtables.protocols import TableBackend


def init_backend(settings: Settings) -> TableBackend:
    ensure_dirs(settings)
    if settings.storage_backend == "json":
        return JSONBackend(settings.json_path)
    return SQLiteBackend(settings.sqlite_path)
