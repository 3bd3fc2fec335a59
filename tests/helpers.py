from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from formtables.errors import BackendError

AUTHOR_FIELDS: list[dict[str, Any]] = [
    {"name": "name", "label": "Name", "fieldtype": "string", "attributes": "required"},
    {"name": "email", "label": "Email", "fieldtype": "email", "attributes": ""},
    {"name": "bio", "label": "Biography", "fieldtype": "text", "attributes": ""},
]

BOOK_FIELDS: list[dict[str, Any]] = [
    {"name": "title", "label": "Title", "fieldtype": "string", "attributes": "required"},
    {
        "name": "author",
        "label": "Author",
        "fieldtype": "int",
        "attributes": "required",
        "min_value": "1",
        "max_value": "",
        "linked_table": "author",
    },
    {"name": "price", "label": "Price", "fieldtype": "float", "min_value": "0", "max_value": "500"},
    {"name": "released", "label": "Released", "fieldtype": "date", "attributes": ""},
    {
        "name": "format",
        "label": "Format",
        "fieldtype": "select",
        "attributes": "",
        "select_options": "hardcover\npaperback\nebook",
    },
    {
        "name": "genres",
        "label": "Genres",
        "fieldtype": "multi_display_select",
        "attributes": "",
        "select_options": "fiction\nhistory\nscience",
    },
    {
        "name": "audience",
        "label": "Audience",
        "fieldtype": "single_display_select",
        "attributes": "",
        "select_options": "kids\nadults",
    },
    {"name": "in_print", "label": "In print", "fieldtype": "check", "attributes": ""},
    {"name": "notes", "label": "Notes", "fieldtype": "text", "attributes": "hidden"},
]


def write_form(forms_dir: Path, name: str, fields: list[dict[str, Any]] | str) -> Path:
    path = forms_dir / f"{name}.f8p"
    content = fields if isinstance(fields, str) else json.dumps(fields)
    path.write_text(content, encoding="utf-8")
    return path


class FakeBackend:
    """Records every call; no storage."""

    def __init__(self, tables: list[str] | None = None, fail_on: str | None = None) -> None:
        self.tables = list(tables or [])
        self.fail_on = fail_on
        self.statements: list[Any] = []
        self.list_calls = 0
        self.pings = 0

    def ping(self) -> None:
        self.pings += 1

    def list_tables(self) -> list[str]:
        self.list_calls += 1
        return list(self.tables)

    def create_or_update_table(self, statement: Any) -> None:
        if statement.table == self.fail_on:
            raise BackendError("create_or_update_table", f"refused {statement.table}")
        self.statements.append(statement)
        if statement.table not in self.tables:
            self.tables.append(statement.table)
