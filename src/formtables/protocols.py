from __future__ import annotations

from typing import Any, Mapping, Protocol

from formtables.statement import TableStatement


class TableBackend(Protocol):
    def ping(self) -> None: ...

    def list_tables(self) -> list[str]: ...

    def create_or_update_table(self, statement: TableStatement) -> None: ...

    def insert_row(self, table: str, values: Mapping[str, str]) -> int: ...

    def update_row(self, table: str, row_id: int, values: Mapping[str, str]) -> int: ...

    def get_row(self, table: str, row_id: int) -> dict[str, Any] | None: ...

    def search_rows(self, table: str) -> list[dict[str, Any]]: ...


class SubmittedValues(Protocol):
    """Multi-valued form data, e.g. Starlette's FormData."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def getlist(self, key: str) -> list[Any]: ...
