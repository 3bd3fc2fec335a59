from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterator, Mapping

from filelock import FileLock
from tinydb import Query, TinyDB
from tinydb.table import Document

from formtables.errors import BackendError
from formtables.statement import TableStatement
from formtables.utils import coerce_value

logger = logging.getLogger(__name__)

SCHEMA_TABLE = "_tables"
STORAGE_TYPES = {"string", "int", "text", "float"}


class JSONBackend:
    """Tables kept in one TinyDB file.

    Table statements live in the `_tables` table; rows of a form live in a
    TinyDB table of the same name and use the document id as their id.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = FileLock(f"{path}.lock")

    @contextmanager
    def _db(self, operation: str) -> Iterator[TinyDB]:
        with self._lock:
            try:
                db = TinyDB(self._path)
            except (OSError, ValueError) as exc:
                raise BackendError(operation, str(exc)) from exc
            try:
                yield db
            except (OSError, ValueError) as exc:
                raise BackendError(operation, str(exc)) from exc
            finally:
                db.close()

    @staticmethod
    def _schema(db: TinyDB, table: str, operation: str) -> dict[str, Any]:
        record = db.table(SCHEMA_TABLE).get(Query().table == table)
        if not record:
            raise BackendError(operation, f"table '{table}' does not exist")
        return record

    @staticmethod
    def _to_row(doc: Document) -> dict[str, Any]:
        return {"id": doc.doc_id, **doc}

    def ping(self) -> None:
        with self._db("ping") as db:
            db.tables()

    def list_tables(self) -> list[str]:
        with self._db("list_tables") as db:
            return [record["table"] for record in db.table(SCHEMA_TABLE).all()]

    def create_or_update_table(self, statement: TableStatement) -> None:
        for spec in statement.columns:
            if spec.type not in STORAGE_TYPES:
                raise BackendError(
                    "create_or_update_table",
                    f"column '{spec.name}' of table '{statement.table}' has no storage type",
                )
            if spec.name == "id":
                raise BackendError(
                    "create_or_update_table",
                    f"column name 'id' is reserved (table '{statement.table}')",
                )
        with self._db("create_or_update_table") as db:
            schemas = db.table(SCHEMA_TABLE)
            for fk in statement.foreign_keys:
                if fk.table != statement.table and not schemas.contains(Query().table == fk.table):
                    raise BackendError(
                        "create_or_update_table",
                        f"foreign key {statement.table}.{fk.column} references missing table '{fk.table}'",
                    )
            schemas.upsert(asdict(statement), Query().table == statement.table)
        logger.info("Stored table statement %s", statement.table)

    def _record(
        self, db: TinyDB, table: str, values: Mapping[str, str], operation: str
    ) -> dict[str, Any]:
        schema = self._schema(db, table, operation)
        column_types = {column["name"]: column["type"] for column in schema["columns"]}
        record: dict[str, Any] = {}
        for key, value in values.items():
            if key not in column_types:
                raise BackendError(operation, f"table '{table}' has no column '{key}'")
            try:
                record[key] = coerce_value(column_types[key], value)
            except ValueError as exc:
                raise BackendError(operation, f"invalid value for {table}.{key}: {value!r}") from exc

        for fk in schema.get("foreign_keys") or []:
            target_id = record.get(fk["column"])
            if target_id is not None and not db.table(fk["table"]).contains(doc_id=target_id):
                raise BackendError(
                    operation, f"{table}.{fk['column']} references missing row {fk['table']} #{target_id}"
                )
        return record

    def insert_row(self, table: str, values: Mapping[str, str]) -> int:
        with self._db("insert") as db:
            record = self._record(db, table, values, "insert")
            row_id = db.table(table).insert(record)
        logger.info("Inserted row %s #%d", table, row_id)
        return row_id

    def update_row(self, table: str, row_id: int, values: Mapping[str, str]) -> int:
        with self._db("update") as db:
            record = self._record(db, table, values, "update")
            rows = db.table(table)
            if not rows.contains(doc_id=row_id):
                return 0
            return len(rows.update(record, doc_ids=[row_id]))

    def get_row(self, table: str, row_id: int) -> dict[str, Any] | None:
        with self._db("search") as db:
            self._schema(db, table, "search")
            doc = db.table(table).get(doc_id=row_id)
        return self._to_row(doc) if doc else None

    def search_rows(self, table: str) -> list[dict[str, Any]]:
        with self._db("search") as db:
            self._schema(db, table, "search")
            return [self._to_row(doc) for doc in db.table(table).all()]
