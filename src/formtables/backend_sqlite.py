from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from sqlalchemy import (
    Column,
    Connection,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    inspect,
    select,
    text,
)
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from formtables.errors import BackendError
from formtables.statement import TableStatement
from formtables.utils import coerce_value

logger = logging.getLogger(__name__)

COLUMN_TYPES = {
    "string": String,
    "int": Integer,
    "text": Text,
    "float": Float,
}


def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _storage_type(column: Column) -> str:
    if isinstance(column.type, Integer):
        return "int"
    if isinstance(column.type, Float):
        return "float"
    return "string"


class SQLiteBackend:
    def __init__(self, db_path: Path) -> None:
        self._engine = create_engine(f"sqlite:///{db_path}", future=True)
        event.listen(self._engine, "connect", _enable_foreign_keys)

    def ping(self) -> None:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise BackendError("ping", str(exc)) from exc

    def list_tables(self) -> list[str]:
        try:
            return inspect(self._engine).get_table_names()
        except SQLAlchemyError as exc:
            raise BackendError("list_tables", str(exc)) from exc

    def create_or_update_table(self, statement: TableStatement) -> None:
        for spec in statement.columns:
            if spec.type not in COLUMN_TYPES:
                raise BackendError(
                    "create_or_update_table",
                    f"column '{spec.name}' of table '{statement.table}' has no storage type",
                )
            if spec.name == "id":
                raise BackendError(
                    "create_or_update_table",
                    f"column name 'id' is reserved (table '{statement.table}')",
                )
        try:
            with self._engine.begin() as conn:
                if statement.table in inspect(conn).get_table_names():
                    self._add_missing_columns(conn, statement)
                else:
                    self._create_table(conn, statement)
        except SQLAlchemyError as exc:
            raise BackendError("create_or_update_table", str(exc)) from exc

    def _create_table(self, conn: Connection, statement: TableStatement) -> None:
        metadata = MetaData()
        for fk in statement.foreign_keys:
            if fk.table != statement.table:
                Table(fk.table, metadata, autoload_with=conn)

        links = {fk.column: fk for fk in statement.foreign_keys}
        columns: list[Column] = [Column("id", Integer, primary_key=True, autoincrement=True)]
        for spec in statement.columns:
            args: list[Any] = []
            if spec.name in links:
                args.append(ForeignKey(f"{links[spec.name].table}.id", ondelete="CASCADE"))
            columns.append(
                Column(
                    spec.name,
                    COLUMN_TYPES[spec.type],
                    *args,
                    nullable="required" not in spec.attributes,
                    unique="unique" in spec.attributes,
                )
            )
        Table(statement.table, metadata, *columns).create(conn)
        logger.info("Created table %s", statement.table)

    def _add_missing_columns(self, conn: Connection, statement: TableStatement) -> None:
        present = {column["name"] for column in inspect(conn).get_columns(statement.table)}
        links = {fk.column: fk for fk in statement.foreign_keys}
        quote = conn.dialect.identifier_preparer.quote
        for spec in statement.columns:
            if spec.name in present:
                continue
            ddl = (
                f"ALTER TABLE {quote(statement.table)} ADD COLUMN {quote(spec.name)} "
                f"{COLUMN_TYPES[spec.type]().compile(dialect=conn.dialect)}"
            )
            if spec.name in links:
                ddl += f" REFERENCES {quote(links[spec.name].table)}(id) ON DELETE CASCADE"
            conn.execute(text(ddl))
            logger.info("Added column %s.%s", statement.table, spec.name)

    @staticmethod
    def _table(conn: Connection, table: str, operation: str) -> Table:
        try:
            return Table(table, MetaData(), autoload_with=conn)
        except NoSuchTableError as exc:
            raise BackendError(operation, f"table '{table}' does not exist") from exc

    @staticmethod
    def _coerce(table: Table, values: Mapping[str, str], operation: str) -> dict[str, Any]:
        record: dict[str, Any] = {}
        for key, value in values.items():
            column = table.c.get(key)
            if column is None:
                raise BackendError(operation, f"table '{table.name}' has no column '{key}'")
            try:
                record[key] = coerce_value(_storage_type(column), value)
            except ValueError as exc:
                raise BackendError(operation, f"invalid value for {table.name}.{key}: {value!r}") from exc
        return record

    def insert_row(self, table: str, values: Mapping[str, str]) -> int:
        try:
            with self._engine.begin() as conn:
                table_obj = self._table(conn, table, "insert")
                record = self._coerce(table_obj, values, "insert")
                result = conn.execute(table_obj.insert().values(record))
                row_id = int(result.inserted_primary_key[0])
        except SQLAlchemyError as exc:
            raise BackendError("insert", str(exc)) from exc
        logger.info("Inserted row %s #%d", table, row_id)
        return row_id

    def update_row(self, table: str, row_id: int, values: Mapping[str, str]) -> int:
        try:
            with self._engine.begin() as conn:
                table_obj = self._table(conn, table, "update")
                record = self._coerce(table_obj, values, "update")
                result = conn.execute(
                    table_obj.update().where(table_obj.c.id == row_id).values(record)
                )
                return result.rowcount
        except SQLAlchemyError as exc:
            raise BackendError("update", str(exc)) from exc

    def get_row(self, table: str, row_id: int) -> dict[str, Any] | None:
        try:
            with self._engine.connect() as conn:
                table_obj = self._table(conn, table, "search")
                row = (
                    conn.execute(select(table_obj).where(table_obj.c.id == row_id))
                    .mappings()
                    .first()
                )
        except SQLAlchemyError as exc:
            raise BackendError("search", str(exc)) from exc
        return dict(row) if row else None

    def search_rows(self, table: str) -> list[dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                table_obj = self._table(conn, table, "search")
                rows = conn.execute(select(table_obj).order_by(table_obj.c.id)).mappings().all()
        except SQLAlchemyError as exc:
            raise BackendError("search", str(exc)) from exc
        return [dict(row) for row in rows]
