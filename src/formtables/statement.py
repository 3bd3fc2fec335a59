from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from formtables.descriptors import Field, IntField, table_name

ON_DELETE_DELETE = "on_delete_delete"

STRING_LIKE_TYPES = {
    "email",
    "select",
    "string",
    "date",
    "datetime",
    "multi_display_select",
    "single_display_select",
    "check",
}


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    type: str
    attributes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ForeignKeySpec:
    column: str
    table: str
    on_delete: str = ON_DELETE_DELETE


@dataclass(frozen=True)
class TableStatement:
    table: str
    columns: tuple[ColumnSpec, ...]
    foreign_keys: tuple[ForeignKeySpec, ...] = ()

    def to_text(self) -> str:
        lines = [f"table: {self.table}", "fields:"]
        for column in self.columns:
            parts = [column.name, column.type, *column.attributes]
            lines.append(" ".join(part for part in parts if part))
        lines.append("::")
        if self.foreign_keys:
            lines.append("foreign_keys:")
            for fk in self.foreign_keys:
                lines.append(f"{fk.column} {fk.table} {fk.on_delete}")
            lines.append("::")
        return "\n".join(lines) + "\n"


def storage_type(fieldtype: str) -> str:
    if fieldtype in STRING_LIKE_TYPES:
        return "string"
    if fieldtype in {"int", "text", "float"}:
        return fieldtype
    return ""


def column_attributes(attributes: Iterable[str]) -> tuple[str, ...]:
    # hidden only affects rendering
    return tuple(attr for attr in attributes if attr != "hidden")


def build_statement(form_name: str, fields: Iterable[Field]) -> TableStatement:
    columns: list[ColumnSpec] = []
    foreign_keys: list[ForeignKeySpec] = []
    for field in fields:
        columns.append(
            ColumnSpec(
                name=field.name,
                type=storage_type(field.fieldtype),
                attributes=column_attributes(field.attributes),
            )
        )
        if isinstance(field, IntField) and field.linked_table:
            foreign_keys.append(ForeignKeySpec(column=field.name, table=field.linked_table))
    return TableStatement(
        table=table_name(form_name),
        columns=tuple(columns),
        foreign_keys=tuple(foreign_keys),
    )
