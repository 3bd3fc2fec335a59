from __future__ import annotations

from typing import Any

import orjson


def loads_json(value: str | bytes | None) -> Any:
    if not value:
        return None
    return orjson.loads(value)


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_value(column_type: str, value: Any) -> Any:
    """Convert a submitted string to the python value stored for `column_type`.

    Raises ValueError for text that is not a number in a numeric column.
    """
    if column_type not in {"int", "float"}:
        return value
    if value is None or value == "":
        return None
    if column_type == "int":
        return int(value)
    return float(value)
