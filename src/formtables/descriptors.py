from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson
from jsonschema import Draft7Validator

from formtables.config import FIELD_TYPES, FORM_SUFFIX
from formtables.errors import DescriptorDecodeError, FormNotFoundError
from formtables.utils import loads_json

logger = logging.getLogger(__name__)

DESCRIPTOR_FILE_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name", "fieldtype"],
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "label": {"type": "string"},
            "fieldtype": {"type": "string"},
            "attributes": {"type": "string"},
            "select_options": {"type": "string"},
            "min_value": {"type": ["string", "number"]},
            "max_value": {"type": ["string", "number"]},
            "linked_table": {"type": "string"},
        },
    },
}

_VALIDATOR = Draft7Validator(DESCRIPTOR_FILE_SCHEMA)


@dataclass(frozen=True)
class Field:
    name: str
    label: str
    fieldtype: str
    attributes: tuple[str, ...] = ()

    @property
    def required(self) -> bool:
        return "required" in self.attributes

    @property
    def hidden(self) -> bool:
        return "hidden" in self.attributes


@dataclass(frozen=True)
class IntField(Field):
    min_value: float | None = None
    max_value: float | None = None
    linked_table: str | None = None


@dataclass(frozen=True)
class FloatField(Field):
    min_value: float | None = None
    max_value: float | None = None


@dataclass(frozen=True)
class InputField(Field):
    """string, email, date and datetime: single-line inputs."""


@dataclass(frozen=True)
class TextAreaField(Field):
    pass


@dataclass(frozen=True)
class ChoiceField(Field):
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class CheckField(Field):
    pass


@dataclass(frozen=True)
class UnknownField(Field):
    pass


def table_name(form_name: str) -> str:
    if form_name.endswith(FORM_SUFFIX):
        return form_name[: -len(FORM_SUFFIX)]
    return form_name


def parse_attributes(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(";") if item.strip())


def parse_options(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(line.rstrip("\r") for line in raw.split("\n") if line.strip())


def _parse_bound(form_name: str, field_name: str, raw: Any) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = raw.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError as exc:
            raise DescriptorDecodeError(
                form_name, f"field '{field_name}' has a non-numeric bound ({text})"
            ) from exc
    if not math.isfinite(value):
        raise DescriptorDecodeError(form_name, f"field '{field_name}' has a non-finite bound ({raw})")
    return value


def parse_field(form_name: str, raw: dict[str, Any]) -> Field:
    name = raw["name"].strip()
    fieldtype = raw["fieldtype"].strip()
    common: dict[str, Any] = {
        "name": name,
        "label": raw.get("label", ""),
        "fieldtype": fieldtype,
        "attributes": parse_attributes(raw.get("attributes")),
    }

    if fieldtype not in FIELD_TYPES:
        logger.warning("Unknown field type %r for %s.%s", fieldtype, form_name, name)
        return UnknownField(**common)

    if fieldtype == "int":
        linked = table_name((raw.get("linked_table") or "").strip())
        return IntField(
            **common,
            min_value=_parse_bound(form_name, name, raw.get("min_value")),
            max_value=_parse_bound(form_name, name, raw.get("max_value")),
            linked_table=linked or None,
        )
    if fieldtype == "float":
        return FloatField(
            **common,
            min_value=_parse_bound(form_name, name, raw.get("min_value")),
            max_value=_parse_bound(form_name, name, raw.get("max_value")),
        )
    if fieldtype in {"string", "email", "date", "datetime"}:
        return InputField(**common)
    if fieldtype == "text":
        return TextAreaField(**common)
    if fieldtype in {"select", "multi_display_select", "single_display_select"}:
        return ChoiceField(**common, options=parse_options(raw.get("select_options")))
    return CheckField(**common)


def parse_fields(form_name: str, content: bytes | str) -> list[Field]:
    try:
        raw_fields = loads_json(content)
    except orjson.JSONDecodeError as exc:
        raise DescriptorDecodeError(form_name, f"malformed JSON ({exc})") from exc
    if raw_fields is None:
        raise DescriptorDecodeError(form_name, "empty file")

    errors = sorted(_VALIDATOR.iter_errors(raw_fields), key=lambda e: list(e.path))
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.path) or "<root>"
        raise DescriptorDecodeError(form_name, f"{location}: {first.message}")

    fields: list[Field] = []
    seen: set[str] = set()
    for raw in raw_fields:
        parsed = parse_field(form_name, raw)
        if parsed.name in seen:
            raise DescriptorDecodeError(form_name, f"duplicate field name ({parsed.name})")
        seen.add(parsed.name)
        fields.append(parsed)
    return fields


class DescriptorStore:
    """Reads `<form>.f8p` descriptor files from one directory.

    Nothing is cached: every call reads the file again, so edits to the
    descriptor files are picked up by the next request.
    """

    def __init__(self, forms_dir: Path) -> None:
        self.forms_dir = Path(forms_dir)

    def path_for(self, form_name: str) -> Path:
        if not form_name.endswith(FORM_SUFFIX):
            form_name += FORM_SUFFIX
        if Path(form_name).name != form_name:
            raise FormNotFoundError(table_name(form_name))
        return self.forms_dir / form_name

    def load(self, form_name: str) -> list[Field]:
        path = self.path_for(form_name)
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise FormNotFoundError(table_name(form_name), path) from exc
        return parse_fields(table_name(form_name), content)

    def list_forms(self) -> list[str]:
        if not self.forms_dir.is_dir():
            raise FormNotFoundError(str(self.forms_dir), self.forms_dir)
        names = sorted(
            entry.name for entry in self.forms_dir.iterdir() if entry.name.endswith(FORM_SUFFIX)
        )
        return [table_name(name) for name in names]
