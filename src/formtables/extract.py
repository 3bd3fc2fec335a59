from __future__ import annotations

from typing import Iterable

from formtables.descriptors import DescriptorStore, Field
from formtables.errors import RequiredFieldMissingError
from formtables.protocols import SubmittedValues


def _as_str(value: object) -> str:
    # uploads are not a supported field type
    return value if isinstance(value, str) else ""


def extract_values(fields: Iterable[Field], values: SubmittedValues) -> dict[str, str]:
    """Flatten a submission into column values.

    multi_display_select collects every value sent under its name and
    joins them with ';'.
    """
    result: dict[str, str] = {}
    for field in fields:
        if field.fieldtype == "multi_display_select":
            picked = [item for item in map(_as_str, values.getlist(field.name)) if item]
            value = ";".join(picked)
        else:
            value = _as_str(values.get(field.name, ""))
        if field.required and not value:
            raise RequiredFieldMissingError(field.name)
        result[field.name] = value
    return result


class SubmissionExtractor:
    def __init__(self, store: DescriptorStore) -> None:
        self._store = store

    def extract(self, values: SubmittedValues, form_name: str) -> dict[str, str]:
        return extract_values(self._store.load(form_name), values)
