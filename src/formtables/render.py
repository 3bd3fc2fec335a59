from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from markupsafe import Markup

from formtables.descriptors import (
    CheckField,
    ChoiceField,
    DescriptorStore,
    Field,
    FloatField,
    InputField,
    IntField,
    TextAreaField,
)
from formtables.utils import as_text

FLOAT_STEP = "0.0001"
CHECKED_VALUES = {"on", "true", "yes"}
INPUT_TYPES = {
    "string": "text",
    "email": "email",
    "date": "date",
    "datetime": "datetime-local",
}

EMPTY = Markup("")


def format_bound(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _required(field: Field) -> Markup:
    return Markup(" required") if field.required else EMPTY


def _value_attr(value: str | None) -> Markup:
    if value is None:
        return EMPTY
    return Markup(" value='{}'").format(value)


def _bounds(field: IntField | FloatField) -> Markup:
    attrs = EMPTY
    if field.min_value is not None:
        attrs += Markup(" min='{}'").format(format_bound(field.min_value))
    if field.max_value is not None:
        attrs += Markup(" max='{}'").format(format_bound(field.max_value))
    return attrs


def render_number(field: IntField | FloatField, value: str | None) -> Markup:
    step = Markup(" step='{}'").format(FLOAT_STEP) if isinstance(field, FloatField) else EMPTY
    return Markup("<input type='number' name='{name}' id='id_{name}'{bounds}{step}{value}{required} />").format(
        name=field.name,
        bounds=_bounds(field),
        step=step,
        value=_value_attr(value),
        required=_required(field),
    )


def render_input(field: InputField, value: str | None) -> Markup:
    return Markup("<input type='{type}' name='{name}' id='id_{name}'{value}{required} />").format(
        type=INPUT_TYPES[field.fieldtype],
        name=field.name,
        value=_value_attr(value),
        required=_required(field),
    )


def render_textarea(field: TextAreaField, value: str | None) -> Markup:
    return Markup("<textarea id='id_{name}' name='{name}'{required}>{value}</textarea>").format(
        name=field.name,
        required=_required(field),
        value=value or "",
    )


def render_select(field: ChoiceField, value: str | None) -> Markup:
    html = Markup("<select id='id_{name}' name='{name}'{required}>").format(
        name=field.name, required=_required(field)
    )
    for option in field.options:
        selected = Markup(" selected") if option == value else EMPTY
        html += Markup("<option{selected}>{option}</option>").format(selected=selected, option=option)
    return html + Markup("</select>")


def _render_options(field: ChoiceField, input_type: str, picked: set[str], required: Markup) -> Markup:
    html = Markup("<div>")
    for index, option in enumerate(field.options):
        checked = Markup(" checked") if option in picked else EMPTY
        html += Markup(
            "<input type='{type}' id='id_{name}_{index}' name='{name}' value='{option}'{checked}{required} /> {option}"
        ).format(
            type=input_type,
            name=field.name,
            index=index,
            option=option,
            checked=checked,
            required=required,
        )
    return html + Markup("</div>")


def render_checkboxes(field: ChoiceField, value: str | None) -> Markup:
    picked = set(value.split(";")) if value else set()
    return _render_options(field, "checkbox", picked, EMPTY)


def render_radios(field: ChoiceField, value: str | None) -> Markup:
    picked = {value} if value else set()
    return _render_options(field, "radio", picked, _required(field))


def render_check(field: CheckField, value: str | None) -> Markup:
    checked = Markup(" checked") if value in CHECKED_VALUES else EMPTY
    return Markup("<input type='checkbox' id='id_{name}' name='{name}'{checked} /> {label}").format(
        name=field.name, checked=checked, label=field.label
    )


RENDERERS: dict[str, Callable[[Any, str | None], Markup]] = {
    "int": render_number,
    "float": render_number,
    "string": render_input,
    "email": render_input,
    "date": render_input,
    "datetime": render_input,
    "select": render_select,
    "multi_display_select": render_checkboxes,
    "single_display_select": render_radios,
    "text": render_textarea,
    "check": render_check,
}


def render_fields(fields: Iterable[Field], values: Mapping[str, Any] | None = None) -> Markup:
    """Render the visible fields; `values` switches to the edit state."""
    html = EMPTY
    for field in fields:
        if field.hidden:
            continue
        value = as_text(values.get(field.name)) if values is not None else None
        html += Markup("<div><div><label for='id_{name}'>{label}</label></div>").format(
            name=field.name, label=field.label
        )
        renderer = RENDERERS.get(field.fieldtype)
        if renderer is not None:
            html += renderer(field, value)
        html += Markup("</div>")
    return html


class FormRenderer:
    def __init__(self, store: DescriptorStore) -> None:
        self._store = store

    def render_new(self, form_name: str) -> Markup:
        return render_fields(self._store.load(form_name))

    def render_edit(self, form_name: str, existing_values: Mapping[str, Any]) -> Markup:
        return render_fields(self._store.load(form_name), existing_values)
