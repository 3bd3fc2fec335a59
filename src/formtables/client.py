from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from markupsafe import Markup

from formtables.descriptors import DescriptorStore, table_name
from formtables.errors import FormNotFoundError, RowNotFoundError
from formtables.extract import SubmissionExtractor, extract_values
from formtables.ordering import sync_tables
from formtables.protocols import SubmittedValues, TableBackend
from formtables.render import FormRenderer, render_fields

logger = logging.getLogger(__name__)


class Forms:
    """Descriptor directory plus the backend the forms are stored in.

    Build it with `Forms.init`, which creates or updates every table before
    anything else touches the backend.
    """

    def __init__(self, forms_dir: Path, backend: TableBackend) -> None:
        self.forms_dir = Path(forms_dir)
        self.backend = backend
        self.store = DescriptorStore(self.forms_dir)
        self.renderer = FormRenderer(self.store)
        self.extractor = SubmissionExtractor(self.store)

    @classmethod
    def init(cls, forms_dir: Path, backend: TableBackend) -> "Forms":
        forms_dir = Path(forms_dir)
        if not forms_dir.is_dir():
            raise FormNotFoundError(str(forms_dir), forms_dir)
        forms = cls(forms_dir, backend)
        order = sync_tables(forms.store, backend)
        logger.info("Synced %d tables from %s", len(order), forms_dir)
        return forms

    def list_forms(self) -> list[str]:
        return self.store.list_forms()

    def new_form_html(self, form_name: str) -> Markup:
        return self.renderer.render_new(form_name)

    def _existing_row(self, form_name: str, row_id: int) -> dict[str, Any]:
        table = table_name(form_name)
        row = self.backend.get_row(table, row_id)
        if row is None:
            raise RowNotFoundError(table, row_id)
        return row

    def edit_form_html(self, form_name: str, row_id: int) -> Markup:
        # descriptors first so an unknown form is reported as such
        fields = self.store.load(form_name)
        return render_fields(fields, self._existing_row(form_name, row_id))

    def submitted_data(self, values: SubmittedValues, form_name: str) -> dict[str, str]:
        return self.extractor.extract(values, form_name)

    def insert(self, form_name: str, values: SubmittedValues) -> int:
        data = self.submitted_data(values, form_name)
        return self.backend.insert_row(table_name(form_name), data)

    def update(self, form_name: str, row_id: int, values: SubmittedValues) -> None:
        fields = self.store.load(form_name)
        self._existing_row(form_name, row_id)
        data = extract_values(fields, values)
        table = table_name(form_name)
        if not self.backend.update_row(table, row_id, data):
            raise RowNotFoundError(table, row_id)
        logger.info("Updated row %s #%d", table, row_id)
