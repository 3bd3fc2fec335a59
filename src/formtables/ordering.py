from __future__ import annotations

import logging
from typing import Iterable

from formtables.descriptors import DescriptorStore, Field, IntField
from formtables.errors import BackendError, UnresolvedReferenceError
from formtables.protocols import TableBackend
from formtables.statement import build_statement

logger = logging.getLogger(__name__)


def linked_table_of(fields: Iterable[Field]) -> str | None:
    """Return the link of the first int field that carries one."""
    for field in fields:
        if isinstance(field, IntField) and field.linked_table:
            return field.linked_table
    return None


def creation_order(store: DescriptorStore, backend: TableBackend) -> list[str]:
    """Order the local forms so that linked-to tables are created first.

    Only the first link of each form is followed. A link must name a local
    form or a table the backend already has.
    """
    all_forms = store.list_forms()
    linked: list[str] = []
    referrers: dict[str, str] = {}
    for form_name in all_forms:
        target = linked_table_of(store.load(form_name))
        if target and target not in referrers:
            linked.append(target)
            referrers[target] = form_name

    backend_tables: list[str] | None = None
    for target in linked:
        if target in all_forms:
            continue
        if backend_tables is None:
            backend_tables = backend.list_tables()
        if target not in backend_tables:
            raise UnresolvedReferenceError(referrers[target], target)

    local_linked = [target for target in linked if target in all_forms]
    rest = [form_name for form_name in all_forms if form_name not in local_linked]
    return local_linked + rest


def sync_tables(store: DescriptorStore, backend: TableBackend) -> list[str]:
    backend.ping()
    order = creation_order(store, backend)
    for form_name in order:
        statement = build_statement(form_name, store.load(form_name))
        logger.info("Syncing table %s (%d columns)", statement.table, len(statement.columns))
        logger.debug("Table statement:\n%s", statement.to_text())
        try:
            backend.create_or_update_table(statement)
        except BackendError:
            logger.error("Table sync stopped at %s", statement.table)
            raise
    return order
