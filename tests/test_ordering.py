import tempfile
import unittest
from pathlib import Path

from formtables.descriptors import DescriptorStore, parse_field
from formtables.errors import BackendError, UnresolvedReferenceError
from formtables.ordering import creation_order, linked_table_of, sync_tables
from helpers import AUTHOR_FIELDS, BOOK_FIELDS, FakeBackend, write_form


def _link(name, target):
    return {"name": name, "label": name, "fieldtype": "int", "linked_table": target}


class LinkedTableTests(unittest.TestCase):
    def test_first_linked_int_field_wins(self):
        fields = [
            parse_field("t", {"name": "a", "label": "A", "fieldtype": "string", "linked_table": "x"}),
            parse_field("t", {"name": "b", "label": "B", "fieldtype": "int"}),
            parse_field("t", _link("c", "first")),
            parse_field("t", _link("d", "second")),
        ]
        self.assertEqual(linked_table_of(fields), "first")

    def test_no_link(self):
        fields = [parse_field("t", raw) for raw in AUTHOR_FIELDS]
        self.assertIsNone(linked_table_of(fields))


class CreationOrderTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.forms_dir = Path(self._tmp.name)
        self.store = DescriptorStore(self.forms_dir)

    def tearDown(self):
        self._tmp.cleanup()

    def test_referenced_form_comes_first(self):
        # "book" sorts before "zauthor" but links to it
        write_form(self.forms_dir, "zauthor", AUTHOR_FIELDS)
        write_form(self.forms_dir, "book", [_link("author", "zauthor")])
        backend = FakeBackend()

        self.assertEqual(creation_order(self.store, backend), ["zauthor", "book"])
        self.assertEqual(backend.list_calls, 0)

    def test_unlinked_forms_keep_listing_order(self):
        write_form(self.forms_dir, "b", AUTHOR_FIELDS)
        write_form(self.forms_dir, "a", AUTHOR_FIELDS)
        write_form(self.forms_dir, "c", AUTHOR_FIELDS)
        self.assertEqual(creation_order(self.store, FakeBackend()), ["a", "b", "c"])

    def test_shared_target_listed_once(self):
        write_form(self.forms_dir, "author", AUTHOR_FIELDS)
        write_form(self.forms_dir, "book", [_link("author", "author")])
        write_form(self.forms_dir, "article", [_link("author", "author")])
        self.assertEqual(
            creation_order(self.store, FakeBackend()), ["author", "article", "book"]
        )

    def test_external_table_known_to_backend(self):
        write_form(self.forms_dir, "book", [_link("publisher", "publisher")])
        backend = FakeBackend(tables=["publisher"])
        self.assertEqual(creation_order(self.store, backend), ["book"])
        self.assertEqual(backend.list_calls, 1)

    def test_backend_tables_listed_once(self):
        write_form(self.forms_dir, "book", [_link("publisher", "publisher")])
        write_form(self.forms_dir, "magazine", [_link("printer", "printer")])
        backend = FakeBackend(tables=["publisher", "printer"])
        creation_order(self.store, backend)
        self.assertEqual(backend.list_calls, 1)

    def test_unresolved_reference(self):
        write_form(self.forms_dir, "book", [_link("publisher", "publisher")])
        with self.assertRaises(UnresolvedReferenceError) as ctx:
            creation_order(self.store, FakeBackend(tables=["other"]))
        self.assertEqual(ctx.exception.table, "publisher")
        self.assertEqual(ctx.exception.form_name, "book")


class SyncTablesTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.forms_dir = Path(self._tmp.name)
        self.store = DescriptorStore(self.forms_dir)
        write_form(self.forms_dir, "author", AUTHOR_FIELDS)
        write_form(self.forms_dir, "book", BOOK_FIELDS)
        write_form(self.forms_dir, "zine", AUTHOR_FIELDS)

    def tearDown(self):
        self._tmp.cleanup()

    def test_statements_submitted_in_order(self):
        backend = FakeBackend()
        order = sync_tables(self.store, backend)
        self.assertEqual(order, ["author", "book", "zine"])
        self.assertEqual([s.table for s in backend.statements], order)
        self.assertEqual(backend.pings, 1)
        self.assertEqual(backend.statements[1].foreign_keys[0].table, "author")

    def test_statement_text_is_logged(self):
        with self.assertLogs("formtables.ordering", level="DEBUG") as logs:
            sync_tables(self.store, FakeBackend())
        self.assertTrue(any("table: book" in line for line in logs.output))
        self.assertTrue(any("author author on_delete_delete" in line for line in logs.output))

    def test_backend_failure_stops_the_sequence(self):
        backend = FakeBackend(fail_on="book")
        with self.assertRaises(BackendError):
            sync_tables(self.store, backend)
        self.assertEqual([s.table for s in backend.statements], ["author"])
