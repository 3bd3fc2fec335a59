import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from formtables.cli import cli
from helpers import AUTHOR_FIELDS, BOOK_FIELDS, write_form


class CliTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.forms_dir = self.root / "forms"
        self.forms_dir.mkdir()
        self.env = {
            "FORMS_DIR": str(self.forms_dir),
            "STORAGE_BACKEND": "json",
            "JSON_PATH": str(self.root / "data" / "tables.json"),
            "LOG_LEVEL": "WARNING",
        }
        self.runner = CliRunner()

    def tearDown(self):
        self._tmp.cleanup()

    def test_sync_prints_creation_order(self):
        write_form(self.forms_dir, "book", BOOK_FIELDS)
        write_form(self.forms_dir, "author", AUTHOR_FIELDS)
        with patch.dict(os.environ, self.env):
            result = self.runner.invoke(cli, ["sync"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.stdout.split(), ["author", "book"])

    def test_sync_reports_unresolved_link(self):
        write_form(self.forms_dir, "book", BOOK_FIELDS)
        with patch.dict(os.environ, self.env):
            result = self.runner.invoke(cli, ["sync"])
        self.assertEqual(result.exit_code, 1)

    def test_forms_lists_descriptor_files(self):
        write_form(self.forms_dir, "book", BOOK_FIELDS)
        with patch.dict(os.environ, self.env):
            result = self.runner.invoke(cli, ["forms"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.stdout.split(), ["book"])
