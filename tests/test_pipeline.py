from __future__ import annotations

import json
import tempfile
from pathlib import Path
import unittest

from worksheet_pdf import config
from worksheet_pdf.models import reset_engine
from worksheet_pdf.pipeline.ingest import load_values, load_worksheet, slug_from_title
from worksheet_pdf.pipeline.qa import validate_schema
from worksheet_pdf.schema import parse_schema


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class IngestTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        config.set_out_dir(self.root / "out")
        reset_engine()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_slug_generation(self) -> None:
        self.assertEqual(slug_from_title("Thought Record"), "thought-record")

    def test_load_full_worksheet(self) -> None:
        path = _write(
            self.root / "worksheet.json",
            {
                "title": "Worry Tree",
                "description": "Sort worries into ones you can act on.",
                "instructions": "Work from the top.",
                "schema": {"sections": [{"id": "s", "fields": [{"id": "worry", "type": "text"}]}]},
            },
        )
        document = load_worksheet(path)
        self.assertEqual(document.title, "Worry Tree")
        self.assertEqual(document.instructions, "Work from the top.")
        self.assertEqual(document.schema.sections[0].fields[0].id, "worry")

    def test_bare_schema_takes_title_from_file_name(self) -> None:
        path = _write(self.root / "sleep_diary.json", {"repeatable": True, "sections": []})
        document = load_worksheet(path)
        self.assertEqual(document.title, "Sleep Diary")
        self.assertTrue(document.schema.repeatable)

    def test_unknown_field_type_is_rejected(self) -> None:
        path = _write(self.root / "bad.json", {"sections": [{"id": "s", "fields": [{"id": "x", "type": "slider"}]}]})
        with self.assertRaises(ValueError) as ctx:
            load_worksheet(path)
        self.assertIn("bad.json", str(ctx.exception))

    def test_values_must_be_an_object(self) -> None:
        path = _write(self.root / "values.json", ["not", "a", "map"])
        with self.assertRaises(ValueError):
            load_values(path)
        self.assertEqual(load_values(_write(self.root / "ok.json", {"a": 1})), {"a": 1})

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_worksheet(self.root / "nope.json")


class SchemaQaTests(unittest.TestCase):
    def test_valid_schema_has_no_errors(self) -> None:
        schema = parse_schema(
            {
                "sections": [
                    {
                        "id": "s",
                        "fields": [
                            {"id": "rating", "type": "likert", "min": 0, "max": 10},
                            {"id": "log", "type": "table", "columns": [{"id": "c"}]},
                        ],
                    }
                ]
            }
        )
        self.assertEqual(validate_schema(schema), [])

    def test_structural_problems_are_reported(self) -> None:
        schema = parse_schema(
            {
                "sections": [
                    {
                        "id": "s",
                        "fields": [
                            {"id": "a", "type": "text"},
                            {"id": "a", "type": "textarea"},
                            {"id": "rating", "type": "likert", "min": 10, "max": 0, "step": -1},
                            {"id": "log", "type": "table", "columns": []},
                            {
                                "id": "tree",
                                "type": "decision_tree",
                                "branches": {"yes": {"fields": [{"id": "n", "type": "text"}, {"id": "n", "type": "text"}]}},
                            },
                        ],
                    },
                    {"id": "s", "fields": []},
                ]
            }
        )
        errors = validate_schema(schema)
        joined = "\n".join(errors)
        self.assertIn("Duplicate id 's' in sections", joined)
        self.assertIn("Duplicate id 'a' in section 's'", joined)
        self.assertIn("min 10.0 is greater than max 0.0", joined)
        self.assertIn("step must be positive", joined)
        self.assertIn("table has no columns", joined)
        self.assertIn("Duplicate id 'n' in s.tree.yes", joined)

    def test_empty_worksheet(self) -> None:
        self.assertEqual(validate_schema(parse_schema({"sections": []})), ["Worksheet has no sections"])


if __name__ == "__main__":
    unittest.main()
