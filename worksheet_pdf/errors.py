from __future__ import annotations


class WorksheetPdfError(Exception):
    """Base error for worksheet exports."""


class SchemaError(WorksheetPdfError):
    """Worksheet definition failed validation; ``problems`` lists each issue."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid worksheet schema")


class ExportError(WorksheetPdfError):
    """Export resources (theme preset, fonts) could not be prepared."""
