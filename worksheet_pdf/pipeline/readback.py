"""
Read interactive fields back out of an exported PDF.

Used by the ``fields`` command and by tests to check that stored answers
survive an export.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

import fitz  # PyMuPDF

_UNCHECKED = {"", "Off", "off", "false", "False"}


@dataclass
class WidgetInfo:
    name: str
    kind: str
    page: int
    value: Any
    # PDF user space, origin bottom-left
    x0: float
    y0: float
    x1: float
    y1: float


def _normalise(widget: fitz.Widget) -> Any:
    value = widget.field_value
    if widget.field_type == fitz.PDF_WIDGET_TYPE_CHECKBOX:
        if isinstance(value, bool):
            return value
        return value is not None and str(value) not in _UNCHECKED
    if value is None:
        return ""
    return value


def read_widgets(pdf_bytes: bytes) -> List[WidgetInfo]:
    widgets: List[WidgetInfo] = []
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        for page in doc:
            height = page.rect.height
            for widget in page.widgets() or []:
                rect = widget.rect
                widgets.append(
                    WidgetInfo(
                        name=widget.field_name,
                        kind=widget.field_type_string,
                        page=page.number + 1,
                        value=_normalise(widget),
                        x0=rect.x0,
                        y0=height - rect.y1,
                        x1=rect.x1,
                        y1=height - rect.y0,
                    )
                )
    return widgets


def read_form_values(pdf_bytes: bytes) -> Dict[str, Any]:
    """Map of field name to value; checkboxes come back as booleans."""
    return {w.name: w.value for w in read_widgets(pdf_bytes)}
