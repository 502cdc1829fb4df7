"""
Turn the fields recorded while drawing into AcroForm widgets.

reportlab draws the page content; PyMuPDF then adds the widgets to the saved
document, so values and options may carry any Unicode text and a dropdown
may be left unselected.
"""

from __future__ import annotations

import logging
from typing import List

import fitz  # PyMuPDF
from reportlab.lib import colors

from ..errors import ExportError
from .layout import Fonts, InteractiveField, PageRecord, Theme, WidgetKind

logger = logging.getLogger(__name__)

_BASE14 = {"courier": "Cour", "times": "TiRo", "helvetica": "Helv"}


def widget_font(fonts: Fonts) -> str:
    """Closest PDF base font for widget text; anything unknown falls back to Helv."""
    family = fonts.regular.split("-")[0].lower()
    return _BASE14.get(family, "Helv")


def _rgb(colour: colors.Color) -> tuple:
    return tuple(float(c) for c in colour.rgb())


def _widget_rect(field: InteractiveField, page_height: float) -> fitz.Rect:
    # recorded in PDF user space (bottom-left origin), fitz wants top-left
    return fitz.Rect(
        field.x,
        page_height - (field.y + field.height),
        field.x + field.width,
        page_height - field.y,
    )


def build_widget(field: InteractiveField, page_height: float, theme: Theme, fonts: Fonts) -> fitz.Widget:
    widget = fitz.Widget()
    widget.field_name = field.name
    widget.rect = _widget_rect(field, page_height)
    widget.border_width = 0
    widget.fill_color = (1, 1, 1)
    widget.text_color = _rgb(theme.text)

    if field.kind == WidgetKind.CHECKBOX:
        widget.field_type = fitz.PDF_WIDGET_TYPE_CHECKBOX
        widget.field_value = bool(field.value)
        return widget

    widget.text_font = widget_font(fonts)
    widget.text_fontsize = field.font_size
    if field.kind == WidgetKind.DROPDOWN:
        widget.field_type = fitz.PDF_WIDGET_TYPE_COMBOBOX
        widget.choice_values = list(field.options)
        if field.value:
            widget.field_value = field.value
        return widget

    widget.field_type = fitz.PDF_WIDGET_TYPE_TEXT
    if field.kind == WidgetKind.MULTILINE:
        widget.field_flags |= fitz.PDF_TX_FIELD_IS_MULTILINE
    widget.field_value = field.value or ""
    return widget


def attach_widgets(pdf_bytes: bytes, pages: List[PageRecord], theme: Theme, fonts: Fonts) -> bytes:
    """Add every recorded field to its page and return the new document bytes."""
    count = 0
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            for record in pages:
                page = doc[record.number - 1]
                height = page.rect.height
                for field in record.fields:
                    page.add_widget(build_widget(field, height, theme, fonts))
                    count += 1
            out = doc.tobytes(deflate=True)
    except (RuntimeError, ValueError) as exc:
        raise ExportError(f"could not add form fields: {exc}") from exc
    logger.debug("Added %d form field(s) across %d page(s)", count, len(pages))
    return out
