from __future__ import annotations

import fitz
import pytest

from worksheet_pdf.errors import ExportError
from worksheet_pdf.pipeline.form_fields import attach_widgets, build_widget, widget_font
from worksheet_pdf.pipeline.layout import PAGE_H, Fonts, InteractiveField, PageRecord, Theme, WidgetKind
from worksheet_pdf.pipeline.readback import read_widgets

THEME = Theme.from_preset({})


def _blank_pdf(pages: int = 1) -> bytes:
    with fitz.open() as doc:
        for _ in range(pages):
            doc.new_page(width=595.27, height=PAGE_H)
        return doc.tobytes()


def test_widget_font_maps_base_families() -> None:
    assert widget_font(Fonts()) == "Helv"
    assert widget_font(Fonts(regular="Courier")) == "Cour"
    assert widget_font(Fonts(regular="Times-Roman")) == "TiRo"
    assert widget_font(Fonts(regular="DejaVuSans")) == "Helv"


def test_build_widget_flips_to_top_left_origin() -> None:
    field = InteractiveField(WidgetKind.TEXT, "s.a_1", 1, 50, 100, 200, 20)
    widget = build_widget(field, PAGE_H, THEME, Fonts())

    assert widget.field_type == fitz.PDF_WIDGET_TYPE_TEXT
    assert widget.rect == fitz.Rect(50, PAGE_H - 120, 250, PAGE_H - 100)
    assert widget.field_value == ""


def test_build_widget_leaves_unselected_dropdown_without_value() -> None:
    field = InteractiveField(WidgetKind.DROPDOWN, "s.pick_1", 1, 50, 100, 200, 20, options=["A", "B"])
    widget = build_widget(field, PAGE_H, THEME, Fonts())

    assert widget.field_type == fitz.PDF_WIDGET_TYPE_COMBOBOX
    assert widget.choice_values == ["A", "B"]
    assert widget.field_value is None


def test_multiline_flag_set_for_multiline_boxes() -> None:
    field = InteractiveField(WidgetKind.MULTILINE, "s.notes_1", 1, 50, 100, 200, 60)
    widget = build_widget(field, PAGE_H, THEME, Fonts())

    assert widget.field_flags & fitz.PDF_TX_FIELD_IS_MULTILINE


def test_attach_widgets_places_fields_on_their_pages() -> None:
    pages = [
        PageRecord(1, [InteractiveField(WidgetKind.CHECKBOX, "s.c.x_1", 1, 60, 700, 10, 10, value=True)]),
        PageRecord(2, [InteractiveField(WidgetKind.TEXT, "s.t_2", 2, 60, 500, 200, 20, value="Wednesday — late")]),
    ]
    pdf = attach_widgets(_blank_pdf(2), pages, THEME, Fonts())
    widgets = {w.name: w for w in read_widgets(pdf)}

    assert widgets["s.c.x_1"].page == 1
    assert widgets["s.c.x_1"].value is True
    assert widgets["s.t_2"].page == 2
    assert widgets["s.t_2"].value == "Wednesday — late"
    assert widgets["s.t_2"].y0 == pytest.approx(500, abs=0.5)
    assert widgets["s.t_2"].y1 == pytest.approx(520, abs=0.5)


def test_attach_widgets_wraps_bad_rects() -> None:
    pages = [PageRecord(1, [InteractiveField(WidgetKind.TEXT, "s.t_1", 1, 60, 500, 0, 0)])]

    with pytest.raises(ExportError):
        attach_widgets(_blank_pdf(), pages, THEME, Fonts())
