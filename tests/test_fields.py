from __future__ import annotations

from worksheet_pdf.pipeline.fields import (
    NARROW_COL_W,
    column_widths,
    format_number,
    likert_options,
    likert_selection,
    parse_colour,
    select_label,
)
from worksheet_pdf.pipeline.layout import CONTENT_W
from worksheet_pdf.schema import Option, TableColumn

ANCHORS = {"0": "None", "10": "Severe"}


def test_likert_options_label_anchors() -> None:
    options = likert_options(0, 10, None, ANCHORS)

    assert len(options) == 11
    assert options[0] == "0 — None"
    assert options[7] == "7"
    assert options[10] == "10 — Severe"


def test_likert_selection_matches_option_labels() -> None:
    options = likert_options(0, 10, None, ANCHORS)

    assert likert_selection(7, ANCHORS, options) == "7"
    assert likert_selection(10, ANCHORS, options) == "10 — Severe"
    assert likert_selection("10", ANCHORS, options) == "10 — Severe"
    assert likert_selection(11, ANCHORS, options) is None
    assert likert_selection("lots", ANCHORS, options) is None
    assert likert_selection(None, ANCHORS, options) is None


def test_likert_fractional_step() -> None:
    assert likert_options(0, 1, 0.25, {}) == ["0", "0.25", "0.5", "0.75", "1"]


def test_likert_bad_step_falls_back_to_one() -> None:
    assert likert_options(1, 3, 0, {}) == ["1", "2", "3"]


def test_format_number() -> None:
    assert format_number(7.0) == "7"
    assert format_number(2.5) == "2.5"
    assert format_number(3) == "3"


def test_select_label_maps_ids() -> None:
    options = [Option(id="a", label="Anxious"), Option(id="b", label="Low")]

    assert select_label(options, "b") == "Low"
    assert select_label(options, "missing") is None
    assert select_label(options, 3) is None


def test_column_widths_equal_for_narrow_tables() -> None:
    columns = [TableColumn(id=f"c{i}", type="number") for i in range(3)]
    assert column_widths(columns) == [CONTENT_W / 3] * 3


def test_column_widths_fix_number_columns_on_wide_tables() -> None:
    columns = [
        TableColumn(id="date"),
        TableColumn(id="situation"),
        TableColumn(id="emotion"),
        TableColumn(id="rating", type="number"),
        TableColumn(id="after", width="narrow"),
    ]
    widths = column_widths(columns)

    assert widths[3] == NARROW_COL_W
    assert widths[4] == NARROW_COL_W
    assert abs(sum(widths) - CONTENT_W) < 1e-6


def test_parse_colour() -> None:
    assert parse_colour("#2563eb") is not None
    assert parse_colour("2563eb") is not None
    assert parse_colour("not-a-colour") is None
