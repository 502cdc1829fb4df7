from __future__ import annotations

import pytest

from worksheet_pdf.pipeline.text_layout import (
    ELLIPSIS,
    estimate_value_height,
    text_width,
    truncate_text,
    wrap_text,
)

FONT = "Helvetica"
SAMPLES = [
    "",
    "Short",
    "Notice the thought, name the emotion, and rate how strongly you believe it right now.",
    "Supercalifragilisticexpialidocious-and-then-some tiny words after it",
]


def test_empty_text_wraps_to_single_empty_line() -> None:
    assert wrap_text("", FONT, 10, 100) == [""]
    assert wrap_text("   ", FONT, 10, 100) == [""]


def test_wide_word_gets_its_own_line() -> None:
    word = "x" * 80
    assert wrap_text(f"a {word} b", FONT, 10, 100) == ["a", word, "b"]


def test_wrapped_lines_fit() -> None:
    lines = wrap_text(SAMPLES[2], FONT, 10, 120)
    assert len(lines) > 1
    assert all(text_width(line, FONT, 10) <= 120 for line in lines)


@pytest.mark.parametrize("text", SAMPLES)
@pytest.mark.parametrize("width", [40, 120, 400])
def test_wrap_is_idempotent(text: str, width: int) -> None:
    for line in wrap_text(text, FONT, 9, width):
        assert wrap_text(line, FONT, 9, width) == [line]


def test_truncate_leaves_fitting_text_alone() -> None:
    assert truncate_text("Short", FONT, 10, 200) == "Short"


@pytest.mark.parametrize("width", [60, 150])
def test_truncate_fits_and_is_idempotent(width: int) -> None:
    once = truncate_text(SAMPLES[2], FONT, 10, width)

    assert once.endswith(ELLIPSIS)
    assert text_width(once, FONT, 10) <= width
    assert truncate_text(once, FONT, 10, width) == once


def test_value_height_defaults_when_empty() -> None:
    assert estimate_value_height("", FONT, 10, 300, 22, 500) == 22


def test_value_height_grows_and_caps() -> None:
    text = "\n".join("A paragraph with a handful of words in it" for _ in range(6))
    grown = estimate_value_height(text, FONT, 10, 300, 22, 500)

    assert grown > 22
    assert estimate_value_height(text * 40, FONT, 10, 300, 22, 500) == 500
