from __future__ import annotations

from typing import List

from reportlab.pdfbase.pdfmetrics import stringWidth

ELLIPSIS = "…"


def text_width(text: str, font_name: str, font_size: float) -> float:
    return stringWidth(text, font_name, font_size)


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap. A word wider than ``max_width`` gets a line of its own and
    is never split; empty input gives a single empty line.
    """
    words = (text or "").split()
    if not words:
        return [""]

    lines: List[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if text_width(candidate, font_name, font_size) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word
    if current:
        lines.append(current)
    return lines


def truncate_text(text: str, font_name: str, font_size: float, max_width: float) -> str:
    if text_width(text, font_name, font_size) <= max_width:
        return text
    truncated = text
    while truncated and text_width(truncated + ELLIPSIS, font_name, font_size) > max_width:
        truncated = truncated[:-1]
    return truncated + ELLIPSIS


def estimate_value_height(
    text: str,
    font_name: str,
    font_size: float,
    box_width: float,
    default_height: float,
    max_height: float,
) -> float:
    """Height a text box needs to show ``text`` in full, between the default and ``max_height``."""
    if not text:
        return default_height
    line_h = font_size * 1.4
    padding = 8
    total_lines = 0
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            total_lines += 1
            continue
        # 4pt inner padding on each side
        total_lines += len(wrap_text(paragraph, font_name, font_size, box_width - 8))
    needed = total_lines * line_h + padding
    return min(max(default_height, needed), max_height)
