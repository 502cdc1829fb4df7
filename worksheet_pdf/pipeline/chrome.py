from __future__ import annotations

import math
from datetime import datetime
from typing import Callable

from reportlab.lib import colors
from reportlab.pdfgen import canvas

from .layout import (
    ACCENT_H,
    BRAND_Y,
    CONTENT_W,
    FOOTER_SEP_Y,
    FOOTER_TEXT_Y,
    Fonts,
    LOGO_SIZE,
    LOGO_X,
    ML,
    MR,
    PAGE_H,
    PAGE_W,
    SEP_Y,
    TITLE_Y,
    Theme,
)
from .text_layout import text_width, truncate_text


def draw_logo(canv: canvas.Canvas, x: float, y: float, color: colors.Color, size: float = LOGO_SIZE) -> None:
    """Three curved arrows arranged in a triangle, drawn on a 44-unit grid scaled to ``size``."""
    scale = size / 44.0
    cx = x + size / 2
    cy = y + size / 2
    radius = 14 * scale
    arc_w = max(0.4, 2.5 * scale)
    chevron_w = max(0.3, 2 * scale)
    chevron_len = 5 * scale

    canv.setStrokeColor(color)
    canv.setLineCap(1)
    for offset in (0.0, 120.0, 240.0):
        start = offset + 150.0
        end = offset + 30.0
        canv.setLineWidth(arc_w)
        canv.arc(cx - radius, cy - radius, cx + radius, cy + radius, startAng=start, extent=end - start)

        end_rad = math.radians(end)
        tip_x = cx + radius * math.cos(end_rad)
        tip_y = cy + radius * math.sin(end_rad)
        canv.setLineWidth(chevron_w)
        for spread in (2.6, 0.8):
            canv.line(
                tip_x + chevron_len * math.cos(end_rad + spread),
                tip_y + chevron_len * math.sin(end_rad + spread),
                tip_x,
                tip_y,
            )


def draw_header(
    canv: canvas.Canvas,
    page_number: int,
    total_pages: int,
    title: str,
    theme: Theme,
    fonts: Fonts,
) -> None:
    canv.setFillColor(theme.accent)
    canv.rect(0, PAGE_H - ACCENT_H, PAGE_W, ACCENT_H, stroke=0, fill=1)

    draw_logo(canv, LOGO_X, BRAND_Y, theme.accent)

    logo_mid = BRAND_Y + LOGO_SIZE / 2
    if theme.brand_name:
        canv.setFont(fonts.bold, 10)
        canv.setFillColor(theme.text)
        canv.drawString(ML, logo_mid - 3.5, theme.brand_name)

    page_text = f"Page {page_number} of {total_pages}"
    canv.setFont(fonts.regular, 7)
    canv.setFillColor(theme.muted)
    canv.drawRightString(PAGE_W - MR, logo_mid - 2.5, page_text)

    canv.setFont(fonts.bold, 12)
    canv.setFillColor(theme.text)
    canv.drawString(ML, TITLE_Y, truncate_text(title, fonts.bold, 12, CONTENT_W))

    canv.setStrokeColor(theme.rule)
    canv.setLineWidth(0.3)
    canv.line(ML, SEP_Y, PAGE_W - MR, SEP_Y)


def footer_text(theme: Theme, generated_at: datetime) -> str:
    parts = [f"Powered by {theme.brand_name}" if theme.brand_name else "", theme.brand_url,
             generated_at.strftime("%d/%m/%Y")]
    return "  ·  ".join(part for part in parts if part)


def draw_footer(canv: canvas.Canvas, theme: Theme, fonts: Fonts, generated_at: datetime) -> None:
    canv.setStrokeColor(theme.rule)
    canv.setLineWidth(0.2)
    canv.line(ML, FOOTER_SEP_Y, PAGE_W - MR, FOOTER_SEP_Y)

    text = footer_text(theme, generated_at)
    logo_size = LOGO_SIZE * 3 / 8
    total_w = logo_size + 3 + text_width(text, fonts.regular, 7)
    start_x = (PAGE_W - total_w) / 2

    draw_logo(canv, start_x, FOOTER_TEXT_Y - logo_size * 0.3, theme.accent, size=logo_size)
    canv.setFont(fonts.regular, 7)
    canv.setFillColor(theme.accent)
    canv.drawString(start_x + logo_size + 3, FOOTER_TEXT_Y, text)


def make_chrome_painter(
    title: str,
    theme: Theme,
    fonts: Fonts,
    show_branding: bool,
    generated_at: datetime,
) -> Callable[[canvas.Canvas, int, int], None]:
    def paint(canv: canvas.Canvas, page_number: int, total_pages: int) -> None:
        draw_header(canv, page_number, total_pages, title, theme, fonts)
        if show_branding:
            draw_footer(canv, theme, fonts, generated_at)

    return paint
