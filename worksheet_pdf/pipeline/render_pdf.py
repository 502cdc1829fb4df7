from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics

from ..config import load_style_preset
from ..errors import ExportError
from ..schema import Section, WorksheetSchema, is_multi_entry, parse_schema
from .chrome import make_chrome_painter
from .fields import render_field
from .form_fields import attach_widgets
from .layout import (
    CONTENT_W,
    FIELD_GAP,
    ML,
    MR,
    PAGE_W,
    SECTION_DESC_LINE_H,
    SECTION_DESC_SIZE,
    SECTION_GAP,
    SECTION_TITLE_HEIGHT,
    SECTION_TITLE_SIZE,
    Fonts,
    InteractiveField,
    NumberedCanvas,
    PageRecord,
    RenderContext,
    Theme,
)
from .text_layout import truncate_text, wrap_text

logger = logging.getLogger(__name__)

_DISAMBIGUATOR = re.compile(r"_\d+$")

INSTRUCTIONS_PADDING = 12
INSTRUCTIONS_FONT_SIZE = 9
INSTRUCTIONS_LINE_H = 13


@dataclass
class RenderedDocument:
    pdf_bytes: bytes
    pages: List[PageRecord]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def widgets(self) -> List[InteractiveField]:
        return [w for page in self.pages for w in page.fields]

    @property
    def field_names(self) -> List[str]:
        return [w.name for w in self.widgets]


def field_path(name: str) -> str:
    """Strip the ``_n`` disambiguator: ``s1.plan.warning_3`` -> ``s1.plan.warning``."""
    return _DISAMBIGUATOR.sub("", name)


def _load_style(style: dict | None) -> dict:
    if style is not None:
        return style
    try:
        return load_style_preset()
    except (OSError, ValueError) as exc:
        raise ExportError(f"could not load theme preset: {exc}") from exc


def _check_fonts(fonts: Fonts) -> None:
    for name in (fonts.regular, fonts.bold, fonts.oblique):
        try:
            pdfmetrics.getFont(name)
        except KeyError as exc:
            raise ExportError(f"font not available: {name}") from exc


def _front_matter(ctx: RenderContext, description: str | None, instructions: str | None) -> None:
    cursor = ctx.cursor
    if description:
        for line in wrap_text(description, ctx.fonts.regular, 9, CONTENT_W):
            cursor.ensure_space(13)
            ctx.draw_text(line, ML, cursor.y - 9, 9, color=ctx.theme.muted)
            cursor.advance(13)
        cursor.advance(12)

    if instructions:
        pad = INSTRUCTIONS_PADDING
        lines = wrap_text(instructions, ctx.fonts.regular, INSTRUCTIONS_FONT_SIZE, CONTENT_W - pad * 2)
        box_h = pad * 2 + len(lines) * INSTRUCTIONS_LINE_H
        cursor.ensure_space(box_h + 4)

        canv = ctx.canv
        canv.setFillColor(ctx.theme.accent_light)
        canv.setStrokeColor(ctx.theme.accent)
        canv.setLineWidth(0.3)
        canv.rect(ML, cursor.y - box_h, CONTENT_W, box_h, stroke=1, fill=1)

        text_y = cursor.y - pad
        for line in lines:
            ctx.draw_text(line, ML + pad, text_y - INSTRUCTIONS_FONT_SIZE, INSTRUCTIONS_FONT_SIZE)
            text_y -= INSTRUCTIONS_LINE_H
        cursor.advance(box_h + 8)


def _entry_header(ctx: RenderContext, number: int) -> None:
    cursor = ctx.cursor
    cursor.ensure_space(SECTION_TITLE_HEIGHT + 12)
    ctx.draw_text(f"Entry {number}", ML, cursor.y - SECTION_TITLE_SIZE, SECTION_TITLE_SIZE, font=ctx.fonts.bold)
    cursor.advance(SECTION_TITLE_HEIGHT)
    ctx.draw_rule(ML, cursor.y + 4, PAGE_W - MR, thickness=0.5)
    cursor.advance(8)


def _paragraph(ctx: RenderContext, text: str, font: str) -> None:
    cursor = ctx.cursor
    for line in wrap_text(text, font, SECTION_DESC_SIZE, CONTENT_W):
        cursor.ensure_space(SECTION_DESC_LINE_H)
        ctx.draw_text(line, ML, cursor.y - SECTION_DESC_SIZE, SECTION_DESC_SIZE, font=font, color=ctx.theme.muted)
        cursor.advance(SECTION_DESC_LINE_H)
    cursor.advance(4)


def render_section(ctx: RenderContext, section: Section, values: Any) -> None:
    cursor = ctx.cursor
    heading = section.heading
    if heading:
        cursor.ensure_space(SECTION_TITLE_HEIGHT)
        ctx.draw_text(
            truncate_text(heading, ctx.fonts.bold, SECTION_TITLE_SIZE, CONTENT_W),
            ML,
            cursor.y - SECTION_TITLE_SIZE,
            SECTION_TITLE_SIZE,
            font=ctx.fonts.bold,
        )
        cursor.advance(SECTION_TITLE_HEIGHT)

    if section.hint:
        _paragraph(ctx, section.hint, ctx.fonts.oblique)
    if section.description:
        _paragraph(ctx, section.description, ctx.fonts.regular)

    for field in section.fields:
        render_field(ctx, field, section.id, values)
        cursor.advance(FIELD_GAP)


def _render_body(ctx: RenderContext, schema: WorksheetSchema, values: Any) -> None:
    if schema.repeatable and is_multi_entry(values):
        # entry count follows the stored entries only; max_entries is an app-side limit
        for number, entry in enumerate(values["_entries"], start=1):
            _entry_header(ctx, number)
            for section in schema.sections:
                render_section(ctx, section, entry)
                ctx.cursor.advance(SECTION_GAP)
        return

    for section in schema.sections:
        render_section(ctx, section, values)
        ctx.cursor.advance(SECTION_GAP)


def render_worksheet(
    schema: WorksheetSchema | Dict[str, Any],
    title: str,
    description: str | None = None,
    instructions: str | None = None,
    show_branding: bool = True,
    values: Dict[str, Any] | None = None,
    generated_at: datetime | None = None,
    style: dict | None = None,
    fonts: Fonts | None = None,
) -> RenderedDocument:
    if not isinstance(schema, WorksheetSchema):
        schema = parse_schema(schema)
    style = _load_style(style)
    theme = Theme.from_preset(style)
    fonts = fonts or Fonts.from_preset(style)
    _check_fonts(fonts)
    generated_at = generated_at or datetime.now()

    logger.info("Rendering worksheet %r (%d sections)", title, len(schema.sections))

    buffer = io.BytesIO()
    canv = NumberedCanvas(
        buffer,
        pagesize=A4,
        chrome_cb=make_chrome_painter(title, theme, fonts, show_branding, generated_at),
    )
    canv.setTitle(title)
    if theme.brand_name:
        canv.setCreator(theme.brand_name)
        canv.setProducer(" — ".join(part for part in (theme.brand_name, theme.brand_url) if part))

    ctx = RenderContext(canv, theme, fonts, is_diary=schema.repeatable)
    _front_matter(ctx, description, instructions)
    _render_body(ctx, schema, values)
    canv.save()

    pdf_bytes = attach_widgets(buffer.getvalue(), ctx.cursor.pages, theme, fonts)
    document = RenderedDocument(pdf_bytes=pdf_bytes, pages=ctx.cursor.pages)
    logger.info(
        "Rendered worksheet %r: %d page(s), %d widget(s)", title, document.page_count, len(document.widgets)
    )
    return document


def generate_fillable_pdf(
    schema: WorksheetSchema | Dict[str, Any],
    title: str,
    description: str | None = None,
    instructions: str | None = None,
    show_branding: bool = True,
    values: Dict[str, Any] | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    return render_worksheet(
        schema,
        title,
        description=description,
        instructions=instructions,
        show_branding=show_branding,
        values=values,
        generated_at=generated_at,
    ).pdf_bytes
