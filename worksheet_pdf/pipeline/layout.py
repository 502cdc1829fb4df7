from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

# A4, hole-punch friendly: 20mm left, 15mm right
PAGE_W, PAGE_H = A4
ML = 20 * mm
MR = 15 * mm
CONTENT_W = PAGE_W - ML - MR

ACCENT_H = 2 * mm
LOGO_SIZE = 8 * mm
LOGO_X = 10 * mm - LOGO_SIZE / 2
BRAND_Y = PAGE_H - 10 * mm
TITLE_Y = PAGE_H - 15 * mm
SEP_Y = PAGE_H - 17.5 * mm
CONTENT_TOP = PAGE_H - 20 * mm

FOOTER_SEP_Y = 10 * mm
FOOTER_TEXT_Y = 7 * mm
CONTENT_BOTTOM = 12 * mm

SECTION_TITLE_SIZE = 13
SECTION_TITLE_HEIGHT = 24
SECTION_DESC_SIZE = 9
SECTION_DESC_LINE_H = 14
FIELD_LABEL_SIZE = 10
FIELD_LABEL_HEIGHT = 18
TEXT_FIELD_H = 22
TEXTAREA_H = 72
CHECKBOX_ROW_H = 16
CHECKBOX_SIZE = 11
DROPDOWN_H = 22
TABLE_HEADER_H = 18
TABLE_ROW_H = 22
DIARY_TABLE_ROW_H = 40
SECTION_GAP = 20
FIELD_GAP = 10
HINT_SIZE = 8
HINT_LINE_H = 12
SUB_LABEL_SIZE = 9
SUB_LABEL_H = 14

# tallest box a pre-filled value may grow to: one page minus its label
MAX_VALUE_H = CONTENT_TOP - CONTENT_BOTTOM - FIELD_LABEL_HEIGHT


class WidgetKind(str, Enum):
    TEXT = "text"
    MULTILINE = "multiline"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"


@dataclass
class InteractiveField:
    """A form field placed while drawing; turned into a real widget after save."""

    kind: WidgetKind
    name: str
    page: int
    x: float
    y: float
    width: float
    height: float
    value: Any = None
    options: List[str] = field(default_factory=list)
    font_size: int = 10


@dataclass
class PageRecord:
    number: int
    fields: List[InteractiveField] = field(default_factory=list)


@dataclass
class Fonts:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"
    oblique: str = "Helvetica-Oblique"

    @classmethod
    def from_preset(cls, style: dict) -> "Fonts":
        return cls(
            regular=str(style.get("font_regular") or cls.regular),
            bold=str(style.get("font_bold") or cls.bold),
            oblique=str(style.get("font_oblique") or cls.oblique),
        )


class NumberedCanvas(canvas.Canvas):
    """
    Two-pass canvas: showPage() only stashes the finished page, save() replays
    every stashed page through ``chrome_cb(canv, page_number, total_pages)``
    once the total is known, then writes the document.
    """

    def __init__(self, *args, chrome_cb: Optional[Callable[[canvas.Canvas, int, int], None]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[Dict[str, Any]] = []
        self._chrome_cb = chrome_cb

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        if len(self._code) or not self._saved_page_states:
            self._saved_page_states.append(dict(self.__dict__))

        total_pages = max(1, len(self._saved_page_states))

        for state in self._saved_page_states:
            self.__dict__.update(state)
            if callable(self._chrome_cb):
                self.saveState()
                self._chrome_cb(self, self._pageNumber, total_pages)
                self.restoreState()
            canvas.Canvas.showPage(self)

        self._code = []
        self._doc.SaveToFile(self._filename, self)


class LayoutCursor:
    """Tracks the vertical draw position and breaks pages when space runs out."""

    def __init__(self, canv: canvas.Canvas) -> None:
        self.canv = canv
        self.y = CONTENT_TOP
        self.pages: List[PageRecord] = [PageRecord(number=1)]

    @property
    def page(self) -> PageRecord:
        return self.pages[-1]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def ensure_space(self, needed: float) -> None:
        if self.y - needed < CONTENT_BOTTOM:
            self.new_page()

    def advance(self, height: float) -> None:
        self.y -= height

    def new_page(self) -> None:
        self.canv.showPage()
        self.pages.append(PageRecord(number=len(self.pages) + 1))
        self.y = CONTENT_TOP


def _hex(value: str | None, default: colors.Color = colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except ValueError:
        return default


@dataclass
class Theme:
    brand_name: str
    brand_url: str
    accent: colors.Color
    accent_light: colors.Color
    text: colors.Color
    muted: colors.Color
    rule: colors.Color
    field_border: colors.Color
    table_header_fill: colors.Color
    danger: colors.Color
    branch_yes: colors.Color
    branch_no: colors.Color

    @classmethod
    def from_preset(cls, style: dict) -> "Theme":
        return cls(
            brand_name=str(style.get("brand_name", "")),
            brand_url=str(style.get("brand_url", "")),
            accent=_hex(style.get("accent_color"), colors.HexColor("#E4A930")),
            accent_light=_hex(style.get("accent_light"), colors.HexColor("#FDF6E3")),
            text=_hex(style.get("text_color"), colors.HexColor("#1E293B")),
            muted=_hex(style.get("muted_color"), colors.HexColor("#94A3B8")),
            rule=_hex(style.get("rule_color"), colors.HexColor("#E2E8F0")),
            field_border=_hex(style.get("field_border"), colors.HexColor("#CBD5E1")),
            table_header_fill=_hex(style.get("table_header_fill"), colors.HexColor("#F8FAFC")),
            danger=_hex(style.get("danger_color"), colors.HexColor("#DC2626")),
            branch_yes=_hex(style.get("branch_yes_color"), colors.HexColor("#22C55E")),
            branch_no=_hex(style.get("branch_no_color"), colors.HexColor("#EF4444")),
        )


class RenderContext:
    """
    Everything one export needs while drawing: canvas, cursor, fonts, theme and
    the field-name counter. Built per export and never shared, so concurrent
    exports cannot collide on names.
    """

    def __init__(self, canv: canvas.Canvas, theme: Theme, fonts: Fonts, is_diary: bool = False) -> None:
        self.canv = canv
        self.cursor = LayoutCursor(canv)
        self.theme = theme
        self.fonts = fonts
        self.is_diary = is_diary
        self._counter = itertools.count(1)

    def unique_name(self, prefix: str) -> str:
        return f"{prefix}_{next(self._counter)}"

    # --- drawing primitives ---

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        size: float,
        font: str | None = None,
        color: colors.Color | None = None,
    ) -> None:
        self.canv.setFont(font or self.fonts.regular, size)
        self.canv.setFillColor(color or self.theme.text)
        self.canv.drawString(x, y, text)

    def draw_box(self, x: float, y: float, w: float, h: float, fill: colors.Color | None = None) -> None:
        self.canv.setStrokeColor(self.theme.field_border)
        self.canv.setFillColor(fill or colors.white)
        self.canv.setLineWidth(0.5)
        self.canv.rect(x, y, w, h, stroke=1, fill=1)

    def draw_rule(self, x1: float, y: float, x2: float, thickness: float = 0.3) -> None:
        self.canv.setStrokeColor(self.theme.rule)
        self.canv.setLineWidth(thickness)
        self.canv.line(x1, y, x2, y)

    # --- interactive widgets ---

    def _register(self, widget: InteractiveField) -> InteractiveField:
        self.cursor.page.fields.append(widget)
        return widget

    def add_text_widget(
        self,
        prefix: str,
        x: float,
        y: float,
        w: float,
        h: float,
        value: str = "",
        multiline: bool = False,
        font_size: int = 10,
    ) -> InteractiveField:
        kind = WidgetKind.MULTILINE if multiline else WidgetKind.TEXT
        return self._register(
            InteractiveField(
                kind,
                self.unique_name(prefix),
                self.cursor.page.number,
                x,
                y,
                w,
                h,
                value=value or None,
                font_size=font_size,
            )
        )

    def add_checkbox(self, prefix: str, x: float, y: float, size: float, checked: bool = False) -> InteractiveField:
        return self._register(
            InteractiveField(
                WidgetKind.CHECKBOX,
                self.unique_name(prefix),
                self.cursor.page.number,
                x,
                y,
                size,
                size,
                value=bool(checked),
            )
        )

    def add_dropdown(
        self,
        prefix: str,
        x: float,
        y: float,
        w: float,
        h: float,
        options: List[str],
        selected: str | None = None,
        font_size: int = 10,
    ) -> InteractiveField:
        if selected not in options:
            selected = None
        return self._register(
            InteractiveField(
                WidgetKind.DROPDOWN,
                self.unique_name(prefix),
                self.cursor.page.number,
                x,
                y,
                w,
                h,
                value=selected,
                options=list(options),
                font_size=font_size,
            )
        )
