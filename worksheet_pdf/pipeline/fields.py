"""
Field renderers.

Each renderer draws a field's label and widgets at the cursor and advances it
by the height used. Stored values are read defensively: anything missing or of
the wrong shape renders as an empty widget.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, assert_never

from reportlab.lib import colors

from .. import config
from ..schema import (
    ChecklistField,
    ComputedField,
    DateField,
    DecisionTreeField,
    FieldVariant,
    FormulationField,
    HierarchyField,
    LikertField,
    NumberField,
    Option,
    RecordField,
    SafetyPlanField,
    SelectField,
    SubField,
    TableColumn,
    TableField,
    TextareaField,
    TextField,
    TimeField,
)
from .layout import (
    CHECKBOX_ROW_H,
    CHECKBOX_SIZE,
    CONTENT_W,
    DIARY_TABLE_ROW_H,
    DROPDOWN_H,
    FIELD_GAP,
    FIELD_LABEL_HEIGHT,
    FIELD_LABEL_SIZE,
    HINT_LINE_H,
    HINT_SIZE,
    MAX_VALUE_H,
    ML,
    SECTION_GAP,
    SUB_LABEL_H,
    SUB_LABEL_SIZE,
    TABLE_HEADER_H,
    TABLE_ROW_H,
    TEXT_FIELD_H,
    TEXTAREA_H,
    RenderContext,
)
from .text_layout import estimate_value_height, truncate_text, wrap_text

logger = logging.getLogger(__name__)

NARROW_COL_W = 45
SWATCH_SIZE = 8
DEFAULT_SWATCH = "#e4a930"


# --- value coercion ---

def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def format_number(value: float) -> str:
    if isinstance(value, int) or float(value).is_integer():
        return str(int(value))
    return f"{round(float(value), 6):.6f}".rstrip("0").rstrip(".")


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def _as_id_set(value: Any) -> Set[str]:
    return {str(item) for item in _as_list(value) if isinstance(item, (str, int))}


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# --- option helpers ---

def select_label(options: Sequence[Option], stored: Any) -> Optional[str]:
    if not isinstance(stored, str) or not stored:
        return None
    for option in options:
        if option.id == stored:
            return option.label
    return None


def _normalise_anchors(anchors: Dict[str, str]) -> Dict[str, str]:
    normalised: Dict[str, str] = {}
    for key, text in anchors.items():
        number = _as_number(key)
        if number is not None and text:
            normalised[format_number(number)] = str(text)
    return normalised


def _likert_label(number: float, anchors: Dict[str, str]) -> str:
    key = format_number(number)
    anchor = anchors.get(key)
    return f"{key} — {anchor}" if anchor else key


def likert_options(
    minimum: Optional[float],
    maximum: Optional[float],
    step: Optional[float],
    anchors: Dict[str, str],
) -> List[str]:
    lo = 0.0 if minimum is None else float(minimum)
    hi = 10.0 if maximum is None else float(maximum)
    step_size = float(step) if step and step > 0 else 1.0
    if hi < lo:
        return []
    count = int(math.floor((hi - lo) / step_size + 1e-9)) + 1
    normalised = _normalise_anchors(anchors)
    return [_likert_label(round(lo + i * step_size, 6), normalised) for i in range(count)]


def likert_selection(stored: Any, anchors: Dict[str, str], options: Sequence[str]) -> Optional[str]:
    number = _as_number(stored)
    if number is None:
        return None
    label = _likert_label(number, _normalise_anchors(anchors))
    return label if label in options else None


def parse_colour(value: Optional[str]) -> Optional[colors.Color]:
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except (TypeError, ValueError):
        return None


# --- shared pieces ---

def _field_label(ctx: RenderContext, label: str, required: bool = False) -> None:
    cursor = ctx.cursor
    cursor.ensure_space(FIELD_LABEL_HEIGHT)
    text = f"{label} *" if required else label
    ctx.draw_text(
        truncate_text(text, ctx.fonts.bold, FIELD_LABEL_SIZE, CONTENT_W),
        ML,
        cursor.y - FIELD_LABEL_SIZE,
        FIELD_LABEL_SIZE,
        font=ctx.fonts.bold,
    )
    cursor.advance(FIELD_LABEL_HEIGHT)


def _grey_lines(ctx: RenderContext, text: Optional[str], indent: float = 0, font: Optional[str] = None) -> None:
    if not text:
        return
    font = font or ctx.fonts.oblique
    for line in wrap_text(text, font, HINT_SIZE, CONTENT_W - indent):
        ctx.cursor.ensure_space(HINT_LINE_H)
        ctx.draw_text(line, ML + indent, ctx.cursor.y - HINT_SIZE, HINT_SIZE, font=font, color=ctx.theme.muted)
        ctx.cursor.advance(HINT_LINE_H)


def _prompt(ctx: RenderContext, placeholder: Optional[str], indent: float = 0) -> None:
    _grey_lines(ctx, placeholder, indent)


def _sub_label(ctx: RenderContext, text: str, indent: float = 0) -> None:
    if not text:
        return
    ctx.cursor.ensure_space(SUB_LABEL_H)
    ctx.draw_text(
        truncate_text(text, ctx.fonts.regular, SUB_LABEL_SIZE, CONTENT_W - indent),
        ML + indent,
        ctx.cursor.y - SUB_LABEL_SIZE,
        SUB_LABEL_SIZE,
    )
    ctx.cursor.advance(SUB_LABEL_H)


def _note(ctx: RenderContext, text: str, indent: float = 0) -> None:
    ctx.cursor.ensure_space(16)
    ctx.draw_text(text, ML + indent, ctx.cursor.y - 9, 9, font=ctx.fonts.oblique, color=ctx.theme.muted)
    ctx.cursor.advance(16)


def _text_input(
    ctx: RenderContext,
    prefix: str,
    value: Any,
    default_h: float,
    multiline: bool = False,
    indent: float = 0,
) -> None:
    text = _as_text(value)
    width = CONTENT_W - indent
    height = default_h
    if text:
        height = estimate_value_height(text, ctx.fonts.regular, 10, width, default_h, MAX_VALUE_H)
    cursor = ctx.cursor
    cursor.ensure_space(height)
    box_y = cursor.y - height
    ctx.draw_box(ML + indent, box_y, width, height)
    ctx.add_text_widget(
        prefix,
        ML + indent + 2,
        box_y + 2,
        width - 4,
        height - 4,
        value=text,
        multiline=multiline or height > default_h,
    )
    cursor.advance(height)


def _dropdown_input(
    ctx: RenderContext,
    prefix: str,
    options: List[str],
    selected: Optional[str],
    indent: float = 0,
) -> None:
    width = CONTENT_W - indent
    cursor = ctx.cursor
    cursor.ensure_space(DROPDOWN_H)
    box_y = cursor.y - DROPDOWN_H
    ctx.draw_box(ML + indent, box_y, width, DROPDOWN_H)
    ctx.add_dropdown(prefix, ML + indent + 2, box_y + 2, width - 4, DROPDOWN_H - 4, options, selected)
    cursor.advance(DROPDOWN_H)


def _checkbox_rows(
    ctx: RenderContext,
    prefix: str,
    options: Iterable[Option],
    checked: Set[str],
    indent: float = 0,
) -> None:
    cursor = ctx.cursor
    for option in options:
        cursor.ensure_space(CHECKBOX_ROW_H)
        row_y = cursor.y - CHECKBOX_ROW_H
        box_y = row_y + (CHECKBOX_ROW_H - CHECKBOX_SIZE) / 2
        ctx.draw_box(ML + indent, box_y, CHECKBOX_SIZE, CHECKBOX_SIZE)
        ctx.add_checkbox(
            f"{prefix}.{option.id}",
            ML + indent + 0.5,
            box_y + 0.5,
            CHECKBOX_SIZE - 1,
            checked=option.id in checked,
        )
        label_x = ML + indent + CHECKBOX_SIZE + 6
        ctx.draw_text(
            truncate_text(option.label, ctx.fonts.regular, 9, CONTENT_W - (label_x - ML)),
            label_x,
            row_y + CHECKBOX_ROW_H / 2 - 4,
            9,
        )
        cursor.advance(CHECKBOX_ROW_H)


def _anchor_hint(ctx: RenderContext, anchors: Dict[str, str], indent: float = 0) -> None:
    normalised = _normalise_anchors(anchors)
    if not normalised:
        return
    parts = [f"{key} = {text}" for key, text in sorted(normalised.items(), key=lambda item: float(item[0]))]
    _grey_lines(ctx, "  ·  ".join(parts), indent, font=ctx.fonts.regular)


def _sub_field(ctx: RenderContext, sub: SubField, prefix: str, value: Any, indent: float = 0) -> None:
    """Nested field inside a plan step, branch, node or record group."""
    _sub_label(ctx, sub.label, indent)
    _prompt(ctx, sub.placeholder, indent)
    if sub.type == "textarea":
        _text_input(ctx, prefix, value, TEXTAREA_H, multiline=True, indent=indent)
    elif sub.type == "select":
        labels = [option.label for option in sub.options]
        _dropdown_input(ctx, prefix, labels, select_label(sub.options, value), indent)
    elif sub.type == "checklist":
        _checkbox_rows(ctx, prefix, sub.options, _as_id_set(value), indent)
    elif sub.type == "likert":
        options = likert_options(sub.min, sub.max, sub.step, sub.anchors)
        _anchor_hint(ctx, sub.anchors, indent)
        _dropdown_input(ctx, prefix, options, likert_selection(value, sub.anchors, options), indent)
    else:
        _text_input(ctx, prefix, value, TEXT_FIELD_H, indent=indent)
    ctx.cursor.advance(FIELD_GAP / 2)


# --- simple fields ---

def _render_text(ctx: RenderContext, field: TextField | NumberField | DateField | TimeField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    _prompt(ctx, field.placeholder)
    _text_input(ctx, prefix, value, TEXT_FIELD_H)


def _render_textarea(ctx: RenderContext, field: TextareaField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    _prompt(ctx, field.placeholder)
    _text_input(ctx, prefix, value, TEXTAREA_H, multiline=True)


def _render_select(ctx: RenderContext, field: SelectField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    labels = [option.label for option in field.options]
    _dropdown_input(ctx, prefix, labels, select_label(field.options, value))


def _render_checklist(ctx: RenderContext, field: ChecklistField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    _checkbox_rows(ctx, prefix, field.options, _as_id_set(value))


def _render_likert(ctx: RenderContext, field: LikertField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    options = likert_options(field.min, field.max, field.step, field.anchors)
    _anchor_hint(ctx, field.anchors)
    _dropdown_input(ctx, prefix, options, likert_selection(value, field.anchors, options))


def _render_computed(ctx: RenderContext, field: ComputedField) -> None:
    _field_label(ctx, field.label)
    _note(ctx, config.COMPUTED_NOTE)


# --- tables ---

def column_widths(columns: Sequence[TableColumn], total: float = CONTENT_W) -> List[float]:
    if not columns:
        return []
    if len(columns) <= 4:
        return [total / len(columns)] * len(columns)

    def narrow(col: TableColumn) -> bool:
        return col.type == "number" or col.width == "narrow"

    narrow_total = sum(NARROW_COL_W for col in columns if narrow(col))
    wide_count = sum(1 for col in columns if not narrow(col))
    wide_w = (total - narrow_total) / wide_count if wide_count else total / len(columns)
    return [NARROW_COL_W if narrow(col) else wide_w for col in columns]


def _column_separators(ctx: RenderContext, widths: Sequence[float], y: float, h: float) -> None:
    ctx.canv.setStrokeColor(ctx.theme.field_border)
    ctx.canv.setLineWidth(0.5)
    x = ML
    for i, w in enumerate(widths):
        if i > 0:
            ctx.canv.line(x, y, x, y + h)
        x += w


def _table_header(ctx: RenderContext, columns: Sequence[TableColumn], widths: Sequence[float]) -> None:
    wide = len(columns) > 5
    header_h = 28 if wide else TABLE_HEADER_H
    font_size = 7 if wide else 8
    cursor = ctx.cursor
    cursor.ensure_space(header_h)
    header_y = cursor.y - header_h
    ctx.draw_box(ML, header_y, CONTENT_W, header_h, fill=ctx.theme.table_header_fill)
    _column_separators(ctx, widths, header_y, header_h)

    x = ML
    line_h = font_size + 2
    for col, w in zip(columns, widths):
        lines = wrap_text(col.header, ctx.fonts.bold, font_size, w - 8)[:2]
        block_h = len(lines) * line_h
        start_y = header_y + (header_h + block_h) / 2 - font_size
        for i, line in enumerate(lines):
            ctx.draw_text(
                truncate_text(line, ctx.fonts.bold, font_size, w - 8),
                x + 4,
                start_y - i * line_h,
                font_size,
                font=ctx.fonts.bold,
            )
        x += w
    cursor.advance(header_h)


def _render_table(ctx: RenderContext, field: TableField | HierarchyField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    columns = field.columns
    if not columns:
        return
    widths = column_widths(columns)
    _table_header(ctx, columns, widths)

    stored_rows = _as_list(value)
    row_count = max(field.min_rows or 1, len(stored_rows))
    row_h = DIARY_TABLE_ROW_H if ctx.is_diary else TABLE_ROW_H
    cursor = ctx.cursor
    for r in range(row_count):
        page_before = cursor.page_count
        cursor.ensure_space(row_h)
        if cursor.page_count != page_before:
            _table_header(ctx, columns, widths)
            cursor.ensure_space(row_h)
        row_y = cursor.y - row_h
        row_values = _as_dict(stored_rows[r]) if r < len(stored_rows) else {}
        ctx.draw_box(ML, row_y, CONTENT_W, row_h)
        _column_separators(ctx, widths, row_y, row_h)

        x = ML
        for col, w in zip(columns, widths):
            ctx.add_text_widget(
                f"{prefix}.r{r}.{col.id}",
                x + 2,
                row_y + 2,
                w - 4,
                row_h - 4,
                value=_as_text(row_values.get(col.id)),
                multiline=col.type == "textarea" or row_h > TABLE_ROW_H,
                font_size=9,
            )
            x += w
        cursor.advance(row_h)


# --- structured fields ---

def _render_safety_plan(ctx: RenderContext, field: SafetyPlanField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    plan_values = _as_dict(value)
    cursor = ctx.cursor
    radius = 10
    indent = radius * 2 + 10

    for step in field.steps:
        cursor.ensure_space(FIELD_LABEL_HEIGHT + TEXTAREA_H + 8)
        cx = ML + radius
        cy = cursor.y - radius
        ctx.canv.setFillColor(ctx.theme.danger if step.highlight == "red" else ctx.theme.text)
        ctx.canv.circle(cx, cy, radius, stroke=0, fill=1)
        ctx.canv.setFont(ctx.fonts.bold, 10)
        ctx.canv.setFillColor(colors.white)
        ctx.canv.drawCentredString(cx, cy - 3.5, str(step.step))

        ctx.draw_text(
            truncate_text(step.label, ctx.fonts.bold, FIELD_LABEL_SIZE, CONTENT_W - indent),
            ML + indent,
            cursor.y - FIELD_LABEL_SIZE,
            FIELD_LABEL_SIZE,
            font=ctx.fonts.bold,
        )
        cursor.advance(FIELD_LABEL_HEIGHT + 2)

        if step.hint:
            _grey_lines(ctx, step.hint, indent)
            cursor.advance(2)

        # every step answer is free text regardless of the declared sub type
        step_values = _as_dict(plan_values.get(step.id))
        for sub in step.fields:
            _prompt(ctx, sub.placeholder, indent)
            _text_input(
                ctx, f"{prefix}.{step.id}.{sub.id}", step_values.get(sub.id), TEXTAREA_H, multiline=True, indent=indent
            )

        cursor.advance(FIELD_GAP + 4)


def _render_decision_tree(ctx: RenderContext, field: DecisionTreeField, prefix: str, value: Any) -> None:
    # both branches are always printed, whatever the stored choice
    _field_label(ctx, field.label, field.required)
    tree_values = _as_dict(value)
    cursor = ctx.cursor

    if field.question:
        for line in wrap_text(field.question, ctx.fonts.bold, 10, CONTENT_W):
            cursor.ensure_space(14)
            ctx.draw_text(line, ML, cursor.y - 10, 10, font=ctx.fonts.bold)
            cursor.advance(14)
        cursor.advance(6)

    for key in ("yes", "no"):
        branch = getattr(field.branches, key)
        colour = branch.colour or ("green" if key == "yes" else "red")
        branch_colour = ctx.theme.branch_yes if colour == "green" else ctx.theme.branch_no

        cursor.ensure_space(FIELD_LABEL_HEIGHT + TEXT_FIELD_H)
        heading = f"{key.upper()}: {branch.label}" if branch.label else key.upper()
        ctx.draw_text(
            truncate_text(heading, ctx.fonts.bold, FIELD_LABEL_SIZE, CONTENT_W),
            ML,
            cursor.y - FIELD_LABEL_SIZE,
            FIELD_LABEL_SIZE,
            font=ctx.fonts.bold,
            color=branch_colour,
        )
        cursor.advance(FIELD_LABEL_HEIGHT)

        branch_values = _as_dict(tree_values.get(key))
        for sub in branch.fields:
            _sub_field(ctx, sub, f"{prefix}.{key}.{sub.id}", branch_values.get(sub.id), indent=8)

        if branch.outcome:
            for line in wrap_text(f"Outcome: {branch.outcome}", ctx.fonts.oblique, 9, CONTENT_W - 8):
                cursor.ensure_space(16)
                ctx.draw_text(line, ML + 8, cursor.y - 9, 9, font=ctx.fonts.oblique, color=ctx.theme.muted)
                cursor.advance(16)

        cursor.advance(FIELD_GAP)


def _render_formulation(ctx: RenderContext, field: FormulationField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    node_values = _as_dict(_as_dict(value).get("nodes"))
    cursor = ctx.cursor
    indent = SWATCH_SIZE + 6

    if field.nodes:
        for node in field.nodes:
            cursor.ensure_space(FIELD_LABEL_HEIGHT + TEXT_FIELD_H)
            swatch = parse_colour(node.domain_colour or DEFAULT_SWATCH)
            if swatch is None:
                logger.debug("Skipping swatch for node %s: bad colour %r", node.id, node.domain_colour)
            else:
                ctx.canv.setFillColor(swatch)
                ctx.canv.circle(
                    ML + SWATCH_SIZE / 2,
                    cursor.y - FIELD_LABEL_SIZE + SWATCH_SIZE / 2 - 1,
                    SWATCH_SIZE / 2,
                    stroke=0,
                    fill=1,
                )
            ctx.draw_text(
                truncate_text(node.label, ctx.fonts.bold, FIELD_LABEL_SIZE, CONTENT_W - indent),
                ML + indent,
                cursor.y - FIELD_LABEL_SIZE,
                FIELD_LABEL_SIZE,
                font=ctx.fonts.bold,
            )
            cursor.advance(FIELD_LABEL_HEIGHT)
            _grey_lines(ctx, node.description, indent, font=ctx.fonts.regular)

            values = _as_dict(node_values.get(node.id))
            for sub in node.fields:
                _sub_field(ctx, sub, f"{prefix}.{node.id}.{sub.id}", values.get(sub.id), indent)
            cursor.advance(FIELD_GAP)
    elif field.item_template is not None:
        # one illustrative instance; further items only exist in the app
        _note(ctx, config.DYNAMIC_ITEMS_NOTE)
        for sub in field.item_template.fields:
            _sub_field(ctx, sub, f"{prefix}.template.{sub.id}", None)


def _render_record(ctx: RenderContext, field: RecordField, prefix: str, value: Any) -> None:
    _field_label(ctx, field.label, field.required)
    records = _as_list(_as_dict(value).get("records")) or [{}]
    cursor = ctx.cursor

    for index, record in enumerate(records):
        record = _as_dict(record)
        if len(records) > 1:
            cursor.ensure_space(20)
            ctx.draw_text(f"Record {index + 1}", ML, cursor.y - 10, 10, font=ctx.fonts.bold)
            cursor.advance(20)

        for group in field.groups:
            if group.header:
                cursor.ensure_space(SUB_LABEL_H)
                ctx.draw_text(
                    truncate_text(group.header, ctx.fonts.bold, SUB_LABEL_SIZE, CONTENT_W),
                    ML,
                    cursor.y - SUB_LABEL_SIZE,
                    SUB_LABEL_SIZE,
                    font=ctx.fonts.bold,
                )
                cursor.advance(SUB_LABEL_H)
            group_values = _as_dict(record.get(group.id))
            for sub in group.fields:
                _sub_field(ctx, sub, f"{prefix}.r{index}.{group.id}.{sub.id}", group_values.get(sub.id), indent=8)
            cursor.advance(FIELD_GAP / 2)

        if index < len(records) - 1:
            cursor.ensure_space(SECTION_GAP)
            ctx.draw_rule(ML, cursor.y - SECTION_GAP / 2, ML + CONTENT_W)
            cursor.advance(SECTION_GAP)


# --- dispatch ---

def render_field(ctx: RenderContext, field: FieldVariant, section_id: str, values: Any) -> None:
    prefix = f"{section_id}.{field.id}"
    value = _as_dict(values).get(field.id)

    match field:
        case TextField() | NumberField() | DateField() | TimeField():
            _render_text(ctx, field, prefix, value)
        case TextareaField():
            _render_textarea(ctx, field, prefix, value)
        case SelectField():
            _render_select(ctx, field, prefix, value)
        case ChecklistField():
            _render_checklist(ctx, field, prefix, value)
        case LikertField():
            _render_likert(ctx, field, prefix, value)
        case TableField() | HierarchyField():
            _render_table(ctx, field, prefix, value)
        case SafetyPlanField():
            _render_safety_plan(ctx, field, prefix, value)
        case DecisionTreeField():
            _render_decision_tree(ctx, field, prefix, value)
        case FormulationField():
            _render_formulation(ctx, field, prefix, value)
        case RecordField():
            _render_record(ctx, field, prefix, value)
        case ComputedField():
            _render_computed(ctx, field)
        case _:
            assert_never(field)
