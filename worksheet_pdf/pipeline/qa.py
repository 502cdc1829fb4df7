from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List

from ..schema import (
    DecisionTreeField,
    FormulationField,
    HierarchyField,
    LikertField,
    NumberField,
    RecordField,
    SafetyPlanField,
    SubField,
    TableField,
    WorksheetSchema,
)

logger = logging.getLogger(__name__)


def _duplicates(ids: Iterable[str]) -> List[str]:
    return sorted(key for key, count in Counter(ids).items() if count > 1)


def _check_unique(ids: Iterable[str], where: str, errors: List[str]) -> None:
    for dup in _duplicates(ids):
        errors.append(f"Duplicate id '{dup}' in {where}")


def _check_range(minimum, maximum, step, where: str, errors: List[str]) -> None:
    if minimum is not None and maximum is not None and minimum > maximum:
        errors.append(f"{where}: min {minimum} is greater than max {maximum}")
    if step is not None and step <= 0:
        errors.append(f"{where}: step must be positive (got {step})")


def _check_sub_fields(fields: List[SubField], where: str, errors: List[str]) -> None:
    _check_unique((sub.id for sub in fields), where, errors)
    for sub in fields:
        if sub.type == "likert":
            _check_range(sub.min, sub.max, sub.step, f"{where}.{sub.id}", errors)
        if sub.type in ("select", "checklist"):
            _check_unique((option.id for option in sub.options), f"{where}.{sub.id} options", errors)


def validate_schema(schema: WorksheetSchema) -> List[str]:
    """Structural problems that would make an export ambiguous; empty when the schema is usable."""
    errors: List[str] = []
    if not schema.sections:
        errors.append("Worksheet has no sections")
    if schema.max_entries is not None and schema.max_entries < 1:
        errors.append(f"max_entries must be at least 1 (got {schema.max_entries})")

    _check_unique((section.id for section in schema.sections), "sections", errors)
    for section in schema.sections:
        _check_unique((field.id for field in section.fields), f"section '{section.id}'", errors)
        for field in section.fields:
            where = f"{section.id}.{field.id}"
            if isinstance(field, (LikertField, NumberField)):
                _check_range(field.min, field.max, field.step, where, errors)
            elif isinstance(field, (TableField, HierarchyField)):
                if not field.columns:
                    errors.append(f"{where}: table has no columns")
                _check_unique((col.id for col in field.columns), f"{where} columns", errors)
                if field.min_rows is not None and field.min_rows < 0:
                    errors.append(f"{where}: min_rows cannot be negative")
            elif isinstance(field, SafetyPlanField):
                _check_unique((step.id for step in field.steps), f"{where} steps", errors)
                for step in field.steps:
                    _check_sub_fields(step.fields, f"{where}.{step.id}", errors)
            elif isinstance(field, DecisionTreeField):
                _check_sub_fields(field.branches.yes.fields, f"{where}.yes", errors)
                _check_sub_fields(field.branches.no.fields, f"{where}.no", errors)
            elif isinstance(field, FormulationField):
                _check_unique((node.id for node in field.nodes), f"{where} nodes", errors)
                for node in field.nodes:
                    _check_sub_fields(node.fields, f"{where}.{node.id}", errors)
                if field.item_template is not None:
                    _check_sub_fields(field.item_template.fields, f"{where}.template", errors)
            elif isinstance(field, RecordField):
                _check_unique((group.id for group in field.groups), f"{where} groups", errors)
                for group in field.groups:
                    _check_sub_fields(group.fields, f"{where}.{group.id}", errors)
            elif hasattr(field, "options"):
                _check_unique((option.id for option in field.options), f"{where} options", errors)

    if errors:
        logger.warning("Schema validation found %d problem(s)", len(errors))
    return errors
