"""
Worksheet definition models.

A worksheet is an ordered list of sections, each holding typed fields. ``Field``
is a closed union discriminated on ``type``; renderers dispatch on the concrete
class, so adding a variant here without a renderer fails type checking.
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Option(_Model):
    id: str
    label: str


class SubField(_Model):
    """Field nested inside a plan step, branch, node, group or template."""

    id: str
    type: Literal["text", "textarea", "number", "date", "time", "select", "checklist", "likert"] = "text"
    label: str = ""
    placeholder: Optional[str] = None
    options: List[Option] = PydanticField(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    anchors: Dict[str, str] = PydanticField(default_factory=dict)


class BaseField(_Model):
    id: str
    label: str = ""
    required: bool = False
    placeholder: Optional[str] = None


class TextField(BaseField):
    type: Literal["text"]


class TextareaField(BaseField):
    type: Literal["textarea"]


class NumberField(BaseField):
    type: Literal["number"]
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None


class DateField(BaseField):
    type: Literal["date"]


class TimeField(BaseField):
    type: Literal["time"]


class SelectField(BaseField):
    type: Literal["select"]
    options: List[Option] = PydanticField(default_factory=list)


class ChecklistField(BaseField):
    type: Literal["checklist"]
    options: List[Option] = PydanticField(default_factory=list)


class LikertField(BaseField):
    type: Literal["likert"]
    min: float = 0
    max: float = 10
    step: Optional[float] = None
    anchors: Dict[str, str] = PydanticField(default_factory=dict)


class TableColumn(_Model):
    id: str
    header: str = ""
    type: Literal["text", "textarea", "number"] = "text"
    width: Optional[Literal["narrow", "normal", "wide"]] = None
    suffix: Optional[str] = None


class TableField(BaseField):
    type: Literal["table"]
    columns: List[TableColumn] = PydanticField(default_factory=list)
    min_rows: Optional[int] = None
    max_rows: Optional[int] = None
    group_by: Optional[str] = None


class HierarchyField(BaseField):
    # sort_by / sort_direction only matter to the interactive view
    type: Literal["hierarchy"]
    columns: List[TableColumn] = PydanticField(default_factory=list)
    min_rows: Optional[int] = None
    max_rows: Optional[int] = None
    sort_by: Optional[str] = None
    sort_direction: Optional[Literal["asc", "desc"]] = None


class ComputedField(BaseField):
    type: Literal["computed"]
    computation: Dict[str, object] = PydanticField(default_factory=dict)


class SafetyPlanStep(_Model):
    id: str
    step: int
    label: str = ""
    hint: Optional[str] = None
    highlight: Optional[Literal["red"]] = None
    fields: List[SubField] = PydanticField(default_factory=list)


class SafetyPlanField(BaseField):
    type: Literal["safety_plan"]
    steps: List[SafetyPlanStep] = PydanticField(default_factory=list)


class DecisionBranch(_Model):
    label: str = ""
    colour: Optional[Literal["green", "red"]] = None
    fields: List[SubField] = PydanticField(default_factory=list)
    outcome: Optional[str] = None


class DecisionBranches(_Model):
    yes: DecisionBranch = PydanticField(default_factory=DecisionBranch)
    no: DecisionBranch = PydanticField(default_factory=DecisionBranch)


class DecisionTreeField(BaseField):
    type: Literal["decision_tree"]
    question: str = ""
    branches: DecisionBranches = PydanticField(default_factory=DecisionBranches)


class FormulationNode(_Model):
    id: str
    label: str = ""
    description: Optional[str] = None
    domain_colour: Optional[str] = None
    fields: List[SubField] = PydanticField(default_factory=list)


class ItemTemplate(_Model):
    fields: List[SubField] = PydanticField(default_factory=list)


class FormulationField(BaseField):
    type: Literal["formulation"]
    layout: Optional[str] = None
    nodes: List[FormulationNode] = PydanticField(default_factory=list)
    item_template: Optional[ItemTemplate] = None


class RecordGroup(_Model):
    id: str
    header: str = ""
    fields: List[SubField] = PydanticField(default_factory=list)


class RecordField(BaseField):
    type: Literal["record"]
    groups: List[RecordGroup] = PydanticField(default_factory=list)
    max_records: Optional[int] = None


FieldVariant = Union[
    TextField,
    TextareaField,
    NumberField,
    DateField,
    TimeField,
    SelectField,
    ChecklistField,
    LikertField,
    TableField,
    HierarchyField,
    ComputedField,
    SafetyPlanField,
    DecisionTreeField,
    FormulationField,
    RecordField,
]

Field = Annotated[FieldVariant, PydanticField(discriminator="type")]


class Section(_Model):
    id: str
    title: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None
    hint: Optional[str] = None
    step: Optional[int] = None
    fields: List[Field] = PydanticField(default_factory=list)

    @property
    def heading(self) -> str | None:
        text = self.title or self.label
        if not text:
            return None
        return f"{self.step}. {text}" if self.step else text


class WorksheetSchema(_Model):
    version: int = 1
    layout: Optional[str] = None
    repeatable: bool = False
    max_entries: Optional[int] = None
    sections: List[Section] = PydanticField(default_factory=list)


def parse_schema(data: dict) -> WorksheetSchema:
    return WorksheetSchema.model_validate(data)


def is_multi_entry(values: object) -> bool:
    return isinstance(values, dict) and isinstance(values.get("_entries"), list)
