from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import ValidationError
from slugify import slugify
from sqlmodel import select

from ..models import ExportRecord, ExportStatus, get_session, init_db
from ..schema import WorksheetSchema, parse_schema


@dataclass
class WorksheetDocument:
    title: str
    schema: WorksheetSchema
    description: str | None = None
    instructions: str | None = None


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"JSON not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}: invalid JSON ({exc})") from exc


def load_worksheet(path: Path) -> WorksheetDocument:
    """
    Accepts either a full worksheet export (``title``, ``description``,
    ``instructions``, ``schema``) or a bare schema; a bare schema takes its
    title from the file name.
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: worksheet must be a JSON object")

    raw_schema = data.get("schema") if isinstance(data.get("schema"), dict) else data
    try:
        schema = parse_schema(raw_schema)
    except ValidationError as exc:
        raise ValueError(f"{path}: invalid worksheet schema\n{exc}") from exc

    title = str(data.get("title") or path.stem.replace("_", " ").replace("-", " ").title())
    return WorksheetDocument(
        title=title,
        schema=schema,
        description=data.get("description") or None,
        instructions=data.get("instructions") or None,
    )


def load_values(path: Path) -> Dict[str, Any]:
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: response values must be a JSON object")
    return data


def slug_from_title(title: str) -> str:
    slug = slugify(title)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(title.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from title")
    return slug


def list_exports(statuses: Iterable[ExportStatus] = (), limit: int | None = None) -> List[ExportRecord]:
    init_db()
    with get_session() as session:
        statement = select(ExportRecord).order_by(ExportRecord.created_at.desc())
        statuses = list(statuses)
        if statuses:
            statement = statement.where(ExportRecord.status.in_(statuses))
        if limit:
            statement = statement.limit(limit)
        return list(session.exec(statement))
