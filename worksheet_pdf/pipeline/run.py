from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .. import config
from ..errors import SchemaError
from ..models import ExportRecord, ExportStatus, get_session, init_db
from ..storage import artifact_path, record_artifacts
from .ingest import WorksheetDocument, slug_from_title
from .qa import validate_schema
from .render_pdf import RenderedDocument, render_worksheet
from .render_preview import render_previews

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    slug: str
    status: ExportStatus
    artifacts: List[tuple[str, Path]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    record_id: int | None = None

    def path_of(self, artifact_type: str) -> Path | None:
        for kind, path in self.artifacts:
            if kind == artifact_type:
                return path
        return None


def _write_error(slug: str, message: str) -> Path:
    error_path = artifact_path(slug, "error", base_dir=config.OUT_DIR)
    error_path.write_text(message, encoding="utf-8")
    return error_path


def _prepare_temp_dir(slug: str) -> Path:
    temp_dir = config.OUT_DIR / f"{slug}.tmp"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def _finalize_artifacts(
    temp_dir: Path,
    final_dir: Path,
    artifacts: List[tuple[str, Path]],
) -> List[tuple[str, Path]]:
    if final_dir.exists():
        shutil.rmtree(final_dir)
    temp_dir.replace(final_dir)
    return [(artifact_type, final_dir / path.relative_to(temp_dir)) for artifact_type, path in artifacts]


def _write_field_map(rendered: RenderedDocument, temp_dir: Path, slug: str) -> Path:
    fields_path = artifact_path(slug, "fields", base_dir=temp_dir, include_slug=False)
    payload = [
        {"name": w.name, "kind": w.kind.value, "page": w.page, "value": w.value}
        for w in rendered.widgets
    ]
    fields_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return fields_path


def build_export(
    document: WorksheetDocument,
    slug: str,
    values: Dict[str, Any] | None = None,
    show_branding: bool = True,
    previews: int = 0,
) -> tuple[RenderedDocument, List[tuple[str, Path]]]:
    """Render everything into a temp directory, then move it into place in one step."""
    errors = validate_schema(document.schema)
    if errors:
        raise SchemaError(errors)

    temp_dir = _prepare_temp_dir(slug)
    try:
        rendered = render_worksheet(
            document.schema,
            document.title,
            description=document.description,
            instructions=document.instructions,
            show_branding=show_branding,
            values=values,
        )
        pdf_path = artifact_path(slug, "pdf", base_dir=temp_dir, include_slug=False)
        pdf_path.write_bytes(rendered.pdf_bytes)
        artifacts: List[tuple[str, Path]] = [("pdf", pdf_path)]
        artifacts.append(("fields", _write_field_map(rendered, temp_dir, slug)))

        if previews > 0:
            paths = render_previews(slug, pdf_path, count=previews, base_dir=temp_dir, include_slug=False)
            artifacts.extend((f"preview_{i}", path) for i, path in enumerate(paths, start=1))
    except BaseException:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    return rendered, _finalize_artifacts(temp_dir, config.OUT_DIR / slug, artifacts)


def export_worksheet(
    document: WorksheetDocument,
    values: Dict[str, Any] | None = None,
    show_branding: bool = True,
    previews: int = 0,
    slug: str | None = None,
) -> ExportResult:
    init_db()
    slug = slug or slug_from_title(document.title)
    record = ExportRecord(slug=slug, title=document.title, prefilled=bool(values))
    logger.info("Exporting %s", slug)

    try:
        rendered, artifacts = build_export(
            document, slug, values=values, show_branding=show_branding, previews=previews
        )
    except SchemaError as exc:
        logger.warning("Export %s rejected: %s", slug, exc)
        record.status = ExportStatus.FAILED
        record.fail_code = "VALIDATION_FAILED"
        errors = exc.problems
        artifacts = []
    except Exception as exc:
        logger.exception("Export error for %s", slug)
        record.status = ExportStatus.FAILED
        record.fail_code = "EXPORT_ERROR"
        errors = [str(exc) or exc.__class__.__name__]
        artifacts = []
    else:
        record.status = ExportStatus.READY
        record.page_count = rendered.page_count
        record.field_count = len(rendered.widgets)
        errors = []

    if errors:
        record.fail_detail = errors[0]
        artifacts = [("error", _write_error(slug, "\n".join(errors)))]

    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
    record_artifacts(record, artifacts)

    logger.info("Export %s finished: %s", slug, record.status.value)
    return ExportResult(slug=slug, status=record.status, artifacts=artifacts, errors=errors, record_id=record.id)
