from __future__ import annotations

from pathlib import Path
from typing import Iterable

from . import config
from .models import ExportArtifact, ExportRecord, get_session


ARTIFACT_NAMES = {
    "pdf": "worksheet.pdf",
    "fields": "fields.json",
    "error": "error.log",
}


def artifact_filename(artifact_type: str) -> str:
    if artifact_type.startswith("preview_"):
        index = int(artifact_type.split("_", 1)[1])
        return f"preview_{index}.png"
    return ARTIFACT_NAMES[artifact_type]


def export_dir(slug: str, base_dir: Path | None = None, include_slug: bool = True) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / slug if include_slug else root
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(
    slug: str,
    artifact_type: str,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    return export_dir(slug, base_dir=base_dir, include_slug=include_slug) / artifact_filename(artifact_type)


def record_artifacts(record: ExportRecord, artifacts: Iterable[tuple[str, Path]]) -> None:
    with get_session() as session:
        for artifact_type, path in artifacts:
            session.add(
                ExportArtifact(
                    export_id=record.id,
                    type=artifact_type,
                    path=str(path.relative_to(config.OUT_DIR)),
                )
            )
        session.commit()
