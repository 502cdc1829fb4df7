from __future__ import annotations

from pathlib import Path
from typing import List

import fitz  # PyMuPDF

from ..storage import artifact_path


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1200) -> None:
    page = doc.load_page(page_index)

    # scale so the short side lands at roughly min_px pixels
    rect = page.rect
    zoom = max(1.0, min_px / float(min(rect.width, rect.height)))
    pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(
    slug: str,
    pdf_path: Path,
    count: int = 1,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> List[Path]:
    """PNG previews of the first ``count`` pages (fewer if the PDF is shorter)."""
    previews: List[Path] = []
    with fitz.open(pdf_path) as doc:
        for index in range(min(count, doc.page_count)):
            out_path = artifact_path(slug, f"preview_{index + 1}", base_dir=base_dir, include_slug=include_slug)
            _render_page_to_png(doc, index, out_path)
            previews.append(out_path)
    return previews
