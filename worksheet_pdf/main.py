from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .models import ExportStatus, reset_engine
from .pipeline.ingest import list_exports, load_values, load_worksheet
from .pipeline.readback import read_form_values
from .pipeline.run import export_worksheet

app = typer.Typer(help="Fillable PDF export for clinical worksheets")


def _use_out_dir(out: Optional[Path]) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def export(
    worksheet: Path = typer.Argument(..., help="Worksheet definition JSON"),
    values: Optional[Path] = typer.Option(None, "--values", help="Stored response JSON to pre-fill"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    no_branding: bool = typer.Option(False, "--no-branding", help="Omit the branded footer"),
    previews: int = typer.Option(0, "--previews", min=0, help="PNG previews of the first N pages"),
) -> None:
    _use_out_dir(out)
    document = load_worksheet(worksheet)
    stored = load_values(values) if values else None
    result = export_worksheet(document, values=stored, show_branding=not no_branding, previews=previews)

    typer.echo(f"{result.status.value}: {result.slug}")
    if result.status == ExportStatus.FAILED:
        for error in result.errors:
            typer.echo(f"  - {error}")
        raise typer.Exit(code=1)
    for artifact_type, path in result.artifacts:
        typer.echo(f"  {artifact_type}: {path}")


@app.command()
def fields(pdf: Path = typer.Argument(..., help="Exported PDF")) -> None:
    if not pdf.exists():
        typer.echo(f"PDF not found: {pdf}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(read_form_values(pdf.read_bytes()), indent=2, ensure_ascii=False))


@app.command()
def history(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    failed: bool = typer.Option(False, "--failed", help="Only failed exports"),
    limit: int = typer.Option(20, "--limit", min=1),
) -> None:
    _use_out_dir(out)
    statuses = [ExportStatus.FAILED] if failed else []
    records = list_exports(statuses, limit=limit)
    if not records:
        typer.echo("No exports recorded")
        return
    for record in records:
        line = f"{record.created_at:%Y-%m-%d %H:%M}  {record.status.value:<6}  {record.slug}"
        if record.status == ExportStatus.READY:
            line += f"  ({record.page_count} pages, {record.field_count} fields)"
        elif record.fail_detail:
            line += f"  {record.fail_detail}"
        typer.echo(line)


if __name__ == "__main__":
    app()
