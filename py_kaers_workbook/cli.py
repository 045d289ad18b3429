# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
This module provides the command-line interface for the KAERS workbook converter.
"""
import logging
from pathlib import Path
from typing import List, Optional

import typer

from . import config
from .engine import ConversionEngine, collect_uploads
from .exceptions import KaersWorkbookError
from .parser import TABLE_FILE_EXTENSION
from .types import TableKind

app = typer.Typer(help="Convert KAERS adverse-event extracts into Excel workbooks.")

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def _settings(profile: str) -> config.AppSettings:
    settings = config.load_config(profile=profile)
    logging.getLogger().setLevel(settings.log_level.upper())
    return settings


@app.command()
def convert(
    inputs: List[Path] = typer.Argument(
        ..., help="Extract files, or directories holding them (not scanned recursively)."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Target path of the normalized workbook."
    ),
    narrative_output: Optional[Path] = typer.Option(
        None, "--narrative-output", "-n", help="Target path of the narrative workbook."
    ),
    no_narrative: bool = typer.Option(
        False, "--no-narrative", help="Skip the narrative workbook."
    ),
    no_dedup: bool = typer.Option(
        False, "--no-dedup", help="Keep superseded and nullified case versions."
    ),
    profile: str = typer.Option(
        "dev", "--profile", "-p", help="The configuration profile to use."
    ),
) -> None:
    """Convert a batch of KAERS extracts into the normalized and narrative workbooks."""
    settings = _settings(profile)
    if no_dedup:
        settings.processing.deduplicate = False

    uploads = collect_uploads(inputs)
    if not uploads:
        typer.secho("No readable input files were given.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        engine = ConversionEngine(config=settings)
        result = engine.run(uploads, narrative=not no_narrative)
        workbook_path = engine.write_workbook(result, output)
        typer.secho(
            f"Wrote {len(result.tables)} sheet(s) to {workbook_path}.", fg=typer.colors.GREEN
        )
        if not no_narrative:
            narrative_path = engine.write_narrative(result, narrative_output)
            typer.secho(
                f"Wrote {len(result.narrative)} narrative record(s) to {narrative_path}.",
                fg=typer.colors.GREEN,
            )
    except KaersWorkbookError as e:
        typer.secho(f"Conversion failed: {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if result.skipped_files:
        typer.secho(
            f"Skipped {len(result.skipped_files)} file(s): {', '.join(result.skipped_files)}",
            fg=typer.colors.YELLOW,
        )


@app.command()
def narrative(
    inputs: List[Path] = typer.Argument(
        ..., help="Extract files, or directories holding them (not scanned recursively)."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Target path of the narrative workbook."
    ),
    profile: str = typer.Option(
        "dev", "--profile", "-p", help="The configuration profile to use."
    ),
) -> None:
    """Write only the per-case narrative workbook."""
    settings = _settings(profile)
    uploads = collect_uploads(inputs)
    if not uploads:
        typer.secho("No readable input files were given.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    try:
        engine = ConversionEngine(config=settings)
        result = engine.run(uploads, narrative=True)
        narrative_path = engine.write_narrative(result, output)
    except KaersWorkbookError as e:
        typer.secho(f"Narrative generation failed: {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(
        f"Wrote {len(result.narrative)} narrative record(s) to {narrative_path}.",
        fg=typer.colors.GREEN,
    )


@app.command()
def kinds() -> None:
    """List the recognized extract file names, in workbook sheet order."""
    for kind in TableKind:
        typer.echo(f"{kind.value}{TABLE_FILE_EXTENSION}")


@app.command()
def init_config(
    path: Path = typer.Option(
        Path("config.yaml"), "--path", help="Where to write the example configuration."
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Write an example configuration file with 'dev' and 'prod' profiles."""
    if path.exists() and not force:
        typer.secho(
            f"{path} already exists; use --force to overwrite it.", err=True, fg=typer.colors.RED
        )
        raise typer.Exit(code=1)
    path.write_text(config.DEFAULT_CONFIG.lstrip(), encoding="utf-8")
    typer.secho(f"Example configuration written to {path}.", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
