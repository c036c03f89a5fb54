"""Coupling CLI command -- files that change together."""

from pathlib import Path
from typing import Optional

import typer

from ..analysis import coupling as coupling_analysis
from . import app
from ._common import (
    CONFIG_OPTION,
    PATH_ARGUMENT,
    QUIET_OPTION,
    VERBOSE_OPTION,
    cli_errors,
    emit,
    open_context,
)


@app.command()
def coupling(
    path: Path = PATH_ARGUMENT,
    min_strength: Optional[float] = typer.Option(
        None,
        "--min-strength",
        "-s",
        help="Minimum coupling strength, as a fraction (0.3) or a percentage (30)",
        min=0,
    ),
    hidden_only: bool = typer.Option(
        False, "--hidden", help="Only show couplings without an import between the files"
    ),
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Only show pairs involving this file"
    ),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Mine git history for files that change together.

    Pairs are classified as expected (an import backs them), suspicious
    (an import exists but history disagrees) or hidden (no import at all).
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        result = coupling_analysis.from_context(
            ctx, min_strength=min_strength, hidden_only=hidden_only
        )
    if file:
        result.pairs = coupling_analysis.coupled_files(result, file)
    emit(result.to_dict())
