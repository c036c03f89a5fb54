"""Hotspots CLI command -- complex files that change often."""

from pathlib import Path
from typing import Optional

import typer

from ..analysis import hotspots as hotspots_analysis
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
def hotspots(
    path: Path = PATH_ARGUMENT,
    top: int = typer.Option(20, "--top", "-n", help="Hotspots to list", min=1),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Rank files by complexity and recent churn.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        result = hotspots_analysis.from_context(ctx, top=top)
    emit(result.to_dict())
