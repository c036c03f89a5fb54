"""Bus-factor CLI command -- knowledge concentration per file."""

from pathlib import Path
from typing import Optional

import typer

from ..analysis import knowledge
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


@app.command("bus-factor")
def bus_factor(
    path: Path = PATH_ARGUMENT,
    top: int = typer.Option(20, "--top", "-n", help="Riskiest files to list", min=1),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Show how concentrated knowledge of each file is among its authors.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        result = knowledge.from_context(ctx)
    result.files = result.files[:top]
    emit(result.to_dict())
