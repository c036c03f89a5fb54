"""Report CLI command -- every analysis in one JSON document."""

from pathlib import Path
from typing import Optional

from ..analysis.report import build_report
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
def report(
    path: Path = PATH_ARGUMENT,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Run cycles, coupling, bus factor, hotspots and trends together.

    Sections that fail are listed under "unavailable" while the rest complete.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        result = build_report(ctx)
    emit(result.to_dict())
