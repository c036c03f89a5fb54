"""Cycles CLI command -- circular imports between files."""

from pathlib import Path
from typing import Optional

from ..graph.cycles import detect_cycles
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
def cycles(
    path: Path = PATH_ARGUMENT,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Find circular import chains in the knowledge graph.

    Cycles are reported once each, worst severity first.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        result = detect_cycles(ctx.require_graph(), ctx.thresholds)
    emit(result.to_dict())
