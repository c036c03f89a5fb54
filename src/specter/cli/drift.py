"""Drift CLI command -- architectural rules the codebase has wandered from."""

from pathlib import Path
from typing import Optional

from ..analysis import drift as drift_analysis
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
def drift(
    path: Path = PATH_ARGUMENT,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Detect architectural drift: oversized files, import fan-in/fan-out and
    layering violations.

    Layer rules come from [[thresholds.drift_layer_rules]] in specter.toml.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        result = drift_analysis.from_context(ctx)
    emit(result.to_dict())
