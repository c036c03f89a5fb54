"""History CLI commands -- record snapshots and show health trends."""

from pathlib import Path
from typing import Optional

import typer

from ..history import trends as trend_analysis
from ..history.capture import record_snapshot
from ..history.trends import PERIOD_LENGTHS, calculate_trend
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
def snapshot(
    path: Path = PATH_ARGUMENT,
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Record the current graph's health in the snapshot history.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        taken = record_snapshot(ctx)
    emit(taken.to_dict())


@app.command()
def trends(
    path: Path = PATH_ARGUMENT,
    period: Optional[str] = typer.Option(
        None,
        "--period",
        "-p",
        help="Only the trend for one window: day, week, month or all",
    ),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Show how the health score has moved across recorded snapshots.
    """
    if period is not None and period != "all" and period not in PERIOD_LENGTHS:
        raise typer.BadParameter("period must be one of: day, week, month, all")
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        if period is None:
            emit(trend_analysis.from_context(ctx).to_dict())
            return
        snapshots = ctx.history_store.load_all(ctx.root_dir)
        emit(calculate_trend(snapshots, period, thresholds=ctx.thresholds).to_dict())
