"""Risk CLI command -- score a pending change before it lands."""

from pathlib import Path
from typing import Optional

import typer

from ..analysis.risk import calculate_risk
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
def risk(
    path: Path = PATH_ARGUMENT,
    staged: bool = typer.Option(
        True, "--staged", help="Score the staged changes (default)"
    ),
    branch: Optional[str] = typer.Option(
        None, "--branch", "-b", help="Score changes since this branch (base...HEAD)"
    ),
    commit: Optional[str] = typer.Option(
        None, "--commit", help="Score the changes introduced by a single commit"
    ),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Score the risk of a change from six weighted factors.

    [bold cyan]Examples:[/bold cyan]

      specter risk

      specter risk --branch main

      specter risk --commit abc1234
    """
    if branch and commit:
        raise typer.BadParameter("Use either --branch or --commit, not both")
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        score = calculate_risk(ctx, branch=branch, commit=commit)
    emit(score.to_dict())
