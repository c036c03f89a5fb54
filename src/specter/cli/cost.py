"""Cost CLI command -- technical debt priced in developer time."""

from pathlib import Path
from typing import Optional

import typer

from ..analysis.cost import estimate_cost
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
def cost(
    path: Path = PATH_ARGUMENT,
    hourly_rate: Optional[float] = typer.Option(
        None, "--rate", "-r", help="Developer hourly rate (default from config: 75)", min=0
    ),
    currency: Optional[str] = typer.Option(
        None, "--currency", help="ISO currency code reported with the costs"
    ),
    dead_code: bool = typer.Option(
        True, "--dead-code/--no-dead-code", help="Include unused exports"
    ),
    config: Optional[Path] = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
    quiet: bool = QUIET_OPTION,
):
    """
    Estimate the yearly cost of complexity, knowledge silos, cycles and dead code.
    """
    ctx = open_context(path, config, verbose, quiet)
    with cli_errors():
        analysis = estimate_cost(
            ctx, hourly_rate=hourly_rate, currency=currency, include_dead_code=dead_code
        )
    emit(analysis.to_dict())
