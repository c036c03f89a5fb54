"""Shared CLI helpers."""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import typer
from rich.console import Console

from ..config import load_config
from ..context import AnalysisContext
from ..exceptions import ConfigurationError, NotScannedError, SpecterError
from ..logging_config import setup_logging

console = Console()
err_console = Console(stderr=True)

PATH_ARGUMENT = typer.Argument(
    Path("."),
    help="Project root (where .specter/ lives)",
    exists=True,
    file_okay=False,
    dir_okay=True,
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Configuration file (TOML)",
    exists=True,
    file_okay=True,
    dir_okay=False,
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
QUIET_OPTION = typer.Option(False, "--quiet", "-q", help="Only log errors")


def open_context(
    path: Path,
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    **overrides: Any,
) -> AnalysisContext:
    """Load configuration, configure logging and build the analysis context for ``path``."""
    root = Path(path).resolve()
    try:
        settings = load_config(
            config_file=config, root_dir=root, verbose=verbose, quiet=quiet, **overrides
        )
    except ConfigurationError as e:
        err_console.print(
            f"Configuration error: {e}", markup=False, highlight=False, soft_wrap=True
        )
        raise typer.Exit(e.exit_code)
    setup_logging(settings.verbosity)
    return AnalysisContext(root, config=settings)


@contextmanager
def cli_errors() -> Iterator[None]:
    """Translate domain errors into a message on stderr and a non-zero exit."""
    try:
        yield
    except NotScannedError as e:
        err_console.print(e.message, markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(e.exit_code)
    except SpecterError as e:
        err_console.print(f"Error: {e}", markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(e.exit_code)


def emit(data: Any) -> None:
    """Write ``data`` to stdout as JSON."""
    console.print_json(data=data)
