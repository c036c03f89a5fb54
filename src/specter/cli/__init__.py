"""CLI entry point - registers all subcommands."""

import typer

app = typer.Typer(
    name="specter",
    help="Specter - knowledge-graph analytics for codebases",
    add_completion=False,
    no_args_is_help=True,
)


# Import subcommands to register them
from .cycles import cycles as _cycles  # noqa: F401, E402
from .coupling import coupling as _coupling  # noqa: F401, E402
from .knowledge import bus_factor as _bus_factor  # noqa: F401, E402
from .hotspots import hotspots as _hotspots  # noqa: F401, E402
from .drift import drift as _drift  # noqa: F401, E402
from .risk import risk as _risk  # noqa: F401, E402
from .cost import cost as _cost  # noqa: F401, E402
from .history import snapshot as _snapshot, trends as _trends  # noqa: F401, E402
from .report import report as _report  # noqa: F401, E402
from .version import version as _version  # noqa: F401, E402
