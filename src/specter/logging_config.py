"""
Logging configuration for Specter.

Records go to stderr through rich so that JSON written to stdout stays
machine-readable. The level follows ``SpecterConfig.verbosity``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "specter"

VERBOSITY_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}


def setup_logging(verbosity: str = "normal") -> logging.Logger:
    """
    Attach a stderr rich handler to the ``specter`` logger.

    Calling again replaces the handler from the previous call, so running
    several commands in one process never duplicates records.

    Args:
        verbosity: "quiet" (errors only), "normal" (warnings) or
                   "verbose" (debug, with source paths and local variables
                   in tracebacks)

    Returns:
        The configured ``specter`` logger

    Raises:
        ValueError: If ``verbosity`` is not a known level
    """
    try:
        level = VERBOSITY_LEVELS[verbosity]
    except KeyError:
        raise ValueError(
            f"verbosity must be one of {', '.join(VERBOSITY_LEVELS)}, got '{verbosity}'"
        )
    verbose = verbosity == "verbose"

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger(LOGGER_NAME)
    for existing in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the ``specter`` namespace.

    Args:
        name: Module name (e.g. 'specter.graph.store'); names outside the
              namespace are prefixed. None returns the ``specter`` logger.
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)

    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)
