"""Exception hierarchy for Specter."""

from .analysis import (
    NOT_A_REPOSITORY_HINT,
    AnalyzerFailure,
    GitError,
    GitUnavailableError,
    NotAGitRepositoryError,
)
from .base import SpecterError
from .config import ConfigurationError, InvalidConfigError
from .state import (
    NOT_SCANNED_HINT,
    CorruptStateError,
    InvalidGraphError,
    NotScannedError,
    StateError,
)

__all__ = [
    "SpecterError",
    "StateError",
    "NotScannedError",
    "CorruptStateError",
    "InvalidGraphError",
    "GitError",
    "NotAGitRepositoryError",
    "GitUnavailableError",
    "AnalyzerFailure",
    "ConfigurationError",
    "InvalidConfigError",
    "NOT_SCANNED_HINT",
    "NOT_A_REPOSITORY_HINT",
]
