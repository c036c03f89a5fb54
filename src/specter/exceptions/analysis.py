"""Analysis exceptions: git access and analyzer failures."""

from pathlib import Path

from .base import SpecterError

NOT_A_REPOSITORY_HINT = "Not a git repository - history-dependent metrics unavailable."


class GitError(SpecterError):
    """Base class for version-control errors."""

    pass


class NotAGitRepositoryError(GitError):
    """Raised when the project root is not inside a git work tree."""

    def __init__(self, root_dir: Path):
        super().__init__(NOT_A_REPOSITORY_HINT, details={"root": str(root_dir)})
        self.root_dir = root_dir


class GitUnavailableError(GitError):
    """Raised when the git executable is missing or a git command fails."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"git {command} failed", details={"command": command, "reason": reason}
        )
        self.command = command
        self.reason = reason


class AnalyzerFailure(SpecterError):
    """Raised (or recorded) when a single analyzer fails inside an aggregate."""

    def __init__(self, analyzer: str, reason: str):
        super().__init__(
            f"Analyzer {analyzer} failed", details={"analyzer": analyzer, "reason": reason}
        )
        self.analyzer = analyzer
        self.reason = reason
