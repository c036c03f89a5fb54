"""Changed files of a pending change: the index, a branch range or one commit.

Line counts come from ``--numstat`` and statuses from ``--name-status``,
both NUL-delimited (``-z``) so renamed and oddly named paths parse
unambiguously.
"""

from __future__ import annotations

from ..exceptions import NOT_A_REPOSITORY_HINT, GitUnavailableError
from ..logging_config import get_logger
from ..outcome import Outcome
from .git_miner import GitMiner
from .models import DiffFile

logger = get_logger(__name__)

_STATUS_CODES = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
    "R": "renamed",
    "C": "added",
    "T": "modified",
}


class DiffProvider:
    """Diffs scoped to the miner's directory, with paths relative to it.

    ``exclude`` names directories (relative to that root) left out of
    every diff, such as the state directory.
    """

    def __init__(self, miner: GitMiner, exclude: tuple[str, ...] = ()):
        self.miner = miner
        self.exclude = exclude

    def staged(self) -> Outcome[list[DiffFile]]:
        return self._diff(["diff", "--staged"], [])

    def branch(self, base: str, compare: str = "HEAD") -> Outcome[list[DiffFile]]:
        """Changes on ``compare`` since it diverged from ``base``."""
        return self._diff(["diff"], [f"{base}...{compare}"])

    def commit(self, commit: str) -> Outcome[list[DiffFile]]:
        outcome = self._diff(["diff"], [f"{commit}^", commit])
        if outcome.is_failed:
            # Root commits have no parent
            logger.debug("Falling back to diff-tree for %s: %s", commit, outcome.reason)
            return self._diff(["diff-tree", "-r", "--root", "--no-commit-id"], [commit])
        return outcome

    def _diff(self, command: list[str], revisions: list[str]) -> Outcome[list[DiffFile]]:
        if not self.miner.is_repository():
            return Outcome.empty(NOT_A_REPOSITORY_HINT)
        pathspec = ["--", ".", *(f":(exclude){path}" for path in self.exclude)]
        try:
            numstat = self.miner.run(
                [*command, "-M", "--relative", "--numstat", "-z", *revisions, *pathspec]
            )
            name_status = self.miner.run(
                [*command, "-M", "--relative", "--name-status", "-z", *revisions, *pathspec]
            )
        except GitUnavailableError as e:
            return Outcome.failed(e)

        files = parse_numstat_z(numstat)
        statuses = parse_name_status_z(name_status)
        for diff_file in files:
            status = statuses.get(diff_file.file_path)
            if status is not None:
                diff_file.status = status
        return Outcome.ok(files)


def parse_numstat_z(raw: str) -> list[DiffFile]:
    """Parse ``--numstat -z`` output.

    Plain entries are ``added\\tdeleted\\tpath\\0``; renames leave the path
    empty and follow with ``old\\0new\\0``. ``-`` counts mark binary files.
    """
    tokens = raw.split("\0")
    files: list[DiffFile] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        parts = token.split("\t", 2)
        if len(parts) != 3:
            continue
        added, deleted, path = parts
        old_path = None
        status = "modified"
        if not path:
            if i + 1 >= len(tokens):
                break
            old_path, path = tokens[i], tokens[i + 1]
            i += 2
            status = "renamed"
        is_binary = added == "-" or deleted == "-"
        files.append(
            DiffFile(
                file_path=path,
                status=status,
                additions=0 if is_binary else _to_int(added),
                deletions=0 if is_binary else _to_int(deleted),
                is_binary=is_binary,
                old_path=old_path,
            )
        )
    return files


def parse_name_status_z(raw: str) -> dict[str, str]:
    """Parse ``--name-status -z`` output into new path -> status.

    Entries are ``X\\0path\\0``, or ``R<score>\\0old\\0new\\0`` for renames
    and copies; the new path is the key.
    """
    tokens = raw.split("\0")
    statuses: dict[str, str] = {}
    i = 0
    while i < len(tokens):
        code = tokens[i]
        i += 1
        if not code:
            continue
        letter = code[0]
        if letter in ("R", "C"):
            if i + 1 >= len(tokens):
                break
            path = tokens[i + 1]
            i += 2
        else:
            if i >= len(tokens):
                break
            path = tokens[i]
            i += 1
        if path:
            statuses[path] = _STATUS_CODES.get(letter, "modified")
    return statuses


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0
