"""Extract git history via subprocess.

Every public method degrades instead of raising: outside a repository the
result is EMPTY with a remediation hint, and a failing git command is
FAILED with GitUnavailableError.
"""

from __future__ import annotations

import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import NOT_A_REPOSITORY_HINT, GitUnavailableError
from ..logging_config import get_logger
from ..outcome import Outcome
from .models import Commit, FileChange, FileHistory, GitHistory, Tag

logger = get_logger(__name__)

# Record and unit separators keep subjects containing "|" or tabs intact
_RS = "\x1e"
_US = "\x1f"
_LOG_FORMAT = f"--format={_RS}%H{_US}%at{_US}%an{_US}%ae{_US}%s"


class GitMiner:
    """Read commits, per-file authorship and tags from a repository."""

    def __init__(
        self,
        repo_path: str,
        max_commits: int = 500,
        max_commits_per_file: int = 50,
        workers: int = 8,
        timeout_seconds: int = 30,
    ):
        self.repo_path = str(Path(repo_path).resolve())
        self.max_commits = max_commits
        self.max_commits_per_file = max_commits_per_file
        self.workers = workers
        self.timeout_seconds = timeout_seconds
        self._is_repo: Optional[bool] = None

    def is_repository(self) -> bool:
        if self._is_repo is None:
            try:
                result = subprocess.run(
                    ["git", "-C", self.repo_path, "rev-parse", "--is-inside-work-tree"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                self._is_repo = result.returncode == 0 and result.stdout.strip() == "true"
            except (FileNotFoundError, subprocess.TimeoutExpired):
                self._is_repo = False
        return self._is_repo

    def history(self, since_days: Optional[int] = None) -> Outcome[GitHistory]:
        """Most recent ``max_commits`` commits with per-file numstat, newest first.

        EMPTY only outside a repository. A repository with no commits, or
        none in range, is OK with an empty history.
        """
        if not self.is_repository():
            logger.info("Not a git repository - skipping history")
            return Outcome.empty(NOT_A_REPOSITORY_HINT)
        if self.head_commit() is None:
            return Outcome.ok(GitHistory.from_commits([]))

        args = [
            "log",
            "--numstat",
            "--no-renames",
            "--relative",
            _LOG_FORMAT,
            f"-n{self.max_commits}",
        ]
        if since_days is not None:
            args.append(f"--since={since_days}.days.ago")
        try:
            raw = self.run(args)
        except GitUnavailableError as e:
            logger.warning("git log failed: %s", e)
            return Outcome.failed(e)

        commits = parse_log(raw)
        if not commits:
            logger.debug("No commits in range (since_days=%s)", since_days)
        return Outcome.ok(GitHistory.from_commits(commits))

    def file_history(self, file_path: str) -> Outcome[FileHistory]:
        if not self.is_repository():
            return Outcome.empty(NOT_A_REPOSITORY_HINT)
        args = [
            "log",
            "--numstat",
            "--no-renames",
            "--relative",
            _LOG_FORMAT,
            f"-n{self.max_commits_per_file}",
            "--",
            file_path,
        ]
        try:
            raw = self.run(args)
        except GitUnavailableError as e:
            return Outcome.failed(e)

        commits = parse_log(raw)
        if not commits:
            return Outcome.empty(f"No commits touch {file_path}")
        return Outcome.ok(FileHistory.from_commits(file_path, commits))

    def file_histories(self, file_paths: Iterable[str]) -> dict[str, FileHistory]:
        """Per-file histories gathered concurrently. Untracked or failing files are omitted."""
        paths = list(dict.fromkeys(file_paths))
        if not paths or not self.is_repository():
            return {}

        results: dict[str, FileHistory] = {}
        with ThreadPoolExecutor(max_workers=min(self.workers, len(paths))) as executor:
            futures = {executor.submit(self.file_history, fp): fp for fp in paths}
            for future in as_completed(futures):
                fp = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.debug(f"Error reading history of {fp}: {e}")
                    continue
                if outcome.is_ok:
                    results[fp] = outcome.value
                elif outcome.is_failed:
                    logger.debug(f"History unavailable for {fp}: {outcome.reason}")
        return results

    def tags(self) -> Outcome[list[Tag]]:
        """Tags newest first, dated by creator date."""
        if not self.is_repository():
            return Outcome.empty(NOT_A_REPOSITORY_HINT)
        try:
            raw = self.run(
                [
                    "for-each-ref",
                    "--sort=-creatordate",
                    f"--format=%(refname:short){_US}%(creatordate:unix){_US}%(objectname)",
                    "refs/tags",
                ]
            )
        except GitUnavailableError as e:
            return Outcome.failed(e)

        tags = []
        for line in raw.splitlines():
            parts = line.split(_US)
            if len(parts) != 3:
                continue
            try:
                tags.append(Tag(name=parts[0], timestamp=int(parts[1]), commit=parts[2]))
            except ValueError:
                continue
        return Outcome.ok(tags)

    def head_commit(self, length: int = 8) -> Optional[str]:
        if not self.is_repository():
            return None
        try:
            return self.run(["rev-parse", "HEAD"]).strip()[:length] or None
        except GitUnavailableError:
            return None

    def run(self, args: list[str]) -> str:
        """Run a git subcommand in the repository and return stdout.

        Raises:
            GitUnavailableError: If git is missing, times out or exits non-zero
        """
        cmd = ["git", "-c", "core.quotepath=off", "-C", self.repo_path, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            raise GitUnavailableError(args[0], "git executable not found")
        except subprocess.TimeoutExpired:
            raise GitUnavailableError(args[0], f"timed out after {self.timeout_seconds}s")
        if result.returncode != 0:
            raise GitUnavailableError(args[0], result.stderr.strip() or f"exit {result.returncode}")
        return result.stdout


def parse_log(raw: str) -> list[Commit]:
    """Parse ``git log --numstat`` output produced with the miner's record format.

    Merge commits carry no numstat lines and are kept with an empty change
    list; headers with an unparseable timestamp are dropped.
    """
    commits = []
    for record in raw.split(_RS):
        if not record.strip():
            continue
        header, _, body = record.partition("\n")
        parts = header.split(_US, 4)
        if len(parts) < 4:
            continue
        try:
            timestamp = int(parts[1])
        except ValueError:
            continue
        changes = [c for c in (parse_numstat_line(line) for line in body.splitlines()) if c]
        commits.append(
            Commit(
                hash=parts[0],
                timestamp=timestamp,
                author=parts[2],
                email=parts[3],
                subject=parts[4] if len(parts) > 4 else "",
                changes=changes,
            )
        )
    return commits


def parse_numstat_line(line: str) -> Optional[FileChange]:
    """``added<TAB>deleted<TAB>path``; ``-`` counts mark a binary file."""
    parts = line.split("\t", 2)
    if len(parts) != 3 or not parts[2]:
        return None
    added, deleted, path = parts
    if added == "-" or deleted == "-":
        return FileChange(path=path, is_binary=True)
    try:
        return FileChange(path=path, additions=int(added), deletions=int(deleted))
    except ValueError:
        return None
