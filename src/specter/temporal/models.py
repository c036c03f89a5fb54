"""Data models for git-derived history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class FileChange:
    path: str
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions


@dataclass
class Commit:
    hash: str
    timestamp: int  # unix seconds
    author: str
    email: str = ""
    subject: str = ""
    changes: list[FileChange] = field(default_factory=list)

    @property
    def files(self) -> list[str]:
        return [c.path for c in self.changes]


@dataclass
class GitHistory:
    commits: list[Commit]  # newest first
    file_set: set[str]  # all files ever seen
    span_days: int  # time range covered

    @property
    def total_commits(self) -> int:
        return len(self.commits)

    def since(self, timestamp: int) -> list[Commit]:
        return [c for c in self.commits if c.timestamp >= timestamp]

    @classmethod
    def from_commits(cls, commits: list[Commit]) -> GitHistory:
        file_set: set[str] = set()
        for c in commits:
            file_set.update(c.files)
        span_days = 0
        if len(commits) >= 2:
            newest = max(c.timestamp for c in commits)
            oldest = min(c.timestamp for c in commits)
            span_days = max(1, (newest - oldest) // 86400)
        return cls(commits=commits, file_set=file_set, span_days=span_days)


@dataclass
class ContributorStats:
    name: str
    email: str = ""
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    last_commit: int = 0  # unix seconds

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "commits": self.commits,
            "additions": self.additions,
            "deletions": self.deletions,
            "lastCommit": self.last_commit,
        }


@dataclass
class FileHistory:
    """Per-file author aggregates from the most recent commits touching the file."""

    file_path: str
    commits: list[Commit] = field(default_factory=list)  # newest first
    contributors: list[ContributorStats] = field(default_factory=list)  # most commits first

    @property
    def commit_count(self) -> int:
        return len(self.commits)

    @property
    def contributor_count(self) -> int:
        return len(self.contributors)

    @property
    def last_modified(self) -> Optional[int]:
        return max((c.timestamp for c in self.commits), default=None)

    @property
    def last_author(self) -> Optional[str]:
        if not self.commits:
            return None
        return max(self.commits, key=lambda c: c.timestamp).author

    @classmethod
    def from_commits(cls, file_path: str, commits: list[Commit]) -> FileHistory:
        """Aggregate per-author stats, keyed by email (name when email is missing)."""
        by_author: dict[str, ContributorStats] = {}
        for commit in commits:
            key = commit.email or commit.author
            stats = by_author.get(key)
            if stats is None:
                stats = by_author[key] = ContributorStats(name=commit.author, email=commit.email)
            stats.commits += 1
            stats.last_commit = max(stats.last_commit, commit.timestamp)
            for change in commit.changes:
                if change.path == file_path:
                    stats.additions += change.additions
                    stats.deletions += change.deletions
        contributors = sorted(by_author.values(), key=lambda s: (-s.commits, s.name))
        return cls(file_path=file_path, commits=commits, contributors=contributors)


@dataclass
class Tag:
    name: str
    timestamp: int  # unix seconds of the tag (or tagged commit)
    commit: str


@dataclass
class DiffFile:
    """One file in a pending change (staged, branch range or single commit)."""

    file_path: str
    status: str  # "added" | "modified" | "deleted" | "renamed"
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False
    old_path: Optional[str] = None

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions

    def to_dict(self) -> dict:
        data = {
            "filePath": self.file_path,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
            "isBinary": self.is_binary,
        }
        if self.old_path:
            data["oldPath"] = self.old_path
        return data
