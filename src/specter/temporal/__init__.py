"""Temporal analysis - git history, per-file authorship and pending diffs."""

from .diff import DiffProvider
from .git_miner import GitMiner
from .models import Commit, ContributorStats, DiffFile, FileChange, FileHistory, GitHistory, Tag

__all__ = [
    "Commit",
    "ContributorStats",
    "DiffFile",
    "DiffProvider",
    "FileChange",
    "FileHistory",
    "GitHistory",
    "GitMiner",
    "Tag",
]
