"""Analysis context: the per-invocation handle every analyzer reads from.

The context owns the configuration, the graph and history stores, and the
git miner for one project root, and memoises the expensive reads (graph
load, repository log, per-file histories) for the lifetime of the
invocation. Nothing here is module-level state, so two contexts for two
roots never share results.

Example:
    >>> ctx = AnalysisContext("/path/to/repo")
    >>> graph = ctx.require_graph()
    >>> history = ctx.git_history()  # EMPTY outside a git repository
"""

from __future__ import annotations

import threading
from functools import cached_property
from pathlib import Path
from typing import Iterable, Optional

from .config import SpecterConfig, ThresholdConfig, load_config
from .exceptions import NotScannedError
from .graph.models import KnowledgeGraph
from .graph.store import GraphStore
from .history.store import HistoryStore
from .logging_config import get_logger
from .outcome import Outcome
from .temporal.diff import DiffProvider
from .temporal.git_miner import GitMiner
from .temporal.models import FileHistory, GitHistory

logger = get_logger(__name__)


class AnalysisContext:
    """Configuration, stores and cached git reads for one project root."""

    def __init__(
        self,
        root_dir: str | Path,
        config: Optional[SpecterConfig] = None,
        miner: Optional[GitMiner] = None,
    ):
        self.root_dir = Path(root_dir).resolve()
        self.config = config or load_config(root_dir=self.root_dir)
        self.graph_store = GraphStore(self.config.state_dir)
        self.history_store = HistoryStore(self.config.state_dir, self.config.max_snapshots)
        self.miner = miner or GitMiner(
            str(self.root_dir),
            max_commits=self.config.git_max_commits,
            max_commits_per_file=self.config.git_max_commits_per_file,
            workers=self.config.git_workers,
            timeout_seconds=self.config.git_timeout_seconds,
        )
        self.diffs = DiffProvider(self.miner, exclude=(self.config.state_dir,))

        self._graph: Optional[Outcome[KnowledgeGraph]] = None
        self._histories: dict[Optional[int], Outcome[GitHistory]] = {}
        self._file_histories: dict[str, FileHistory] = {}
        self._lock = threading.Lock()

    @property
    def thresholds(self) -> ThresholdConfig:
        return self.config.thresholds

    @cached_property
    def is_git_repository(self) -> bool:
        return self.miner.is_repository()

    def load_graph(self) -> Outcome[KnowledgeGraph]:
        if self._graph is None:
            self._graph = self.graph_store.load(self.root_dir)
            if self._graph.is_failed:
                logger.warning("Graph unusable: %s", self._graph.reason)
        return self._graph

    def require_graph(self) -> KnowledgeGraph:
        """The loaded graph.

        Raises:
            NotScannedError: If no graph file exists
            CorruptStateError: If the graph file cannot be parsed
        """
        outcome = self.load_graph()
        if outcome.is_empty:
            raise NotScannedError(str(self.root_dir))
        return outcome.value

    def git_history(self, since_days: Optional[int] = None) -> Outcome[GitHistory]:
        """Repository log. EMPTY outside a repository, FAILED when git errors."""
        with self._lock:
            outcome = self._histories.get(since_days)
            if outcome is None:
                outcome = self.miner.history(since_days=since_days)
                self._histories[since_days] = outcome
        if outcome.is_failed:
            logger.warning("Git history unavailable: %s", outcome.reason)
        return outcome

    def file_histories(self, paths: Iterable[str]) -> dict[str, FileHistory]:
        """Per-file histories for ``paths``; files git knows nothing about are omitted."""
        wanted = list(dict.fromkeys(paths))
        with self._lock:
            missing = [p for p in wanted if p not in self._file_histories]
        if missing:
            fetched = self.miner.file_histories(missing)
            with self._lock:
                self._file_histories.update(fetched)
        with self._lock:
            return {p: self._file_histories[p] for p in wanted if p in self._file_histories}
