"""Shared test fixtures for Specter."""

import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from specter.clock import to_iso
from specter.graph.models import (
    Edge,
    EdgeType,
    GraphMetadata,
    GraphNode,
    KnowledgeGraph,
    NodeType,
)
from specter.history.models import ComplexityDistribution, HealthSnapshot, SnapshotMetrics

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow and git markers."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")
    config.addinivalue_line("markers", "git: test shells out to a real git executable")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given, and git tests when git is missing."""
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    skip_git = pytest.mark.skip(reason="git executable not available")
    has_git = shutil.which("git") is not None
    for item in items:
        if "slow" in item.keywords and not config.getoption("--run-slow"):
            item.add_marker(skip_slow)
        if "git" in item.keywords and not has_git:
            item.add_marker(skip_git)


def build_graph(
    files: dict[str, dict],
    imports: Optional[list[tuple[str, str]]] = None,
    symbols: Optional[list[dict]] = None,
    root_dir: str = "/repo",
) -> KnowledgeGraph:
    """Graph with one file node per ``files`` key (id == path).

    ``files`` values may set ``complexity``, ``lines`` and ``contributors``.
    ``symbols`` entries need ``file`` and ``name``; ``type`` defaults to
    function, ``exported`` to True.
    """
    nodes: dict[str, GraphNode] = {}
    total_lines = 0
    for path, attrs in files.items():
        lines = attrs.get("lines", 10)
        total_lines += lines
        nodes[path] = GraphNode(
            id=path,
            type=NodeType.FILE,
            name=Path(path).name,
            file_path=path,
            line_start=1,
            line_end=lines,
            complexity=attrs.get("complexity"),
            contributors=list(attrs.get("contributors", [])),
        )
    for entry in symbols or []:
        symbol_id = f"{entry['file']}::{entry['name']}"
        start = entry.get("line", 1)
        nodes[symbol_id] = GraphNode(
            id=symbol_id,
            type=NodeType(entry.get("type", "function")),
            name=entry["name"],
            file_path=entry["file"],
            line_start=start,
            line_end=start + entry.get("length", 5),
            exported=entry.get("exported", True),
            complexity=entry.get("complexity"),
        )

    edges = [Edge(source=a, target=b, type=EdgeType.IMPORTS) for a, b in imports or []]
    for node in nodes.values():
        if not node.is_file:
            edges.append(Edge(source=node.file_path, target=node.id, type=EdgeType.CONTAINS))

    metadata = GraphMetadata(
        root_dir=root_dir,
        scanned_at=to_iso(NOW),
        file_count=len(files),
        total_lines=total_lines,
        scan_duration_ms=42,
        languages={"typescript": len(files)},
    )
    return KnowledgeGraph(metadata=metadata, nodes=nodes, edges=edges)


def build_snapshot(
    moment: datetime,
    health: int = 80,
    avg_complexity: float = 4.0,
    file_count: int = 10,
    total_lines: int = 1000,
    hotspots: int = 0,
    very_high: int = 0,
) -> HealthSnapshot:
    stamp = to_iso(moment)
    return HealthSnapshot(
        id=stamp,
        timestamp=stamp,
        metrics=SnapshotMetrics(
            file_count=file_count,
            total_lines=total_lines,
            avg_complexity=avg_complexity,
            max_complexity=int(avg_complexity * 3),
            hotspot_count=hotspots,
            health_score=health,
        ),
        distribution=ComplexityDistribution(low=5, medium=3, high=2, very_high=very_high),
    )


@pytest.fixture
def now():
    """Fixed clock used across analyzers."""
    return NOW


@pytest.fixture
def make_graph():
    """Factory for small in-memory knowledge graphs."""
    return build_graph


@pytest.fixture
def make_snapshot():
    """Factory for health snapshots at a given moment."""
    return build_snapshot


@pytest.fixture
def triangle_graph():
    """a.ts -> b.ts -> c.ts -> a.ts."""
    return build_graph(
        {"src/a.ts": {}, "src/b.ts": {}, "src/c.ts": {}},
        imports=[("src/a.ts", "src/b.ts"), ("src/b.ts", "src/c.ts"), ("src/c.ts", "src/a.ts")],
    )


class GitRepo:
    """Throwaway git repository with a deterministic clock."""

    def __init__(self, root: Path, start: datetime = NOW - timedelta(days=30)):
        self.root = root
        self.clock = start
        self.git("init", "-q")
        self.git("config", "user.name", "Alice")
        self.git("config", "user.email", "alice@example.com")
        self.git("config", "commit.gpgsign", "false")

    def git(self, *args: str, env: Optional[dict] = None) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.root), *args],
            capture_output=True,
            text=True,
            check=True,
            env=env,
        )
        return result.stdout

    def write(self, path: str, content: str) -> None:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def commit(
        self,
        files: dict[str, str],
        message: str = "change",
        author: str = "Alice",
        email: str = "alice@example.com",
    ) -> None:
        for path, content in files.items():
            self.write(path, content)
        self.git("add", "-A")
        self.clock += timedelta(hours=1)
        stamp = self.clock.strftime("%Y-%m-%dT%H:%M:%S+00:00")
        env = {
            "GIT_AUTHOR_NAME": author,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": author,
            "GIT_COMMITTER_EMAIL": email,
            "GIT_COMMITTER_DATE": stamp,
            "PATH": os.environ.get("PATH", ""),
            "HOME": str(self.root),
        }
        self.git("commit", "-q", "-m", message, env=env)


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository under tmp_path."""
    return GitRepo(tmp_path)
