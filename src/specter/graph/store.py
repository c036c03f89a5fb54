"""Persistence of the knowledge graph under ``<root>/<state_dir>/``.

Layout:
    .specter/graph.json     the full graph document
    .specter/metadata.json  scan metadata only, for cheap status checks

Loading never raises: a missing graph is EMPTY (the project has not been
scanned), an unreadable or malformed one is FAILED with CorruptStateError.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from ..clock import parse_iso
from ..exceptions import NOT_SCANNED_HINT, CorruptStateError, SpecterError
from ..file_ops import atomic_write_json, read_json
from ..logging_config import get_logger
from ..outcome import Outcome
from .models import GraphMetadata, KnowledgeGraph

logger = get_logger(__name__)

GRAPH_FILE = "graph.json"
METADATA_FILE = "metadata.json"


class GraphStore:
    """Load and save the knowledge graph of one project."""

    def __init__(self, state_dir: str = ".specter"):
        self.state_dir_name = state_dir

    def state_dir(self, root_dir: Path) -> Path:
        return Path(root_dir) / self.state_dir_name

    def graph_path(self, root_dir: Path) -> Path:
        return self.state_dir(root_dir) / GRAPH_FILE

    def exists(self, root_dir: Path) -> bool:
        return self.graph_path(root_dir).is_file()

    def load(self, root_dir: Path) -> Outcome[KnowledgeGraph]:
        path = self.graph_path(root_dir)
        try:
            data = read_json(path)
        except FileNotFoundError:
            return Outcome.empty(NOT_SCANNED_HINT)
        except CorruptStateError as e:
            logger.warning("Graph file unreadable: %s", e)
            return Outcome.failed(e)

        try:
            graph = KnowledgeGraph.from_dict(data)
        except (SpecterError, TypeError, ValueError, AttributeError) as e:
            error = CorruptStateError(path, str(e))
            logger.warning("Graph file malformed: %s", error)
            return Outcome.failed(error)

        logger.debug("Loaded graph with %d nodes, %d edges", len(graph.nodes), len(graph.edges))
        return Outcome.ok(graph)

    def load_metadata(self, root_dir: Path) -> Outcome[GraphMetadata]:
        path = self.state_dir(root_dir) / METADATA_FILE
        try:
            return Outcome.ok(GraphMetadata.from_dict(read_json(path)))
        except FileNotFoundError:
            return Outcome.empty(NOT_SCANNED_HINT)
        except CorruptStateError as e:
            return Outcome.failed(e)
        except (TypeError, ValueError, AttributeError) as e:
            return Outcome.failed(CorruptStateError(path, str(e)))

    def save(self, root_dir: Path, graph: KnowledgeGraph) -> Path:
        """Write graph and metadata atomically. Returns the graph file path."""
        graph.metadata.node_count = len(graph.nodes)
        graph.metadata.edge_count = len(graph.edges)

        state = self.state_dir(root_dir)
        path = state / GRAPH_FILE
        atomic_write_json(path, graph.to_dict())
        atomic_write_json(state / METADATA_FILE, graph.metadata.to_dict())
        self._ensure_gitignored(Path(root_dir))
        logger.debug("Saved graph to %s", path)
        return path

    def delete(self, root_dir: Path) -> bool:
        """Remove the whole state directory. Returns False if there was none."""
        state = self.state_dir(root_dir)
        if not state.exists():
            return False
        shutil.rmtree(state)
        return True

    def is_stale(self, root_dir: Path, graph: KnowledgeGraph) -> bool:
        """True if any file in the graph was modified after the scan."""
        scanned_at = parse_iso(graph.metadata.scanned_at)
        if scanned_at is None:
            return True
        cutoff = scanned_at.timestamp()
        root = Path(root_dir)
        for path in graph.file_paths():
            try:
                if (root / path).stat().st_mtime > cutoff:
                    return True
            except OSError:
                continue
        return False

    def _ensure_gitignored(self, root_dir: Path) -> None:
        gitignore = root_dir / ".gitignore"
        entry = f"{self.state_dir_name}/"
        try:
            if gitignore.exists():
                content = gitignore.read_text(encoding="utf-8")
                if entry in content.splitlines() or self.state_dir_name in content.splitlines():
                    return
                prefix = "" if not content or content.endswith("\n") else "\n"
                with open(gitignore, "a", encoding="utf-8") as f:
                    f.write(f"{prefix}{entry}\n")
            elif (root_dir / ".git").exists():
                gitignore.write_text(f"{entry}\n", encoding="utf-8")
        except OSError as e:
            logger.debug("Could not update .gitignore: %s", e)
