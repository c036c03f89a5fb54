"""Exported functions and classes that nothing references."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from ..graph.models import EdgeType, GraphNode, KnowledgeGraph, NodeType

_SYMBOL_TYPES = frozenset({NodeType.FUNCTION, NodeType.CLASS})

# Edge types that count as a use of their target
_REFERENCE_EDGES = (
    EdgeType.IMPORTS,
    EdgeType.CALLS,
    EdgeType.USES,
    EdgeType.EXTENDS,
    EdgeType.IMPLEMENTS,
)


@dataclass
class DeadCodeResult:
    unused: list[GraphNode] = field(default_factory=list)  # sorted by file, then line
    symbols_checked: int = 0

    @property
    def by_file(self) -> dict[str, int]:
        return dict(Counter(n.file_path for n in self.unused))

    def to_dict(self) -> dict:
        return {
            "unusedExports": [
                {
                    "id": n.id,
                    "name": n.name,
                    "type": n.type.value,
                    "filePath": n.file_path,
                    "lineStart": n.line_start,
                }
                for n in self.unused
            ],
            "byFile": self.by_file,
            "symbolsChecked": self.symbols_checked,
        }


def find_unused_exports(graph: KnowledgeGraph) -> DeadCodeResult:
    referenced: set[str] = set()
    for edge_type in _REFERENCE_EDGES:
        referenced.update(e.target for e in graph.unique_edges(edge_type))

    candidates = [n for n in graph.nodes.values() if n.type in _SYMBOL_TYPES and n.exported]
    unused = [n for n in candidates if n.id not in referenced]
    unused.sort(key=lambda n: (n.file_path, n.line_start, n.id))
    return DeadCodeResult(unused=unused, symbols_checked=len(candidates))
