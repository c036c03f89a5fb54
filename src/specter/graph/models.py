"""Knowledge graph data models.

The graph is produced by an external scanner and persisted as JSON with
camelCase keys. These models are the in-memory view every analyzer reads;
none of them mutates a graph after it has been loaded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from ..exceptions import InvalidGraphError

GRAPH_VERSION = "1.0.0"


class NodeType(Enum):
    FILE = "file"
    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    VARIABLE = "variable"


class EdgeType(Enum):
    """Relationship kinds. Import analysis reads IMPORTS; dead-code detection
    also counts CALLS, USES, EXTENDS and IMPLEMENTS as references."""

    IMPORTS = "imports"
    EXPORTS = "exports"
    CONTAINS = "contains"
    CALLS = "calls"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    USES = "uses"


# Keys the models own; anything else on a node survives a load/save round-trip
# via GraphNode.attributes.
_NODE_KEYS = {
    "id",
    "type",
    "name",
    "filePath",
    "lineStart",
    "lineEnd",
    "exported",
    "complexity",
    "lastModified",
    "modificationCount",
    "contributors",
    "documentation",
}


@dataclass
class GraphNode:
    id: str
    type: NodeType
    name: str
    file_path: str
    line_start: int = 1
    line_end: int = 1
    exported: bool = False
    complexity: Optional[int] = None  # None = not measured
    contributors: list[str] = field(default_factory=list)  # most significant first
    last_modified: Optional[str] = None
    modification_count: int = 0
    documentation: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidGraphError("node id must be non-empty")
        if self.line_start > self.line_end:
            raise InvalidGraphError(
                f"lineStart {self.line_start} > lineEnd {self.line_end}", node_id=self.id
            )
        if self.complexity is not None and self.complexity < 0:
            raise InvalidGraphError("complexity must be non-negative", node_id=self.id)
        if self.modification_count < 0:
            raise InvalidGraphError("modificationCount must be non-negative", node_id=self.id)

    @property
    def is_file(self) -> bool:
        return self.type is NodeType.FILE

    @property
    def line_count(self) -> int:
        """Lines covered by the node; file nodes prefer the scanner's lineCount."""
        if self.is_file and isinstance(self.attributes.get("lineCount"), int):
            return self.attributes["lineCount"]
        return self.line_end - self.line_start + 1

    def to_dict(self) -> dict:
        data: dict[str, Any] = dict(self.attributes)
        data.update(
            {
                "id": self.id,
                "type": self.type.value,
                "name": self.name,
                "filePath": self.file_path,
                "lineStart": self.line_start,
                "lineEnd": self.line_end,
                "exported": self.exported,
            }
        )
        if self.complexity is not None:
            data["complexity"] = self.complexity
        if self.contributors:
            data["contributors"] = list(self.contributors)
        if self.last_modified is not None:
            data["lastModified"] = self.last_modified
        if self.modification_count:
            data["modificationCount"] = self.modification_count
        if self.documentation is not None:
            data["documentation"] = self.documentation
        return data

    @classmethod
    def from_dict(cls, data: dict) -> GraphNode:
        node_id = data.get("id", "")
        try:
            node_type = NodeType(data["type"])
        except (KeyError, ValueError):
            raise InvalidGraphError(f"unknown node type {data.get('type')!r}", node_id=node_id)
        return cls(
            id=node_id,
            type=node_type,
            name=data.get("name", ""),
            file_path=data.get("filePath", ""),
            line_start=int(data.get("lineStart", 1)),
            line_end=int(data.get("lineEnd", data.get("lineStart", 1))),
            exported=bool(data.get("exported", False)),
            complexity=data.get("complexity"),
            contributors=list(data.get("contributors") or []),
            last_modified=data.get("lastModified"),
            modification_count=int(data.get("modificationCount") or 0),
            documentation=data.get("documentation"),
            attributes={k: v for k, v in data.items() if k not in _NODE_KEYS},
        )


@dataclass
class Edge:
    source: str
    target: str
    type: EdgeType
    id: str = ""
    weight: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.source}->{self.target}:{self.type.value}"

    @property
    def key(self) -> tuple[str, str, EdgeType]:
        return (self.source, self.target, self.type)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
        }
        if self.weight is not None:
            data["weight"] = self.weight
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Edge:
        try:
            edge_type = EdgeType(data["type"])
        except (KeyError, ValueError):
            raise InvalidGraphError(f"unknown edge type {data.get('type')!r}")
        if not data.get("source") or not data.get("target"):
            raise InvalidGraphError("edge source and target must be non-empty")
        return cls(
            source=data["source"],
            target=data["target"],
            type=edge_type,
            id=data.get("id", ""),
            weight=data.get("weight"),
        )


@dataclass
class GraphMetadata:
    root_dir: str
    scanned_at: str
    file_count: int = 0
    total_lines: int = 0
    scan_duration_ms: int = 0
    languages: dict[str, int] = field(default_factory=dict)
    node_count: int = 0
    edge_count: int = 0

    def to_dict(self) -> dict:
        return {
            "scannedAt": self.scanned_at,
            "scanDurationMs": self.scan_duration_ms,
            "rootDir": self.root_dir,
            "fileCount": self.file_count,
            "totalLines": self.total_lines,
            "languages": dict(self.languages),
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> GraphMetadata:
        return cls(
            root_dir=data.get("rootDir", ""),
            scanned_at=data.get("scannedAt", ""),
            file_count=int(data.get("fileCount", 0)),
            total_lines=int(data.get("totalLines", 0)),
            scan_duration_ms=int(data.get("scanDurationMs", 0)),
            languages=dict(data.get("languages") or {}),
            node_count=int(data.get("nodeCount", 0)),
            edge_count=int(data.get("edgeCount", 0)),
        )


@dataclass
class KnowledgeGraph:
    """Nodes keyed by id, edges in scanner order, and scan metadata."""

    metadata: GraphMetadata
    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    version: str = GRAPH_VERSION

    def file_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes.values() if n.is_file]

    def file_paths(self) -> list[str]:
        return sorted(n.file_path for n in self.file_nodes())

    def path_of(self, node_id: str) -> str:
        """File path of the node with ``node_id`` (the id itself if unknown)."""
        node = self.nodes.get(node_id)
        return node.file_path if node is not None and node.file_path else node_id

    def find_file_node(self, path: str) -> Optional[GraphNode]:
        """Resolve a path to its file node: exact id, exact path, then suffix match."""
        node = self.nodes.get(path)
        if node is not None and node.is_file:
            return node
        files = self.file_nodes()
        for candidate in files:
            if candidate.file_path == path:
                return candidate
        for candidate in files:
            if _is_path_suffix(candidate.file_path, path) or _is_path_suffix(
                path, candidate.file_path
            ):
                return candidate
        return None

    def symbols_in(self, path: str) -> list[GraphNode]:
        return [n for n in self.nodes.values() if not n.is_file and n.file_path == path]

    def file_complexity(self, path: str) -> Optional[int]:
        """File node complexity if measured, else the highest symbol complexity."""
        node = self.find_file_node(path)
        if node is not None and node.complexity is not None:
            return node.complexity
        values = [n.complexity for n in self.symbols_in(path) if n.complexity is not None]
        return max(values) if values else None

    def unique_edges(self, edge_type: Optional[EdgeType] = None) -> Iterator[Edge]:
        """Edges deduplicated by (source, target, type), optionally filtered."""
        seen: set[tuple[str, str, EdgeType]] = set()
        for edge in self.edges:
            if edge_type is not None and edge.type is not edge_type:
                continue
            if edge.key in seen:
                continue
            seen.add(edge.key)
            yield edge

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "metadata": self.metadata.to_dict(),
            "nodes": {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            "edges": [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict) -> KnowledgeGraph:
        if not isinstance(data, dict):
            raise InvalidGraphError("graph document must be an object")
        raw_nodes = data.get("nodes") or {}
        if isinstance(raw_nodes, list):
            raw_nodes = {n.get("id", ""): n for n in raw_nodes}
        nodes = {}
        for node_id, raw in raw_nodes.items():
            raw = dict(raw)
            raw.setdefault("id", node_id)
            nodes[node_id] = GraphNode.from_dict(raw)
        return cls(
            metadata=GraphMetadata.from_dict(data.get("metadata") or {}),
            nodes=nodes,
            edges=[Edge.from_dict(e) for e in data.get("edges") or []],
            version=data.get("version", GRAPH_VERSION),
        )


def _is_path_suffix(path: str, suffix: str) -> bool:
    """True when ``suffix`` is ``path`` or its trailing whole segments."""
    return path == suffix or path.endswith("/" + suffix.lstrip("/"))
