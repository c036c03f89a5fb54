"""Knowledge graph models, persistence and structural algorithms."""

from .cycles import Cycle, CyclesResult, detect_cycles
from .models import Edge, EdgeType, GraphMetadata, GraphNode, KnowledgeGraph, NodeType
from .store import GraphStore

__all__ = [
    "Cycle",
    "CyclesResult",
    "detect_cycles",
    "Edge",
    "EdgeType",
    "GraphMetadata",
    "GraphNode",
    "KnowledgeGraph",
    "NodeType",
    "GraphStore",
]
