"""Graph algorithms over file-level import relationships."""

from __future__ import annotations

from collections import deque
from typing import Iterable

from .models import EdgeType, KnowledgeGraph


def import_adjacency(graph: KnowledgeGraph) -> dict[str, list[str]]:
    """File path -> sorted imported file paths.

    Every file node is seeded so isolated files still appear. Self-imports
    are dropped. Endpoints are resolved to file paths through the node
    table; edges pointing outside the graph keep their raw id.
    """
    adjacency: dict[str, set[str]] = {n.file_path: set() for n in graph.file_nodes()}
    for edge in graph.unique_edges(EdgeType.IMPORTS):
        source = graph.path_of(edge.source)
        target = graph.path_of(edge.target)
        if source == target:
            continue
        adjacency.setdefault(source, set()).add(target)
        adjacency.setdefault(target, set())
    return {node: sorted(targets) for node, targets in adjacency.items()}


def reverse_adjacency(adjacency: dict[str, list[str]]) -> dict[str, list[str]]:
    """Invert an adjacency map: imported file -> files importing it."""
    reverse: dict[str, list[str]] = {node: [] for node in adjacency}
    for source, targets in adjacency.items():
        for target in targets:
            reverse.setdefault(target, []).append(source)
    return reverse


def find_cycles(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """Depth-first search for back edges (iterative).

    Every back edge to a node on the current path yields the path slice
    starting at that node. Only cycles reachable as back edges from the
    DFS tree are reported, so the result is not an enumeration of every
    elementary cycle. Uses an explicit stack to avoid Python recursion
    limits on deep import chains.
    """
    visited: set[str] = set()
    on_path: dict[str, int] = {}
    path: list[str] = []
    cycles: list[list[str]] = []

    for root in sorted(adjacency):
        if root in visited:
            continue

        visited.add(root)
        on_path[root] = 0
        path.append(root)
        call_stack = [(root, iter(adjacency.get(root, [])))]

        while call_stack:
            node, neighbors = call_stack[-1]
            advanced = False
            for neighbor in neighbors:
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_path[neighbor] = len(path)
                    path.append(neighbor)
                    call_stack.append((neighbor, iter(adjacency.get(neighbor, []))))
                    advanced = True
                    break
                if neighbor in on_path:
                    cycles.append(path[on_path[neighbor] :])
            if not advanced:
                call_stack.pop()
                path.pop()
                del on_path[node]

    return cycles


def canonical_cycle(files: list[str]) -> list[str]:
    """Rotate a cycle so it starts at its lexicographically smallest file."""
    if not files:
        return []
    start = files.index(min(files))
    return files[start:] + files[:start]


def transitive_dependents(
    reverse_adj: dict[str, list[str]], starts: Iterable[str]
) -> set[str]:
    """Files that transitively import any of ``starts``, excluding the starts.

    Single multi-source BFS on the reverse graph. If A imports B, then
    changing B affects A, so we follow reverse edges from each start.
    """
    start_set = set(starts)
    visited: set[str] = set()
    queue: deque[str] = deque()
    for start in start_set:
        queue.extend(reverse_adj.get(start, []))
    while queue:
        node = queue.popleft()
        if node in visited or node in start_set:
            continue
        visited.add(node)
        queue.extend(n for n in reverse_adj.get(node, []) if n not in visited)
    return visited
