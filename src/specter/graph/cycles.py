"""Circular import detection over the knowledge graph."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from posixpath import basename
from typing import Optional

from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..logging_config import get_logger
from .algorithms import canonical_cycle, find_cycles, import_adjacency
from .models import KnowledgeGraph

logger = get_logger(__name__)

_SEVERITY_RANK = {"high": 0, "medium": 1, "low": 2}


@dataclass
class Cycle:
    files: list[str]  # canonical rotation, smallest file first
    length: int
    severity: str  # "low" | "medium" | "high"

    @property
    def key(self) -> str:
        return "::".join(self.files)

    def to_dict(self) -> dict:
        return {"files": list(self.files), "length": self.length, "severity": self.severity}


@dataclass
class CyclesResult:
    cycles: list[Cycle] = field(default_factory=list)
    affected_files: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def total_cycles(self) -> int:
        return len(self.cycles)

    @property
    def affected_file_count(self) -> int:
        return len(self.affected_files)

    @property
    def worst_cycle(self) -> Optional[Cycle]:
        return self.cycles[0] if self.cycles else None

    def count_by_severity(self) -> dict[str, int]:
        counts = Counter(c.severity for c in self.cycles)
        return {level: counts.get(level, 0) for level in ("high", "medium", "low")}

    def to_dict(self) -> dict:
        worst = self.worst_cycle
        return {
            "cycles": [c.to_dict() for c in self.cycles],
            "totalCycles": self.total_cycles,
            "bySeverity": self.count_by_severity(),
            "affectedFiles": list(self.affected_files),
            "affectedFileCount": self.affected_file_count,
            "worstCycle": worst.to_dict() if worst else None,
            "suggestions": list(self.suggestions),
        }


def detect_cycles(
    graph: KnowledgeGraph, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
) -> CyclesResult:
    """Find import cycles, canonicalise, deduplicate and rank them."""
    adjacency = import_adjacency(graph)

    unique: dict[str, Cycle] = {}
    for raw in find_cycles(adjacency):
        files = canonical_cycle(raw)
        cycle = Cycle(files=files, length=len(files), severity=thresholds.cycle_severity(len(files)))
        unique.setdefault(cycle.key, cycle)

    cycles = sorted(
        unique.values(), key=lambda c: (_SEVERITY_RANK[c.severity], -c.length, c.key)
    )
    affected = sorted({f for c in cycles for f in c.files})
    logger.debug("Found %d unique cycles across %d files", len(cycles), len(affected))

    return CyclesResult(
        cycles=cycles, affected_files=affected, suggestions=_suggestions(cycles)
    )


def _suggestions(cycles: list[Cycle]) -> list[str]:
    if not cycles:
        return ["No circular dependencies detected - great job!"]

    suggestions = []
    file_counts = Counter(f for c in cycles for f in c.files)
    # ties broken by path
    top_file, count = sorted(file_counts.items(), key=lambda kv: (-kv[1], kv[0]))[0]
    suggestions.append(
        f'Consider refactoring "{basename(top_file)}" - it appears in {count} cycle(s)'
    )

    high = sum(1 for c in cycles if c.severity == "high")
    medium = sum(1 for c in cycles if c.severity == "medium")

    if high > 0:
        suggestions.append(
            "Focus on breaking long cycles first - they indicate deeper architectural issues"
        )
    if len(cycles) > 5:
        suggestions.append("Consider introducing interface modules to break dependency chains")
    if any(c.length == 2 for c in cycles):
        suggestions.append(
            "2-file cycles can often be resolved by extracting shared logic to a third module"
        )
    if medium > 3:
        suggestions.append("Many medium cycles suggest the need for clearer module boundaries")

    suggestions.append(
        "Use dependency injection or event-based patterns to decouple tightly coupled modules"
    )
    return suggestions
