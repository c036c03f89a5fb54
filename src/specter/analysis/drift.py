"""Architectural drift: structure that has wandered from layering rules.

Three graph-only detectors contribute violations:

    - complexity: files above an absolute complexity bound, or well above
      the project mean
    - dependency / coupling: files importing too many files, or imported
      by too many
    - layering: imports that cross a forbidden layer boundary, and pairs
      of layers that import each other

The drift score starts at 100 and loses a per-severity penalty for each
violation, scaled so that ``max(files * per_file, min_max_penalty)`` of
penalty reaches 0.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..config import DEFAULT_THRESHOLDS, LayerRule, ThresholdConfig
from ..graph.algorithms import import_adjacency, reverse_adjacency
from ..graph.models import KnowledgeGraph
from ..logging_config import get_logger

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

DRIFT_TYPES = ("complexity", "dependency", "layering", "coupling")
SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class DriftViolation:
    type: str
    severity: str
    file: str  # file path, or "<layer> <-> <layer>" for layer cycles
    message: str
    suggestion: str

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "severity": self.severity,
            "file": self.file,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass
class DriftResult:
    violations: list[DriftViolation] = field(default_factory=list)
    score: int = 100
    clean_files: int = 0
    total_files: int = 0
    recommendations: list[str] = field(default_factory=list)

    @property
    def by_type(self) -> dict[str, int]:
        counts = Counter(v.type for v in self.violations)
        return {t: counts.get(t, 0) for t in DRIFT_TYPES}

    @property
    def by_severity(self) -> dict[str, int]:
        counts = Counter(v.severity for v in self.violations)
        return {s: counts.get(s, 0) for s in ("low", "medium", "high")}

    def to_dict(self) -> dict:
        return {
            "violations": [v.to_dict() for v in self.violations],
            "score": self.score,
            "summary": {
                "total": len(self.violations),
                "byType": self.by_type,
                "bySeverity": self.by_severity,
                "cleanFiles": self.clean_files,
                "totalFiles": self.total_files,
            },
            "recommendations": list(self.recommendations),
        }


def complexity_drift(
    graph: KnowledgeGraph, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
) -> list[DriftViolation]:
    """Files over the absolute bound, or ``peer_ratio`` times the project mean."""
    measured = {p: graph.file_complexity(p) or 0 for p in graph.file_paths()}
    positive = [c for c in measured.values() if c > 0]
    mean = sum(positive) / len(positive) if positive else thresholds.drift_complexity_default_mean

    violations = []
    for path, complexity in measured.items():
        if complexity > thresholds.drift_complexity_max:
            violations.append(
                DriftViolation(
                    type="complexity",
                    severity="high" if complexity > thresholds.drift_complexity_high else "medium",
                    file=path,
                    message=(
                        f"Complexity {complexity} exceeds threshold of "
                        f"{thresholds.drift_complexity_max}"
                    ),
                    suggestion="Consider breaking this file into smaller, focused modules",
                )
            )
        elif (
            complexity > mean * thresholds.drift_complexity_peer_ratio
            and complexity > thresholds.drift_complexity_peer_min
        ):
            violations.append(
                DriftViolation(
                    type="complexity",
                    severity="low",
                    file=path,
                    message=(
                        f"Complexity {complexity} is {thresholds.drift_complexity_peer_ratio:g}x "
                        f"above average ({round(mean)})"
                    ),
                    suggestion="This file is growing more complex than its peers",
                )
            )
    return violations


def dependency_drift(
    graph: KnowledgeGraph, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
) -> list[DriftViolation]:
    """Files with too many imports (dependency) or too many importers (coupling)."""
    adjacency = import_adjacency(graph)
    violations = []

    for path, targets in sorted(adjacency.items()):
        count = len(targets)
        if count > thresholds.drift_imports_max:
            violations.append(
                DriftViolation(
                    type="dependency",
                    severity="high" if count > thresholds.drift_imports_high else "medium",
                    file=path,
                    message=(
                        f"File imports {count} modules "
                        f"(threshold: {thresholds.drift_imports_max})"
                    ),
                    suggestion="Consider grouping related imports or creating a facade module",
                )
            )
        elif count > thresholds.drift_imports_watch:
            violations.append(
                DriftViolation(
                    type="dependency",
                    severity="low",
                    file=path,
                    message=f"File imports {count} modules",
                    suggestion="Monitor this file as it may be doing too much",
                )
            )

    for path, importers in sorted(reverse_adjacency(adjacency).items()):
        count = len(importers)
        if count > thresholds.drift_dependents_max:
            violations.append(
                DriftViolation(
                    type="coupling",
                    severity="high" if count > thresholds.drift_dependents_high else "medium",
                    file=path,
                    message=f"File is imported by {count} other files",
                    suggestion="High coupling detected - consider if this module is doing too much",
                )
            )
    return violations


def layer_of(path: str, rules: tuple[LayerRule, ...]) -> Optional[LayerRule]:
    for rule in rules:
        if rule.owns(path):
            return rule
    return None


def layering_drift(
    graph: KnowledgeGraph, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
) -> list[DriftViolation]:
    """Forbidden cross-layer imports, then layers that import each other."""
    rules = thresholds.drift_layer_rules
    violations = []
    layer_imports: dict[str, set[str]] = {}

    for source, targets in sorted(import_adjacency(graph).items()):
        source_layer = layer_of(source, rules)
        if source_layer is None:
            continue
        for target in targets:
            segments = {s.lower() for s in target.split("/")[:-1]}
            forbidden = next((f for f in source_layer.forbidden if f in segments), None)
            if forbidden is not None:
                violations.append(
                    DriftViolation(
                        type="layering",
                        severity="high",
                        file=source,
                        message=f"{source_layer.layer} layer imports from {forbidden}",
                        suggestion=source_layer.description,
                    )
                )
            target_layer = layer_of(target, rules)
            if target_layer is not None and target_layer.layer != source_layer.layer:
                layer_imports.setdefault(source_layer.layer, set()).add(target_layer.layer)

    for first in sorted(layer_imports):
        for second in sorted(layer_imports[first]):
            if first < second and first in layer_imports.get(second, set()):
                violations.append(
                    DriftViolation(
                        type="layering",
                        severity="medium",
                        file=f"{first} <-> {second}",
                        message=f"Circular dependency between {first} and {second} layers",
                        suggestion="Consider introducing an abstraction to break the cycle",
                    )
                )
    return violations


def drift_score(
    violations: list[DriftViolation],
    file_count: int,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> int:
    penalties = thresholds.drift_severity_penalties
    penalty = sum(penalties.get(v.severity, 0) for v in violations)
    max_penalty = max(
        file_count * thresholds.drift_penalty_per_file, thresholds.drift_min_max_penalty
    )
    return max(0, round(100 - penalty / max_penalty * 100))


def _recommendations(result: DriftResult) -> list[str]:
    if not result.violations:
        return ["No architectural drift detected"]
    by_type, by_severity = result.by_type, result.by_severity
    recommendations = []
    if by_severity["high"]:
        recommendations.append("Address high-severity issues first")
    if by_type["layering"]:
        recommendations.append("Review your layer boundaries and import rules")
    if by_type["complexity"]:
        recommendations.append("Consider refactoring complex files into smaller modules")
    if by_type["coupling"]:
        recommendations.append("Reduce coupling by introducing abstractions or facades")
    if result.score < 50:
        recommendations.append("Consider a focused refactoring sprint")
    return recommendations


def detect_drift(
    graph: KnowledgeGraph, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
) -> DriftResult:
    """Run every drift detector and score the result, most severe first."""
    violations = [
        *complexity_drift(graph, thresholds),
        *dependency_drift(graph, thresholds),
        *layering_drift(graph, thresholds),
    ]
    violations.sort(key=lambda v: (SEVERITY_ORDER[v.severity], v.type, v.file))

    file_paths = set(graph.file_paths())
    affected = {v.file for v in violations if v.file in file_paths}
    result = DriftResult(
        violations=violations,
        score=drift_score(violations, len(file_paths), thresholds),
        clean_files=len(file_paths) - len(affected),
        total_files=len(file_paths),
    )
    result.recommendations = _recommendations(result)
    logger.debug(
        "Drift: %d violation(s) across %d file(s), score %d",
        len(violations),
        len(affected),
        result.score,
    )
    return result


def from_context(ctx: AnalysisContext) -> DriftResult:
    return detect_drift(ctx.require_graph(), ctx.thresholds)
