"""Aggregate health report.

Runs each analysis independently against one context. A section that
raises is recorded as unavailable with its error message; the remaining
sections still complete.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..clock import to_iso, utc_now
from ..exceptions import AnalyzerFailure
from ..graph.cycles import detect_cycles
from ..graph.models import GraphMetadata
from ..history import trends
from ..logging_config import get_logger
from ..outcome import Outcome
from . import coupling, drift, hotspots, knowledge

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

SECTION_ORDER = ("cycles", "coupling", "busFactor", "hotspots", "drift", "trends")


@dataclass
class Report:
    metadata: GraphMetadata
    generated_at: datetime
    sections: dict[str, Outcome[Any]] = field(default_factory=dict)
    git_available: bool = True

    @property
    def unavailable(self) -> dict[str, str]:
        return {name: o.reason for name, o in self.sections.items() if not o.is_ok}

    def section(self, name: str) -> Outcome[Any]:
        return self.sections.get(name, Outcome.empty(f"Section {name} was not run"))

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "generatedAt": to_iso(self.generated_at),
            "project": self.metadata.to_dict(),
            "gitAvailable": self.git_available,
        }
        for name in SECTION_ORDER:
            outcome = self.section(name)
            data[name] = outcome.value.to_dict() if outcome.is_ok else None
        data["unavailable"] = self.unavailable
        return data


def run_section(name: str, compute: Callable[[], Any]) -> Outcome[Any]:
    """Run one analyzer, converting any exception into a FAILED outcome."""
    try:
        return Outcome.ok(compute())
    except Exception as e:
        logger.warning(f"{name} analysis failed: {e}")
        return Outcome.failed(AnalyzerFailure(name, str(e)))


def build_report(ctx: AnalysisContext, now: Optional[datetime] = None) -> Report:
    """Run every section of the health report.

    Raises:
        NotScannedError: If no graph has been saved for the repository
    """
    graph = ctx.require_graph()
    now = now or utc_now()

    sections: dict[str, Callable[[], Any]] = {
        "cycles": lambda: detect_cycles(graph, ctx.thresholds),
        "coupling": lambda: coupling.from_context(ctx),
        "busFactor": lambda: knowledge.from_context(ctx, now=now),
        "hotspots": lambda: hotspots.from_context(ctx, now=now),
        "drift": lambda: drift.from_context(ctx),
        "trends": lambda: trends.from_context(ctx, now=now),
    }

    report = Report(
        metadata=graph.metadata,
        generated_at=now,
        git_available=ctx.is_git_repository,
    )
    for name in SECTION_ORDER:
        report.sections[name] = run_section(name, sections[name])

    logger.info(
        "Report complete: %d/%d sections available",
        len(SECTION_ORDER) - len(report.unavailable),
        len(SECTION_ORDER),
    )
    return report
