"""Technical-debt cost estimation.

Four independent categories are priced in developer hours and converted to
money at an hourly rate:

    complexity  hotspots, by score, priority and yearly touch rate
    bus factor  ramp-up cost of single-owner files
    cycles      refactoring effort per import cycle, split across its files
    dead code   upkeep of unused exports, split across their files

Each category is computed in isolation. A category that fails is listed in
``unavailable`` and the others still contribute.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from ..clock import utc_now
from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..graph.cycles import CyclesResult, detect_cycles
from ..graph.models import KnowledgeGraph
from ..logging_config import get_logger
from ..outcome import Outcome
from . import hotspots as hotspots_analysis
from . import knowledge as knowledge_analysis
from .dead_code import DeadCodeResult, find_unused_exports
from .hotspots import HotspotsResult
from .knowledge import KnowledgeResult

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

_PRIORITY_RANK = {"low": 0, "medium": 1, "high": 2, "critical": 3}
_DEFAULT_LOC = 500

CATEGORIES = ("complexity", "dead_code", "bus_factor", "cycles")

_RECOMMENDATIONS = (
    ("dead_code", "Remove unused exports"),
    ("complexity", "Extract complex logic into smaller functions"),
    ("bus_factor", "Document and cross-train team members"),
    ("cycles", "Break circular dependency"),
)


@dataclass
class DebtCategory:
    name: str
    cost: int
    hours: int
    file_count: int
    description: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "cost": self.cost,
            "hours": self.hours,
            "fileCount": self.file_count,
            "description": self.description,
        }


@dataclass
class CostlyFile:
    path: str
    priority: str
    fix_hours: int
    breakdown: dict[str, float] = field(default_factory=lambda: dict.fromkeys(CATEGORIES, 0.0))

    @property
    def total_cost(self) -> int:
        return round(sum(self.breakdown.values()))

    @property
    def recommendation(self) -> str:
        total = sum(self.breakdown.values())
        for key, text in _RECOMMENDATIONS:
            if self.breakdown[key] > total * 0.5:
                return text
        return "Review and refactor"

    def to_dict(self) -> dict:
        return {
            "file": self.path,
            "totalCost": self.total_cost,
            "breakdown": {
                "complexity": round(self.breakdown["complexity"]),
                "deadCode": round(self.breakdown["dead_code"]),
                "busFactor": round(self.breakdown["bus_factor"]),
                "cycles": round(self.breakdown["cycles"]),
            },
            "priority": self.priority,
            "estimatedFixTime": self.fix_hours,
        }


@dataclass
class QuickWin:
    path: str
    cost: int
    fix_hours: int
    roi: int
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "file": self.path,
            "cost": self.cost,
            "fixTime": self.fix_hours,
            "roi": self.roi,
            "recommendation": self.recommendation,
        }


@dataclass
class CostAnalysis:
    total_debt: int
    categories: list[DebtCategory]
    top_files: list[CostlyFile]
    quick_wins: list[QuickWin]
    estimated_savings: int
    hourly_rate: float
    currency: str
    analysis_date: str
    unavailable: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "totalDebt": self.total_debt,
            "categories": [c.to_dict() for c in self.categories],
            "topFiles": [f.to_dict() for f in self.top_files],
            "quickWins": [w.to_dict() for w in self.quick_wins],
            "estimatedSavings": self.estimated_savings,
            "hourlyRate": self.hourly_rate,
            "currency": self.currency,
            "analysisDate": self.analysis_date,
            "unavailable": dict(self.unavailable),
        }


class CostLedger:
    """Accumulates per-category totals and per-file cost breakdowns."""

    def __init__(self, hourly_rate: float, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS):
        self.hourly_rate = hourly_rate
        self.thresholds = thresholds
        self.categories: list[DebtCategory] = []
        self.files: dict[str, CostlyFile] = {}

    def charge(self, path: str, category: str, cost: float, priority: str, fix_hours: int) -> None:
        entry = self.files.get(path)
        if entry is None:
            # Fix time comes from the first category that prices the file
            entry = self.files[path] = CostlyFile(path, priority, fix_hours)
        elif _PRIORITY_RANK.get(priority, 0) > _PRIORITY_RANK.get(entry.priority, 0):
            entry.priority = priority
        entry.breakdown[category] += cost

    def add_category(self, name: str, cost: int, file_count: int, description: str) -> None:
        hours = round(cost / self.hourly_rate) if self.hourly_rate else 0
        self.categories.append(DebtCategory(name, cost, hours, file_count, description))

    def add_hotspots(self, result: HotspotsResult) -> int:
        multipliers = self.thresholds.cost_priority_multipliers
        total = 0
        for spot in result.hotspots:
            touches = min(max(1.0, spot.churn_rate * 52), 50)
            hours = spot.score / 10 * multipliers.get(spot.priority, 1.0) * touches
            cost = round(hours * self.hourly_rate)
            total += cost
            self.charge(spot.path, "complexity", cost, spot.priority, math.ceil(spot.score / 10))
        if total > 0:
            self.add_category(
                "Complexity Hotspots",
                total,
                len(result.hotspots),
                "Annual cost of maintaining high-complexity code",
            )
        return total

    def add_knowledge(self, result: KnowledgeResult) -> int:
        weeks = self.thresholds.cost_knowledge_weeks
        total = 0
        solo = [f for f in result.files if f.bus_factor == 1]
        for entry in solo:
            loc = entry.line_count or _DEFAULT_LOC
            hours = min(
                weeks.get(entry.risk_level, 1) * 40 * loc / 1000,
                self.thresholds.cost_knowledge_max_hours,
            )
            cost = round(hours * self.hourly_rate)
            total += cost
            self.charge(entry.path, "bus_factor", cost, entry.risk_level, 8)
        if total > 0:
            self.add_category(
                "Bus Factor Risk", total, len(solo), "Risk cost of single-owner critical areas"
            )
        return total

    def add_cycles(self, result: CyclesResult) -> int:
        hours_by_severity = self.thresholds.cost_cycle_hours
        total = 0
        for cycle in result.cycles:
            cost = hours_by_severity[cycle.severity] * self.hourly_rate
            total += cost
            share = cost / cycle.length
            for path in cycle.files:
                self.charge(path, "cycles", share, cycle.severity, 4)
        total = round(total)
        if result.cycles:
            self.add_category(
                "Circular Dependencies",
                total,
                result.affected_file_count,
                "Cost to refactor tangled dependencies",
            )
        return total

    def add_dead_code(self, result: DeadCodeResult, total_lines: int) -> int:
        unused = len(result.unused)
        ratio = unused / max(1, total_lines / 100)
        hours = min(ratio * 10, self.thresholds.cost_dead_code_max_hours)
        total = round(hours * self.hourly_rate)
        if total <= 0:
            return 0
        for path, count in result.by_file.items():
            self.charge(path, "dead_code", total * count / unused, "low", 2)
        self.add_category("Dead Code", total, unused, "Wasted maintenance on unused code")
        return total

    def finish(self, currency: str, now: datetime, unavailable: dict[str, str]) -> CostAnalysis:
        ranked = sorted(self.files.values(), key=lambda f: (-f.total_cost, f.path))
        top_files = ranked[:10]

        t = self.thresholds
        wins = [
            QuickWin(
                path=f.path,
                cost=f.total_cost,
                fix_hours=f.fix_hours,
                roi=round(f.total_cost / f.fix_hours),
                recommendation=f.recommendation,
            )
            for f in ranked
            if 0 < f.fix_hours <= t.cost_quick_win_max_hours and f.total_cost > t.cost_quick_win_min
        ]
        wins.sort(key=lambda w: (-w.roi, w.path))

        top_cost = sum(f.total_cost for f in top_files[:5])
        return CostAnalysis(
            total_debt=sum(c.cost for c in self.categories),
            categories=list(self.categories),
            top_files=top_files,
            quick_wins=wins[:5],
            estimated_savings=round(top_cost * t.cost_savings_ratio),
            hourly_rate=self.hourly_rate,
            currency=currency,
            analysis_date=now.date().isoformat(),
            unavailable=unavailable,
        )


def _attempt(name: str, compute: Callable[[], object]) -> Outcome:
    try:
        return Outcome.ok(compute())
    except Exception as e:
        logger.warning(f"Cost category '{name}' unavailable: {e}")
        return Outcome.failed(e)


def estimate_cost_from(
    graph: KnowledgeGraph,
    hotspots: Outcome[HotspotsResult],
    knowledge: Outcome[KnowledgeResult],
    hourly_rate: float = 75.0,
    currency: str = "USD",
    include_dead_code: bool = True,
    now: Optional[datetime] = None,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> CostAnalysis:
    """Price already-computed analyses; failed inputs are reported as unavailable."""
    ledger = CostLedger(hourly_rate, thresholds)
    unavailable: dict[str, str] = {}

    steps: list[tuple[str, Callable[[], object]]] = [
        ("complexity", lambda: ledger.add_hotspots(hotspots.value)),
        ("busFactor", lambda: ledger.add_knowledge(knowledge.value)),
        ("cycles", lambda: ledger.add_cycles(detect_cycles(graph, thresholds))),
    ]
    if include_dead_code:
        steps.append(
            (
                "deadCode",
                lambda: ledger.add_dead_code(
                    find_unused_exports(graph), graph.metadata.total_lines
                ),
            )
        )

    for name, step in steps:
        outcome = _attempt(name, step)
        if outcome.is_failed:
            unavailable[name] = outcome.reason

    return ledger.finish(currency, now or utc_now(), unavailable)


def estimate_cost(
    ctx: AnalysisContext,
    hourly_rate: Optional[float] = None,
    currency: Optional[str] = None,
    include_dead_code: bool = True,
    now: Optional[datetime] = None,
) -> CostAnalysis:
    """Estimate the yearly cost of the technical debt in the context's project.

    Raises:
        NotScannedError: If no graph has been saved for the repository
    """
    graph = ctx.require_graph()
    return estimate_cost_from(
        graph,
        _attempt("hotspots", lambda: hotspots_analysis.from_context(ctx, now=now)),
        _attempt("knowledge", lambda: knowledge_analysis.from_context(ctx, now=now)),
        hourly_rate=ctx.config.hourly_rate if hourly_rate is None else hourly_rate,
        currency=currency or ctx.config.currency,
        include_dead_code=include_dead_code,
        now=now,
        thresholds=ctx.thresholds,
    )
