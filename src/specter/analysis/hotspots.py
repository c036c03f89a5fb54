"""Hotspots: files that are both complex and frequently changed.

Complexity and churn are each percentile-ranked across the project's files
(0-100) and combined with a geometric mean, so a file only scores high when
it is high on both axes.
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from ..clock import to_iso, utc_now
from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..exceptions import NOT_A_REPOSITORY_HINT
from ..graph.models import KnowledgeGraph
from ..logging_config import get_logger
from ..temporal.models import GitHistory

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

QUADRANT_MIDPOINT = 50

# Refactoring hours per 10 points of complexity percentile
_HOURS_MULTIPLIER = {"critical": 2.0, "high": 1.5, "medium": 1.0, "low": 0.5}


@dataclass
class Hotspot:
    path: str
    complexity: int  # percentile, 0-100
    churn: int  # percentile, 0-100
    raw_complexity: int
    raw_churn: int
    churn_rate: float  # commits per week
    score: int
    priority: str
    last_modified: Optional[int] = None  # unix seconds
    top_contributors: list[str] = field(default_factory=list)

    @property
    def refactoring_hours(self) -> int:
        return round(self.complexity / 10 * _HOURS_MULTIPLIER[self.priority])

    def to_dict(self) -> dict:
        return {
            "file": self.path,
            "complexity": self.complexity,
            "churn": self.churn,
            "rawComplexity": self.raw_complexity,
            "rawChurn": self.raw_churn,
            "churnRate": self.churn_rate,
            "hotspotScore": self.score,
            "priority": self.priority,
            "lastModified": self.last_modified,
            "topContributors": list(self.top_contributors),
        }


@dataclass
class HotspotsResult:
    hotspots: list[Hotspot] = field(default_factory=list)  # highest score first
    all_hotspots: list[Hotspot] = field(default_factory=list)
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    weeks: int = 0
    git_available: bool = True

    @property
    def critical_count(self) -> int:
        return sum(1 for h in self.hotspots if h.priority == "critical")

    @property
    def high_count(self) -> int:
        return sum(1 for h in self.hotspots if h.priority == "high")

    @property
    def total_debt_hours(self) -> int:
        return sum(h.refactoring_hours for h in self.hotspots)

    def quadrant(self, high_complexity: bool, high_churn: bool) -> list[Hotspot]:
        return [
            h
            for h in self.all_hotspots
            if (h.complexity >= QUADRANT_MIDPOINT) == high_complexity
            and (h.churn >= QUADRANT_MIDPOINT) == high_churn
        ]

    def to_dict(self) -> dict:
        def paths(items: list[Hotspot]) -> list[str]:
            return [h.path for h in items]

        return {
            "hotspots": [h.to_dict() for h in self.hotspots],
            "summary": {
                "criticalCount": self.critical_count,
                "highCount": self.high_count,
                "totalDebtHours": self.total_debt_hours,
            },
            "quadrants": {
                "highComplexityHighChurn": paths(self.quadrant(True, True)),
                "highComplexityLowChurn": paths(self.quadrant(True, False)),
                "lowComplexityHighChurn": paths(self.quadrant(False, True)),
                "lowComplexityLowChurn": paths(self.quadrant(False, False)),
            },
            "timeRange": {
                "since": to_iso(self.since) if self.since else None,
                "until": to_iso(self.until) if self.until else None,
                "weeks": self.weeks,
            },
            "gitAvailable": self.git_available,
        }


def percentile_ranks(values: Sequence[float]) -> list[int]:
    """Share of values <= each value, as an integer percentage.

    A raw value of zero always ranks 0 so that untouched files do not climb
    just because most of the project is untouched too.
    """
    if not values:
        return []
    arr = np.asarray(values, dtype=float)
    ordered = np.sort(arr)
    counts = np.searchsorted(ordered, arr, side="right")
    ranks = np.rint(counts / len(arr) * 100).astype(int)
    ranks[arr <= 0] = 0
    return [int(r) for r in ranks]


def hotspot_priority(score: float) -> str:
    if score >= 75:
        return "critical"
    if score >= 50:
        return "high"
    if score >= 25:
        return "medium"
    return "low"


def analyze_hotspots(
    graph: KnowledgeGraph,
    history: Optional[GitHistory],
    now: Optional[datetime] = None,
    since_days: Optional[int] = None,
    top: int = 20,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> HotspotsResult:
    """Rank files by complexity x churn over the last ``since_days`` days.

    ``history`` of None means git is unavailable: churn is zero everywhere,
    every score is zero and files are ordered by raw complexity.
    """
    now = now or utc_now()
    since_days = since_days or thresholds.hotspot_since_days
    since = now - timedelta(days=since_days)
    weeks = max(1, math.ceil(since_days / 7))

    commit_counts: Counter = Counter()
    authors: dict[str, Counter] = defaultdict(Counter)
    last_touch: dict[str, int] = {}
    if history is not None:
        for commit in history.since(int(since.timestamp())):
            for path in set(commit.files):
                commit_counts[path] += 1
                authors[path][commit.author] += 1
                last_touch[path] = max(last_touch.get(path, 0), commit.timestamp)

    paths = graph.file_paths()
    raw_complexity = [graph.file_complexity(p) or 0 for p in paths]
    raw_churn = [commit_counts.get(p, 0) for p in paths]
    complexity_pct = percentile_ranks(raw_complexity)
    churn_pct = percentile_ranks(raw_churn)

    hotspots = []
    for i, path in enumerate(paths):
        if raw_complexity[i] == 0 and raw_churn[i] == 0:
            continue
        score = round(math.sqrt(complexity_pct[i] * churn_pct[i]))
        top_authors = sorted(authors[path].items(), key=lambda kv: (-kv[1], kv[0]))[:3]
        hotspots.append(
            Hotspot(
                path=path,
                complexity=complexity_pct[i],
                churn=churn_pct[i],
                raw_complexity=raw_complexity[i],
                raw_churn=raw_churn[i],
                churn_rate=round(raw_churn[i] / weeks, 1),
                score=score,
                priority=hotspot_priority(score),
                last_modified=last_touch.get(path),
                top_contributors=[name for name, _ in top_authors],
            )
        )

    hotspots.sort(key=lambda h: (-h.score, -h.raw_churn, -h.raw_complexity, h.path))
    if history is None:
        logger.info(NOT_A_REPOSITORY_HINT)
    logger.debug("Hotspots: %d candidate files over %d weeks", len(hotspots), weeks)

    return HotspotsResult(
        hotspots=hotspots[:top],
        all_hotspots=hotspots,
        since=since,
        until=now,
        weeks=weeks,
        git_available=history is not None,
    )


def from_context(
    ctx: AnalysisContext, now: Optional[datetime] = None, top: int = 20
) -> HotspotsResult:
    since_days = ctx.thresholds.hotspot_since_days
    return analyze_hotspots(
        ctx.require_graph(),
        ctx.git_history(since_days=since_days).unwrap_or(None),
        now=now,
        since_days=since_days,
        top=top,
        thresholds=ctx.thresholds,
    )
