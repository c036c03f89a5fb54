"""Knowledge distribution ("bus factor") per file.

A contributor is significant for a file when they authored at least
``bus_factor_significant_share`` of its recent commits. The file's bus
factor is the number of significant contributors (never below 1), and
ownership is the top contributor's share in percent.

Risk levels:
    critical  bus factor 1 and ownership >= critical ownership (80%)
    high      bus factor 1 or ownership >= high ownership (70%)
    medium    bus factor <= 2
    low       otherwise

A file untouched for more than ``stale_days`` is escalated one level
(low -> medium, medium -> high), never into critical.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Mapping, Optional

import numpy as np

from ..clock import from_unix, utc_now
from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..exceptions import NOT_A_REPOSITORY_HINT
from ..logging_config import get_logger
from ..temporal.models import FileHistory

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

RISK_LEVELS = ("critical", "high", "medium", "low")
_RISK_RANK = {level: i for i, level in enumerate(RISK_LEVELS)}
_ESCALATION = {"low": "medium", "medium": "high"}


@dataclass
class FileKnowledge:
    path: str
    bus_factor: int
    primary_owner: str
    ownership_percentage: int
    total_contributors: int
    last_touched_by: str
    days_since_last_change: int
    risk_level: str
    line_count: int = 0

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "busFactor": self.bus_factor,
            "primaryOwner": self.primary_owner,
            "ownershipPercentage": self.ownership_percentage,
            "totalContributors": self.total_contributors,
            "lastTouchedBy": self.last_touched_by,
            "daysSinceLastChange": self.days_since_last_change,
            "riskLevel": self.risk_level,
            "lineCount": self.line_count,
        }


@dataclass
class OwnerShare:
    contributor: str
    files_owned: int
    percentage: int

    def to_dict(self) -> dict:
        return {
            "contributor": self.contributor,
            "filesOwned": self.files_owned,
            "percentage": self.percentage,
        }


@dataclass
class KnowledgeResult:
    files: list[FileKnowledge] = field(default_factory=list)  # riskiest first
    overall_bus_factor: float = 0.0
    ownership_distribution: list[OwnerShare] = field(default_factory=list)
    solo_owned_files: int = 0
    solo_owned_lines: int = 0
    percentage_at_risk: float = 0.0
    risk_level: str = "healthy"  # healthy | concerning | dangerous | critical
    insights: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    git_available: bool = True

    def by_level(self, level: str) -> list[FileKnowledge]:
        return [f for f in self.files if f.risk_level == level]

    def to_dict(self) -> dict:
        return {
            "overallBusFactor": self.overall_bus_factor,
            "riskLevel": self.risk_level,
            "criticalAreas": [f.to_dict() for f in self.files],
            "ownershipDistribution": [o.to_dict() for o in self.ownership_distribution],
            "summary": {
                "filesAnalyzed": len(self.files),
                "soloOwnedFiles": self.solo_owned_files,
                "soloOwnedLines": self.solo_owned_lines,
                "percentageAtRisk": self.percentage_at_risk,
            },
            "insights": list(self.insights),
            "recommendations": list(self.recommendations),
            "gitAvailable": self.git_available,
        }


def file_risk_level(
    bus_factor: int,
    ownership: int,
    days_since_change: int,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> str:
    if bus_factor <= 1 and ownership >= thresholds.bus_factor_critical_ownership:
        level = "critical"
    elif bus_factor <= 1 or ownership >= thresholds.bus_factor_high_ownership:
        level = "high"
    elif bus_factor <= 2:
        level = "medium"
    else:
        level = "low"
    if days_since_change > thresholds.stale_days:
        level = _ESCALATION.get(level, level)
    return level


def assess_file(
    history: FileHistory,
    now: datetime,
    line_count: int = 0,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> Optional[FileKnowledge]:
    """Bus factor and risk of one file. None when the file has no commits."""
    total = sum(c.commits for c in history.contributors)
    if total == 0:
        return None

    share = thresholds.bus_factor_significant_share
    significant = [c for c in history.contributors if c.commits / total >= share]
    bus_factor = max(1, len(significant))
    primary = history.contributors[0]
    ownership = round(primary.commits / total * 100)

    last_modified = history.last_modified or 0
    days = max(0, (now - from_unix(last_modified)).days)

    return FileKnowledge(
        path=history.file_path,
        bus_factor=bus_factor,
        primary_owner=primary.name,
        ownership_percentage=ownership,
        total_contributors=history.contributor_count,
        last_touched_by=history.last_author or primary.name,
        days_since_last_change=days,
        risk_level=file_risk_level(bus_factor, ownership, days, thresholds),
        line_count=line_count,
    )


def overall_risk_level(overall_bus_factor: float, percentage_at_risk: float) -> str:
    if overall_bus_factor >= 3 and percentage_at_risk < 10:
        return "healthy"
    if overall_bus_factor >= 2 and percentage_at_risk < 25:
        return "concerning"
    if overall_bus_factor >= 1.5 or percentage_at_risk < 50:
        return "dangerous"
    return "critical"


def analyze_knowledge(
    histories: Mapping[str, FileHistory],
    now: Optional[datetime] = None,
    line_counts: Optional[Mapping[str, int]] = None,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
    top_owners: int = 10,
) -> KnowledgeResult:
    """Aggregate per-file knowledge concentration across a project."""
    now = now or utc_now()
    line_counts = line_counts or {}

    files = []
    for path in sorted(histories):
        entry = assess_file(histories[path], now, line_counts.get(path, 0), thresholds)
        if entry is not None:
            files.append(entry)

    if not files:
        return KnowledgeResult(
            insights=["No file history available - bus factor cannot be computed."],
            risk_level="healthy",
        )

    files.sort(
        key=lambda f: (_RISK_RANK[f.risk_level], f.bus_factor, -f.ownership_percentage, f.path)
    )

    overall = round(float(np.mean([f.bus_factor for f in files])), 1)

    owners = Counter(f.primary_owner for f in files)
    distribution = [
        OwnerShare(name, count, round(count / len(files) * 100))
        for name, count in sorted(owners.items(), key=lambda kv: (-kv[1], kv[0]))[:top_owners]
    ]

    solo = [f for f in files if f.bus_factor == 1]
    solo_lines = sum(f.line_count for f in solo)
    total_lines = sum(f.line_count for f in files)
    if total_lines > 0:
        at_risk = round(solo_lines / total_lines * 100, 1)
    else:
        at_risk = round(len(solo) / len(files) * 100, 1)

    result = KnowledgeResult(
        files=files,
        overall_bus_factor=overall,
        ownership_distribution=distribution,
        solo_owned_files=len(solo),
        solo_owned_lines=solo_lines,
        percentage_at_risk=at_risk,
        risk_level=overall_risk_level(overall, at_risk),
    )
    result.insights = _insights(result, thresholds)
    result.recommendations = _recommendations(result)
    logger.debug("Bus factor %.1f over %d files (%s)", overall, len(files), result.risk_level)
    return result


def _insights(result: KnowledgeResult, thresholds: ThresholdConfig) -> list[str]:
    insights = []

    single_owner = [
        f
        for f in result.files
        if f.ownership_percentage >= thresholds.bus_factor_critical_ownership
        and f.bus_factor == 1
    ]
    if single_owner:
        insights.append(
            f"{len(single_owner)} file(s) have a single owner with "
            f"{thresholds.bus_factor_critical_ownership}%+ ownership. "
            f"If they leave, this knowledge could be lost."
        )

    if result.ownership_distribution and result.ownership_distribution[0].percentage > 50:
        top = result.ownership_distribution[0]
        insights.append(
            f"{top.contributor} owns {top.percentage}% of the analysed files. "
            f"Consider knowledge sharing to reduce risk."
        )

    stale_critical = [
        f
        for f in result.files
        if f.risk_level in ("critical", "high") and f.days_since_last_change > thresholds.stale_days
    ]
    if stale_critical:
        insights.append(
            f"{len(stale_critical)} high-risk area(s) haven't been touched in "
            f"{thresholds.stale_days}+ days. The original authors may have forgotten the details."
        )

    if not result.by_level("critical"):
        insights.append(
            "Good news! No critical knowledge concentration detected. "
            "Knowledge is well-distributed."
        )

    return insights


def _recommendations(result: KnowledgeResult) -> list[str]:
    recommendations = []
    critical = result.by_level("critical")
    high = result.by_level("high")

    if critical:
        owner_counts = Counter(f.primary_owner for f in critical)
        owner, count = sorted(owner_counts.items(), key=lambda kv: (-kv[1], kv[0]))[0]
        if count >= 2:
            recommendations.append(
                f"Priority: schedule knowledge transfer sessions with {owner} "
                f"(owns {count} critical areas)"
            )
        recommendations.append(
            f"Require code reviews by non-owners for {len(critical)} critical area(s)"
        )

    if high:
        recommendations.append(f"Start pair programming rotations on {len(high)} high-risk area(s)")

    if result.percentage_at_risk > 30:
        recommendations.append(
            f"{result.percentage_at_risk:g}% of the codebase is at risk - "
            f"consider hiring or cross-training"
        )

    if result.risk_level == "healthy":
        recommendations.append(
            "Knowledge distribution is healthy! Maintain current collaborative practices."
        )
    elif not recommendations:
        recommendations.append(
            "Consider documenting complex areas and rotating ownership periodically"
        )

    return recommendations


def from_context(ctx: AnalysisContext, now: Optional[datetime] = None) -> KnowledgeResult:
    """Bus factor for every file in the context's graph."""
    graph = ctx.require_graph()
    if not ctx.is_git_repository:
        return KnowledgeResult(insights=[NOT_A_REPOSITORY_HINT], git_available=False)
    histories = ctx.file_histories(graph.file_paths())
    line_counts = {n.file_path: n.line_count for n in graph.file_nodes()}
    return analyze_knowledge(
        histories, now=now, line_counts=line_counts, thresholds=ctx.thresholds
    )
