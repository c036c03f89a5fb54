"""Health trends over the snapshot history.

Direction compares the oldest and newest snapshot in a window: a health
delta beyond the configured threshold (default 2 points) is improving or
declining, anything smaller is stable. Insights are only emitted for
changes large enough to matter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Literal, Optional

import numpy as np

from ..clock import parse_iso, utc_now
from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from .capture import diff_snapshots, percent_change
from .models import HealthSnapshot

if TYPE_CHECKING:
    from ..context import AnalysisContext

Period = Literal["day", "week", "month", "all"]
Direction = Literal["improving", "stable", "declining"]

PERIOD_LENGTHS: dict[str, timedelta] = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

NO_DATA_INSIGHT = "No data available for this period."
SINGLE_SNAPSHOT_INSIGHT = "Only one snapshot available - need more data to identify trends."


@dataclass
class HealthTrend:
    period: str
    direction: str
    change_percent: float
    insights: list[str]
    snapshots: list[HealthSnapshot] = field(default_factory=list)  # oldest first
    slope_per_day: float = 0.0  # least-squares health points per day

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "direction": self.direction,
            "changePercent": self.change_percent,
            "slopePerDay": self.slope_per_day,
            "insights": list(self.insights),
            "snapshots": [s.to_dict() for s in self.snapshots],
        }


@dataclass
class TrendAnalysis:
    current: Optional[HealthSnapshot]
    previous: Optional[HealthSnapshot]
    trends: dict[str, HealthTrend]
    summary: str
    grade: Optional[str] = None
    time_span: str = "no history"

    def to_dict(self) -> dict:
        return {
            "current": self.current.to_dict() if self.current else None,
            "previous": self.previous.to_dict() if self.previous else None,
            "trends": {period: t.to_dict() for period, t in self.trends.items()},
            "summary": self.summary,
            "grade": self.grade,
            "timeSpan": self.time_span,
        }


def _moment(snapshot: HealthSnapshot) -> datetime:
    moment = parse_iso(snapshot.timestamp)
    if moment is None:
        raise ValueError(f"Snapshot {snapshot.id!r} has an unparseable timestamp")
    return moment


def filter_by_period(
    snapshots: list[HealthSnapshot], period: str, now: Optional[datetime] = None
) -> list[HealthSnapshot]:
    """Snapshots no older than the period length before ``now``."""
    if period == "all":
        return list(snapshots)
    if period not in PERIOD_LENGTHS:
        raise ValueError(f"Unknown period: {period!r}")
    cutoff = (now or utc_now()) - PERIOD_LENGTHS[period]
    return [s for s in snapshots if _moment(s) >= cutoff]


def calculate_trend(
    snapshots: list[HealthSnapshot],
    period: str = "all",
    now: Optional[datetime] = None,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> HealthTrend:
    in_window = sorted(filter_by_period(snapshots, period, now), key=_moment)

    if not in_window:
        return HealthTrend(period, "stable", 0.0, [NO_DATA_INSIGHT], [])
    if len(in_window) == 1:
        return HealthTrend(period, "stable", 0.0, [SINGLE_SNAPSHOT_INSIGHT], in_window)

    oldest, newest = in_window[0], in_window[-1]
    before = oldest.metrics.health_score
    after = newest.metrics.health_score
    delta = after - before

    if delta > thresholds.trend_change_threshold:
        direction = "improving"
    elif delta < -thresholds.trend_change_threshold:
        direction = "declining"
    else:
        direction = "stable"

    return HealthTrend(
        period=period,
        direction=direction,
        change_percent=percent_change(before, after),
        insights=generate_insights(oldest, newest, thresholds),
        snapshots=in_window,
        slope_per_day=_health_slope(in_window),
    )


def _health_slope(snapshots: list[HealthSnapshot]) -> float:
    """Least-squares slope of health score in points per day."""
    origin = _moment(snapshots[0])
    days = np.array([(_moment(s) - origin).total_seconds() / 86400 for s in snapshots])
    scores = np.array([s.metrics.health_score for s in snapshots], dtype=float)
    if np.ptp(days) == 0:
        return 0.0
    slope, _ = np.polyfit(days, scores, 1)
    return round(float(slope), 2)


def _plural(count: float, word: str) -> str:
    return f"{word}{'' if count == 1 else 's'}"


def generate_insights(
    older: HealthSnapshot, newer: HealthSnapshot, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS
) -> list[str]:
    insights: list[str] = []
    diff = diff_snapshots(older, newer)
    metrics = diff.metric_changes

    health = metrics["healthScore"]
    if health.change != 0:
        verb = "improved" if health.change > 0 else "declined"
        insights.append(
            f"Health score {verb} by {abs(health.change):g} points "
            f"({health.before:g} -> {health.after:g})."
        )

    complexity = metrics["avgComplexity"]
    if abs(complexity.change) >= thresholds.trend_complexity_materiality:
        direction = "down" if complexity.change < 0 else "up"
        pct = abs(percent_change(complexity.before, complexity.after))
        insights.append(
            f"Average complexity is {direction} {pct:g}% "
            f"({complexity.before:.1f} -> {complexity.after:.1f})."
        )

    files = metrics["fileCount"]
    if files.change != 0:
        count = abs(int(files.change))
        verb = "Gained" if files.change > 0 else "Lost"
        insights.append(f"{verb} {count} {_plural(count, 'file')}.")

    lines = metrics["totalLines"]
    if abs(lines.change) >= thresholds.trend_lines_materiality:
        verb = "Grew" if lines.change > 0 else "Shrank"
        insights.append(f"{verb} by {abs(int(lines.change)):,} lines of code.")

    hotspots = metrics["hotspotCount"]
    if hotspots.change < 0:
        count = abs(int(hotspots.change))
        insights.append(f"Cleaned up {count} complexity {_plural(count, 'hotspot')}.")
    elif hotspots.change > 0:
        count = int(hotspots.change)
        insights.append(f"Developed {count} new complexity {_plural(count, 'hotspot')}.")

    very_high = diff.distribution_changes["veryHigh"]
    if very_high.change < 0:
        count = abs(int(very_high.change))
        was = "was" if count == 1 else "were"
        insights.append(f"{count} very-high-complexity {_plural(count, 'function')} {was} refactored.")
    elif very_high.change > 0:
        count = int(very_high.change)
        insights.append(
            f"{count} {_plural(count, 'function')} crossed into very-high complexity territory."
        )

    return insights


def grade_for(score: float) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def get_time_span(snapshots: list[HealthSnapshot]) -> str:
    """Human description of the time covered by ``snapshots``."""
    if not snapshots:
        return "no history"
    if len(snapshots) == 1:
        return "1 snapshot"

    moments = sorted(_moment(s) for s in snapshots)
    days = (moments[-1] - moments[0]).days

    if days == 0:
        return "today"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        return f"{days // 7} week{'s' if days >= 14 else ''}"
    if days < 365:
        return f"{days // 30} month{'s' if days >= 60 else ''}"
    return f"{days // 365} year{'s' if days >= 730 else ''}"


def analyze_trends(
    snapshots: list[HealthSnapshot],
    now: Optional[datetime] = None,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> TrendAnalysis:
    """Current/previous snapshot, per-period trends and a summary."""
    now = now or utc_now()
    newest_first = sorted(snapshots, key=_moment, reverse=True)
    current = newest_first[0] if newest_first else None
    previous = newest_first[1] if len(newest_first) > 1 else None

    trends: dict[str, HealthTrend] = {}
    if newest_first:
        for period in ("day", "week", "month"):
            if filter_by_period(newest_first, period, now):
                trends[period] = calculate_trend(newest_first, period, now, thresholds)
        trends["all"] = calculate_trend(newest_first, "all", now, thresholds)

    return TrendAnalysis(
        current=current,
        previous=previous,
        trends=trends,
        summary=_summary(current, previous, trends),
        grade=grade_for(current.metrics.health_score) if current else None,
        time_span=get_time_span(newest_first),
    )


def _summary(
    current: Optional[HealthSnapshot],
    previous: Optional[HealthSnapshot],
    trends: dict[str, HealthTrend],
) -> str:
    if current is None:
        return "No health history yet. Run `specter snapshot` to record the first snapshot."

    score = current.metrics.health_score
    parts = [f"Health is {score}/100 (grade {grade_for(score)})."]

    if previous is not None:
        diff = score - previous.metrics.health_score
        if diff > 0:
            parts.append(f"Up {diff} points since the previous snapshot.")
        elif diff < 0:
            parts.append(f"Down {abs(diff)} points since the previous snapshot.")
        else:
            parts.append("Unchanged since the previous snapshot.")

    week = trends.get("week")
    if week is not None:
        if week.direction == "improving":
            parts.append(f"Improving this week (+{week.change_percent:g}%).")
        elif week.direction == "declining":
            parts.append(f"Declining this week ({week.change_percent:g}%).")
        elif len(week.snapshots) >= 2:
            parts.append("Stable this week.")

    overall = trends.get("all")
    if overall is not None and len(overall.snapshots) >= 3:
        if overall.direction == "improving":
            parts.append("Long-term trajectory is upward.")
        elif overall.direction == "declining":
            parts.append("Long-term trajectory shows accumulating technical debt.")

    hotspots = current.metrics.hotspot_count
    if hotspots:
        parts.append(f"{hotspots} complexity {_plural(hotspots, 'hotspot')} could use attention.")
    else:
        parts.append("No major complexity hotspots.")

    return " ".join(parts)


def from_context(ctx: AnalysisContext, now: Optional[datetime] = None) -> TrendAnalysis:
    return analyze_trends(ctx.history_store.load_all(ctx.root_dir), now, ctx.thresholds)
