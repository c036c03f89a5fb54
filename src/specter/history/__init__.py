"""Health snapshots, their on-disk history, and trend analysis."""

from .capture import (
    create_snapshot,
    diff_snapshots,
    health_score,
    percent_change,
    record_snapshot,
)
from .models import ComplexityDistribution, HealthSnapshot, SnapshotMetrics
from .store import HistoryStore
from .trends import HealthTrend, TrendAnalysis, analyze_trends, calculate_trend, get_time_span

__all__ = [
    "create_snapshot",
    "diff_snapshots",
    "health_score",
    "percent_change",
    "record_snapshot",
    "ComplexityDistribution",
    "HealthSnapshot",
    "SnapshotMetrics",
    "HistoryStore",
    "HealthTrend",
    "TrendAnalysis",
    "analyze_trends",
    "calculate_trend",
    "get_time_span",
]
