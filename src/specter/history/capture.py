"""Build a HealthSnapshot from a knowledge graph and compare snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

import numpy as np

from ..clock import to_iso, utc_now
from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..graph.models import KnowledgeGraph
from .models import (
    ComplexityDistribution,
    HealthSnapshot,
    MetricChange,
    SnapshotDiff,
    SnapshotMetrics,
)

if TYPE_CHECKING:
    from ..context import AnalysisContext


def health_score(avg_complexity: float, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> int:
    """100 minus a fixed penalty per point of average complexity, clamped to [0, 100]."""
    raw = 100.0 - avg_complexity * thresholds.health_complexity_multiplier
    return int(round(min(100.0, max(0.0, raw))))


def create_snapshot(
    graph: KnowledgeGraph,
    commit_hash: Optional[str] = None,
    now: Optional[datetime] = None,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> HealthSnapshot:
    """Summarise symbol complexity of ``graph`` into a snapshot taken at ``now``.

    Only non-file nodes with a measured complexity contribute; the caller
    supplies the short commit hash (GitMiner.head_commit) when available.
    """
    complexities = np.array(
        [n.complexity for n in graph.nodes.values() if not n.is_file and n.complexity is not None],
        dtype=float,
    )

    if complexities.size:
        avg = float(complexities.mean())
        max_complexity = int(complexities.max())
    else:
        avg = 0.0
        max_complexity = 0

    buckets = {"low": 0, "medium": 0, "high": 0, "very_high": 0}
    for value in complexities:
        buckets[thresholds.complexity_bucket(int(value))] += 1

    hotspot_count = int((complexities > thresholds.hotspot_complexity).sum())
    timestamp = to_iso(now or utc_now())

    return HealthSnapshot(
        id=timestamp,
        timestamp=timestamp,
        commit_hash=commit_hash,
        metrics=SnapshotMetrics(
            file_count=graph.metadata.file_count,
            total_lines=graph.metadata.total_lines,
            avg_complexity=round(avg, 2),
            max_complexity=max_complexity,
            hotspot_count=hotspot_count,
            health_score=health_score(avg, thresholds),
        ),
        distribution=ComplexityDistribution(**buckets),
    )


def diff_snapshots(older: HealthSnapshot, newer: HealthSnapshot) -> SnapshotDiff:
    before_metrics = older.metrics.as_numbers()
    after_metrics = newer.metrics.as_numbers()
    before_dist = older.distribution.as_numbers()
    after_dist = newer.distribution.as_numbers()
    return SnapshotDiff(
        metric_changes={k: MetricChange(before_metrics[k], after_metrics[k]) for k in before_metrics},
        distribution_changes={k: MetricChange(before_dist[k], after_dist[k]) for k in before_dist},
    )


def percent_change(before: float, after: float) -> float:
    """Relative change in percent, one decimal. A zero baseline yields 0 or 100."""
    if before == 0:
        return 0.0 if after == 0 else 100.0
    return round((after - before) / before * 100, 1)


def record_snapshot(ctx: AnalysisContext, now: Optional[datetime] = None) -> HealthSnapshot:
    """Capture the context's graph as a snapshot and append it to its history.

    Raises:
        NotScannedError: If no graph has been saved for the repository
    """
    snapshot = create_snapshot(
        ctx.require_graph(),
        commit_hash=ctx.miner.head_commit(),
        now=now,
        thresholds=ctx.thresholds,
    )
    ctx.history_store.save(ctx.root_dir, snapshot)
    return snapshot
