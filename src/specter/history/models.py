"""Data models for health snapshots - immutable records of one scan's health."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class SnapshotMetrics:
    file_count: int = 0
    total_lines: int = 0
    avg_complexity: float = 0.0  # rounded to 2 decimals
    max_complexity: int = 0
    hotspot_count: int = 0
    health_score: int = 100  # 0-100

    def as_numbers(self) -> dict[str, float]:
        """camelCase metric name -> value, in reporting order."""
        return {
            "fileCount": self.file_count,
            "totalLines": self.total_lines,
            "avgComplexity": self.avg_complexity,
            "maxComplexity": self.max_complexity,
            "hotspotCount": self.hotspot_count,
            "healthScore": self.health_score,
        }

    def to_dict(self) -> dict:
        return self.as_numbers()

    @classmethod
    def from_dict(cls, data: dict) -> SnapshotMetrics:
        return cls(
            file_count=int(data.get("fileCount", 0)),
            total_lines=int(data.get("totalLines", 0)),
            avg_complexity=float(data.get("avgComplexity", 0.0)),
            max_complexity=int(data.get("maxComplexity", 0)),
            hotspot_count=int(data.get("hotspotCount", 0)),
            health_score=int(round(float(data.get("healthScore", 100)))),
        )


@dataclass(frozen=True)
class ComplexityDistribution:
    """Symbol counts per complexity bucket."""

    low: int = 0
    medium: int = 0
    high: int = 0
    very_high: int = 0

    def as_numbers(self) -> dict[str, float]:
        return {
            "low": self.low,
            "medium": self.medium,
            "high": self.high,
            "veryHigh": self.very_high,
        }

    def to_dict(self) -> dict:
        return self.as_numbers()

    @classmethod
    def from_dict(cls, data: dict) -> ComplexityDistribution:
        return cls(
            low=int(data.get("low", 0)),
            medium=int(data.get("medium", 0)),
            high=int(data.get("high", 0)),
            very_high=int(data.get("veryHigh", 0)),
        )


@dataclass(frozen=True)
class HealthSnapshot:
    """Point-in-time health summary. The id is the ISO timestamp."""

    id: str
    timestamp: str  # ISO-8601, UTC, millisecond precision
    metrics: SnapshotMetrics = field(default_factory=SnapshotMetrics)
    distribution: ComplexityDistribution = field(default_factory=ComplexityDistribution)
    commit_hash: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "timestamp": self.timestamp,
            "metrics": self.metrics.to_dict(),
            "distribution": self.distribution.to_dict(),
        }
        if self.commit_hash:
            data["commitHash"] = self.commit_hash
        return data

    @classmethod
    def from_dict(cls, data: dict) -> HealthSnapshot:
        timestamp = data["timestamp"]
        if not isinstance(timestamp, str):
            raise ValueError(f"timestamp must be a string, got {type(timestamp).__name__}")
        return cls(
            id=data.get("id") or timestamp,
            timestamp=timestamp,
            metrics=SnapshotMetrics.from_dict(data.get("metrics") or {}),
            distribution=ComplexityDistribution.from_dict(data.get("distribution") or {}),
            commit_hash=data.get("commitHash"),
        )


@dataclass(frozen=True)
class MetricChange:
    before: float
    after: float

    @property
    def change(self) -> float:
        return self.after - self.before

    def to_dict(self) -> dict:
        return {"before": self.before, "after": self.after, "change": self.change}


@dataclass
class SnapshotDiff:
    metric_changes: dict[str, MetricChange]
    distribution_changes: dict[str, MetricChange]

    @property
    def is_improving(self) -> bool:
        health = self.metric_changes.get("healthScore")
        return health is not None and health.change > 0

    def to_dict(self) -> dict:
        return {
            "metricChanges": {k: v.to_dict() for k, v in self.metric_changes.items()},
            "distributionChanges": {k: v.to_dict() for k, v in self.distribution_changes.items()},
            "isImproving": self.is_improving,
        }
