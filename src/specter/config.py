"""Configuration loading and management for Specter.

Every heuristic constant used by the analyzers lives in ThresholdConfig so
that it is named, validated and overridable in one place. Configuration
sources are merged in priority order:
    1. Defaults (defined in SpecterConfig)
    2. Global config (~/.specter.toml)
    3. Project config (<root>/specter.toml)
    4. Explicit config file
    5. Environment variables (SPECTER_* prefix)
    6. Keyword overrides

Example:
    >>> config = load_config(max_snapshots=10)
    >>> config.max_snapshots
    10
    >>> config.thresholds.risk_level_for(60)
    'high'
"""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

# A step function: ((upper_bound, score), ...) evaluated in order, first
# bound that the value does not exceed wins.
Steps = tuple[tuple[float, int], ...]


def step_score(value: float, steps: Steps, ceiling: int) -> int:
    """Map ``value`` through an ascending step table, ``ceiling`` above the last bound."""
    for bound, score in steps:
        if value <= bound:
            return score
    return ceiling


@dataclass(frozen=True)
class LayerRule:
    """An architectural layer and the directories it must not import from.

    ``patterns`` are regular expressions searched in a file path; the first
    rule with a matching pattern owns the file. ``forbidden`` names are
    compared against the directory segments of an imported file's path.
    """

    layer: str
    patterns: tuple[str, ...]
    forbidden: tuple[str, ...]
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", tuple(self.patterns))
        object.__setattr__(self, "forbidden", tuple(f.lower() for f in self.forbidden))
        for pattern in self.patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"layer {self.layer}: invalid pattern '{pattern}': {e}")

    def owns(self, path: str) -> bool:
        return any(re.search(p, path) for p in self.patterns)


DEFAULT_LAYER_RULES: tuple[LayerRule, ...] = (
    LayerRule(
        layer="ui",
        patterns=(r"(^|/)components?/", r"(^|/)pages?/", r"(^|/)views?/", r"(^|/)ui/"),
        forbidden=("db", "database", "models", "repositories"),
        description="UI layer should not directly access database/models",
    ),
    LayerRule(
        layer="utils",
        patterns=(r"(^|/)utils?/", r"(^|/)helpers?/", r"(^|/)lib/utils"),
        forbidden=("components", "pages", "views", "ui", "services"),
        description="Utils should be leaf nodes, not import from higher layers",
    ),
    LayerRule(
        layer="api",
        patterns=(r"(^|/)api/", r"(^|/)routes?/", r"(^|/)controllers?/"),
        forbidden=("components", "pages", "views", "ui"),
        description="API layer should not import from UI layer",
    ),
)


@dataclass(frozen=True)
class ThresholdConfig:
    """Analyzer thresholds and tuning parameters.

    Attributes:
        Complexity buckets:
            complexity_low_max / complexity_medium_max / complexity_high_max:
                upper bounds of the low, medium and high buckets; anything
                above is very high
            hotspot_complexity: symbols above this count as snapshot hotspots
            health_complexity_multiplier: health = 100 - avg_complexity * this

        Cycles:
            cycle_low_max_length / cycle_medium_max_length: severity cut-offs

        Change coupling:
            coupling_min_strength: default minimum strength reported
            coupling_hidden_strength: no-import pairs at or above this are hidden
            coupling_asymmetry_threshold: |conf(A->B) - conf(B->A)| that marks
                an imported pair suspicious
            coupling_low_jaccard: imported pairs below this overlap are suspicious
            coupling_max_files_per_commit: larger commits are bulk changes

        Bus factor:
            bus_factor_significant_share: commit share making an author significant
            bus_factor_critical_ownership / bus_factor_high_ownership: ownership %
            stale_days: files untouched longer than this are escalated one level

        Change risk (weights must sum to 1.0):
            risk_*_steps / risk_*_ceiling: per-factor step tables
            risk_*_weight: factor weights
            risk_level_low / medium / high: level cut-offs on the overall score

        Cost:
            cost_priority_multipliers: hotspot hours multiplier per priority
            cost_knowledge_weeks: ramp-up weeks per bus-factor risk level
            cost_cycle_hours: hours per cycle severity
            cost_quick_win_max_hours / cost_quick_win_min: quick-win filter
            cost_savings_ratio: share of the top-5 cost counted as savings

        Trends:
            trend_change_threshold: health delta beyond which a trend is directional
            trend_complexity_materiality / trend_lines_materiality: insight cut-offs
            hotspot_since_days: churn window for hotspot analysis

        Architectural drift:
            drift_complexity_max / drift_complexity_high: file complexity above
                these is a medium / high violation
            drift_complexity_peer_ratio / drift_complexity_peer_min: files this
                many times the mean and above the minimum are low violations;
                drift_complexity_default_mean stands in when nothing is measured
            drift_imports_watch / drift_imports_max / drift_imports_high:
                imported-file counts for low / medium / high violations
            drift_dependents_max / drift_dependents_high: importer counts for
                medium / high coupling violations
            drift_severity_penalties: score penalty per violation severity
            drift_penalty_per_file / drift_min_max_penalty: the penalty that
                drives the score to zero is max(files * per_file, min)
            drift_layer_rules: LayerRule table for layering violations
    """

    # === Complexity buckets ===
    complexity_low_max: int = 5
    complexity_medium_max: int = 10
    complexity_high_max: int = 20
    hotspot_complexity: int = 15
    health_complexity_multiplier: float = 5.0

    # === Cycles ===
    cycle_low_max_length: int = 3
    cycle_medium_max_length: int = 5

    # === Change coupling ===
    coupling_min_strength: float = 0.30
    coupling_hidden_strength: float = 0.50
    coupling_asymmetry_threshold: float = 0.60
    coupling_low_jaccard: float = 0.15
    coupling_max_files_per_commit: int = 20

    # === Bus factor ===
    bus_factor_significant_share: float = 0.20
    bus_factor_critical_ownership: int = 80
    bus_factor_high_ownership: int = 70
    stale_days: int = 180

    # === Change risk ===
    risk_files_steps: Steps = ((0, 0), (3, 10), (10, 40), (20, 70))
    risk_files_ceiling: int = 100
    risk_lines_steps: Steps = ((0, 0), (50, 10), (200, 30), (500, 50), (1000, 75))
    risk_lines_ceiling: int = 100
    risk_complexity_steps: Steps = ((0, 0), (5, 10), (10, 30), (20, 60))
    risk_complexity_ceiling: int = 90
    risk_dependents_steps: Steps = ((0, 0), (3, 15), (10, 40), (25, 70))
    risk_dependents_ceiling: int = 100
    risk_bus_factor_steps: Steps = ((0, 0), (0.2, 15), (0.5, 40))
    risk_bus_factor_ceiling: int = 70
    risk_single_owner_penalty: int = 15
    risk_tests_steps: Steps = ((0, 0), (0.25, 20), (0.5, 40), (0.75, 60))
    risk_tests_ceiling: int = 80

    risk_files_weight: float = 0.15
    risk_lines_weight: float = 0.15
    risk_complexity_weight: float = 0.25
    risk_dependents_weight: float = 0.25
    risk_bus_factor_weight: float = 0.10
    risk_tests_weight: float = 0.10

    risk_level_low: int = 25
    risk_level_medium: int = 50
    risk_level_high: int = 75

    # === Cost ===
    cost_priority_multipliers: dict[str, float] = field(
        default_factory=lambda: {"critical": 2.0, "high": 1.5, "medium": 1.0, "low": 0.5}
    )
    cost_knowledge_weeks: dict[str, float] = field(
        default_factory=lambda: {"critical": 10, "high": 6, "medium": 3, "low": 1}
    )
    cost_cycle_hours: dict[str, float] = field(
        default_factory=lambda: {"low": 4, "medium": 12, "high": 40}
    )
    cost_knowledge_max_hours: float = 400.0
    cost_dead_code_max_hours: float = 100.0
    cost_quick_win_max_hours: int = 8
    cost_quick_win_min: float = 500.0
    cost_savings_ratio: float = 0.70

    # === Trends / hotspots ===
    trend_change_threshold: float = 2.0
    trend_complexity_materiality: float = 0.5
    trend_lines_materiality: int = 100
    hotspot_since_days: int = 90

    # === Architectural drift ===
    drift_complexity_max: int = 20
    drift_complexity_high: int = 30
    drift_complexity_peer_ratio: float = 2.0
    drift_complexity_peer_min: int = 10
    drift_complexity_default_mean: float = 5.0
    drift_imports_watch: int = 10
    drift_imports_max: int = 15
    drift_imports_high: int = 25
    drift_dependents_max: int = 20
    drift_dependents_high: int = 30
    drift_severity_penalties: dict[str, float] = field(
        default_factory=lambda: {"high": 10, "medium": 5, "low": 2}
    )
    drift_penalty_per_file: float = 5.0
    drift_min_max_penalty: float = 100.0
    drift_layer_rules: tuple[LayerRule, ...] = DEFAULT_LAYER_RULES

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        # TOML yields an array of tables for [[thresholds.drift_layer_rules]]
        object.__setattr__(
            self,
            "drift_layer_rules",
            tuple(
                rule if isinstance(rule, LayerRule) else LayerRule(**rule)
                for rule in self.drift_layer_rules
            ),
        )
        # TOML yields lists; normalise step tables to tuples
        for name in self.__dataclass_fields__:
            if name.endswith("_steps"):
                raw = getattr(self, name)
                steps = tuple((float(b), int(s)) for b, s in raw)
                bounds = [b for b, _ in steps]
                if bounds != sorted(bounds):
                    raise ValueError(f"{name} bounds must be ascending")
                object.__setattr__(self, name, steps)

        if not (
            self.complexity_low_max < self.complexity_medium_max < self.complexity_high_max
        ):
            raise ValueError("complexity bucket bounds must be strictly ascending")
        if not 0 < self.cycle_low_max_length <= self.cycle_medium_max_length:
            raise ValueError("cycle severity lengths must satisfy 0 < low <= medium")

        unit_fields = [
            "coupling_min_strength",
            "coupling_hidden_strength",
            "coupling_asymmetry_threshold",
            "coupling_low_jaccard",
            "bus_factor_significant_share",
            "cost_savings_ratio",
        ]
        for field_name in unit_fields:
            value = getattr(self, field_name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{field_name} must be between 0.0 and 1.0")

        weight_sum = sum(self.risk_weights.values())
        if not 0.99 <= weight_sum <= 1.01:
            raise ValueError(f"Risk weights must sum to 1.0, got {weight_sum:.3f}")

        if not 0 <= self.risk_level_low < self.risk_level_medium < self.risk_level_high <= 100:
            raise ValueError("risk levels must satisfy 0 <= low < medium < high <= 100")

        if self.coupling_max_files_per_commit < 2:
            raise ValueError("coupling_max_files_per_commit must be at least 2")
        if self.stale_days < 0:
            raise ValueError("stale_days must be non-negative")
        if self.health_complexity_multiplier < 0:
            raise ValueError("health_complexity_multiplier must be non-negative")
        if self.hotspot_since_days < 1:
            raise ValueError("hotspot_since_days must be at least 1")
        if not (
            self.drift_complexity_max <= self.drift_complexity_high
            and self.drift_imports_watch <= self.drift_imports_max <= self.drift_imports_high
            and self.drift_dependents_max <= self.drift_dependents_high
        ):
            raise ValueError("drift thresholds must be non-decreasing in severity")
        if self.drift_min_max_penalty <= 0:
            raise ValueError("drift_min_max_penalty must be positive")

    @property
    def risk_weights(self) -> dict[str, float]:
        """Factor name -> weight, in reporting order."""
        return {
            "filesChanged": self.risk_files_weight,
            "linesChanged": self.risk_lines_weight,
            "complexityTouched": self.risk_complexity_weight,
            "dependentImpact": self.risk_dependents_weight,
            "busFactorRisk": self.risk_bus_factor_weight,
            "testCoverage": self.risk_tests_weight,
        }

    def risk_level_for(self, score: float) -> str:
        if score <= self.risk_level_low:
            return "low"
        if score <= self.risk_level_medium:
            return "medium"
        if score <= self.risk_level_high:
            return "high"
        return "critical"

    def complexity_bucket(self, complexity: int) -> str:
        if complexity <= self.complexity_low_max:
            return "low"
        if complexity <= self.complexity_medium_max:
            return "medium"
        if complexity <= self.complexity_high_max:
            return "high"
        return "very_high"

    def cycle_severity(self, length: int) -> str:
        if length <= self.cycle_low_max_length:
            return "low"
        if length <= self.cycle_medium_max_length:
            return "medium"
        return "high"


DEFAULT_THRESHOLDS = ThresholdConfig()


@dataclass(frozen=True)
class SpecterConfig:
    """Configuration for an analysis run.

    Attributes:
        State:
            state_dir: Directory under the project root holding graph and history
            max_snapshots: History retention (1-10000)

        Git integration:
            git_max_commits: Commits mined for coupling and hotspots
            git_max_commits_per_file: Commits mined per file for bus factor
            git_workers: Concurrent per-file git queries
            git_timeout_seconds: Timeout for a single git subprocess

        Cost:
            hourly_rate: Developer hourly rate used by cost estimation
            currency: ISO currency code reported alongside costs

        Output control:
            verbosity: Logging verbosity level
    """

    state_dir: str = ".specter"
    max_snapshots: int = 100

    git_max_commits: int = 500
    git_max_commits_per_file: int = 50
    git_workers: int = 8
    git_timeout_seconds: int = 30

    hourly_rate: float = 75.0
    currency: str = "USD"

    verbosity: Verbosity = "normal"

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.state_dir or Path(self.state_dir).is_absolute():
            raise ValueError("state_dir must be a non-empty relative path")
        if not 1 <= self.max_snapshots <= 10000:
            raise ValueError("max_snapshots must be between 1 and 10000")
        if self.git_max_commits < 1:
            raise ValueError("git_max_commits must be at least 1")
        if self.git_max_commits_per_file < 1:
            raise ValueError("git_max_commits_per_file must be at least 1")
        if self.git_workers < 1:
            raise ValueError("git_workers must be at least 1")
        if self.git_timeout_seconds < 1:
            raise ValueError("git_timeout_seconds must be at least 1")
        if self.hourly_rate < 0:
            raise ValueError("hourly_rate must be non-negative")
        if len(self.currency) != 3:
            raise ValueError("currency must be a 3-letter code")


def load_config(
    config_file: Optional[Path] = None, root_dir: Optional[Path] = None, **overrides
) -> SpecterConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        root_dir: Project root searched for specter.toml (defaults to cwd)
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated SpecterConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / ".specter.toml"
    if global_config.exists():
        _merge_layer(merged, _load_toml_file(global_config))

    project_config = (root_dir or Path.cwd()) / "specter.toml"
    if project_config.exists():
        _merge_layer(merged, _load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        _merge_layer(merged, _load_toml_file(config_file))

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update(overrides)

    thresholds = merged.pop("thresholds", None)
    if isinstance(thresholds, dict):
        try:
            merged["thresholds"] = ThresholdConfig(**thresholds)
        except TypeError as e:
            raise ConfigurationError(f"Invalid [thresholds] config: {e}")
        except ValueError as e:
            raise InvalidConfigError("thresholds", thresholds, str(e))
    elif isinstance(thresholds, ThresholdConfig):
        merged["thresholds"] = thresholds

    try:
        return SpecterConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
    except ValueError as e:
        raise InvalidConfigError("config", merged, str(e))


def _merge_layer(merged: dict, layer: dict) -> None:
    """Overlay one config file; [thresholds] tables merge key by key."""
    thresholds = layer.get("thresholds")
    if isinstance(thresholds, dict) and isinstance(merged.get("thresholds"), dict):
        layer = {**layer, "thresholds": {**merged["thresholds"], **thresholds}}
    merged.update(layer)


def _flatten_sections(data: dict) -> dict:
    """Lift the [history] and [git] tables into top-level SpecterConfig fields."""
    result = dict(data)
    history = result.pop("history", None)
    if isinstance(history, dict):
        if "max_snapshots" in history:
            result["max_snapshots"] = history["max_snapshots"]
    git = result.pop("git", None)
    if isinstance(git, dict):
        for key, value in git.items():
            result[f"git_{key}"] = value
    return result


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SPECTER_* environment variables.

    Any scalar SpecterConfig field can be set, e.g. SPECTER_MAX_SNAPSHOTS=20,
    SPECTER_GIT_WORKERS=4, SPECTER_HOURLY_RATE=90.
    """
    type_hints = get_type_hints(SpecterConfig)

    result: dict[str, Any] = {}

    for field_name in SpecterConfig.__dataclass_fields__:
        env_key = f"SPECTER_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot be expressed as a single variable.
    """
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file and return its flattened contents.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            return _flatten_sections(tomllib.load(f))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
