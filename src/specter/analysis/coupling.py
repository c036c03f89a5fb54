"""Change coupling: files that change together in git history.

Strength for a pair (A, B) is min-normalised support,

    strength = co_changes(A, B) / min(commits(A), commits(B))

which is symmetric and lies in [0, 1]. Classification against the import
graph:

    expected    an import edge exists and history agrees with it
    suspicious  an import edge exists but co-change is one-sided
                (|conf(A->B) - conf(B->A)| >= asymmetry threshold) or the
                overlap is weak (Jaccard < low-overlap threshold): the import
                may be stale
    hidden      no import edge and strength >= hidden threshold

Pairs without an import edge below the hidden threshold are dropped.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import TYPE_CHECKING, Optional

from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..exceptions import NOT_A_REPOSITORY_HINT
from ..graph.algorithms import import_adjacency
from ..graph.models import KnowledgeGraph
from ..logging_config import get_logger
from ..temporal.models import GitHistory

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

_TYPE_PRIORITY = {"hidden": 0, "suspicious": 1, "expected": 2}

_SUGGESTIONS = {
    "hidden": (
        "Consider extracting shared logic or adding an explicit dependency between these files"
    ),
    "suspicious": (
        "The import and the change history disagree - "
        "check whether the dependency is stale or one-sided"
    ),
    "expected": "Normal coupling through import relationship",
}


@dataclass
class CoupledPair:
    file_a: str
    file_b: str
    co_changes: int
    commits_a: int
    commits_b: int
    has_import: bool
    type: str  # "expected" | "suspicious" | "hidden"

    @property
    def strength(self) -> float:
        return self.co_changes / min(self.commits_a, self.commits_b)

    @property
    def jaccard(self) -> float:
        return self.co_changes / (self.commits_a + self.commits_b - self.co_changes)

    @property
    def confidence_a_b(self) -> float:
        """P(B changes | A changes)."""
        return self.co_changes / self.commits_a

    @property
    def confidence_b_a(self) -> float:
        return self.co_changes / self.commits_b

    @property
    def suggestion(self) -> str:
        return _SUGGESTIONS[self.type]

    def to_dict(self) -> dict:
        return {
            "file1": self.file_a,
            "file2": self.file_b,
            "coChangeCount": self.co_changes,
            "commitsFile1": self.commits_a,
            "commitsFile2": self.commits_b,
            "couplingStrength": round(self.strength * 100),
            "strength": round(self.strength, 4),
            "jaccard": round(self.jaccard, 4),
            "confidence1to2": round(self.confidence_a_b, 4),
            "confidence2to1": round(self.confidence_b_a, 4),
            "hasDirectDependency": self.has_import,
            "type": self.type,
            "suggestion": self.suggestion,
        }


@dataclass
class CouplingResult:
    pairs: list[CoupledPair] = field(default_factory=list)
    hidden_count: int = 0
    expected_count: int = 0
    suspicious_count: int = 0
    commits_analyzed: int = 0
    recommendations: list[str] = field(default_factory=list)
    git_available: bool = True

    def to_dict(self) -> dict:
        return {
            "pairs": [p.to_dict() for p in self.pairs],
            "hiddenCouplings": self.hidden_count,
            "expectedCouplings": self.expected_count,
            "suspiciousCouplings": self.suspicious_count,
            "commitsAnalyzed": self.commits_analyzed,
            "recommendations": list(self.recommendations),
            "gitAvailable": self.git_available,
        }


def count_cochanges(
    history: GitHistory, tracked: set[str], max_files_per_commit: int
) -> tuple[Counter, Counter, int]:
    """Per-file commit counts, per-pair co-change counts, and commits used.

    Commits touching more than ``max_files_per_commit`` tracked files are
    bulk changes (reformats, renames) and are skipped entirely.
    """
    file_commits: Counter = Counter()
    pair_commits: Counter = Counter()
    used = 0
    for commit in history.commits:
        relevant = sorted({f for f in commit.files if f in tracked})
        if not relevant or len(relevant) > max_files_per_commit:
            continue
        used += 1
        file_commits.update(relevant)
        for a, b in combinations(relevant, 2):
            pair_commits[(a, b)] += 1
    return file_commits, pair_commits, used


def _classify(
    has_import: bool,
    strength: float,
    jaccard: float,
    asymmetry: float,
    hidden_threshold: float,
    thresholds: ThresholdConfig,
) -> Optional[str]:
    if has_import:
        if (
            asymmetry >= thresholds.coupling_asymmetry_threshold
            or jaccard < thresholds.coupling_low_jaccard
        ):
            return "suspicious"
        return "expected"
    if strength >= hidden_threshold:
        return "hidden"
    return None


def analyze_coupling(
    graph: KnowledgeGraph,
    history: Optional[GitHistory],
    min_strength: Optional[float] = None,
    hidden_only: bool = False,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
    unavailable_reason: str = NOT_A_REPOSITORY_HINT,
) -> CouplingResult:
    """Rank co-changing file pairs and classify them against the import graph.

    ``history`` of None means git is unavailable; the result is empty and
    ``unavailable_reason`` is its only recommendation.
    """
    if history is None:
        return CouplingResult(recommendations=[unavailable_reason], git_available=False)

    if min_strength is None:
        min_strength = thresholds.coupling_min_strength
    if min_strength > 1:
        # Accept percentages
        min_strength = min_strength / 100
    hidden_threshold = max(min_strength, thresholds.coupling_hidden_strength)

    tracked = set(graph.file_paths())
    file_commits, pair_commits, used = count_cochanges(
        history, tracked, thresholds.coupling_max_files_per_commit
    )

    imports: set[tuple[str, str]] = set()
    for source, targets in import_adjacency(graph).items():
        for target in targets:
            imports.add((source, target))

    pairs: list[CoupledPair] = []
    for (a, b), co in pair_commits.items():
        commits_a, commits_b = file_commits[a], file_commits[b]
        strength = co / min(commits_a, commits_b)
        if strength < min_strength:
            continue
        has_import = (a, b) in imports or (b, a) in imports
        jaccard = co / (commits_a + commits_b - co)
        asymmetry = abs(co / commits_a - co / commits_b)
        pair_type = _classify(has_import, strength, jaccard, asymmetry, hidden_threshold, thresholds)
        if pair_type is None:
            continue
        pairs.append(CoupledPair(a, b, co, commits_a, commits_b, has_import, pair_type))

    pairs.sort(key=lambda p: (-p.strength, _TYPE_PRIORITY[p.type], p.file_a, p.file_b))

    counts = Counter(p.type for p in pairs)
    result = CouplingResult(
        pairs=[p for p in pairs if p.type == "hidden"] if hidden_only else pairs,
        hidden_count=counts.get("hidden", 0),
        expected_count=counts.get("expected", 0),
        suspicious_count=counts.get("suspicious", 0),
        commits_analyzed=used,
    )
    result.recommendations = _recommendations(pairs, result.hidden_count, result.suspicious_count)
    logger.debug(
        "Coupling: %d pairs (%d hidden, %d suspicious) from %d commits",
        len(pairs),
        result.hidden_count,
        result.suspicious_count,
        used,
    )
    return result


def _recommendations(pairs: list[CoupledPair], hidden: int, suspicious: int) -> list[str]:
    recommendations = []

    if suspicious > 0:
        recommendations.append(
            f"Found {suspicious} suspicious coupling(s) - imports whose change history "
            f"is one-sided or weak may be stale"
        )

    if hidden > 5:
        recommendations.append(
            f"{hidden} hidden dependencies found - consider a refactoring sprint "
            f"to extract shared abstractions"
        )
    elif hidden > 0:
        recommendations.append(
            f"{hidden} hidden dependency pair(s) found - review if explicit imports "
            f"or shared modules are needed"
        )

    problem_files: Counter = Counter()
    for pair in pairs:
        if pair.type != "expected":
            problem_files[pair.file_a] += 1
            problem_files[pair.file_b] += 1
    if problem_files:
        top_file, count = sorted(problem_files.items(), key=lambda kv: (-kv[1], kv[0]))[0]
        if count >= 3:
            recommendations.append(
                f'"{top_file}" appears in {count} problem couplings - consider refactoring '
                f"this file into a shared module"
            )

    if hidden == 0:
        recommendations.append(
            "No hidden couplings detected - your codebase has explicit dependencies!"
        )

    return recommendations


def coupled_files(result: CouplingResult, file_path: str) -> list[CoupledPair]:
    """Pairs involving ``file_path``, strongest first."""
    return [p for p in result.pairs if file_path in (p.file_a, p.file_b)]


def from_context(
    ctx: AnalysisContext, min_strength: Optional[float] = None, hidden_only: bool = False
) -> CouplingResult:
    """Coupling for the context's project, mined from its full git log."""
    graph = ctx.require_graph()
    outcome = ctx.git_history()
    return analyze_coupling(
        graph,
        outcome.unwrap_or(None),
        min_strength=min_strength,
        hidden_only=hidden_only,
        thresholds=ctx.thresholds,
        unavailable_reason=outcome.reason or NOT_A_REPOSITORY_HINT,
    )
