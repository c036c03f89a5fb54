"""Risk scoring of a pending change.

Six independent factors are each mapped to 0-100 through the step tables
in ThresholdConfig and combined with the configured weights:

    filesChanged        number of changed files
    linesChanged        additions + deletions
    complexityTouched   highest symbol complexity in a touched file
    dependentImpact     files transitively importing a changed file
    busFactorRisk       share of touched files with two or fewer contributors
    testCoverage        share of source files changed without a test change
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional

from ..config import DEFAULT_THRESHOLDS, ThresholdConfig, step_score
from ..exceptions import NotAGitRepositoryError
from ..graph.algorithms import import_adjacency, reverse_adjacency, transitive_dependents
from ..graph.models import KnowledgeGraph
from ..logging_config import get_logger
from ..temporal.models import DiffFile

if TYPE_CHECKING:
    from ..context import AnalysisContext

logger = get_logger(__name__)

EMPTY_SUMMARY = "Nothing to analyze - no staged changes or specified changes found."
EMPTY_RECOMMENDATION = "No changes to analyze - stage some changes or specify a branch/commit"
SAFE_RECOMMENDATION = "This looks like a safe, focused change. Nice work!"

FACTOR_NAMES = {
    "filesChanged": "Files Changed",
    "linesChanged": "Lines Changed",
    "complexityTouched": "Complexity Touched",
    "dependentImpact": "Dependent Impact",
    "busFactorRisk": "Bus Factor Risk",
    "testCoverage": "Test Coverage",
}

# (factor key, minimum score, recommendation)
_RECOMMENDATIONS = (
    ("filesChanged", 60, "Consider splitting this into smaller, focused commits"),
    ("linesChanged", 60, "Large change set - consider incremental commits for easier review"),
    ("complexityTouched", 50, "This change touches complex code - extra review recommended"),
    ("dependentImpact", 50, "Many files depend on these changes - test downstream functionality"),
    ("busFactorRisk", 40, "Some files have limited contributors - consider pair review"),
    ("testCoverage", 50, "Consider adding or updating tests for changed files"),
)

_SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py")
_TEST_DIRS = ("test/", "tests/", "__tests__/")
_TEST_SUFFIX = re.compile(r"([._-](test|spec)|_tests?)$")
_TEST_PREFIX = re.compile(r"^test_")


@dataclass
class RiskFactor:
    name: str
    score: int
    weight: float
    details: str
    items: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": self.score,
            "weight": self.weight,
            "details": self.details,
            "items": list(self.items),
        }


@dataclass
class RiskScore:
    overall: int
    level: str  # low | medium | high | critical
    factors: dict[str, RiskFactor]
    recommendations: list[str] = field(default_factory=list)
    summary: str = ""
    files: list[DiffFile] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall,
            "level": self.level,
            "factors": {key: f.to_dict() for key, f in self.factors.items()},
            "recommendations": list(self.recommendations),
            "summary": self.summary,
            "files": [f.to_dict() for f in self.files],
        }


def is_test_file(path: str) -> bool:
    lower = path.lower()
    if ".test." in lower or ".spec." in lower or "__tests__" in lower:
        return True
    if lower.startswith(_TEST_DIRS) or "/tests/" in lower or "/test/" in lower:
        return True
    if lower.endswith(".py"):
        stem = posixpath.splitext(posixpath.basename(lower))[0]
        return stem.startswith("test_") or stem.endswith("_test")
    return False


def is_source_file(path: str) -> bool:
    return path.lower().endswith(_SOURCE_EXTENSIONS) and not is_test_file(path)


def _source_key(path: str) -> str:
    """``src/pkg/util.ts`` -> ``pkg/util``."""
    key = posixpath.splitext(path.lower())[0]
    return key[4:] if key.startswith("src/") else key


def _test_key(path: str) -> str:
    """``tests/test_util.py`` -> ``util``; ``__tests__/util.test.ts`` -> ``util``."""
    key = path.lower()
    for prefix in _TEST_DIRS:
        if key.startswith(prefix):
            key = key[len(prefix) :]
            break
    key = posixpath.splitext(key)[0]
    head, tail = posixpath.split(key)
    tail = _TEST_PREFIX.sub("", _TEST_SUFFIX.sub("", tail))
    return posixpath.join(head, tail) if head else tail


def _has_test_change(source: str, test_keys: list[str]) -> bool:
    base = _source_key(source)
    return any(key and (key in base or base in key) for key in test_keys)


def _files_factor(files: list[DiffFile], weight: float, thresholds: ThresholdConfig) -> RiskFactor:
    count = len(files)
    score = step_score(count, thresholds.risk_files_steps, thresholds.risk_files_ceiling)
    if count == 0:
        details = "No files changed"
    elif score <= 10:
        details = "Small, focused change"
    elif score <= 40:
        details = "Moderate scope"
    elif score <= 70:
        details = "Large change, increased risk"
    else:
        details = f"Very large change ({count} files), review carefully"
    return RiskFactor(
        name=FACTOR_NAMES["filesChanged"],
        score=score,
        weight=weight,
        details=f"{count} files: {details}",
        items=[f.file_path for f in files[:5]],
    )


def _lines_factor(files: list[DiffFile], weight: float, thresholds: ThresholdConfig) -> RiskFactor:
    additions = sum(f.additions for f in files)
    deletions = sum(f.deletions for f in files)
    total = additions + deletions
    score = step_score(total, thresholds.risk_lines_steps, thresholds.risk_lines_ceiling)
    labels = {
        0: "No lines changed",
        10: "Minor changes",
        30: "Moderate changes",
        50: "Significant changes",
        75: "Large change set",
    }
    details = labels.get(score, "Very large change set") if total else labels[0]

    items = [f"+{additions} / -{deletions} lines"]
    largest = max(files, key=lambda f: f.lines_changed, default=None)
    if largest is not None and largest.lines_changed > 0:
        items.append(
            f"Largest: {largest.file_path} (+{largest.additions}/-{largest.deletions})"
        )
    return RiskFactor(
        name=FACTOR_NAMES["linesChanged"],
        score=score,
        weight=weight,
        details=f"{total} lines: {details}",
        items=items,
    )


def _complexity_factor(
    files: list[DiffFile],
    graph: KnowledgeGraph,
    weight: float,
    thresholds: ThresholdConfig,
) -> RiskFactor:
    max_complexity = 0
    complex_symbols: list[tuple[str, int]] = []
    for diff_file in files:
        node = graph.find_file_node(diff_file.file_path)
        if node is None:
            continue
        for symbol in graph.symbols_in(node.file_path):
            if not symbol.complexity:
                continue
            max_complexity = max(max_complexity, symbol.complexity)
            if symbol.complexity > thresholds.complexity_medium_max:
                complex_symbols.append((diff_file.file_path, symbol.complexity))

    score = step_score(
        max_complexity, thresholds.risk_complexity_steps, thresholds.risk_complexity_ceiling
    )
    if max_complexity == 0:
        details = "No complexity data available"
    elif score <= 10:
        details = "Low complexity code"
    elif score <= 30:
        details = "Moderate complexity"
    elif score <= 60:
        details = "High complexity - review carefully"
    else:
        details = "Very high complexity - critical review needed"

    complex_symbols.sort(key=lambda item: (-item[1], item[0]))
    return RiskFactor(
        name=FACTOR_NAMES["complexityTouched"],
        score=score,
        weight=weight,
        details=f"Max complexity: {max_complexity}. {details}",
        items=[f"{path} (C:{c})" for path, c in complex_symbols[:5]],
    )


def _dependents_factor(
    files: list[DiffFile],
    graph: KnowledgeGraph,
    weight: float,
    thresholds: ThresholdConfig,
) -> RiskFactor:
    changed = set()
    for diff_file in files:
        node = graph.find_file_node(diff_file.file_path)
        changed.add(node.file_path if node is not None else diff_file.file_path)

    dependents = transitive_dependents(reverse_adjacency(import_adjacency(graph)), changed)
    count = len(dependents)
    score = step_score(
        count, thresholds.risk_dependents_steps, thresholds.risk_dependents_ceiling
    )
    if count == 0:
        details = "No downstream dependencies"
    elif score <= 15:
        details = "Few dependents"
    elif score <= 40:
        details = "Moderate ripple effect"
    elif score <= 70:
        details = "Wide ripple effect"
    else:
        details = "Very wide ripple effect - test extensively"
    return RiskFactor(
        name=FACTOR_NAMES["dependentImpact"],
        score=score,
        weight=weight,
        details=f"{count} files depend on changed code. {details}",
        items=sorted(dependents)[:5],
    )


def _bus_factor_factor(
    files: list[DiffFile],
    graph: KnowledgeGraph,
    contributor_counts: Mapping[str, int],
    weight: float,
    thresholds: ThresholdConfig,
) -> RiskFactor:
    single_owner: list[str] = []
    two_owners: list[str] = []
    for diff_file in files:
        count = contributor_counts.get(diff_file.file_path)
        if count is None:
            node = graph.find_file_node(diff_file.file_path)
            if node is None:
                continue
            count = len(node.contributors)
        if count == 1:
            single_owner.append(diff_file.file_path)
        elif count == 2:
            two_owners.append(diff_file.file_path)

    risky = len(single_owner) + len(two_owners)
    ratio = risky / len(files) if files else 0.0
    score = step_score(ratio, thresholds.risk_bus_factor_steps, thresholds.risk_bus_factor_ceiling)
    if risky == 0:
        details = "No knowledge concentration risk"
    elif score <= 15:
        details = "Some files have limited contributors"
    elif score <= 40:
        details = "Moderate knowledge concentration"
    else:
        details = "High knowledge concentration - consider pair review"
    if single_owner:
        score = min(100, score + thresholds.risk_single_owner_penalty)
    return RiskFactor(
        name=FACTOR_NAMES["busFactorRisk"],
        score=score,
        weight=weight,
        details=(
            f"{len(single_owner)} single-owner, {len(two_owners)} low-contributor files. "
            f"{details}"
        ),
        items=single_owner[:3] + two_owners[:2],
    )


def _tests_factor(files: list[DiffFile], weight: float, thresholds: ThresholdConfig) -> RiskFactor:
    tests = [f.file_path for f in files if is_test_file(f.file_path)]
    sources = [
        f.file_path for f in files if f.status != "deleted" and is_source_file(f.file_path)
    ]
    test_keys = [_test_key(t) for t in tests]
    untested = [s for s in sources if not _has_test_change(s, test_keys)]

    if not sources:
        score, details = 0, "No source files modified"
    elif not untested:
        score, details = 0, "All source changes have test changes"
    else:
        score = step_score(
            len(untested) / len(sources),
            thresholds.risk_tests_steps,
            thresholds.risk_tests_ceiling,
        )
        details = {
            20: "Mostly covered by test changes",
            40: "Partial test coverage in changes",
            60: "Limited test coverage in changes",
        }.get(score, "No test changes for modified source files")
    return RiskFactor(
        name=FACTOR_NAMES["testCoverage"],
        score=score,
        weight=weight,
        details=(
            f"{len(tests)} test files, {len(untested)}/{len(sources)} source files "
            f"without test changes. {details}"
        ),
        items=untested[:5],
    )


def empty_risk_score(thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> RiskScore:
    factors = {
        key: RiskFactor(FACTOR_NAMES[key], 0, weight, "No changes to analyze")
        for key, weight in thresholds.risk_weights.items()
    }
    return RiskScore(
        overall=0,
        level="low",
        factors=factors,
        recommendations=[EMPTY_RECOMMENDATION],
        summary=EMPTY_SUMMARY,
    )


def score_changes(
    files: list[DiffFile],
    graph: KnowledgeGraph,
    contributor_counts: Optional[Mapping[str, int]] = None,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> RiskScore:
    """Score a list of changed files against the knowledge graph.

    Args:
        files: Changed files from the diff provider
        graph: Loaded knowledge graph
        contributor_counts: Distinct authors per changed path from git; paths
            missing here fall back to the graph node's contributor list
        thresholds: Step tables, weights and level cut-offs
    """
    if not files:
        return empty_risk_score(thresholds)

    weights = thresholds.risk_weights
    factors = {
        "filesChanged": _files_factor(files, weights["filesChanged"], thresholds),
        "linesChanged": _lines_factor(files, weights["linesChanged"], thresholds),
        "complexityTouched": _complexity_factor(
            files, graph, weights["complexityTouched"], thresholds
        ),
        "dependentImpact": _dependents_factor(files, graph, weights["dependentImpact"], thresholds),
        "busFactorRisk": _bus_factor_factor(
            files, graph, contributor_counts or {}, weights["busFactorRisk"], thresholds
        ),
        "testCoverage": _tests_factor(files, weights["testCoverage"], thresholds),
    }

    overall = round(sum(f.score * f.weight for f in factors.values()))
    overall = max(0, min(100, overall))
    level = thresholds.risk_level_for(overall)

    recommendations = [
        text for key, minimum, text in _RECOMMENDATIONS if factors[key].score >= minimum
    ]
    if not recommendations:
        recommendations.append(SAFE_RECOMMENDATION)

    logger.debug("Risk %d (%s) over %d files", overall, level, len(files))
    return RiskScore(
        overall=overall,
        level=level,
        factors=factors,
        recommendations=recommendations,
        summary=_summary(overall, level, factors),
        files=list(files),
    )


def _summary(overall: int, level: str, factors: dict[str, RiskFactor]) -> str:
    openings = {
        "low": f"This change looks safe. Low risk ({overall}/100).",
        "medium": f"This change is moderate risk ({overall}/100). A careful review is advised.",
        "high": (
            f"Warning: this is a high-risk change ({overall}/100). "
            f"Review carefully before committing."
        ),
        "critical": (
            f"CRITICAL: this change has very high risk ({overall}/100). "
            f"Consider splitting it up or getting multiple reviewers."
        ),
    }
    parts = [openings[level]]
    top = max(factors.values(), key=lambda f: f.score)
    if top.score >= 50:
        parts.append(f"Main concern: {top.name.lower()} - {top.details.lower()}")
    return " ".join(parts)


def calculate_risk(
    ctx: AnalysisContext,
    branch: Optional[str] = None,
    commit: Optional[str] = None,
) -> RiskScore:
    """Score the staged changes, a branch delta or a single commit.

    ``commit`` takes precedence over ``branch``, which takes precedence over
    the staged changes. Staged changes outside a git repository score as
    an empty change.

    Raises:
        NotScannedError: If no graph has been saved for the repository
        NotAGitRepositoryError: If a branch or commit is named outside a repository
        GitUnavailableError: If git fails to produce the diff
    """
    graph = ctx.require_graph()
    if (commit or branch) and not ctx.is_git_repository:
        raise NotAGitRepositoryError(ctx.root_dir)
    if commit:
        outcome = ctx.diffs.commit(commit)
    elif branch:
        outcome = ctx.diffs.branch(branch)
    else:
        outcome = ctx.diffs.staged()

    if outcome.is_failed:
        logger.warning("Could not read changes: %s", outcome.reason)
        raise outcome.error
    files = outcome.unwrap_or([])
    if not files:
        if outcome.is_empty:
            logger.info(outcome.reason)
        return empty_risk_score(ctx.thresholds)

    histories = ctx.file_histories([f.file_path for f in files])
    contributor_counts = {path: h.contributor_count for path, h in histories.items()}
    return score_changes(files, graph, contributor_counts, ctx.thresholds)
