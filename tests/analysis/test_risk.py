"""Tests for change risk scoring."""

import pytest

from specter.analysis.risk import (
    EMPTY_RECOMMENDATION,
    EMPTY_SUMMARY,
    SAFE_RECOMMENDATION,
    is_source_file,
    is_test_file,
    score_changes,
)
from specter.config import DEFAULT_THRESHOLDS
from specter.temporal.models import DiffFile


def changed(path, additions=1, deletions=0, status="modified"):
    return DiffFile(file_path=path, status=status, additions=additions, deletions=deletions)


class TestTestFileHeuristics:
    @pytest.mark.parametrize(
        "path",
        ["src/a.test.ts", "src/a.spec.tsx", "src/__tests__/a.ts", "tests/test_util.py",
         "pkg/util_test.py", "test/helpers.js", "lib/tests/fixtures.ts"],
    )
    def test_recognised(self, path):
        assert is_test_file(path)

    @pytest.mark.parametrize("path", ["src/a.ts", "src/testing.py", "src/contest.ts"])
    def test_not_tests(self, path):
        assert not is_test_file(path)

    def test_source_file(self):
        assert is_source_file("src/a.ts")
        assert not is_source_file("README.md")
        assert not is_source_file("src/a.test.ts")


class TestScoreChanges:
    def test_empty_change(self, make_graph):
        score = score_changes([], make_graph({}))
        assert score.overall == 0
        assert score.level == "low"
        assert score.recommendations == [EMPTY_RECOMMENDATION]
        assert score.summary == EMPTY_SUMMARY
        assert set(score.factors) == set(DEFAULT_THRESHOLDS.risk_weights)

    def test_factor_weights_sum_to_one(self, make_graph):
        score = score_changes([changed("src/a.ts")], make_graph({"src/a.ts": {}}))
        assert sum(f.weight for f in score.factors.values()) == pytest.approx(1.0)

    def test_small_tested_change_is_safe(self, make_graph):
        graph = make_graph(
            {"src/a.ts": {}, "src/b.ts": {}},
            symbols=[{"file": "src/a.ts", "name": "run", "complexity": 3}],
        )
        files = [
            changed("src/a.ts", 3, 1),
            changed("src/a.test.ts", 2),
            changed("src/b.ts", 1, 1),
            changed("src/b.spec.ts"),
        ]
        score = score_changes(files, graph, {"src/a.ts": 5, "src/b.ts": 5})

        assert score.factors["filesChanged"].score == 40
        assert score.factors["linesChanged"].score == 10
        assert score.factors["complexityTouched"].score == 10
        assert score.factors["dependentImpact"].score == 0
        assert score.factors["busFactorRisk"].score == 0
        assert score.factors["testCoverage"].score == 0
        assert score.overall == 10
        assert score.level == "low"
        assert score.recommendations == [SAFE_RECOMMENDATION]
        assert score.summary == "This change looks safe. Low risk (10/100)."

    def test_large_untested_change(self, make_graph):
        files = [changed(f"src/f{i}.ts", 80) for i in range(25)]
        graph = make_graph(
            {f"src/f{i}.ts": {} for i in range(25)},
            symbols=[{"file": "src/f0.ts", "name": "parse", "complexity": 25}],
        )
        counts = {f.file_path: 1 for f in files}

        score = score_changes(files, graph, counts)

        assert score.factors["filesChanged"].score == 100
        assert score.factors["linesChanged"].score == 100
        assert score.factors["complexityTouched"].score == 90
        assert score.factors["complexityTouched"].items == ["src/f0.ts (C:25)"]
        assert score.factors["busFactorRisk"].score == 85
        assert score.factors["testCoverage"].score == 80
        assert score.overall == 69
        assert score.level == "high"
        assert len(score.recommendations) == 5
        assert score.summary.startswith("Warning: this is a high-risk change (69/100).")
        assert "Main concern: files changed" in score.summary

    def test_dependents_are_transitive(self, make_graph):
        graph = make_graph(
            {"src/a.ts": {}, "src/b.ts": {}, "src/c.ts": {}},
            imports=[("src/a.ts", "src/b.ts"), ("src/b.ts", "src/c.ts")],
        )
        factor = score_changes([changed("src/c.ts")], graph).factors["dependentImpact"]
        assert factor.score == 15
        assert factor.items == ["src/a.ts", "src/b.ts"]

    def test_bus_factor_falls_back_to_graph_contributors(self, make_graph):
        graph = make_graph({"src/a.ts": {"contributors": ["alice"]}})
        factor = score_changes([changed("src/a.ts")], graph).factors["busFactorRisk"]
        assert factor.score == 85
        assert factor.items == ["src/a.ts"]

    def test_deleted_sources_need_no_tests(self, make_graph):
        files = [changed("src/old.ts", 0, 40, status="deleted")]
        factor = score_changes(files, make_graph({})).factors["testCoverage"]
        assert factor.score == 0

    def test_python_tests_match_sources(self, make_graph):
        files = [changed("src/pkg/util.py"), changed("tests/test_util.py")]
        assert score_changes(files, make_graph({})).factors["testCoverage"].score == 0

    def test_partially_tested(self, make_graph):
        files = [changed("src/a.ts"), changed("src/a.test.ts"), changed("src/b.ts")]
        factor = score_changes(files, make_graph({})).factors["testCoverage"]
        assert factor.score == 40
        assert factor.items == ["src/b.ts"]

    def test_to_dict(self, make_graph):
        data = score_changes([changed("src/a.ts")], make_graph({})).to_dict()
        assert set(data) == {"overall", "level", "factors", "recommendations", "summary", "files"}
        assert data["files"][0]["filePath"] == "src/a.ts"
