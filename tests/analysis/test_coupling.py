"""Tests for change coupling analysis."""

import pytest

from specter.analysis.coupling import analyze_coupling, count_cochanges, coupled_files
from specter.exceptions import NOT_A_REPOSITORY_HINT
from specter.temporal.models import Commit, FileChange, GitHistory


def make_history(*commits):
    """GitHistory with one commit per list of touched files, newest first."""
    return GitHistory.from_commits(
        [
            Commit(
                f"c{i}",
                1_700_000_000 - i * 3600,
                "alice",
                changes=[FileChange(f) for f in files],
            )
            for i, files in enumerate(commits)
        ]
    )


@pytest.fixture
def two_files(make_graph):
    return make_graph({"src/a.ts": {}, "src/b.ts": {}})


class TestCountCochanges:
    def test_counts(self):
        history = make_history(["a", "b"], ["a"], ["a", "b", "untracked"])
        files, pairs, used = count_cochanges(history, {"a", "b"}, max_files_per_commit=20)
        assert files == {"a": 3, "b": 2}
        assert pairs == {("a", "b"): 2}
        assert used == 3

    def test_bulk_commits_skipped(self):
        tracked = {f"f{i}" for i in range(5)}
        history = make_history(sorted(tracked), ["f0", "f1"])
        files, pairs, used = count_cochanges(history, tracked, max_files_per_commit=4)
        assert used == 1
        assert pairs == {("f0", "f1"): 1}


class TestAnalyzeCoupling:
    def test_hidden_pair(self, two_files):
        history = make_history(*[["src/a.ts", "src/b.ts"]] * 4)
        result = analyze_coupling(two_files, history)

        assert result.hidden_count == 1
        pair = result.pairs[0]
        assert (pair.file_a, pair.file_b) == ("src/a.ts", "src/b.ts")
        assert pair.type == "hidden"
        assert pair.strength == 1.0
        assert pair.to_dict()["couplingStrength"] == 100
        assert result.commits_analyzed == 4

    def test_expected_pair(self, make_graph):
        graph = make_graph({"src/a.ts": {}, "src/b.ts": {}}, imports=[("src/a.ts", "src/b.ts")])
        history = make_history(*[["src/a.ts", "src/b.ts"]] * 3)
        result = analyze_coupling(graph, history)

        assert result.expected_count == 1
        assert result.pairs[0].has_import
        assert result.pairs[0].type == "expected"

    def test_one_sided_import_is_suspicious(self, make_graph):
        graph = make_graph({"src/a.ts": {}, "src/b.ts": {}}, imports=[("src/b.ts", "src/a.ts")])
        history = make_history(*([["src/a.ts", "src/b.ts"]] * 2 + [["src/a.ts"]] * 8))
        result = analyze_coupling(graph, history)

        pair = result.pairs[0]
        assert pair.type == "suspicious"
        assert pair.confidence_a_b == pytest.approx(0.2)
        assert pair.confidence_b_a == pytest.approx(1.0)
        assert result.suspicious_count == 1
        assert "suspicious" in result.recommendations[0]

    def test_no_shared_commits(self, two_files):
        history = make_history(["src/a.ts"], ["src/b.ts"], ["src/a.ts"])
        result = analyze_coupling(two_files, history)
        assert result.pairs == []
        assert result.recommendations == [
            "No hidden couplings detected - your codebase has explicit dependencies!"
        ]

    def test_weak_pairs_below_min_strength_dropped(self, two_files):
        history = make_history(
            ["src/a.ts", "src/b.ts"], ["src/a.ts"], ["src/a.ts"], ["src/b.ts"], ["src/b.ts"]
        )
        # strength 1/3
        assert analyze_coupling(two_files, history).pairs == []

    def test_min_strength_accepts_percentages(self, two_files):
        history = make_history(["src/a.ts", "src/b.ts"], ["src/a.ts", "src/b.ts"], ["src/a.ts"])
        assert len(analyze_coupling(two_files, history, min_strength=90).pairs) == 1
        assert analyze_coupling(two_files, history, min_strength=100).pairs[0].strength == 1.0

    def test_hidden_below_hidden_threshold_dropped(self, two_files):
        history = make_history(
            ["src/a.ts", "src/b.ts"], ["src/a.ts"], ["src/a.ts"], ["src/b.ts"], ["src/b.ts"]
        )
        assert analyze_coupling(two_files, history, min_strength=0.2).pairs == []

    def test_hidden_only(self, make_graph):
        graph = make_graph(
            {"a": {}, "b": {}, "c": {}},
            imports=[("a", "b")],
        )
        history = make_history(["a", "b"], ["a", "c"], ["a", "b", "c"])
        result = analyze_coupling(graph, history, hidden_only=True)
        assert {p.type for p in result.pairs} == {"hidden"}
        assert result.expected_count + result.suspicious_count >= 1

    def test_sorted_by_strength(self, make_graph):
        graph = make_graph({"a": {}, "b": {}, "c": {}})
        history = make_history(["a", "b"], ["a", "b"], ["b", "c"], ["c"])
        result = analyze_coupling(graph, history)
        assert [(p.file_a, p.file_b) for p in result.pairs] == [("a", "b"), ("b", "c")]
        assert [p.file_b for p in coupled_files(result, "c")] == ["c"]

    def test_without_git(self, two_files):
        result = analyze_coupling(two_files, None)
        assert result.git_available is False
        assert result.pairs == []
        assert result.recommendations == [NOT_A_REPOSITORY_HINT]
        assert result.to_dict()["gitAvailable"] is False
