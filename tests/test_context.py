"""Tests for the per-invocation analysis context."""

import pytest

from specter.analysis import coupling, hotspots
from specter.analysis.risk import EMPTY_SUMMARY, calculate_risk
from specter.config import SpecterConfig
from specter.context import AnalysisContext
from specter.exceptions import CorruptStateError, NotAGitRepositoryError, NotScannedError
from specter.graph.store import GraphStore
from specter.history.capture import record_snapshot


def open_ctx(root, **config):
    return AnalysisContext(root, config=SpecterConfig(**config))


class TestGraphAccess:
    def test_not_scanned(self, tmp_path):
        ctx = open_ctx(tmp_path)
        assert ctx.load_graph().is_empty
        with pytest.raises(NotScannedError):
            ctx.require_graph()

    def test_graph_loaded_once(self, tmp_path, triangle_graph):
        GraphStore().save(tmp_path, triangle_graph)
        ctx = open_ctx(tmp_path)
        assert ctx.require_graph() is ctx.require_graph()

    def test_corrupt_graph_raises(self, tmp_path):
        (tmp_path / ".specter").mkdir()
        (tmp_path / ".specter" / "graph.json").write_text("[")
        with pytest.raises(CorruptStateError):
            open_ctx(tmp_path).require_graph()

    def test_custom_state_dir(self, tmp_path, triangle_graph):
        GraphStore(".state").save(tmp_path, triangle_graph)
        assert open_ctx(tmp_path, state_dir=".state").require_graph().file_paths() == [
            "src/a.ts",
            "src/b.ts",
            "src/c.ts",
        ]


class TestOutsideRepository:
    def test_git_reads_degrade(self, tmp_path):
        ctx = open_ctx(tmp_path)
        assert ctx.is_git_repository is False
        assert ctx.git_history().is_empty
        assert ctx.file_histories(["a.ts"]) == {}

    def test_staged_risk_is_empty(self, tmp_path, triangle_graph):
        GraphStore().save(tmp_path, triangle_graph)
        score = calculate_risk(open_ctx(tmp_path))
        assert score.overall == 0
        assert score.summary == EMPTY_SUMMARY

    def test_branch_risk_requires_repository(self, tmp_path, triangle_graph):
        GraphStore().save(tmp_path, triangle_graph)
        with pytest.raises(NotAGitRepositoryError):
            calculate_risk(open_ctx(tmp_path), branch="main")


@pytest.mark.git
class TestInsideRepository:
    def test_history_cached(self, git_repo):
        git_repo.commit({"src/a.ts": "a\n"})
        ctx = open_ctx(git_repo.root)
        assert ctx.git_history() is ctx.git_history()
        assert ctx.git_history().value.total_commits == 1

    def test_file_histories_cached(self, git_repo):
        git_repo.commit({"src/a.ts": "a\n"})
        ctx = open_ctx(git_repo.root)
        first = ctx.file_histories(["src/a.ts"])
        assert ctx.file_histories(["src/a.ts"])["src/a.ts"] is first["src/a.ts"]

    def test_record_snapshot(self, git_repo, make_graph, now):
        git_repo.commit({"src/a.ts": "a\n"})
        graph = make_graph(
            {"src/a.ts": {}}, symbols=[{"file": "src/a.ts", "name": "f", "complexity": 4}]
        )
        GraphStore().save(git_repo.root, graph)
        ctx = open_ctx(git_repo.root)

        snapshot = record_snapshot(ctx, now=now)

        assert snapshot.commit_hash == git_repo.git("rev-parse", "HEAD").strip()[:8]
        assert snapshot.metrics.health_score == 80
        assert ctx.history_store.load_all(ctx.root_dir) == [snapshot]

    def test_staged_risk(self, git_repo, make_graph):
        git_repo.commit({"src/a.ts": "a\n"})
        git_repo.commit({"src/a.ts": "a\nb\n"}, author="Bob", email="bob@x.io")
        GraphStore().save(git_repo.root, make_graph({"src/a.ts": {}}))
        git_repo.write("src/a.ts", "a\nb\nc\n")
        git_repo.git("add", "src/a.ts")

        score = calculate_risk(open_ctx(git_repo.root))

        assert [f.file_path for f in score.files] == ["src/a.ts"]
        assert score.factors["linesChanged"].score == 10
        # two authors in git history
        assert score.factors["busFactorRisk"].items == ["src/a.ts"]
        assert score.factors["busFactorRisk"].score == 70

    def test_staged_risk_from_project_subdirectory(self, git_repo, make_graph):
        git_repo.commit({"app/src/a.ts": "a\n", "other/x.ts": "x\n"})
        git_repo.commit({"app/src/a.ts": "a\nb\n"}, author="Bob", email="bob@x.io")
        project = git_repo.root / "app"
        GraphStore().save(project, make_graph({"src/a.ts": {}}))
        git_repo.write("app/src/a.ts", "a\nb\nc\n")
        git_repo.write("other/x.ts", "x\ny\n")
        git_repo.git("add", "-A")

        score = calculate_risk(open_ctx(project))

        assert [f.file_path for f in score.files] == ["src/a.ts"]
        assert score.factors["busFactorRisk"].items == ["src/a.ts"]
        assert score.factors["busFactorRisk"].score == 70

    def test_repository_without_commits_is_still_a_repository(self, git_repo, triangle_graph):
        GraphStore().save(git_repo.root, triangle_graph)
        ctx = open_ctx(git_repo.root)

        assert ctx.git_history().is_ok
        result = coupling.from_context(ctx)
        assert result.git_available is True
        assert result.pairs == []

    def test_no_recent_commits_keeps_git_available(self, git_repo, make_graph):
        # the repository clock sits in 2024, far outside the hotspot window
        git_repo.commit({"src/a.ts": "a\n"})
        GraphStore().save(git_repo.root, make_graph({"src/a.ts": {"complexity": 4}}))

        result = hotspots.from_context(open_ctx(git_repo.root))

        assert result.git_available is True
        assert result.hotspots[0].raw_churn == 0
