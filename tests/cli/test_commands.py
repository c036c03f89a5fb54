"""Tests for the specter command line."""

import json

import pytest
from typer.testing import CliRunner

from specter import __version__
from specter.cli import app
from specter.exceptions import NOT_SCANNED_HINT
from specter.graph.store import GraphStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def project(tmp_path, make_graph):
    root = tmp_path / "project"
    root.mkdir()
    graph = make_graph(
        {"src/a.ts": {"complexity": 12}, "src/b.ts": {}, "src/c.ts": {}},
        imports=[("src/a.ts", "src/b.ts"), ("src/b.ts", "src/c.ts"), ("src/c.ts", "src/a.ts")],
        symbols=[{"file": "src/a.ts", "name": "parse", "complexity": 12}],
    )
    GraphStore().save(root, graph)
    return root


def run_json(*args):
    result = runner.invoke(app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestAnalysisCommands:
    def test_cycles(self, project):
        data = run_json("cycles", str(project))
        assert data["totalCycles"] == 1
        assert data["cycles"][0]["files"] == ["src/a.ts", "src/b.ts", "src/c.ts"]

    def test_coupling_without_git(self, project):
        data = run_json("coupling", str(project), "--min-strength", "40")
        assert data["gitAvailable"] is False
        assert data["pairs"] == []

    def test_bus_factor_without_git(self, project):
        data = run_json("bus-factor", str(project))
        assert data["gitAvailable"] is False
        assert data["criticalAreas"] == []

    def test_hotspots(self, project):
        data = run_json("hotspots", str(project), "--top", "1")
        assert [h["file"] for h in data["hotspots"]] == ["src/a.ts"]

    def test_cost(self, project):
        data = run_json("cost", str(project), "--rate", "100", "--currency", "EUR",
                        "--no-dead-code")
        assert data["hourlyRate"] == 100
        assert data["currency"] == "EUR"
        assert "deadCode" not in data["unavailable"]
        assert [c["name"] for c in data["categories"]] == ["Circular Dependencies"]

    def test_risk_without_changes(self, project):
        data = run_json("risk", str(project))
        assert data["overall"] == 0
        assert data["level"] == "low"

    def test_report(self, project):
        data = run_json("report", str(project))
        assert data["cycles"]["totalCycles"] == 1
        assert data["unavailable"] == {}

    def test_drift(self, project):
        data = run_json("drift", str(project))
        assert data["summary"]["totalFiles"] == 3
        assert data["summary"]["byType"]["layering"] == 0


class TestHistoryCommands:
    def test_snapshot_then_trends(self, project):
        snapshot = run_json("snapshot", str(project))
        assert snapshot["metrics"]["healthScore"] == 40

        data = run_json("trends", str(project))
        assert data["current"]["metrics"]["healthScore"] == 40
        assert data["trends"]["all"]["direction"] == "stable"

    def test_single_period(self, project):
        run_json("snapshot", str(project))
        data = run_json("trends", str(project), "--period", "week")
        assert data["period"] == "week"
        assert len(data["snapshots"]) == 1

    def test_unknown_period(self, project):
        result = runner.invoke(app, ["trends", str(project), "--period", "decade"])
        assert result.exit_code == 2


class TestErrors:
    def test_not_scanned(self, tmp_path):
        result = runner.invoke(app, ["cycles", str(tmp_path)])
        assert result.exit_code == 1
        assert NOT_SCANNED_HINT in result.output

    def test_branch_and_commit_are_exclusive(self, project):
        result = runner.invoke(app, ["risk", str(project), "--branch", "main", "--commit", "abc"])
        assert result.exit_code == 2

    def test_branch_outside_repository(self, project):
        result = runner.invoke(app, ["risk", str(project), "--branch", "main"])
        assert result.exit_code == 1
        assert "Not a git repository" in result.output

    def test_invalid_config_file(self, project, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("max_snapshots = 0\n")
        result = runner.invoke(app, ["cycles", str(project), "--config", str(bad)])
        assert result.exit_code == 2

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output
