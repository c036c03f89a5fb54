"""Tests for the aggregate health report."""

import pytest

from specter.analysis import report as report_module
from specter.analysis.report import SECTION_ORDER, build_report, run_section
from specter.config import SpecterConfig
from specter.context import AnalysisContext
from specter.exceptions import AnalyzerFailure, NotScannedError
from specter.graph.store import GraphStore


@pytest.fixture
def scanned(tmp_path, triangle_graph):
    GraphStore().save(tmp_path, triangle_graph)
    return AnalysisContext(tmp_path, config=SpecterConfig())


class TestRunSection:
    def test_success(self):
        assert run_section("cycles", lambda: 42).value == 42

    def test_failure_is_captured(self):
        def boom():
            raise RuntimeError("exploded")

        outcome = run_section("hotspots", boom)
        assert outcome.is_failed
        assert isinstance(outcome.error, AnalyzerFailure)
        assert outcome.error.reason == "exploded"


class TestBuildReport:
    def test_all_sections_present(self, scanned, now):
        report = build_report(scanned, now=now)

        assert set(report.sections) == set(SECTION_ORDER)
        assert report.unavailable == {}
        assert report.section("cycles").value.total_cycles == 1

        data = report.to_dict()
        assert data["generatedAt"] == "2024-06-01T12:00:00.000Z"
        assert data["project"]["fileCount"] == 3
        assert data["cycles"]["totalCycles"] == 1
        assert data["trends"]["current"] is None
        assert data["drift"]["score"] == 100

    def test_failing_section_does_not_stop_others(self, scanned, now, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("cycle search crashed")

        monkeypatch.setattr(report_module, "detect_cycles", broken)
        report = build_report(scanned, now=now)

        assert list(report.unavailable) == ["cycles"]
        assert "cycle search crashed" in report.unavailable["cycles"]
        data = report.to_dict()
        assert data["cycles"] is None
        assert data["coupling"] is not None
        assert data["hotspots"] is not None

    def test_requires_graph(self, tmp_path):
        with pytest.raises(NotScannedError):
            build_report(AnalysisContext(tmp_path, config=SpecterConfig()))
