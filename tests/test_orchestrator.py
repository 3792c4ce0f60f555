"""Tests for the pipeline orchestrator."""

from unittest.mock import patch

import pytest

from witness.orchestrator import Orchestrator

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


@pytest.fixture
def orchestrator(witness_config, tmp_path):
    return Orchestrator(witness_config, cwd=tmp_path)


class TestOrchestrator:
    def test_wires_configured_directories(self, orchestrator, dirs):
        assert orchestrator.engine.baseline_dir == dirs.baseline
        assert orchestrator.engine.max_parallel == 2
        assert orchestrator.approval.current_dir == dirs.current
        assert orchestrator.reporter.report_dir == dirs.reports

    def test_verify_writes_reports(self, orchestrator, dirs, make_png):
        make_png(dirs.baseline / "home.png", color=RED)
        make_png(dirs.current / "home.png", color=BLUE)

        summary, reports = orchestrator.verify()

        assert summary.failed == 1
        assert set(reports) == {"html", "json"}
        assert orchestrator.report_exists()

    def test_compare_does_not_write_reports(self, orchestrator, dirs, make_png):
        make_png(dirs.current / "home.png")
        orchestrator.compare()
        assert not orchestrator.report_exists()

    def test_approvable_names(self, orchestrator, dirs, make_png):
        make_png(dirs.baseline / "same.png", color=RED)
        make_png(dirs.current / "same.png", color=RED)
        make_png(dirs.baseline / "changed.png", color=RED)
        make_png(dirs.current / "changed.png", color=BLUE)
        make_png(dirs.current / "fresh.png")
        make_png(dirs.baseline / "gone.png")

        assert orchestrator.approvable_names() == ["changed", "fresh"]

    def test_approve_all_then_verify_passes(self, orchestrator, dirs, make_png):
        make_png(dirs.baseline / "changed.png", color=RED)
        make_png(dirs.current / "changed.png", color=BLUE)
        make_png(dirs.current / "fresh.png")

        results = orchestrator.approve_all()

        assert [r.success for r in results] == [True, True]
        summary, _ = orchestrator.verify()
        assert summary.passed == 2
        assert summary.failed == 0

    def test_approve_all_nothing_pending(self, orchestrator):
        assert orchestrator.approve_all() == []

    def test_approve_single(self, orchestrator, dirs, make_png):
        make_png(dirs.current / "home.png")
        assert orchestrator.approve("home").success

    def test_serve_delegates(self, orchestrator, witness_config, tmp_path):
        with patch("witness.orchestrator.serve_report") as serve:
            orchestrator.serve(port=4100)
        serve.assert_called_once_with(witness_config, tmp_path, port=4100)
