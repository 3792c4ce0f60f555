"""Pipeline orchestrator. Coordinates verification, reporting, approval and serving."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from witness.approval.service import ApprovalService
from witness.comparison.engine import ComparisonEngine
from witness.models.approval import ApprovalResult
from witness.models.comparison import VerificationSummary
from witness.models.config import WitnessConfig
from witness.reporter.reporter import Reporter
from witness.server.runner import serve_report

logger = logging.getLogger(__name__)


class Orchestrator:
    """Wires the comparison engine, reporter and approval service to one config."""

    def __init__(self, config: WitnessConfig, cwd: Path | None = None):
        self.config = config
        self.cwd = cwd or Path.cwd()
        self.paths = config.resolve(self.cwd)

        self.engine = ComparisonEngine(
            baseline_dir=self.paths.baseline,
            current_dir=self.paths.current,
            diff_dir=self.paths.diff,
            engine=config.visual_engine,
            max_parallel=config.max_parallel_comparisons,
        )
        self.approval = ApprovalService(
            baseline_dir=self.paths.baseline,
            current_dir=self.paths.current,
            diff_dir=self.paths.diff,
        )
        self.reporter = Reporter(self.paths.reports)

    def compare(self) -> VerificationSummary:
        """Run a comparison pass without writing reports."""
        return self.engine.run()

    def verify(self) -> tuple[VerificationSummary, dict[str, str]]:
        """Compare every snapshot and write the reports. Returns summary and report paths."""
        start = time.time()
        logger.info("=== Starting visual verification ===")
        summary = self.compare()
        reports = self.reporter.generate_reports(summary)
        logger.info("=== Verification complete in %.1fs ===", time.time() - start)
        return summary, reports

    def approve(self, name: str) -> ApprovalResult:
        return self.approval.approve_one(name)

    def approvable_names(self) -> list[str]:
        """Failed and new snapshots from a fresh comparison pass, in result order."""
        return [r.name for r in self.compare().results if r.approvable]

    def approve_all(self, names: list[str] | None = None) -> list[ApprovalResult]:
        names = self.approvable_names() if names is None else names
        if not names:
            logger.info("No snapshots need approval")
            return []
        results = self.approval.approve_many(names)
        approved = sum(1 for r in results if r.success)
        logger.info("Approved %d of %d snapshots", approved, len(results))
        return results

    def report_exists(self) -> bool:
        return self.reporter.index_path.exists()

    def serve(self, port: int | None = None) -> None:
        serve_report(self.config, self.cwd, port=port)
