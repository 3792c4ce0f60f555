"""Report generation orchestration."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from witness.models.comparison import ComparisonResult, VerificationSummary

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)

REPORT_INDEX = "index.html"
REPORT_JSON = "summary.json"


def copy_images_to_report(results: list[ComparisonResult], report_dir: Path) -> int:
    """Copy each result's images into ``report_dir/images`` so the report is portable.

    A failed copy is logged and skipped. Returns the number of files copied.
    """
    images_dir = report_dir / "images"
    # Images from a previous pass may belong to snapshots that no longer exist
    if images_dir.exists():
        shutil.rmtree(images_dir)
    images_dir.mkdir(parents=True, exist_ok=True)
    copied = 0
    for r in results:
        sources = {
            "baseline": r.baseline_path,
            "current": r.current_path,
            "diff": r.diff_path,
        }
        for kind, source in sources.items():
            if not source or not Path(source).exists():
                continue
            try:
                shutil.copy2(source, images_dir / f"{r.name}-{kind}.png")
                copied += 1
            except OSError as e:
                logger.warning("Failed to copy %s image for %s: %s", kind, r.name, e)
    return copied


class Reporter:
    """Writes the dashboard, its images and the JSON summary into the reports directory."""

    def __init__(self, report_dir: Path):
        self.report_dir = report_dir

    @property
    def index_path(self) -> Path:
        return self.report_dir / REPORT_INDEX

    def generate_reports(self, summary: VerificationSummary) -> dict[str, str]:
        """Generate all report formats. Returns format -> file path."""
        self.report_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Report output directory: %s", self.report_dir)

        copied = copy_images_to_report(summary.results, self.report_dir)
        logger.debug("Copied %d images into report", copied)

        generated = {}
        generate_html_report(summary, self.index_path)
        generated["html"] = str(self.index_path)
        logger.info("HTML report: %s", self.index_path)

        json_path = self.report_dir / REPORT_JSON
        generate_json_report(summary, json_path)
        generated["json"] = str(json_path)
        logger.info("JSON report: %s", json_path)

        return generated
