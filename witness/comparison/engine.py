"""Comparison engine. Classifies every snapshot found in the baseline and current directories."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from witness.comparison.pixel_diff import compare_files
from witness.models.comparison import ComparisonResult, ComparisonStatus, VerificationSummary
from witness.models.config import VisualEngineConfig

logger = logging.getLogger(__name__)

MISSING_CURRENT_MESSAGE = "current screenshot missing: the test may have been deleted"


def list_snapshots(directory: Path) -> dict[str, Path]:
    """Snapshot name -> PNG path for a directory; empty if the directory is absent."""
    if not directory.is_dir():
        return {}
    return {
        p.stem: p
        for p in sorted(directory.iterdir())
        if p.is_file() and p.suffix == ".png"
    }


def _remove_stale_diff(diff_path: Path) -> None:
    try:
        diff_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove stale diff %s: %s", diff_path, e)


def compare_snapshot(
    name: str,
    baseline_path: Path | None,
    current_path: Path | None,
    diff_path: Path,
    engine: VisualEngineConfig,
) -> ComparisonResult:
    """Classify one snapshot. Never raises: failures become ``error`` results."""
    threshold = engine.threshold

    if baseline_path is None or not baseline_path.exists():
        _remove_stale_diff(diff_path)
        return ComparisonResult(
            name=name,
            status=ComparisonStatus.NEW,
            threshold=threshold,
            current_path=str(current_path) if current_path else None,
        )

    if current_path is None or not current_path.exists():
        _remove_stale_diff(diff_path)
        return ComparisonResult(
            name=name,
            status=ComparisonStatus.MISSING,
            threshold=threshold,
            baseline_path=str(baseline_path),
            error=MISSING_CURRENT_MESSAGE,
        )

    try:
        diff = compare_files(
            baseline_path,
            current_path,
            diff_path,
            pixel_tolerance=engine.pixel_tolerance,
            include_aa=engine.include_aa,
            alpha=engine.alpha,
            diff_color=engine.diff_color,
            aa_color=engine.aa_color,
        )
    except Exception as e:
        logger.warning("Comparison failed for %s: %s", name, e)
        _remove_stale_diff(diff_path)
        return ComparisonResult(
            name=name,
            status=ComparisonStatus.ERROR,
            threshold=threshold,
            baseline_path=str(baseline_path),
            current_path=str(current_path),
            error=str(e),
        )

    ratio = diff.diff_pixel_ratio
    status = ComparisonStatus.PASSED if ratio <= threshold else ComparisonStatus.FAILED
    logger.debug("%s: %s (%.4f%% of %d pixels)", name, status.value, ratio * 100, diff.total_pixels)
    return ComparisonResult(
        name=name,
        status=status,
        diff_pixel_ratio=ratio,
        diff_pixel_count=diff.diff_pixel_count,
        total_pixels=diff.total_pixels,
        threshold=threshold,
        baseline_path=str(baseline_path),
        current_path=str(current_path),
        diff_path=str(diff_path),
    )


class ComparisonEngine:
    """Runs a verification pass over the baseline, current and diff directories."""

    def __init__(
        self,
        baseline_dir: Path,
        current_dir: Path,
        diff_dir: Path,
        engine: VisualEngineConfig | None = None,
        max_parallel: int = 4,
    ):
        self.baseline_dir = baseline_dir
        self.current_dir = current_dir
        self.diff_dir = diff_dir
        self.engine = engine or VisualEngineConfig()
        self.max_parallel = max_parallel

    def run(self) -> VerificationSummary:
        return asyncio.run(self.run_async())

    async def run_async(self) -> VerificationSummary:
        self.diff_dir.mkdir(parents=True, exist_ok=True)
        baselines = list_snapshots(self.baseline_dir)
        currents = list_snapshots(self.current_dir)
        names = sorted(set(baselines) | set(currents))
        logger.info("Comparing %d snapshots (%d baselines, %d current)",
                    len(names), len(baselines), len(currents))

        semaphore = asyncio.Semaphore(self.max_parallel)

        async def compare(name: str) -> ComparisonResult:
            async with semaphore:
                return await asyncio.to_thread(
                    compare_snapshot,
                    name,
                    baselines.get(name),
                    currents.get(name),
                    self.diff_dir / f"{name}.png",
                    self.engine,
                )

        # gather keeps input order, so results follow the sorted names
        results = list(await asyncio.gather(*(compare(n) for n in names)))
        summary = VerificationSummary.from_results(results)
        logger.info(
            "Verification complete: %d total, %d passed, %d failed, %d new, %d missing, %d errors",
            summary.total, summary.passed, summary.failed, summary.new, summary.missing, summary.errors,
        )
        return summary
