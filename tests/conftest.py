"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from PIL import Image

from witness.models.comparison import ComparisonResult, VerificationSummary
from witness.models.config import PathsConfig, ResolvedPaths, VisualEngineConfig, WitnessConfig


def _write_png(path: Path, size: tuple[int, int] = (100, 100), color=(255, 0, 0, 255)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path)
    return path


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def witness_config() -> WitnessConfig:
    """Config with short relative artifact paths."""
    return WitnessConfig(
        artifact_root="artifacts",
        paths=PathsConfig(
            baseline="artifacts/baselines",
            current="artifacts/current",
            diff="artifacts/diffs",
            reports="reports",
        ),
        visual_engine=VisualEngineConfig(threshold=0.001),
        max_parallel_comparisons=2,
    )


@pytest.fixture
def dirs(witness_config: WitnessConfig, tmp_path: Path) -> ResolvedPaths:
    """Absolute artifact directories under tmp_path."""
    return witness_config.resolve(tmp_path)


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def make_png():
    """Factory writing a solid-colour RGBA PNG, creating parent directories."""
    return _write_png


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def mixed_summary() -> VerificationSummary:
    """One result of each status."""
    return VerificationSummary.from_results([
        ComparisonResult(
            name="a-passed", status="passed", threshold=0.001,
            diff_pixel_ratio=0.0005, diff_pixel_count=5, total_pixels=10000,
        ),
        ComparisonResult(
            name="b-failed", status="failed", threshold=0.001,
            diff_pixel_ratio=0.25, diff_pixel_count=2500, total_pixels=10000,
        ),
        ComparisonResult(name="c-new", status="new", threshold=0.001),
        ComparisonResult(
            name="d-missing", status="missing", threshold=0.001,
            error="current screenshot missing: the test may have been deleted",
        ),
        ComparisonResult(
            name="e-error", status="error", threshold=0.001,
            error="dimensions mismatch: baseline 50x50 vs current 75x75",
        ),
    ])
