"""Tests for comparison result models and summary tallying."""

import pytest

from witness.models.approval import ApprovalErrorKind, ApprovalResult
from witness.models.comparison import ComparisonResult, ComparisonStatus, VerificationSummary


class TestComparisonResult:
    def test_status_stored_as_string(self):
        result = ComparisonResult(name="home", status=ComparisonStatus.FAILED, threshold=0.001)
        assert result.status == "failed"

    @pytest.mark.parametrize("status,expected", [
        ("passed", False),
        ("failed", True),
        ("new", True),
        ("missing", False),
        ("error", False),
    ])
    def test_approvable(self, status, expected):
        result = ComparisonResult(name="home", status=status, threshold=0.001)
        assert result.approvable is expected

    def test_ratio_bounded(self):
        with pytest.raises(ValueError):
            ComparisonResult(name="home", status="failed", threshold=0.001, diff_pixel_ratio=1.5)

    def test_camel_case_dump(self):
        result = ComparisonResult(
            name="home", status="failed", threshold=0.001,
            diff_pixel_ratio=0.5, diff_pixel_count=50, total_pixels=100,
        )
        data = result.model_dump(by_alias=True)
        assert data["diffPixelRatio"] == 0.5
        assert data["diffPixelCount"] == 50
        assert data["totalPixels"] == 100


class TestVerificationSummary:
    """Summary counts must always agree with the result list."""

    def test_from_results_counts(self, mixed_summary):
        assert mixed_summary.total == 5
        assert mixed_summary.passed == 1
        assert mixed_summary.failed == 1
        assert mixed_summary.new == 1
        assert mixed_summary.missing == 1
        assert mixed_summary.errors == 1
        assert mixed_summary.timestamp.endswith("Z")

    def test_counts_sum_to_total(self):
        results = [
            ComparisonResult(name=f"s{i}", status=status, threshold=0.001)
            for i, status in enumerate(["passed", "passed", "failed", "new", "new", "new"])
        ]
        summary = VerificationSummary.from_results(results)
        assert (
            summary.passed + summary.failed + summary.new + summary.missing + summary.errors
            == summary.total
            == len(summary.results)
        )

    def test_empty(self):
        summary = VerificationSummary.from_results([])
        assert summary.total == 0
        assert summary.category_counts() == {}

    def test_category_counts_omits_zero(self):
        results = [
            ComparisonResult(name="a", status="passed", threshold=0.001),
            ComparisonResult(name="b", status="failed", threshold=0.001),
            ComparisonResult(name="c", status="failed", threshold=0.001),
        ]
        counts = VerificationSummary.from_results(results).category_counts()
        assert counts == {"passed": 1, "failed": 2}


class TestApprovalResult:
    def test_error_kind_dumped_as_string(self):
        result = ApprovalResult(
            success=False, message="nope", snapshot_name="home",
            error=ApprovalErrorKind.NO_SPACE,
        )
        data = result.model_dump(by_alias=True)
        assert data["error"] == "NO_SPACE"
        assert data["snapshotName"] == "home"
