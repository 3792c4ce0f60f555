"""Comparison result data structures produced by a verification pass."""

from __future__ import annotations

import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ComparisonStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    NEW = "new"
    MISSING = "missing"
    ERROR = "error"


class ComparisonResult(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True,
    )

    name: str
    status: ComparisonStatus
    diff_pixel_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    diff_pixel_count: int = 0
    total_pixels: int = 0
    threshold: float
    baseline_path: Optional[str] = None
    current_path: Optional[str] = None
    diff_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def approvable(self) -> bool:
        return self.status in (ComparisonStatus.FAILED.value, ComparisonStatus.NEW.value)


class VerificationSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    passed: int = 0
    failed: int = 0
    new: int = 0
    missing: int = 0
    errors: int = 0
    results: list[ComparisonResult] = Field(default_factory=list)
    timestamp: str = ""

    @classmethod
    def from_results(cls, results: list[ComparisonResult]) -> "VerificationSummary":
        """Tally results by status. Counts always agree with ``results``."""
        def count(status: ComparisonStatus) -> int:
            return sum(1 for r in results if r.status == status.value)

        return cls(
            total=len(results),
            passed=count(ComparisonStatus.PASSED),
            failed=count(ComparisonStatus.FAILED),
            new=count(ComparisonStatus.NEW),
            missing=count(ComparisonStatus.MISSING),
            errors=count(ComparisonStatus.ERROR),
            results=list(results),
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )

    def category_counts(self) -> dict[str, int]:
        """Status -> count for every category with at least one member."""
        counts = {
            ComparisonStatus.PASSED.value: self.passed,
            ComparisonStatus.FAILED.value: self.failed,
            ComparisonStatus.NEW.value: self.new,
            ComparisonStatus.MISSING.value: self.missing,
            ComparisonStatus.ERROR.value: self.errors,
        }
        return {status: n for status, n in counts.items() if n > 0}
