"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from witness.models.comparison import VerificationSummary


def generate_json_report(summary: VerificationSummary, output_path: Path) -> None:
    """Write a machine-readable copy of the verification summary."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(summary.model_dump(by_alias=True, mode="json"), f, indent=2)
