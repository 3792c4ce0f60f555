"""End-of-run flush. Turns the capture log into a run payload on disk."""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from pathlib import Path

from witness.capture.capture_log import CaptureLog
from witness.models.capture import Capture, RunPayload

logger = logging.getLogger(__name__)

CI_BUILD_VARS = [
    "CI_BUILD_ID",
    "BUILD_ID",
    "GITHUB_RUN_ID",
    "CIRCLE_BUILD_NUM",
    "TRAVIS_BUILD_ID",
    "GITLAB_CI_BUILD_ID",
    "JENKINS_BUILD_ID",
    "BUILDKITE_BUILD_ID",
    "DRONE_BUILD_NUMBER",
    "SEMAPHORE_BUILD_NUMBER",
    "AZURE_BUILD_ID",
]


def get_build_id() -> str:
    """Build id from the first CI variable that is set, else a local one."""
    for var in CI_BUILD_VARS:
        value = os.environ.get(var)
        if value:
            return value
    return f"local-{uuid.uuid4()}"


def build_payload(captures: list[Capture], test_files: list[str] | None = None) -> RunPayload:
    return RunPayload(
        account_id=os.environ.get("WITNESS_KEY", "FREE-TIER-USER"),
        build_id=get_build_id(),
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        captures=captures,
        test_files=list(test_files or []),
    )


def flush_captures(
    log: CaptureLog,
    output_path: Path,
    test_files: list[str] | None = None,
) -> RunPayload | None:
    """Write the run payload to ``output_path``, then remove the written records from the log.

    Returns None without writing anything when nothing was captured. If the
    write fails the log keeps every record.
    """
    captures = log.all()
    if not captures:
        logger.info("No captures to flush")
        return None

    payload = build_payload(captures, test_files)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload.model_dump(by_alias=True), f, indent=2)
    log.discard(captures)

    logger.info(
        "Flushed %d captures from %d test files to %s (build %s)",
        len(payload.captures), len(payload.test_files), output_path, payload.build_id,
    )
    return payload
