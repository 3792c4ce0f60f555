"""pytest plugin. Owns the capture log for a test session and flushes it at the end.

Each pytest process (including every pytest-xdist worker) gets its own log
and writes its own payload file; nothing is shared across processes.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from witness.capture.capture_log import CaptureLog
from witness.capture.flush import flush_captures
from witness.capture.recorder import record
from witness.models.config import CONFIG_FILENAME, WitnessConfig

logger = logging.getLogger(__name__)

capture_log_key = pytest.StashKey[CaptureLog]()
test_files_key = pytest.StashKey[dict[str, None]]()


def payload_filename(config) -> str:
    workerinput = getattr(config, "workerinput", None)
    if workerinput and workerinput.get("workerid"):
        return f"last-run-{workerinput['workerid']}.json"
    return "last-run.json"


def pytest_configure(config) -> None:
    config.stash[capture_log_key] = CaptureLog()
    # dict as an insertion-ordered set
    config.stash[test_files_key] = {}


def pytest_runtest_setup(item) -> None:
    files = item.config.stash.get(test_files_key, None)
    if files is not None:
        files[item.nodeid.split("::")[0]] = None


@pytest.fixture(scope="session")
def capture_log(request) -> CaptureLog:
    """The capture log shared by every test in this process."""
    return request.config.stash[capture_log_key]


@pytest.fixture(scope="session")
def witness_config(request) -> WitnessConfig:
    return WitnessConfig.load(Path(request.config.rootpath) / CONFIG_FILENAME)


@pytest.fixture
def witness_test_file(request) -> str:
    """Path of the current test file, relative to the rootdir."""
    return request.node.nodeid.split("::")[0]


@pytest.fixture
def witness_record(request, capture_log, witness_config, witness_test_file):
    """Async callable recording a Playwright target under the current test."""
    rootpath = Path(request.config.rootpath)

    async def _record(target, name: str | None = None):
        return await record(
            target,
            capture_log,
            witness_config,
            name=name,
            test_file=witness_test_file,
            test_title=request.node.name,
            cwd=rootpath,
        )

    return _record


def pytest_sessionfinish(session, exitstatus) -> None:
    config = session.config
    log = config.stash.get(capture_log_key, None)
    if log is None or log.size() == 0:
        return

    rootpath = Path(config.rootpath)
    test_files = list(config.stash.get(test_files_key, {}))
    try:
        cfg = WitnessConfig.load(rootpath / CONFIG_FILENAME)
        output = cfg.resolve(rootpath).artifact_root / payload_filename(config)
        flush_captures(log, output, test_files)
        if cfg.api is not None and not cfg.api.enabled:
            logger.info("API disabled, captures saved locally only")
    except (OSError, ValueError) as e:
        # A reporting problem must not change the outcome of the test run
        logger.error("Failed to flush captures: %s", e)
