"""Approval service. Promotes current screenshots to baselines."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import tempfile
from pathlib import Path

from witness.models.approval import ApprovalErrorKind, ApprovalResult

logger = logging.getLogger(__name__)

_PERMISSION_ERRNOS = {errno.EACCES, errno.EPERM, errno.EROFS}
_NO_SPACE_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def _is_safe_name(name: str) -> bool:
    return bool(name) and name not in (".", "..") and "/" not in name and "\\" not in name


def classify_os_error(e: OSError) -> ApprovalErrorKind:
    if isinstance(e, PermissionError) or e.errno in _PERMISSION_ERRNOS:
        return ApprovalErrorKind.PERMISSION_DENIED
    if e.errno in _NO_SPACE_ERRNOS:
        return ApprovalErrorKind.NO_SPACE
    return ApprovalErrorKind.UNKNOWN_ERROR


def atomic_copy(source: Path, dest: Path) -> None:
    """Copy ``source`` over ``dest`` so readers see either the old or the new file."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent)
    os.close(fd)
    try:
        shutil.copyfile(source, tmp_name)
        # mkstemp creates the file 0600
        shutil.copymode(source, tmp_name)
        os.replace(tmp_name, dest)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class ApprovalService:
    """Copies current -> baseline and removes the stale diff for a snapshot."""

    def __init__(self, baseline_dir: Path, current_dir: Path, diff_dir: Path):
        self.baseline_dir = baseline_dir
        self.current_dir = current_dir
        self.diff_dir = diff_dir

    def _path(self, directory: Path, name: str) -> Path:
        return directory / f"{name}.png"

    def approve_one(self, name: str) -> ApprovalResult:
        """Promote one snapshot. Failures are returned, never raised."""
        current_path = self._path(self.current_dir, name) if _is_safe_name(name) else None
        if current_path is None or not current_path.is_file():
            logger.warning("Cannot approve %s: current screenshot not found", name)
            return ApprovalResult(
                success=False,
                message=f"Current screenshot not found: {name}",
                snapshot_name=name,
                error=ApprovalErrorKind.FILE_NOT_FOUND,
            )

        try:
            atomic_copy(current_path, self._path(self.baseline_dir, name))
            self._path(self.diff_dir, name).unlink(missing_ok=True)
        except OSError as e:
            kind = classify_os_error(e)
            logger.error("Failed to approve %s (%s): %s", name, kind.value, e)
            if kind == ApprovalErrorKind.PERMISSION_DENIED:
                message = f"Permission denied. Please check file permissions for: {name}"
            elif kind == ApprovalErrorKind.NO_SPACE:
                message = f"Insufficient disk space to approve: {name}"
            else:
                message = f"Failed to approve baseline for {name}: {e}"
            return ApprovalResult(success=False, message=message, snapshot_name=name, error=kind)
        except Exception as e:
            logger.error("Failed to approve %s: %s", name, e)
            return ApprovalResult(
                success=False,
                message=f"Failed to approve baseline for {name}: {e}",
                snapshot_name=name,
                error=ApprovalErrorKind.UNKNOWN_ERROR,
            )

        logger.info("Approved baseline for %s", name)
        return ApprovalResult(
            success=True,
            message=f"Successfully approved baseline for: {name}",
            snapshot_name=name,
        )

    def approve_many(self, names: list[str]) -> list[ApprovalResult]:
        """Approve each name in order; one result per input, no short-circuit."""
        return [self.approve_one(name) for name in names]

    def list_approvable(self) -> list[str]:
        """Names of every image in the current directory."""
        if not self.current_dir.is_dir():
            return []
        return sorted(
            p.stem for p in self.current_dir.iterdir()
            if p.is_file() and p.suffix == ".png"
        )
