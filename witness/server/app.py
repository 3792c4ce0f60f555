"""
Local review server

Serves the generated report and the two endpoints the dashboard talks to:
- GET /api/status - liveness probe, no side effects
- POST /api/accept-baseline - promote a snapshot's current image to baseline
Every other path is a file under the reports directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from witness.approval.service import ApprovalService
from witness.models.config import WitnessConfig
from witness.reporter.reporter import REPORT_INDEX

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class AcceptBaselineRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    snapshot_name: str = Field(min_length=1)


def resolve_report_path(report_root: Path, request_path: str) -> Path | None:
    """Map a URL path to a file under ``report_root``.

    None if the path escapes the root or cannot be resolved (e.g. a NUL byte).
    """
    root = report_root.resolve()
    relative = request_path.lstrip("/")
    if relative in ("", REPORT_INDEX):
        return root / REPORT_INDEX
    try:
        candidate = (root / relative).resolve()
    except (ValueError, OSError):
        return None
    if not candidate.is_relative_to(root):
        return None
    return candidate


def create_app(config: WitnessConfig, cwd: Path | None = None) -> FastAPI:
    """Build the review server for the directories in ``config``."""
    paths = config.resolve(cwd or Path.cwd())
    service = ApprovalService(paths.baseline, paths.current, paths.diff)
    report_root = paths.reports

    app = FastAPI(title="Witness review server", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.approval_service = service
    app.state.report_root = report_root

    @app.get("/api/status")
    async def status() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/accept-baseline")
    async def accept_baseline(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            payload = AcceptBaselineRequest.model_validate_json(body or b"{}")
        except ValidationError:
            return JSONResponse(
                status_code=400,
                content={"success": False, "message": "Missing snapshotName"},
            )

        result = await run_in_threadpool(service.approve_one, payload.snapshot_name)
        if result.success:
            logger.info("Approved baseline: %s", payload.snapshot_name)
        else:
            logger.error("Failed to approve %s: %s", payload.snapshot_name, result.message)
        return JSONResponse(
            status_code=200 if result.success else 500,
            content=result.model_dump(by_alias=True, mode="json"),
        )

    # Registered last so the API routes above take precedence
    @app.get("/{full_path:path}")
    async def serve_report(full_path: str):
        target = resolve_report_path(report_root, full_path)
        if target is None:
            logger.warning("Rejected path outside report directory: %s", full_path)
            return PlainTextResponse("Forbidden", status_code=403)
        if not target.is_file():
            return PlainTextResponse("File not found", status_code=404)
        return FileResponse(str(target), headers=NO_CACHE_HEADERS)

    return app
