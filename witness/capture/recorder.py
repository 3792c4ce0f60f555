"""Capture recorder. Screenshots a Playwright target and logs the capture."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

from playwright.async_api import ElementHandle, Frame, Page

from witness.capture.capture_log import CaptureLog
from witness.models.capture import DOM_ERROR_PLACEHOLDER, Capture, Viewport
from witness.models.config import WitnessConfig

logger = logging.getLogger(__name__)

Target = Union[Page, Frame, ElementHandle]

DEFAULT_VIEWPORT = Viewport(width=1920, height=1080)


def name_from_url(url: str) -> str:
    """Turn a URL path into a snapshot name: ``/products/item`` -> ``products-item``."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "unknown"
    if not parsed.scheme:
        return "unknown"
    name = parsed.path.strip("/").replace("/", "-")
    name = re.sub(r"[^a-zA-Z0-9-]", "", name)
    return name or "index"


def detect_environment(viewport: Viewport, config: WitnessConfig) -> str:
    """Name of the configured environment matching the viewport exactly, else ``WxH``."""
    for env_name, env in config.environments.items():
        if env.width == viewport.width and env.height == viewport.height:
            return env_name
    return f"{viewport.width}x{viewport.height}"


async def _page_from_target(target: Target) -> Page:
    if isinstance(target, Page):
        return target
    if isinstance(target, Frame):
        return target.page
    if isinstance(target, ElementHandle):
        frame = await target.owner_frame()
        if frame is None:
            raise ValueError("ElementHandle has no owner frame")
        return frame.page
    raise TypeError(f"Unsupported capture target: {type(target).__name__}")


async def _dom_snippet(target: Target) -> str:
    try:
        if isinstance(target, ElementHandle):
            return await target.inner_html()
        return await target.locator("body").inner_html()
    except Exception as e:
        logger.warning("Failed to capture DOM snippet: %s", e)
        return DOM_ERROR_PLACEHOLDER


async def record(
    target: Target,
    log: CaptureLog,
    config: WitnessConfig,
    name: str | None = None,
    test_file: str | None = None,
    test_title: str | None = None,
    cwd: Path | None = None,
) -> Capture:
    """Capture the current UI state of ``target`` into the current directory.

    Never raises: a failed capture is logged and stored as an error record so a
    broken screenshot does not fail the test that asked for it.
    """
    cwd = cwd or Path.cwd()
    try:
        if target is None:
            raise ValueError("Target is required for record()")
        page = await _page_from_target(target)
        capture_name = name or name_from_url(page.url)

        current_dir = config.resolve(cwd).current
        current_dir.mkdir(parents=True, exist_ok=True)
        screenshot_path = current_dir / f"{capture_name}.png"

        size = page.viewport_size
        viewport = Viewport(**size) if size else DEFAULT_VIEWPORT

        if isinstance(target, ElementHandle):
            await target.screenshot(path=str(screenshot_path))
        else:
            await page.screenshot(path=str(screenshot_path), full_page=True)

        dom_snippet = await _dom_snippet(target)

        try:
            rel_path = str(screenshot_path.relative_to(cwd))
        except ValueError:
            rel_path = str(screenshot_path)

        capture = log.append({
            "name": capture_name,
            "screenshot_path": rel_path,
            "dom_snippet": dom_snippet,
            "environment": detect_environment(viewport, config),
            "viewport": viewport,
            "test_file": test_file,
            "test_title": test_title,
        }, test_file=test_file)
        logger.debug("Captured %s -> %s", capture_name, rel_path)
        return capture
    except Exception as e:
        logger.error("record() failed for %s: %s", name or "unnamed capture", e)
        return log.append({
            "name": name or "error",
            "screenshot_path": "",
            "dom_snippet": "",
            "error": str(e),
        })
