"""Tests for the Playwright capture recorder."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import ElementHandle, Frame, Page

from witness.capture.capture_log import CaptureLog
from witness.capture.recorder import detect_environment, name_from_url, record
from witness.models.capture import DOM_ERROR_PLACEHOLDER, Viewport
from witness.models.config import EnvironmentConfig, WitnessConfig


def _mock_page(url: str = "https://shop.test/products/item", viewport=None, dom: str = "<main>hi</main>"):
    page = MagicMock(spec=Page)
    page.url = url
    page.viewport_size = viewport if viewport is not None else {"width": 1920, "height": 1080}
    page.screenshot = AsyncMock()
    body = MagicMock()
    body.inner_html = AsyncMock(return_value=dom)
    page.locator = MagicMock(return_value=body)
    return page


class TestNameFromUrl:
    @pytest.mark.parametrize("url,expected", [
        ("https://shop.test/products/item", "products-item"),
        ("https://shop.test/", "index"),
        ("https://shop.test", "index"),
        ("https://shop.test/a_b/c.d?q=1", "ab-cd"),
        ("not a url", "unknown"),
        ("", "unknown"),
    ])
    def test_names(self, url, expected):
        assert name_from_url(url) == expected


class TestDetectEnvironment:
    def test_matching_environment(self):
        config = WitnessConfig(environments={
            "mobile": EnvironmentConfig(width=375, height=667),
            "desktop": EnvironmentConfig(width=1920, height=1080),
        })
        assert detect_environment(Viewport(width=375, height=667), config) == "mobile"

    def test_fallback_dimensions(self):
        assert detect_environment(Viewport(width=800, height=600), WitnessConfig()) == "800x600"


class TestRecord:
    """record() screenshots into the current directory and logs a capture."""

    @pytest.mark.asyncio
    async def test_page_capture(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page()

        capture = await record(
            page, log, witness_config,
            test_file="tests/test_shop.py", test_title="test_item", cwd=tmp_path,
        )

        expected = tmp_path / "artifacts" / "current" / "products-item.png"
        page.screenshot.assert_awaited_once_with(path=str(expected), full_page=True)
        assert capture.name == "products-item"
        assert capture.screenshot_path == "artifacts/current/products-item.png"
        assert capture.dom_snippet == "<main>hi</main>"
        assert capture.environment == "desktop-hd"
        assert capture.viewport == Viewport(width=1920, height=1080)
        assert capture.test_title == "test_item"
        assert capture.error is None
        assert log.by_partition("tests/test_shop.py") == [capture]
        assert expected.parent.is_dir()

    @pytest.mark.asyncio
    async def test_explicit_name(self, tmp_path, witness_config):
        log = CaptureLog()
        capture = await record(_mock_page(), log, witness_config, name="checkout", cwd=tmp_path)
        assert capture.name == "checkout"
        assert capture.screenshot_path.endswith("checkout.png")

    @pytest.mark.asyncio
    async def test_missing_viewport_uses_default(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page()
        page.viewport_size = None
        capture = await record(page, log, witness_config, cwd=tmp_path)
        assert capture.viewport == Viewport(width=1920, height=1080)

    @pytest.mark.asyncio
    async def test_unmatched_viewport_environment(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page(viewport={"width": 1024, "height": 768})
        capture = await record(page, log, witness_config, cwd=tmp_path)
        assert capture.environment == "1024x768"

    @pytest.mark.asyncio
    async def test_dom_failure_uses_placeholder(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page()
        page.locator.return_value.inner_html = AsyncMock(side_effect=RuntimeError("detached"))
        capture = await record(page, log, witness_config, cwd=tmp_path)
        assert capture.dom_snippet == DOM_ERROR_PLACEHOLDER
        assert capture.error is None

    @pytest.mark.asyncio
    async def test_frame_target(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page()
        frame = MagicMock(spec=Frame)
        frame.page = page
        frame.locator = MagicMock(return_value=MagicMock(inner_html=AsyncMock(return_value="<p/>")))

        capture = await record(frame, log, witness_config, name="embedded", cwd=tmp_path)

        page.screenshot.assert_awaited_once()
        assert capture.dom_snippet == "<p/>"

    @pytest.mark.asyncio
    async def test_element_target(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page()
        frame = MagicMock(spec=Frame)
        frame.page = page
        element = MagicMock(spec=ElementHandle)
        element.owner_frame = AsyncMock(return_value=frame)
        element.screenshot = AsyncMock()
        element.inner_html = AsyncMock(return_value="<button>Buy</button>")

        capture = await record(element, log, witness_config, name="buy-button", cwd=tmp_path)

        expected = tmp_path / "artifacts" / "current" / "buy-button.png"
        element.screenshot.assert_awaited_once_with(path=str(expected))
        page.screenshot.assert_not_called()
        assert capture.dom_snippet == "<button>Buy</button>"

    @pytest.mark.asyncio
    async def test_screenshot_failure_logs_error_capture(self, tmp_path, witness_config):
        log = CaptureLog()
        page = _mock_page()
        page.screenshot = AsyncMock(side_effect=RuntimeError("browser closed"))

        capture = await record(page, log, witness_config, name="home", cwd=tmp_path)

        assert capture.error == "browser closed"
        assert capture.name == "home"
        assert capture.screenshot_path == ""
        assert log.size() == 1

    @pytest.mark.asyncio
    async def test_none_target(self, tmp_path, witness_config):
        log = CaptureLog()
        capture = await record(None, log, witness_config, cwd=tmp_path)
        assert capture.name == "error"
        assert "Target is required" in capture.error

    @pytest.mark.asyncio
    async def test_unsupported_target(self, tmp_path, witness_config):
        log = CaptureLog()
        capture = await record(object(), log, witness_config, name="odd", cwd=tmp_path)
        assert "Unsupported capture target" in capture.error
