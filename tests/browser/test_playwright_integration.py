"""Tests for PlaywrightDriverFactory.

Covers driver start-up, browser launch per kind, context and page creation,
and shutdown.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from formpilot.browser.playwright_integration import CHROME_LAUNCH_ARGS, PlaywrightDriverFactory
from formpilot.errors import DriverOperationFailed
from formpilot.models.browser_models import BrowserKind, ContextOptions


@pytest.fixture
def factory():
    """Create a PlaywrightDriverFactory instance for testing."""
    return PlaywrightDriverFactory()


@pytest.fixture
def mock_playwright():
    """Create a mock Playwright instance."""
    playwright = AsyncMock()
    playwright.chromium = AsyncMock()
    playwright.firefox = AsyncMock()
    playwright.webkit = AsyncMock()
    return playwright


@pytest.fixture
def running_factory(factory, mock_playwright):
    """A factory that behaves as if Playwright were already started."""
    factory.playwright = mock_playwright
    factory._initialized = True
    return factory


class TestInitialization:
    """Tests for starting the Playwright driver."""

    def test_init(self, factory):
        assert factory.playwright is None
        assert factory.is_running is False

    @pytest.mark.asyncio
    async def test_initialize_success(self, factory):
        with patch("formpilot.browser.playwright_integration.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(return_value=AsyncMock())

            await factory.initialize()

            assert factory.is_running is True
            mock_async_pw.return_value.start.assert_called_once()

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, factory):
        with patch("formpilot.browser.playwright_integration.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(return_value=AsyncMock())

            await factory.initialize()
            await factory.initialize()

            mock_async_pw.return_value.start.assert_called_once()

    @pytest.mark.asyncio
    async def test_initialize_failure(self, factory):
        with patch("formpilot.browser.playwright_integration.async_playwright") as mock_async_pw:
            mock_async_pw.return_value.start = AsyncMock(side_effect=Exception("no driver"))

            with pytest.raises(DriverOperationFailed, match="Playwright initialization failed: no driver"):
                await factory.initialize()

            assert factory.is_running is False


class TestBrowserLaunch:
    """Tests for launching each browser kind."""

    @pytest.mark.asyncio
    async def test_launch_chrome_uses_chromium_with_args(self, running_factory, mock_playwright):
        browser = MagicMock()
        mock_playwright.chromium.launch = AsyncMock(return_value=browser)

        result = await running_factory.launch_browser(BrowserKind.CHROME, headless=False)

        assert result is browser
        mock_playwright.chromium.launch.assert_called_once_with(
            headless=False, args=CHROME_LAUNCH_ARGS
        )

    @pytest.mark.asyncio
    async def test_launch_firefox(self, running_factory, mock_playwright):
        mock_playwright.firefox.launch = AsyncMock(return_value=MagicMock())

        await running_factory.launch_browser(BrowserKind.FIREFOX)

        mock_playwright.firefox.launch.assert_called_once_with(headless=True)

    @pytest.mark.asyncio
    async def test_launch_webkit(self, running_factory, mock_playwright):
        mock_playwright.webkit.launch = AsyncMock(return_value=MagicMock())

        await running_factory.launch_browser(BrowserKind.WEBKIT)

        mock_playwright.webkit.launch.assert_called_once_with(headless=True)

    @pytest.mark.asyncio
    async def test_launch_failure_wrapped(self, running_factory, mock_playwright):
        mock_playwright.chromium.launch = AsyncMock(side_effect=Exception("Executable doesn't exist"))

        with pytest.raises(DriverOperationFailed, match="Browser launch failed"):
            await running_factory.launch_browser(BrowserKind.CHROME)


class TestContextAndPage:
    """Tests for context and page creation."""

    @pytest.mark.asyncio
    async def test_create_context_default_viewport(self, running_factory):
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=MagicMock())

        await running_factory.create_context(browser)

        browser.new_context.assert_called_once_with(
            viewport={"width": 1920, "height": 1080}, is_mobile=False
        )

    @pytest.mark.asyncio
    async def test_create_context_with_user_agent(self, running_factory):
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=MagicMock())

        await running_factory.create_context(
            browser, ContextOptions(width=390, height=844, user_agent="Mobile", is_mobile=True)
        )

        browser.new_context.assert_called_once_with(
            viewport={"width": 390, "height": 844}, is_mobile=True, user_agent="Mobile"
        )

    @pytest.mark.asyncio
    async def test_create_context_failure(self, running_factory):
        browser = MagicMock()
        browser.new_context = AsyncMock(side_effect=Exception("closed"))

        with pytest.raises(DriverOperationFailed, match="Context creation failed"):
            await running_factory.create_context(browser)

    @pytest.mark.asyncio
    async def test_create_page(self, running_factory):
        context = MagicMock()
        page = MagicMock()
        context.new_page = AsyncMock(return_value=page)

        assert await running_factory.create_page(context) is page


class TestShutdown:
    """Tests for stopping the driver."""

    @pytest.mark.asyncio
    async def test_shutdown(self, running_factory, mock_playwright):
        await running_factory.shutdown()

        mock_playwright.stop.assert_called_once()
        assert running_factory.playwright is None
        assert running_factory.is_running is False

    @pytest.mark.asyncio
    async def test_shutdown_error_is_not_raised(self, running_factory, mock_playwright):
        mock_playwright.stop = AsyncMock(side_effect=Exception("already stopped"))

        await running_factory.shutdown()

        assert running_factory.is_running is False
