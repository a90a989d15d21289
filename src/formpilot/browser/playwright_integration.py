"""Playwright browser driver integration.

This module provides the PlaywrightDriverFactory class which owns the shared
Playwright driver process and creates browsers, contexts and pages for the
session manager. The factory does not keep track of what it creates: every
handle it returns belongs to the session that asked for it.

CRITICAL: ``shutdown()`` must be called once no session needs the driver.
"""

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)
from typing import Optional, Dict, Any, List
import logging

from formpilot.errors import DriverOperationFailed
from formpilot.models.browser_models import BrowserKind, ContextOptions

logger = logging.getLogger(__name__)

# Applied to chrome launches only.
CHROME_LAUNCH_ARGS: List[str] = [
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--allow-running-insecure-content",
]


class PlaywrightDriverFactory:
    """Create Playwright browsers, contexts and pages.

    The Playwright driver is started lazily on first launch and stopped by
    ``shutdown()``; it can be started again afterwards.
    """

    def __init__(self):
        """Initialize the factory without starting Playwright."""
        self.playwright: Optional[Playwright] = None
        self._initialized = False

    @property
    def is_running(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Start the Playwright driver.

        Raises:
            DriverOperationFailed: If Playwright cannot be started
        """
        if self._initialized:
            return

        try:
            self.playwright = await async_playwright().start()
            self._initialized = True
            logger.info("Playwright initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Playwright: {e}")
            raise DriverOperationFailed("Playwright initialization", e)

    async def launch_browser(self, kind: BrowserKind, headless: bool = True) -> Browser:
        """Launch a new browser instance.

        Args:
            kind: Browser kind to launch
            headless: Whether to run in headless mode

        Returns:
            Browser instance

        Raises:
            DriverOperationFailed: If the browser fails to launch
        """
        if not self._initialized:
            await self.initialize()

        options: Dict[str, Any] = {"headless": headless}
        if kind is BrowserKind.CHROME:
            options["args"] = list(CHROME_LAUNCH_ARGS)

        try:
            launcher = getattr(self.playwright, kind.engine)
            browser = await launcher.launch(**options)
            logger.info(f"Launched {kind.value} browser (headless={headless})")
            return browser
        except Exception as e:
            logger.error(f"Failed to launch {kind.value} browser: {e}")
            raise DriverOperationFailed("Browser launch", e)

    async def create_context(
        self, browser: Browser, options: Optional[ContextOptions] = None
    ) -> BrowserContext:
        """Create an isolated browser context.

        Args:
            browser: Browser instance to create the context in
            options: Context options (defaults apply when omitted)

        Returns:
            Browser context

        Raises:
            DriverOperationFailed: If context creation fails
        """
        context_options = (options or ContextOptions()).to_playwright()
        try:
            context = await browser.new_context(**context_options)
            logger.debug(f"Created browser context with {context_options}")
            return context
        except Exception as e:
            logger.error(f"Failed to create browser context: {e}")
            raise DriverOperationFailed("Context creation", e)

    async def create_page(self, context: BrowserContext) -> Page:
        """Create a new page in the given context.

        Raises:
            DriverOperationFailed: If page creation fails
        """
        try:
            page = await context.new_page()
            logger.debug("Created page")
            return page
        except Exception as e:
            logger.error(f"Failed to create page: {e}")
            raise DriverOperationFailed("Page creation", e)

    async def shutdown(self) -> None:
        """Stop the Playwright driver.

        Errors while stopping are logged, not raised.
        """
        if self.playwright:
            try:
                await self.playwright.stop()
                logger.info("Playwright stopped successfully")
            except Exception as e:
                logger.warning(f"Failed to stop Playwright: {e}")
            self.playwright = None
        self._initialized = False
