"""Shared fixtures: Playwright stand-ins so no real browser is needed."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from formpilot.browser.session_manager import SessionManager
from formpilot.errors import DriverOperationFailed
from formpilot.interpreter.step_interpreter import StepInterpreter

LOCATOR_METHODS = (
    "fill",
    "click",
    "select_option",
    "wait_for",
    "clear",
    "is_visible",
    "is_hidden",
    "is_enabled",
    "is_disabled",
    "inner_text",
    "input_value",
)

PAGE_STATE = {
    "activeElement": {"tagName": "input", "className": "", "id": "first-name", "type": "text"},
    "url": "http://localhost:4200/applicants",
    "title": "Applicants",
}


def make_page():
    """Create a mock Page whose locator methods are awaitable."""
    page = MagicMock()
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(return_value=dict(PAGE_STATE))
    page.close = AsyncMock()
    page.keyboard.press = AsyncMock()

    locator = MagicMock()
    for name in LOCATOR_METHODS:
        setattr(locator, name, AsyncMock())
    locator.is_visible.return_value = True
    locator.is_enabled.return_value = True
    page.locator.return_value = locator
    return page


class FakeDriver:
    """Stand-in for PlaywrightDriverFactory that hands out mock handles."""

    def __init__(self):
        self.is_running = False
        self.fail_on = None
        self.launched = []
        self.browsers = []
        self.contexts = []
        self.pages = []
        self.shutdown_calls = 0

    async def initialize(self):
        self.is_running = True

    async def launch_browser(self, kind, headless=True):
        if self.fail_on == "launch":
            raise RuntimeError("browser crashed")
        browser = MagicMock()
        browser.close = AsyncMock()
        self.launched.append((kind, headless))
        self.browsers.append(browser)
        return browser

    async def create_context(self, browser, options=None):
        if self.fail_on == "context":
            raise DriverOperationFailed("Context creation", RuntimeError("no context"))
        context = MagicMock()
        context.close = AsyncMock()
        context.options = options
        self.contexts.append(context)
        return context

    async def create_page(self, context):
        if self.fail_on == "page":
            raise RuntimeError("page crashed")
        page = make_page()
        self.pages.append(page)
        return page

    async def shutdown(self):
        self.is_running = False
        self.shutdown_calls += 1


@pytest.fixture
def page():
    """Create a mock Page."""
    return make_page()


@pytest.fixture
def page_factory():
    """Factory for additional mock pages."""
    return make_page


@pytest.fixture
def driver():
    """Create a fake driver factory."""
    return FakeDriver()


@pytest.fixture
def sessions(driver):
    """Create a SessionManager backed by the fake driver."""
    return SessionManager(driver_factory=driver)


@pytest.fixture
def interpreter(sessions):
    """Create a StepInterpreter with no delays and Windows/Linux key mapping."""
    return StepInterpreter(sessions, key_delay_ms=0, settle_delay_ms=0, is_mac=False)


def handlers_of(page):
    """Map event name to the handler registered on a mock page."""
    return {call.args[0]: call.args[1] for call in page.on.call_args_list}


@pytest.fixture
def page_handlers():
    """Accessor for handlers registered through ``page.on``."""
    return handlers_of
