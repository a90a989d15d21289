"""Browser session lifecycle management.

This module provides the SessionManager, the registry of live browser
sessions. Each session is addressed by a caller-chosen key and exclusively
owns one browser, one context and one page, plus the telemetry logs captured
from that page.

PATTERN: Explicit registry object, passed to whatever needs sessions.
CRITICAL: Use as an async context manager or call ``close_all()`` so that no
browser process outlives the manager.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Union

from playwright.async_api import Browser, BrowserContext, Page

from formpilot.browser.event_capture import EventCapture, SessionLogSink
from formpilot.browser.playwright_integration import PlaywrightDriverFactory
from formpilot.errors import (
    DriverOperationFailed,
    FormPilotError,
    SessionNotFound,
    UnsupportedBrowserKind,
)
from formpilot.models.browser_models import BrowserKind, ContextOptions, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "default"


@dataclass
class BrowserSession:
    """A live browser session and the handles it owns."""

    session_key: str
    browser_kind: BrowserKind
    headless: bool
    browser: Browser
    context: BrowserContext
    page: Page
    logs: SessionLogSink
    created_at: datetime = field(default_factory=utc_now)
    closed: bool = False

    @property
    def is_active(self) -> bool:
        return not self.closed

    async def close(self) -> List[str]:
        """Close page, context and browser, in that order.

        Every handle is closed even if an earlier one fails.

        Returns:
            Error messages from handles that failed to close
        """
        errors = []
        for name, handle in (("page", self.page), ("context", self.context), ("browser", self.browser)):
            try:
                await handle.close()
            except Exception as e:
                errors.append(f"Failed to close {name}: {e}")
        self.closed = True
        return errors

    def describe(self) -> Dict[str, Any]:
        """Summary of the session for status reporting."""
        return {
            "session_id": self.session_key,
            "browser": self.browser_kind.value,
            "headless": self.headless,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }


class SessionManager:
    """Registry of live browser sessions.

    ``launch`` and ``close`` on the same key are serialized by a per-key lock,
    so a close always settles before a concurrent launch on that key commits
    and the reverse. Different keys never wait on each other.

    Example:
        async with SessionManager() as sessions:
            await sessions.launch("t1", "chrome", headless=True)
            page = sessions.get_page("t1")
    """

    def __init__(
        self,
        driver_factory: Optional[PlaywrightDriverFactory] = None,
        event_capture: Optional[EventCapture] = None,
        context_options: Optional[ContextOptions] = None,
    ):
        """Initialize an empty registry.

        Args:
            driver_factory: Browser driver factory (Playwright by default)
            event_capture: Telemetry pipeline attached to every new page
            context_options: Default options for new browser contexts
        """
        self.driver = driver_factory or PlaywrightDriverFactory()
        self.event_capture = event_capture or EventCapture()
        self.context_options = context_options or ContextOptions()
        self._sessions: Dict[str, BrowserSession] = {}
        self._key_locks: Dict[str, asyncio.Lock] = {}
        self._key_lock_users: Dict[str, int] = {}
        self._driver_lock = asyncio.Lock()
        self._launching = 0

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close_all()

    @asynccontextmanager
    async def _key_lock(self, session_key: str) -> AsyncIterator[None]:
        """Hold the lock for ``session_key``.

        The lock is created on first use and dropped once no caller holds or
        waits for it.
        """
        lock = self._key_locks.get(session_key)
        if lock is None:
            lock = asyncio.Lock()
            self._key_locks[session_key] = lock
        self._key_lock_users[session_key] = self._key_lock_users.get(session_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._key_lock_users[session_key] -= 1
            if self._key_lock_users[session_key] == 0:
                del self._key_lock_users[session_key]
                del self._key_locks[session_key]

    async def launch(
        self,
        session_key: str = DEFAULT_SESSION_KEY,
        browser_kind: Union[str, BrowserKind] = BrowserKind.CHROME,
        headless: bool = True,
        options: Optional[ContextOptions] = None,
    ) -> BrowserSession:
        """Launch a browser and register it under ``session_key``.

        A session already registered under the key is closed first. The new
        session is only registered once its browser, context and page all
        exist and telemetry capture is attached to the page. A failed launch
        leaves nothing registered under the key and stops the driver when no
        other session needs it.

        Args:
            session_key: Session key
            browser_kind: chrome (or chromium), firefox or webkit
            headless: Whether to run in headless mode
            options: Context options, defaults to the manager's

        Returns:
            The new session

        Raises:
            UnsupportedBrowserKind: If ``browser_kind`` is not supported
            DriverOperationFailed: If the driver fails to create the session
        """
        kind = browser_kind if isinstance(browser_kind, BrowserKind) else BrowserKind.parse(browser_kind)
        if kind is None:
            raise UnsupportedBrowserKind(str(browser_kind))

        session = None
        self._launching += 1
        try:
            async with self._key_lock(session_key):
                previous = self._sessions.pop(session_key, None)
                if previous is not None:
                    logger.info(f"Replacing existing session {session_key}")
                    await self._teardown(previous)

                session = await self._open(session_key, kind, headless, options)
                self._sessions[session_key] = session
        finally:
            self._launching -= 1
            if session is None:
                await self._release_driver_if_idle()

        logger.info(
            f"Session {session_key} created with {kind.value} browser "
            f"(total active sessions: {len(self._sessions)})"
        )
        return session

    async def _open(
        self,
        session_key: str,
        kind: BrowserKind,
        headless: bool,
        options: Optional[ContextOptions],
    ) -> BrowserSession:
        async with self._driver_lock:
            await self.driver.initialize()

        browser = context = page = None
        try:
            browser = await self.driver.launch_browser(kind, headless=headless)
            context = await self.driver.create_context(browser, options or self.context_options)
            page = await self.driver.create_page(context)
            logs = SessionLogSink(session_key)
            self.event_capture.attach(page, logs)
        except Exception as e:
            for handle in (page, context, browser):
                if handle is not None:
                    try:
                        await handle.close()
                    except Exception as close_error:
                        logger.warning(f"Cleanup after failed launch: {close_error}")
            if isinstance(e, FormPilotError):
                raise
            raise DriverOperationFailed("Session launch", e)

        return BrowserSession(
            session_key=session_key,
            browser_kind=kind,
            headless=headless,
            browser=browser,
            context=context,
            page=page,
            logs=logs,
        )

    async def _teardown(self, session: BrowserSession) -> None:
        self.event_capture.detach(session.page)
        errors = await session.close()
        if errors:
            logger.warning(
                f"Session {session.session_key} closed with errors: {'; '.join(errors)}"
            )
        else:
            logger.debug(f"Closed session {session.session_key}")

    def get_session(self, session_key: str = DEFAULT_SESSION_KEY) -> Optional[BrowserSession]:
        """Look up a session; None when the key is not registered."""
        return self._sessions.get(session_key)

    def get_page(self, session_key: str = DEFAULT_SESSION_KEY) -> Optional[Page]:
        """Look up a session's page; None when the key is not registered."""
        session = self._sessions.get(session_key)
        return session.page if session is not None else None

    def require_session(self, session_key: str = DEFAULT_SESSION_KEY) -> BrowserSession:
        """Look up a session.

        Raises:
            SessionNotFound: If the key is not registered
        """
        session = self._sessions.get(session_key)
        if session is None:
            raise SessionNotFound(session_key, self.active_session_keys())
        return session

    def require_page(self, session_key: str = DEFAULT_SESSION_KEY) -> Page:
        """Look up a session's page.

        Raises:
            SessionNotFound: If the key is not registered
        """
        return self.require_session(session_key).page

    async def close(self, session_key: str = DEFAULT_SESSION_KEY) -> bool:
        """Close a session and release its browser.

        Closing an unknown or already closed key is not an error. When no
        sessions remain the Playwright driver is stopped as well.

        Returns:
            True if a session was closed, False if none was registered
        """
        async with self._key_lock(session_key):
            session = self._sessions.pop(session_key, None)
            if session is not None:
                await self._teardown(session)

        await self._release_driver_if_idle()

        if session is None:
            logger.debug(f"Session {session_key} not found or already closed")
            return False
        logger.info(f"Browser session {session_key} closed")
        return True

    async def close_all(self) -> None:
        """Close every session and stop the driver."""
        for session_key in list(self._sessions):
            await self.close(session_key)
        await self._release_driver_if_idle()

    async def _release_driver_if_idle(self) -> None:
        async with self._driver_lock:
            if not self._sessions and self._launching == 0 and self.driver.is_running:
                await self.driver.shutdown()

    def clear_logs(
        self,
        session_key: str = DEFAULT_SESSION_KEY,
        console: bool = True,
        network: bool = True,
    ) -> Tuple[int, int]:
        """Clear a session's telemetry logs.

        Returns:
            Number of console and network entries removed

        Raises:
            SessionNotFound: If the key is not registered
        """
        return self.require_session(session_key).logs.clear(console=console, network=network)

    def active_session_keys(self) -> List[str]:
        return list(self._sessions)

    @property
    def session_count(self) -> int:
        return len(self._sessions)
