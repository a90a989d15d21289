"""Console and network telemetry capture.

This module mirrors page-originated telemetry into session-scoped logs:

- ``TelemetryListener`` is the interface the pipeline delivers entries to.
- ``SessionLogSink`` implements it and owns a session's console and network
  logs. Logs are append-only; readers get a snapshot copy.
- ``EventCapture`` subscribes a listener to a page's ``console``, ``request``,
  ``response`` and ``pageerror`` events, exactly once per page.

Capture is best-effort. A payload that cannot be turned into an entry is
dropped, and nothing raised inside a handler reaches the driver, the step
interpreter or the caller.
"""

import logging
import threading
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from formpilot.models.browser_models import (
    ConsoleLogEntry,
    NetworkEntryType,
    NetworkLogEntry,
)

logger = logging.getLogger(__name__)


class TelemetryListener(ABC):
    """Receives telemetry entries captured from a page."""

    @abstractmethod
    def on_console(self, entry: ConsoleLogEntry) -> None:
        pass

    @abstractmethod
    def on_request(self, entry: NetworkLogEntry) -> None:
        pass

    @abstractmethod
    def on_response(self, entry: NetworkLogEntry) -> None:
        pass


class SessionLogSink(TelemetryListener):
    """Per-session console and network logs.

    Entries are appended from the driver's event delivery path while reporting
    code may be reading concurrently, so every mutation and snapshot happens
    under a lock and readers only ever see tuples.
    """

    def __init__(self, session_key: str):
        """Initialize an empty sink.

        Args:
            session_key: Owning session key, used in log messages
        """
        self.session_key = session_key
        self._lock = threading.Lock()
        self._console: list = []
        self._network: list = []

    def on_console(self, entry: ConsoleLogEntry) -> None:
        with self._lock:
            self._console.append(entry)
        logger.debug(f"[{self.session_key}] console {entry.type}: {entry.text}")

    def on_request(self, entry: NetworkLogEntry) -> None:
        with self._lock:
            self._network.append(entry)
        logger.debug(f"[{self.session_key}] request {entry.method} {entry.url}")

    def on_response(self, entry: NetworkLogEntry) -> None:
        with self._lock:
            self._network.append(entry)
        logger.debug(f"[{self.session_key}] response {entry.status} {entry.url}")

    def console_logs(
        self, log_type: Optional[str] = None, limit: Optional[int] = None
    ) -> Tuple[ConsoleLogEntry, ...]:
        """Snapshot of console entries in chronological order.

        Args:
            log_type: Only entries of this type (case-insensitive)
            limit: Keep only the most recent ``limit`` entries

        Returns:
            Tuple of entries
        """
        with self._lock:
            entries = tuple(self._console)
        if log_type:
            wanted = log_type.lower()
            entries = tuple(entry for entry in entries if entry.type == wanted)
        return _tail(entries, limit)

    def network_logs(
        self, url_filter: Optional[str] = None, limit: Optional[int] = None
    ) -> Tuple[NetworkLogEntry, ...]:
        """Snapshot of network entries in chronological order.

        Args:
            url_filter: Only entries whose URL contains this text (case-insensitive)
            limit: Keep only the most recent ``limit`` entries

        Returns:
            Tuple of entries
        """
        with self._lock:
            entries = tuple(self._network)
        if url_filter:
            needle = url_filter.lower()
            entries = tuple(entry for entry in entries if needle in entry.url.lower())
        return _tail(entries, limit)

    def clear(self, console: bool = True, network: bool = True) -> Tuple[int, int]:
        """Discard logged entries.

        Returns:
            Number of console and network entries removed
        """
        removed_console = removed_network = 0
        with self._lock:
            if console:
                removed_console = len(self._console)
                self._console = []
            if network:
                removed_network = len(self._network)
                self._network = []
        return removed_console, removed_network

    def summary(self, recent: int = 5) -> Dict[str, Any]:
        """Counts and most recent entries for both logs."""
        console = self.console_logs()
        network = self.network_logs()
        return {
            "console": {
                "total": len(console),
                "errors": sum(1 for entry in console if entry.is_error),
                "warnings": sum(1 for entry in console if entry.is_warning),
                "recent": [entry.model_dump(mode="json") for entry in _tail(console, recent)],
            },
            "network": {
                "total": len(network),
                "api_calls": sum(1 for entry in network if entry.is_api_call),
                "auth_related": sum(1 for entry in network if entry.is_auth_related),
                "recent": [entry.model_dump(mode="json") for entry in _tail(network, recent)],
            },
        }


def _tail(entries: tuple, limit: Optional[int]) -> tuple:
    if limit is None or limit < 0:
        return entries
    if limit == 0:
        return ()
    return entries[-limit:]


def _optional_str(source: Any, name: str) -> Optional[str]:
    value = getattr(source, name, None)
    return value if isinstance(value, str) and value else None


def console_entry_from_message(message: Any) -> ConsoleLogEntry:
    """Build a console entry from a Playwright ``ConsoleMessage``."""
    location = None
    source = getattr(message, "location", None)
    if isinstance(source, dict) and source.get("url"):
        location = (
            f"{source['url']}:{source.get('lineNumber', 0)}:{source.get('columnNumber', 0)}"
        )
    return ConsoleLogEntry(
        type=str(message.type).lower(),
        text=str(message.text),
        location=location,
    )


def request_entry(request: Any) -> NetworkLogEntry:
    """Build a ``request`` entry from a Playwright ``Request``."""
    return NetworkLogEntry(
        type=NetworkEntryType.REQUEST,
        method=str(request.method),
        url=str(request.url),
        resource_type=_optional_str(request, "resource_type"),
    )


def response_entry(response: Any) -> NetworkLogEntry:
    """Build a ``response`` entry from a Playwright ``Response``."""
    request = response.request
    return NetworkLogEntry(
        type=NetworkEntryType.RESPONSE,
        method=str(request.method),
        url=str(response.url),
        status=int(response.status),
        status_text=_optional_str(response, "status_text"),
        resource_type=_optional_str(request, "resource_type"),
    )


def page_error_entry(error: Any) -> ConsoleLogEntry:
    """Build an ``error`` console entry from an uncaught page exception."""
    text = getattr(error, "message", None) or str(error)
    return ConsoleLogEntry(type="error", text=f"PAGE ERROR: {text}")


@dataclass
class CapturedPage:
    """Capture state for one page. Holds no ownership of the page itself."""

    listener: TelemetryListener
    installed: bool = False
    handlers: Dict[str, Callable[[Any], None]] = field(default_factory=dict)


class EventCapture:
    """Subscribe telemetry listeners to pages.

    Example:
        capture = EventCapture()
        sink = SessionLogSink("default")
        capture.attach(page, sink)
    """

    def __init__(self):
        """Initialize with no pages captured."""
        self._pages: "weakref.WeakKeyDictionary[Any, CapturedPage]" = weakref.WeakKeyDictionary()

    def is_attached(self, page: Any) -> bool:
        captured = self._pages.get(page)
        return bool(captured and captured.installed)

    def attach(self, page: Any, listener: TelemetryListener) -> bool:
        """Install telemetry handlers on a page.

        Calling this again for a page that already has handlers installed does
        nothing, so events are never logged twice.

        Args:
            page: Playwright page
            listener: Receiver for the captured entries

        Returns:
            True if handlers were installed, False if they already were
        """
        captured = self._pages.get(page)
        if captured is not None and captured.installed:
            logger.debug("Telemetry capture already installed on page")
            return False

        captured = CapturedPage(listener=listener)
        captured.handlers = {
            "console": self._guard("console", lambda message: listener.on_console(
                console_entry_from_message(message)
            )),
            "request": self._guard("request", lambda request: listener.on_request(
                request_entry(request)
            )),
            "response": self._guard("response", lambda response: listener.on_response(
                response_entry(response)
            )),
            "pageerror": self._guard("pageerror", lambda error: listener.on_console(
                page_error_entry(error)
            )),
        }
        for event, handler in captured.handlers.items():
            page.on(event, handler)

        captured.installed = True
        self._pages[page] = captured
        return True

    def detach(self, page: Any) -> bool:
        """Remove handlers installed by ``attach``.

        Returns:
            True if handlers were removed, False if none were installed
        """
        captured = self._pages.pop(page, None)
        if captured is None or not captured.installed:
            return False
        for event, handler in captured.handlers.items():
            try:
                page.remove_listener(event, handler)
            except Exception as e:
                logger.debug(f"Could not remove {event} handler: {e}")
        captured.installed = False
        return True

    @staticmethod
    def _guard(event: str, deliver: Callable[[Any], None]) -> Callable[[Any], None]:
        """Wrap a handler so that nothing it raises escapes."""

        def handler(payload: Any) -> None:
            try:
                deliver(payload)
            except Exception as e:
                logger.debug(f"Dropped {event} event: {e}")

        return handler
