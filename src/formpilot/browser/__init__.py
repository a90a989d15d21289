"""Browser sessions, telemetry capture and element/key resolution.

This package provides:
- Playwright driver integration and per-key browser session management
- Console and network telemetry capture into session-scoped logs
- Selector resolution for bare test ids
- Keyboard shortcut normalization and parsing
"""

from formpilot.browser.playwright_integration import PlaywrightDriverFactory
from formpilot.browser.session_manager import BrowserSession, SessionManager
from formpilot.browser.event_capture import EventCapture, SessionLogSink, TelemetryListener
from formpilot.browser.selector_resolver import resolve_selector
from formpilot.browser.keyboard import (
    normalize_shortcut,
    parse_key_sequence,
    to_key_press,
    is_mac_platform,
)

__all__ = [
    "PlaywrightDriverFactory",
    "BrowserSession",
    "SessionManager",
    "EventCapture",
    "SessionLogSink",
    "TelemetryListener",
    "resolve_selector",
    "normalize_shortcut",
    "parse_key_sequence",
    "to_key_press",
    "is_mac_platform",
]
