"""Browser session data models.

This module defines the Pydantic models shared by the session manager and the
event capture pipeline: supported browser kinds, the browser context options
struct, the console and network telemetry entries, and parsed key sequences.
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class BrowserKind(str, Enum):
    """Supported browser engines."""

    CHROME = "chrome"
    FIREFOX = "firefox"
    WEBKIT = "webkit"

    @classmethod
    def parse(cls, value: str) -> Optional["BrowserKind"]:
        """Map a caller-supplied browser name to a kind.

        ``chromium`` is accepted as an alias of ``chrome``. Matching is
        case-insensitive.

        Args:
            value: Browser name

        Returns:
            Matching kind, or None if the name is not supported
        """
        name = (value or "").strip().lower()
        if name == "chromium":
            name = cls.CHROME.value
        for kind in cls:
            if kind.value == name:
                return kind
        return None

    @property
    def engine(self) -> str:
        """Playwright browser type attribute for this kind."""
        if self is BrowserKind.CHROME:
            return "chromium"
        return self.value


class ContextOptions(BaseModel):
    """Options applied to every new browser context."""

    width: int = Field(default=1920, gt=0, description="Viewport width")
    height: int = Field(default=1080, gt=0, description="Viewport height")
    user_agent: Optional[str] = Field(default=None, description="User agent override")
    is_mobile: bool = Field(default=False, description="Mobile emulation")

    class Config:
        """Pydantic config."""

        extra = "forbid"

    def to_playwright(self) -> dict:
        """Build keyword arguments for ``Browser.new_context``."""
        options = {
            "viewport": {"width": self.width, "height": self.height},
            "is_mobile": self.is_mobile,
        }
        if self.user_agent:
            options["user_agent"] = self.user_agent
        return options


class ConsoleLogEntry(BaseModel):
    """A console message emitted by a page."""

    type: str = Field(description="Message type (log, warning, error, ...)")
    text: str = Field(description="Message text")
    timestamp: datetime = Field(default_factory=utc_now)
    location: Optional[str] = Field(default=None, description="Source url:line:column")

    class Config:
        """Pydantic config."""

        frozen = True

    @property
    def is_error(self) -> bool:
        return self.type == "error"

    @property
    def is_warning(self) -> bool:
        return self.type in ("warning", "warn")


class NetworkEntryType(str, Enum):
    """Kinds of network log entries."""

    REQUEST = "request"
    RESPONSE = "response"
    FETCH = "fetch"


_AUTH_MARKERS = ("auth", "login", "token", "session")


class NetworkLogEntry(BaseModel):
    """A single network event. Requests and responses are separate entries."""

    type: NetworkEntryType = Field(description="Entry type")
    method: str = Field(description="HTTP method")
    url: str = Field(description="Request URL")
    status: Optional[int] = Field(default=None, description="Response status")
    status_text: Optional[str] = Field(default=None, description="Response status text")
    resource_type: Optional[str] = Field(default=None, description="Resource type")
    timestamp: datetime = Field(default_factory=utc_now)

    class Config:
        """Pydantic config."""

        frozen = True

    @property
    def is_api_call(self) -> bool:
        return "/api/" in self.url or self.resource_type in ("fetch", "xhr")

    @property
    def is_auth_related(self) -> bool:
        url = self.url.lower()
        return any(marker in url for marker in _AUTH_MARKERS)


class KeySequence(BaseModel):
    """One step of a keyboard shortcut: a key plus its held modifiers."""

    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False

    class Config:
        """Pydantic config."""

        frozen = True

    @property
    def is_modifier_combo(self) -> bool:
        return self.ctrl or self.alt or self.shift or self.meta
