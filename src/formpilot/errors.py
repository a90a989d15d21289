"""Error types raised by the orchestrator core."""

from typing import Iterable, Optional


class FormPilotError(Exception):
    """Base class for all orchestrator errors."""

    pass


class SessionNotFound(FormPilotError):
    """No live session is registered under the requested key."""

    def __init__(self, session_key: str, active_sessions: Optional[Iterable[str]] = None):
        self.session_key = session_key
        self.active_sessions = list(active_sessions or [])
        super().__init__(
            f"Session {session_key} not found. "
            f"Active sessions: [{', '.join(self.active_sessions)}]"
        )


class UnsupportedBrowserKind(FormPilotError):
    """The requested browser kind is not one of chrome, firefox or webkit."""

    def __init__(self, browser_kind: str):
        self.browser_kind = browser_kind
        super().__init__(f"Unsupported browser type: {browser_kind}")


class UnknownAction(FormPilotError):
    """A test step names an action outside the supported set."""

    def __init__(self, action: object):
        self.action = action
        super().__init__(f"Unknown action: {action}")


class DriverOperationFailed(FormPilotError):
    """Wraps an exception raised by the browser driver."""

    def __init__(self, operation: str, original: BaseException):
        self.operation = operation
        self.original = original
        super().__init__(f"{operation} failed: {original}")


class SerializationFailed(FormPilotError):
    """A value returned from page evaluation cannot be represented as JSON."""

    pass


class TestCaseNotFound(FormPilotError, LookupError):
    """The test-case store has no document with the requested id."""

    __test__ = False

    def __init__(self, test_case_id: str):
        self.test_case_id = test_case_id
        super().__init__(f"Test case '{test_case_id}' not found")
