"""Browser session tools.

This module exposes the session manager, the step interpreter and session
telemetry as tools: named async operations taking keyword parameters and
returning a ToolResult. Every tool addresses a session by ``session_id``
(default ``"default"``).

PATTERN: Thin tools over SessionManager and StepInterpreter
CRITICAL: Tools never raise for caller-input or driver errors; the failure
text is returned in ``ToolResult.error``
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from formpilot.browser.session_manager import DEFAULT_SESSION_KEY, SessionManager
from formpilot.config.settings import FormPilotConfig
from formpilot.errors import FormPilotError, SessionNotFound
from formpilot.interpreter.step_interpreter import StepInterpreter
from formpilot.models.step_models import StepAction, TestStep
from formpilot.models.tool_models import (
    ToolCategory,
    ToolParameter,
    ToolResult,
    ToolSchema,
)
from formpilot.store.base import BaseTestCaseStore
from formpilot.tools.base import BaseTool, elapsed_ms
from formpilot.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 100


def _session_parameter() -> ToolParameter:
    return ToolParameter(
        name="session_id",
        type="string",
        description="Browser session key",
        required=False,
        default=DEFAULT_SESSION_KEY,
    )


class SessionTool(BaseTool):
    """Base for tools that act on browser sessions."""

    def __init__(
        self,
        name: str,
        category: ToolCategory,
        sessions: SessionManager,
        interpreter: Optional[StepInterpreter] = None,
    ):
        self.sessions = sessions
        self.interpreter = interpreter
        super().__init__(name=name, category=category)

    def _failure(self, error: Exception, start_time: datetime) -> ToolResult:
        """Convert an exception into a failed result."""
        if isinstance(error, SessionNotFound):
            message = f"Session {error.session_key} not found or page not available."
        elif isinstance(error, FormPilotError):
            message = str(error)
        else:
            self.logger.error(f"Tool {self.name} failed: {error}")
            message = f"{self.name} failed: {error}"
        return self._create_error_result(message, elapsed_ms(start_time))


class LaunchBrowserTool(SessionTool):
    """Launch a browser session, replacing any session under the same key."""

    def __init__(self, sessions: SessionManager, config: Optional[FormPilotConfig] = None):
        self.config = config
        super().__init__("launch_browser", ToolCategory.SESSION, sessions)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Launch a browser and open a page under a session key",
            category=self.category,
            parameters=[
                ToolParameter(
                    name="browser_type",
                    type="string",
                    description="Browser to launch (chrome, firefox, webkit)",
                    required=False,
                    default="chrome",
                ),
                ToolParameter(
                    name="headless",
                    type="boolean",
                    description="Run browser in headless mode",
                    required=False,
                    default=True,
                ),
                _session_parameter(),
            ],
            returns="Launch status text",
        )

    async def execute(
        self,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
        session_id: str = DEFAULT_SESSION_KEY,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        if browser_type is None:
            browser_type = self.config.browser if self.config else "chrome"
        if headless is None:
            headless = self.config.headless if self.config else True

        try:
            session = await self.sessions.launch(
                session_id,
                browser_type,
                headless=headless,
                options=self.config.context_options() if self.config else None,
            )
        except Exception as e:
            return self._failure(e, start_time)

        return self._create_success_result(
            f"Browser {session.browser_kind.value} launched successfully. "
            f"Session ID: {session_id}",
            elapsed_ms(start_time),
        )


class StepTool(SessionTool):
    """Run a single test step through the interpreter."""

    action: StepAction
    description: str
    parameters: List[ToolParameter] = []

    def __init__(self, name: str, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__(name, ToolCategory.INTERACTION, sessions, interpreter)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.description,
            category=self.category,
            parameters=list(self.parameters) + [_session_parameter()],
            returns="Step outcome text",
        )

    async def _run_step(
        self, session_id: str, target: str, value: Optional[str] = None
    ) -> ToolResult:
        start_time = datetime.now()
        step = TestStep(index=1, action=self.action, target=target, value=value)
        try:
            results = await self.interpreter.execute(session_id, [step])
        except Exception as e:
            return self._failure(e, start_time)

        result = results[0]
        if not result.success:
            return self._create_error_result(
                result.error or result.message, elapsed_ms(start_time)
            )
        return self._create_success_result(result.message, elapsed_ms(start_time))


class NavigateTool(StepTool):
    """Navigate a session's page to a URL."""

    action = StepAction.NAVIGATE
    description = "Navigate the session's page to a URL"
    parameters = [
        ToolParameter(name="url", type="string", description="URL to open"),
    ]

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("navigate_to_url", sessions, interpreter)

    async def execute(self, url: str, session_id: str = DEFAULT_SESSION_KEY, **kwargs) -> ToolResult:
        return await self._run_step(session_id, url)


class FillFieldTool(StepTool):
    """Fill an input field."""

    action = StepAction.FILL_FIELD
    description = "Fill a form field, addressed by selector or data-testid"
    parameters = [
        ToolParameter(name="selector", type="string", description="Selector or data-testid"),
        ToolParameter(name="value", type="string", description="Value to enter"),
    ]

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("fill_field", sessions, interpreter)

    async def execute(
        self, selector: str, value: str, session_id: str = DEFAULT_SESSION_KEY, **kwargs
    ) -> ToolResult:
        return await self._run_step(session_id, selector, value)


class ClickElementTool(StepTool):
    """Click an element."""

    action = StepAction.CLICK_ELEMENT
    description = "Click an element, addressed by selector or data-testid"
    parameters = [
        ToolParameter(name="selector", type="string", description="Selector or data-testid"),
    ]

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("click_element", sessions, interpreter)

    async def execute(
        self, selector: str, session_id: str = DEFAULT_SESSION_KEY, **kwargs
    ) -> ToolResult:
        return await self._run_step(session_id, selector)


class SelectOptionTool(StepTool):
    """Select an option in a dropdown."""

    action = StepAction.SELECT_OPTION
    description = "Select an option in a dropdown, addressed by selector or data-testid"
    parameters = [
        ToolParameter(name="selector", type="string", description="Selector or data-testid"),
        ToolParameter(name="value", type="string", description="Option value"),
    ]

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("select_option", sessions, interpreter)

    async def execute(
        self, selector: str, value: str, session_id: str = DEFAULT_SESSION_KEY, **kwargs
    ) -> ToolResult:
        return await self._run_step(session_id, selector, value)


class KeyboardShortcutTool(SessionTool):
    """Send a keyboard shortcut with platform-aware modifier mapping."""

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("send_keyboard_shortcut", ToolCategory.INTERACTION, sessions, interpreter)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=(
                "Send a keyboard shortcut such as 'Ctrl+S' or 'Tab Tab Enter'; "
                "Ctrl and Cmd are mapped to the platform's primary modifier"
            ),
            category=self.category,
            parameters=[
                ToolParameter(name="keys", type="string", description="Shortcut to send"),
                _session_parameter(),
                ToolParameter(
                    name="is_mac",
                    type="boolean",
                    description="Use macOS modifier mapping (default: detect)",
                    required=False,
                ),
            ],
            returns="Normalized keys, executed sequences and page state before and after",
        )

    async def execute(
        self,
        keys: str,
        session_id: str = DEFAULT_SESSION_KEY,
        is_mac: Optional[bool] = None,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        try:
            report = await self.interpreter.send_keyboard_shortcut(session_id, keys, is_mac=is_mac)
        except Exception as e:
            return self._failure(e, start_time)
        return self._create_success_result(report, elapsed_ms(start_time))


class ExecuteJavaScriptTool(SessionTool):
    """Evaluate JavaScript in a session's page."""

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("execute_javascript", ToolCategory.INTERACTION, sessions, interpreter)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Evaluate a JavaScript expression in the session's page",
            category=self.category,
            parameters=[
                ToolParameter(name="script", type="string", description="JavaScript to evaluate"),
                _session_parameter(),
            ],
            returns="JSON-serializable evaluation result",
        )

    async def execute(
        self, script: str, session_id: str = DEFAULT_SESSION_KEY, **kwargs
    ) -> ToolResult:
        start_time = datetime.now()
        try:
            value = await self.interpreter.evaluate(session_id, script)
        except Exception as e:
            return self._failure(e, start_time)
        return self._create_success_result(value, elapsed_ms(start_time))


class ConsoleLogsTool(SessionTool):
    """Read a session's captured console log."""

    def __init__(self, sessions: SessionManager):
        super().__init__("get_console_logs", ToolCategory.TELEMETRY, sessions)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Get captured console messages for a session",
            category=self.category,
            parameters=[
                _session_parameter(),
                ToolParameter(
                    name="log_type",
                    type="string",
                    description="Only messages of this type (log, error, warning, ...)",
                    required=False,
                ),
                ToolParameter(
                    name="max_entries",
                    type="integer",
                    description="Most recent entries to return",
                    required=False,
                    default=MAX_LOG_ENTRIES,
                ),
            ],
            returns="Console entries, oldest first",
        )

    async def execute(
        self,
        session_id: str = DEFAULT_SESSION_KEY,
        log_type: Optional[str] = None,
        max_entries: int = MAX_LOG_ENTRIES,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        try:
            session = self.sessions.require_session(session_id)
        except Exception as e:
            return self._failure(e, start_time)

        entries = session.logs.console_logs(log_type=log_type, limit=max_entries)
        return self._create_success_result(
            {
                "session_id": session_id,
                "total": len(entries),
                "entries": [entry.model_dump(mode="json") for entry in entries],
            },
            elapsed_ms(start_time),
        )


class NetworkActivityTool(SessionTool):
    """Read a session's captured network log."""

    def __init__(self, sessions: SessionManager):
        super().__init__("get_network_activity", ToolCategory.TELEMETRY, sessions)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Get captured requests and responses for a session",
            category=self.category,
            parameters=[
                _session_parameter(),
                ToolParameter(
                    name="url_filter",
                    type="string",
                    description="Only entries whose URL contains this text",
                    required=False,
                ),
                ToolParameter(
                    name="max_entries",
                    type="integer",
                    description="Most recent entries to return",
                    required=False,
                    default=MAX_LOG_ENTRIES,
                ),
            ],
            returns="Network entries, oldest first",
        )

    async def execute(
        self,
        session_id: str = DEFAULT_SESSION_KEY,
        url_filter: Optional[str] = None,
        max_entries: int = MAX_LOG_ENTRIES,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        try:
            session = self.sessions.require_session(session_id)
        except Exception as e:
            return self._failure(e, start_time)

        entries = session.logs.network_logs(url_filter=url_filter, limit=max_entries)
        return self._create_success_result(
            {
                "session_id": session_id,
                "total": len(entries),
                "entries": [entry.model_dump(mode="json") for entry in entries],
            },
            elapsed_ms(start_time),
        )


class SessionSummaryTool(SessionTool):
    """Summarize a session and its telemetry."""

    def __init__(self, sessions: SessionManager):
        super().__init__("get_session_summary", ToolCategory.TELEMETRY, sessions)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Get session details with console and network counts",
            category=self.category,
            parameters=[_session_parameter()],
            returns="Session description with log summaries",
        )

    async def execute(self, session_id: str = DEFAULT_SESSION_KEY, **kwargs) -> ToolResult:
        start_time = datetime.now()
        try:
            session = self.sessions.require_session(session_id)
        except Exception as e:
            return self._failure(e, start_time)

        summary: Dict[str, Any] = session.describe()
        summary.update(session.logs.summary())
        return self._create_success_result(summary, elapsed_ms(start_time))


class ClearSessionLogsTool(SessionTool):
    """Clear a session's captured telemetry."""

    def __init__(self, sessions: SessionManager):
        super().__init__("clear_session_logs", ToolCategory.TELEMETRY, sessions)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Clear captured console and/or network entries for a session",
            category=self.category,
            parameters=[
                _session_parameter(),
                ToolParameter(
                    name="console",
                    type="boolean",
                    description="Clear console entries",
                    required=False,
                    default=True,
                ),
                ToolParameter(
                    name="network",
                    type="boolean",
                    description="Clear network entries",
                    required=False,
                    default=True,
                ),
            ],
            returns="Clear status text",
        )

    async def execute(
        self,
        session_id: str = DEFAULT_SESSION_KEY,
        console: bool = True,
        network: bool = True,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        try:
            removed_console, removed_network = self.sessions.clear_logs(
                session_id, console=console, network=network
            )
        except Exception as e:
            return self._failure(e, start_time)

        return self._create_success_result(
            f"Cleared {removed_console} console and {removed_network} network entries "
            f"for session {session_id}",
            elapsed_ms(start_time),
        )


class CloseBrowserTool(SessionTool):
    """Close a browser session."""

    def __init__(self, sessions: SessionManager):
        super().__init__("close_browser", ToolCategory.SESSION, sessions)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Close a browser session; closing an unknown session is a no-op",
            category=self.category,
            parameters=[_session_parameter()],
            returns="Close status text",
        )

    async def execute(self, session_id: str = DEFAULT_SESSION_KEY, **kwargs) -> ToolResult:
        start_time = datetime.now()
        try:
            closed = await self.sessions.close(session_id)
        except Exception as e:
            return self._failure(e, start_time)

        if closed:
            message = f"Browser session {session_id} closed successfully"
        else:
            message = f"Session {session_id} not found or already closed"
        return self._create_success_result(message, elapsed_ms(start_time))


def _run_payload(session_id: str, results: List[Any], title: Optional[str] = None) -> Dict[str, Any]:
    passed = sum(1 for result in results if result.success)
    payload: Dict[str, Any] = {
        "session_id": session_id,
        "success": passed == len(results),
        "passed": passed,
        "failed": len(results) - passed,
        "results": [result.model_dump(mode="json") for result in results],
    }
    if title is not None:
        payload["title"] = title
    return payload


class ExecuteTestStepsTool(SessionTool):
    """Execute a list of test steps against a session.

    The tool succeeds when the steps ran, whether or not each step passed;
    per-step outcomes are in the result payload.
    """

    def __init__(self, sessions: SessionManager, interpreter: StepInterpreter):
        super().__init__("execute_test_steps", ToolCategory.TESTING, sessions, interpreter)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=(
                "Execute test steps in order; each step has action, target and "
                "optional value, validation and message"
            ),
            category=self.category,
            parameters=[
                ToolParameter(name="steps", type="array", description="Step documents"),
                _session_parameter(),
                ToolParameter(
                    name="continue_on_failure",
                    type="boolean",
                    description="Keep running after a failed step",
                    required=False,
                    default=False,
                ),
            ],
            returns="Per-step results with pass/fail counts",
        )

    async def execute(
        self,
        steps: List[Dict[str, Any]],
        session_id: str = DEFAULT_SESSION_KEY,
        continue_on_failure: bool = False,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        try:
            results = await self.interpreter.execute(
                session_id, steps, continue_on_failure=continue_on_failure
            )
        except Exception as e:
            return self._failure(e, start_time)
        return self._create_success_result(_run_payload(session_id, results), elapsed_ms(start_time))


class ExecuteTestCaseTool(SessionTool):
    """Load a stored test case and execute it against a session."""

    def __init__(
        self,
        sessions: SessionManager,
        interpreter: StepInterpreter,
        store: Optional[BaseTestCaseStore] = None,
    ):
        self.store = store
        super().__init__("execute_test_case", ToolCategory.TESTING, sessions, interpreter)

    def _build_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description="Execute a test case from the test-case store",
            category=self.category,
            parameters=[
                ToolParameter(name="test_case_id", type="string", description="Stored test case id"),
                _session_parameter(),
                ToolParameter(
                    name="continue_on_failure",
                    type="boolean",
                    description="Keep running after a failed step",
                    required=False,
                    default=False,
                ),
            ],
            returns="Per-step results with the test case title",
        )

    async def execute(
        self,
        test_case_id: str,
        session_id: str = DEFAULT_SESSION_KEY,
        continue_on_failure: bool = False,
        **kwargs,
    ) -> ToolResult:
        start_time = datetime.now()
        if self.store is None:
            return self._create_error_result("No test-case store configured", elapsed_ms(start_time))

        try:
            report = await self.interpreter.run_stored_test_case(
                session_id, self.store, test_case_id, continue_on_failure=continue_on_failure
            )
        except Exception as e:
            return self._failure(e, start_time)
        return self._create_success_result(
            _run_payload(session_id, report.results, title=report.title),
            elapsed_ms(start_time),
        )


def create_browser_tools(
    sessions: SessionManager,
    interpreter: Optional[StepInterpreter] = None,
    store: Optional[BaseTestCaseStore] = None,
    config: Optional[FormPilotConfig] = None,
) -> ToolRegistry:
    """
    Build a registry holding every browser tool.

    Args:
        sessions: Session registry the tools act on
        interpreter: Step interpreter (built from ``sessions`` and ``config`` if omitted)
        store: Test-case store for ``execute_test_case``
        config: Defaults for launches and keyboard timing

    Returns:
        Populated ToolRegistry
    """
    if interpreter is None:
        if config is not None:
            interpreter = StepInterpreter(
                sessions,
                key_delay_ms=config.key_delay_ms,
                settle_delay_ms=config.settle_delay_ms,
                is_mac=config.mac_keys,
            )
        else:
            interpreter = StepInterpreter(sessions)

    registry = ToolRegistry()
    for tool in (
        LaunchBrowserTool(sessions, config),
        NavigateTool(sessions, interpreter),
        FillFieldTool(sessions, interpreter),
        ClickElementTool(sessions, interpreter),
        SelectOptionTool(sessions, interpreter),
        KeyboardShortcutTool(sessions, interpreter),
        ExecuteJavaScriptTool(sessions, interpreter),
        ConsoleLogsTool(sessions),
        NetworkActivityTool(sessions),
        SessionSummaryTool(sessions),
        ClearSessionLogsTool(sessions),
        CloseBrowserTool(sessions),
        ExecuteTestStepsTool(sessions, interpreter),
        ExecuteTestCaseTool(sessions, interpreter, store),
    ):
        registry.register_tool(tool)

    logger.debug(f"Registered {len(registry.list_tool_names())} browser tools")
    return registry
