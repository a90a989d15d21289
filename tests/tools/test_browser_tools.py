"""Tests for the browser tool surface and tool registry."""

import pytest

from formpilot.models.browser_models import ConsoleLogEntry, NetworkLogEntry
from formpilot.models.tool_models import ToolCategory, ToolStatus
from formpilot.store.memory import InMemoryTestCaseStore
from formpilot.tools.browser_tools import create_browser_tools
from formpilot.tools.registry import ToolRegistry

TOOL_NAMES = [
    "launch_browser",
    "navigate_to_url",
    "fill_field",
    "click_element",
    "select_option",
    "send_keyboard_shortcut",
    "execute_javascript",
    "get_console_logs",
    "get_network_activity",
    "get_session_summary",
    "clear_session_logs",
    "close_browser",
    "execute_test_steps",
    "execute_test_case",
]


@pytest.fixture
def store():
    return InMemoryTestCaseStore(
        {
            "applicant": {
                "title": "Create applicant",
                "testSteps": [
                    {"step": 1, "action": "NAVIGATE", "target": "http://localhost:4200"},
                    {"step": 2, "action": "FILL_FIELD", "target": "first-name", "value": "John"},
                ],
            },
            "mixed": {
                "title": "Mixed",
                "testSteps": [
                    {"step": 1, "action": "NAVIGATE", "target": "http://localhost:4200"},
                    {"step": 2, "action": "HOVER", "target": "menu"},
                    {"step": 3, "action": "CLICK_ELEMENT", "target": "save-button"},
                ],
            },
        }
    )


@pytest.fixture
def registry(sessions, interpreter, store):
    return create_browser_tools(sessions, interpreter, store=store)


class TestRegistry:
    """Tests for tool registration and dispatch."""

    def test_all_tools_registered(self, registry):
        assert registry.list_tool_names() == TOOL_NAMES
        assert len(registry.get_tool_schemas()) == len(TOOL_NAMES)

    def test_category_filter(self, registry):
        assert registry.list_tool_names(ToolCategory.SESSION) == ["launch_browser", "close_browser"]

    def test_registries_are_independent(self, registry):
        assert ToolRegistry().list_tool_names() == []
        assert registry.has_tool("fill_field")

    def test_duplicate_registration_rejected(self, registry):
        with pytest.raises(ValueError, match="already registered"):
            registry.register_tool(registry.get_tool("fill_field"))

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        result = await registry.execute("hover_element", selector="#menu")

        assert result.status == ToolStatus.FAILED
        assert "Tool 'hover_element' not found" in result.error

    @pytest.mark.asyncio
    async def test_missing_required_parameter(self, registry):
        result = await registry.execute("navigate_to_url", session_id="t1")

        assert not result.success
        assert result.error == "Missing required parameter 'url' for tool 'navigate_to_url'"


class TestSessionTools:
    """Tests for launch and close."""

    @pytest.mark.asyncio
    async def test_launch_browser(self, registry, sessions):
        result = await registry.execute("launch_browser", browser_type="chrome", session_id="t1")

        assert result.success
        assert result.text == "Browser chrome launched successfully. Session ID: t1"
        assert sessions.get_page("t1") is not None

    @pytest.mark.asyncio
    async def test_launch_unsupported_browser(self, registry, sessions):
        result = await registry.execute("launch_browser", browser_type="opera", session_id="t1")

        assert not result.success
        assert result.error == "Unsupported browser type: opera"
        assert sessions.get_page("t1") is None

    @pytest.mark.asyncio
    async def test_launch_driver_failure(self, registry, driver):
        driver.fail_on = "launch"

        result = await registry.execute("launch_browser", session_id="t1")

        assert not result.success
        assert "browser crashed" in result.error

    @pytest.mark.asyncio
    async def test_close_browser(self, registry, sessions):
        await sessions.launch("t1")

        closed = await registry.execute("close_browser", session_id="t1")
        again = await registry.execute("close_browser", session_id="t1")

        assert closed.text == "Browser session t1 closed successfully"
        assert again.success
        assert again.text == "Session t1 not found or already closed"


class TestInteractionTools:
    """Tests for single-action tools."""

    @pytest.mark.asyncio
    async def test_navigate(self, registry, sessions):
        session = await sessions.launch("t1")

        result = await registry.execute("navigate_to_url", url="http://localhost:4200", session_id="t1")

        assert result.success
        assert result.text == "Navigated to http://localhost:4200"
        session.page.goto.assert_awaited_once_with("http://localhost:4200")

    @pytest.mark.asyncio
    async def test_fill_field_unknown_session(self, registry):
        result = await registry.execute("fill_field", selector="email", value="a@b.c", session_id="t9")

        assert not result.success
        assert result.error == "Session t9 not found or page not available."

    @pytest.mark.asyncio
    async def test_fill_field_driver_failure(self, registry, sessions):
        session = await sessions.launch("t1")
        session.page.locator.return_value.fill.side_effect = Exception("element not editable")

        result = await registry.execute("fill_field", selector="email", value="a@b.c", session_id="t1")

        assert not result.success
        assert result.error == "FILL_FIELD failed: element not editable"

    @pytest.mark.asyncio
    async def test_click_and_select(self, registry, sessions):
        session = await sessions.launch("t1")

        click = await registry.execute("click_element", selector="#save", session_id="t1")
        select = await registry.execute("select_option", selector="state", value="TX", session_id="t1")

        assert click.success and select.success
        session.page.locator.assert_any_call("#save")
        session.page.locator.assert_any_call("[data-testid='state']")

    @pytest.mark.asyncio
    async def test_keyboard_shortcut(self, registry, sessions):
        session = await sessions.launch("t1")

        result = await registry.execute(
            "send_keyboard_shortcut", keys="Cmd+A", session_id="t1", is_mac=False
        )

        assert result.success
        assert result.result["normalized_keys"] == "Ctrl+A"
        session.page.keyboard.press.assert_awaited_once_with("Control+A")

    @pytest.mark.asyncio
    async def test_execute_javascript(self, registry, sessions):
        session = await sessions.launch("t1")
        session.page.evaluate.return_value = 42

        result = await registry.execute("execute_javascript", script="() => 6 * 7", session_id="t1")

        assert result.success
        assert result.result == 42

    @pytest.mark.asyncio
    async def test_execute_javascript_unserializable(self, registry, sessions):
        session = await sessions.launch("t1")
        session.page.evaluate.return_value = object()

        result = await registry.execute("execute_javascript", script="() => window", session_id="t1")

        assert not result.success


class TestTelemetryTools:
    """Tests for console and network log tools."""

    async def _session_with_logs(self, sessions):
        session = await sessions.launch("t1")
        session.logs.on_console(ConsoleLogEntry(type="log", text="ready"))
        session.logs.on_console(ConsoleLogEntry(type="error", text="failed to load"))
        session.logs.on_request(NetworkLogEntry(type="request", method="POST", url="http://app/api/login"))
        session.logs.on_response(
            NetworkLogEntry(type="response", method="POST", url="http://app/api/login", status=200)
        )
        session.logs.on_request(NetworkLogEntry(type="request", method="GET", url="http://app/logo.png"))
        return session

    @pytest.mark.asyncio
    async def test_console_logs(self, registry, sessions):
        await self._session_with_logs(sessions)

        all_logs = await registry.execute("get_console_logs", session_id="t1")
        errors = await registry.execute("get_console_logs", session_id="t1", log_type="error")

        assert all_logs.result["total"] == 2
        assert [entry["text"] for entry in errors.result["entries"]] == ["failed to load"]

    @pytest.mark.asyncio
    async def test_network_activity(self, registry, sessions):
        await self._session_with_logs(sessions)

        result = await registry.execute("get_network_activity", session_id="t1", url_filter="API")

        assert result.result["total"] == 2
        assert [entry["type"] for entry in result.result["entries"]] == ["request", "response"]

    @pytest.mark.asyncio
    async def test_session_summary(self, registry, sessions):
        await self._session_with_logs(sessions)

        result = await registry.execute("get_session_summary", session_id="t1")

        assert result.result["session_id"] == "t1"
        assert result.result["console"]["errors"] == 1
        assert result.result["network"]["auth_related"] == 2

    @pytest.mark.asyncio
    async def test_clear_session_logs(self, registry, sessions):
        session = await self._session_with_logs(sessions)

        result = await registry.execute("clear_session_logs", session_id="t1", network=False)

        assert result.text == "Cleared 2 console and 0 network entries for session t1"
        assert session.logs.console_logs() == ()
        assert len(session.logs.network_logs()) == 3

    @pytest.mark.asyncio
    async def test_logs_unknown_session(self, registry):
        result = await registry.execute("get_console_logs", session_id="t9")
        assert result.error == "Session t9 not found or page not available."


class TestTestingTools:
    """Tests for step and test-case execution tools."""

    @pytest.mark.asyncio
    async def test_execute_test_steps(self, registry, sessions):
        session = await sessions.launch("t1")
        session.page.locator.return_value.click.side_effect = Exception("not clickable")

        result = await registry.execute(
            "execute_test_steps",
            session_id="t1",
            steps=[
                {"action": "NAVIGATE", "target": "http://localhost:4200"},
                {"action": "CLICK_ELEMENT", "target": "save-button"},
                {"action": "FILL_FIELD", "target": "first-name", "value": "John"},
            ],
        )

        assert result.success
        assert result.result["success"] is False
        assert result.result["passed"] == 1
        assert result.result["failed"] == 1
        assert len(result.result["results"]) == 2

    @pytest.mark.asyncio
    async def test_execute_test_case(self, registry, sessions):
        await sessions.launch("t1")

        result = await registry.execute("execute_test_case", test_case_id="applicant", session_id="t1")

        assert result.success
        assert result.result["title"] == "Create applicant"
        assert result.result["passed"] == 2

    @pytest.mark.asyncio
    async def test_execute_test_case_with_unknown_action(self, registry, sessions):
        await sessions.launch("t1")

        result = await registry.execute(
            "execute_test_case", test_case_id="mixed", session_id="t1", continue_on_failure=True
        )

        assert result.status == ToolStatus.SUCCESS
        assert [r["success"] for r in result.result["results"]] == [True, False, True]
        assert result.result["results"][1]["error"] == "Unknown action: HOVER"

    @pytest.mark.asyncio
    async def test_execute_missing_test_case(self, registry, sessions):
        await sessions.launch("t1")

        result = await registry.execute("execute_test_case", test_case_id="missing", session_id="t1")

        assert result.error == "Test case 'missing' not found"

    @pytest.mark.asyncio
    async def test_execute_test_case_without_store(self, sessions, interpreter):
        registry = create_browser_tools(sessions, interpreter)

        result = await registry.execute("execute_test_case", test_case_id="applicant")

        assert result.error == "No test-case store configured"
