"""Tool surface over browser sessions and step execution."""

from formpilot.tools.base import BaseTool
from formpilot.tools.registry import ToolRegistry
from formpilot.tools.browser_tools import (
    ClearSessionLogsTool,
    ClickElementTool,
    CloseBrowserTool,
    ConsoleLogsTool,
    ExecuteJavaScriptTool,
    ExecuteTestCaseTool,
    ExecuteTestStepsTool,
    FillFieldTool,
    KeyboardShortcutTool,
    LaunchBrowserTool,
    NavigateTool,
    NetworkActivityTool,
    SelectOptionTool,
    SessionSummaryTool,
    create_browser_tools,
)

__all__ = [
    "BaseTool",
    "ToolRegistry",
    "LaunchBrowserTool",
    "NavigateTool",
    "FillFieldTool",
    "ClickElementTool",
    "SelectOptionTool",
    "KeyboardShortcutTool",
    "ExecuteJavaScriptTool",
    "ConsoleLogsTool",
    "NetworkActivityTool",
    "SessionSummaryTool",
    "ClearSessionLogsTool",
    "CloseBrowserTool",
    "ExecuteTestStepsTool",
    "ExecuteTestCaseTool",
    "create_browser_tools",
]
