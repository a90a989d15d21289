"""Tool registry for discovery and dispatch."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from formpilot.models.tool_models import ToolCategory, ToolResult, ToolSchema, ToolStatus
from formpilot.tools.base import BaseTool, elapsed_ms

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Registry of tools, addressed by name.

    Each registry is an independent instance; tools hold references to the
    session manager and interpreter they were built with.
    """

    def __init__(self):
        self._tools: Dict[str, BaseTool] = {}

    def register_tool(self, tool: BaseTool) -> None:
        """
        Register a tool.

        Args:
            tool: Tool instance to register

        Raises:
            ValueError: If tool name already registered
        """
        if tool.name in self._tools:
            raise ValueError(
                f"Tool '{tool.name}' is already registered. "
                "Use a unique name for each tool."
            )

        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name} (category: {tool.category.value})")

    def get_tool(self, tool_name: str) -> Optional[BaseTool]:
        """
        Get a tool by name.

        Returns:
            Tool instance or None if not found
        """
        return self._tools.get(tool_name)

    def list_tools(self, category: Optional[ToolCategory] = None) -> List[BaseTool]:
        tools = list(self._tools.values())
        if category:
            tools = [t for t in tools if t.category == category]
        return tools

    def list_tool_names(self, category: Optional[ToolCategory] = None) -> List[str]:
        return [tool.name for tool in self.list_tools(category)]

    def get_tool_schemas(
        self, category: Optional[ToolCategory] = None
    ) -> List[ToolSchema]:
        return [tool.get_schema() for tool in self.list_tools(category)]

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._tools

    async def execute(self, tool_name: str, **parameters: Any) -> ToolResult:
        """
        Validate parameters and execute a tool.

        Args:
            tool_name: Registered tool name
            **parameters: Tool parameters

        Returns:
            The tool's result, or a failed result for an unknown tool or
            invalid parameters
        """
        start_time = datetime.now()
        tool = self._tools.get(tool_name)
        if tool is None:
            return ToolResult(
                tool_name=tool_name,
                status=ToolStatus.FAILED,
                error=f"Tool '{tool_name}' not found. Available tools: {self.list_tool_names()}",
                execution_time_ms=elapsed_ms(start_time),
            )

        try:
            tool.validate_parameters(parameters)
        except ValueError as e:
            return tool._create_error_result(str(e), elapsed_ms(start_time))

        return await tool.execute(**parameters)
