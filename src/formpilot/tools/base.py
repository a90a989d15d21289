"""Base tool class for the browser tool surface."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict
from datetime import datetime

from formpilot.models.tool_models import (
    ToolCategory,
    ToolSchema,
    ToolResult,
    ToolStatus,
)

logger = logging.getLogger(__name__)


def elapsed_ms(start_time: datetime) -> int:
    """Milliseconds elapsed since ``start_time``."""
    return int((datetime.now() - start_time).total_seconds() * 1000)


class BaseTool(ABC):
    """
    Abstract base class for all tools.

    PATTERN: One tool per caller-facing operation
    CRITICAL: ``execute`` must be async and never raise for bad caller input;
    failures are reported as a failed ToolResult
    """

    def __init__(self, name: str, category: ToolCategory):
        """
        Initialize base tool.

        Args:
            name: Tool name (must be unique within a registry)
            category: Tool category for organization
        """
        self.name = name
        self.category = category
        self.schema = self._build_schema()
        self.logger = logging.getLogger(f"{__name__}.{name}")

    @abstractmethod
    async def execute(self, **kwargs) -> ToolResult:
        """
        Execute tool with given parameters.

        Args:
            **kwargs: Tool-specific parameters

        Returns:
            ToolResult with execution outcome
        """
        pass

    @abstractmethod
    def _build_schema(self) -> ToolSchema:
        """
        Build tool schema for discovery and validation.

        Returns:
            ToolSchema describing this tool
        """
        pass

    def validate_parameters(self, parameters: Dict[str, Any]) -> None:
        """
        Validate parameters against schema.

        Args:
            parameters: Parameters to validate

        Raises:
            ValueError: If a required parameter is missing or an enum value is invalid
        """
        for param in self.schema.parameters:
            if param.required and param.name not in parameters:
                raise ValueError(
                    f"Missing required parameter '{param.name}' for tool '{self.name}'"
                )

        for param_name, param_value in parameters.items():
            param_schema = next(
                (p for p in self.schema.parameters if p.name == param_name), None
            )

            if not param_schema:
                self.logger.warning(
                    f"Unknown parameter '{param_name}' for tool '{self.name}'"
                )
                continue

            if param_schema.enum and param_value not in param_schema.enum:
                raise ValueError(
                    f"Parameter '{param_name}' must be one of {param_schema.enum}, "
                    f"got '{param_value}'"
                )

    def get_schema(self) -> ToolSchema:
        return self.schema

    def _create_success_result(self, result: Any, execution_time_ms: int) -> ToolResult:
        """
        Create a success result.

        Args:
            result: Status text or JSON-serializable payload
            execution_time_ms: Execution time in milliseconds

        Returns:
            ToolResult
        """
        return ToolResult(
            tool_name=self.name,
            status=ToolStatus.SUCCESS,
            result=result,
            execution_time_ms=execution_time_ms,
            timestamp=datetime.now(),
        )

    def _create_error_result(self, error: str, execution_time_ms: int) -> ToolResult:
        """
        Create an error result.

        Args:
            error: Error message
            execution_time_ms: Execution time in milliseconds

        Returns:
            ToolResult
        """
        return ToolResult(
            tool_name=self.name,
            status=ToolStatus.FAILED,
            error=error,
            execution_time_ms=execution_time_ms,
            timestamp=datetime.now(),
        )
