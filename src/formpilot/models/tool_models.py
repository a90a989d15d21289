"""Tool-related data models for the tool surface."""

from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List
from enum import Enum
from datetime import datetime


class ToolCategory(str, Enum):
    """Tool categories for organization and discovery."""

    SESSION = "session"
    INTERACTION = "interaction"
    TELEMETRY = "telemetry"
    TESTING = "testing"


class ToolStatus(str, Enum):
    """Tool execution status."""

    SUCCESS = "success"
    FAILED = "failed"


class ToolParameter(BaseModel):
    """Tool parameter definition for schema."""

    name: str = Field(description="Parameter name")
    type: str = Field(description="Parameter type (string, integer, etc.)")
    description: str = Field(description="Parameter description")
    required: bool = Field(default=True)
    default: Optional[Any] = Field(default=None)
    enum: Optional[List[Any]] = Field(default=None, description="Allowed values")


class ToolSchema(BaseModel):
    """Tool schema for discovery and validation."""

    name: str = Field(description="Tool name")
    description: str = Field(description="Tool description")
    category: ToolCategory
    parameters: List[ToolParameter] = Field(default_factory=list)
    returns: str = Field(description="Return type description")


class ToolResult(BaseModel):
    """Result from tool execution.

    ``result`` carries the status text or structured payload on success;
    ``error`` carries the descriptive failure text otherwise.
    """

    tool_name: str
    status: ToolStatus
    result: Optional[Any] = Field(default=None, description="Tool output")
    error: Optional[str] = Field(default=None)
    execution_time_ms: int = Field(description="Execution duration")
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    @property
    def text(self) -> str:
        """Status text suitable for returning to a caller."""
        if not self.success:
            return self.error or f"Tool '{self.tool_name}' failed"
        if isinstance(self.result, str):
            return self.result
        return str(self.result)
