"""Models package for the form test orchestrator."""

from .browser_models import (
    BrowserKind,
    ContextOptions,
    ConsoleLogEntry,
    NetworkEntryType,
    NetworkLogEntry,
    KeySequence,
)
from .step_models import (
    StepAction,
    StepStatus,
    TestStep,
    TestCase,
    StepResult,
    TestRunReport,
    decode_step,
    decode_step_or_reject,
    RejectedStep,
    decode_test_case,
)
from .tool_models import (
    ToolCategory,
    ToolStatus,
    ToolParameter,
    ToolSchema,
    ToolResult,
)

__all__ = [
    # Browser models
    "BrowserKind",
    "ContextOptions",
    "ConsoleLogEntry",
    "NetworkEntryType",
    "NetworkLogEntry",
    "KeySequence",
    # Step models
    "StepAction",
    "StepStatus",
    "TestStep",
    "TestCase",
    "StepResult",
    "TestRunReport",
    "decode_step",
    "decode_step_or_reject",
    "RejectedStep",
    "decode_test_case",
    # Tool models
    "ToolCategory",
    "ToolStatus",
    "ToolParameter",
    "ToolSchema",
    "ToolResult",
]
