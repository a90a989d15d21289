"""Test step execution against live browser sessions."""

from formpilot.interpreter.step_interpreter import PAGE_STATE_SCRIPT, StepInterpreter

__all__ = ["StepInterpreter", "PAGE_STATE_SCRIPT"]
