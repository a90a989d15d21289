"""Test step data models.

Test cases arrive either from a caller or from the test-case store as loosely
typed documents. They are decoded here, at the boundary, into immutable
``TestStep`` instances whose ``action`` is one of a closed set of
``StepAction`` values, so the interpreter only ever dispatches over known
actions.
"""

from pydantic import BaseModel, Field, ValidationError
from typing import Any, Dict, List, Mapping, Optional, Union
from enum import Enum
from datetime import datetime

from formpilot.errors import UnknownAction
from formpilot.models.browser_models import utc_now


class StepAction(str, Enum):
    """Actions the step interpreter knows how to execute."""

    NAVIGATE = "NAVIGATE"
    FILL_FIELD = "FILL_FIELD"
    CLICK_ELEMENT = "CLICK_ELEMENT"
    SELECT_OPTION = "SELECT_OPTION"
    VALIDATE = "VALIDATE"
    WAIT = "WAIT"
    CLEAR_FIELD = "CLEAR_FIELD"
    SEND_KEYS = "SEND_KEYS"


# Older test-case documents use these names.
ACTION_ALIASES: Dict[str, StepAction] = {
    "VALIDATE_ELEMENT": StepAction.VALIDATE,
    "WAIT_FOR_ELEMENT": StepAction.WAIT,
    "PRESS_KEYS": StepAction.SEND_KEYS,
}


def parse_action(raw: Any) -> StepAction:
    """Decode an action name into a ``StepAction``.

    Args:
        raw: Action name (case-insensitive) or StepAction

    Returns:
        Matching action

    Raises:
        UnknownAction: If the name is not a supported action
    """
    if isinstance(raw, StepAction):
        return raw
    if not isinstance(raw, str):
        raise UnknownAction(raw)
    name = raw.strip().upper()
    if name in ACTION_ALIASES:
        return ACTION_ALIASES[name]
    try:
        return StepAction(name)
    except ValueError:
        raise UnknownAction(raw)


class StepStatus(str, Enum):
    """Step execution states."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TestStep(BaseModel):
    """A single declarative test step."""

    __test__ = False

    index: int = Field(ge=1, description="1-based position in the test case")
    action: StepAction = Field(description="Action to perform")
    target: str = Field(default="", description="URL, selector or shortcut")
    value: Optional[str] = Field(default=None, description="Input value")
    validation: Optional[str] = Field(default=None, description="Validation kind")
    message: Optional[str] = Field(default=None, description="Human description")

    class Config:
        """Pydantic config."""

        frozen = True


class RejectedStep(BaseModel):
    """A step document that could not be decoded.

    It keeps its place in the test case and fails when executed, so one bad
    step does not prevent the others from running.
    """

    index: int = Field(description="1-based position in the test case")
    action: str = Field(description="Action name as written in the document")
    error: str = Field(description="Why the step could not be decoded")
    document: Any = Field(default=None, description="Original step document")

    class Config:
        """Pydantic config."""

        frozen = True

    def to_result(self) -> "StepResult":
        """Failed result reported in place of executing this step."""
        return StepResult(
            index=self.index,
            action=self.action,
            success=False,
            message=f"Step {self.index} could not be decoded",
            error=self.error,
        )


class TestCase(BaseModel):
    """An ordered sequence of test steps with a title."""

    __test__ = False

    id: Optional[str] = Field(default=None, description="Store identifier")
    title: str = Field(default="Unknown Test", description="Test case title")
    steps: List[Union[TestStep, RejectedStep]] = Field(
        default_factory=list, description="Steps in execution order"
    )

    @property
    def rejected_steps(self) -> List[RejectedStep]:
        return [step for step in self.steps if isinstance(step, RejectedStep)]

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the store's document shape."""
        document: Dict[str, Any] = {
            "title": self.title,
            "testSteps": [_step_document(step) for step in self.steps],
        }
        if self.id is not None:
            document["_id"] = self.id
        return document


def _step_document(step: Union[TestStep, RejectedStep]) -> Any:
    if isinstance(step, RejectedStep):
        return step.document
    return {
        "step": step.index,
        "action": step.action.value,
        "target": step.target,
        "value": step.value,
        "validation": step.validation,
        "message": step.message,
    }


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def decode_step(raw: Mapping[str, Any], position: int) -> TestStep:
    """Decode a raw step document into a ``TestStep``.

    Both the store's keys (``step``) and the model's own keys (``index``) are
    accepted; keys are matched case-insensitively. A missing or zero step
    number falls back to ``position``.

    Args:
        raw: Step document
        position: 1-based position of the step in its sequence

    Returns:
        Decoded step

    Raises:
        UnknownAction: If the action is missing or unsupported
    """
    fields = {str(key).lower(): value for key, value in raw.items()}
    index = fields.get("index") or fields.get("step") or position
    return TestStep(
        index=int(index),
        action=parse_action(fields.get("action")),
        target=str(fields.get("target") or ""),
        value=_optional_text(fields.get("value")),
        validation=_optional_text(fields.get("validation")),
        message=_optional_text(fields.get("message")),
    )


def decode_step_or_reject(raw: Any, position: int) -> Union[TestStep, RejectedStep]:
    """Decode a raw step document, keeping undecodable ones as ``RejectedStep``.

    Args:
        raw: Step document
        position: 1-based position of the step in its sequence

    Returns:
        Decoded step, or a RejectedStep carrying the decode error
    """
    try:
        return decode_step(raw, position)
    except (UnknownAction, ValidationError, AttributeError, TypeError, ValueError) as e:
        action = None
        if isinstance(raw, Mapping):
            action = {str(key).lower(): value for key, value in raw.items()}.get("action")
        return RejectedStep(index=position, action=str(action), error=str(e), document=raw)


def decode_test_case(document: Mapping[str, Any]) -> TestCase:
    """Decode a store document into a ``TestCase``.

    Steps that cannot be decoded, such as ones naming an unsupported action,
    are kept as ``RejectedStep`` entries and fail individually when run.

    Args:
        document: Mapping with ``title`` and ``testSteps`` (or ``steps``)

    Returns:
        Decoded test case
    """
    raw_steps = document.get("testSteps")
    if raw_steps is None:
        raw_steps = document.get("steps", [])
    steps = [
        decode_step_or_reject(raw, position)
        for position, raw in enumerate(raw_steps, start=1)
    ]
    test_case_id = document.get("_id", document.get("id"))
    return TestCase(
        id=str(test_case_id) if test_case_id is not None else None,
        title=document.get("title") or "Unknown Test",
        steps=steps,
    )


class StepResult(BaseModel):
    """Outcome of executing one test step."""

    index: int = Field(description="Step index")
    action: str = Field(description="Action name as executed")
    success: bool = Field(description="Whether the step succeeded")
    message: str = Field(description="Human-readable outcome")
    error: Optional[str] = Field(default=None, description="Failure detail")
    duration_ms: int = Field(default=0, description="Execution duration")

    @property
    def status(self) -> StepStatus:
        return StepStatus.SUCCEEDED if self.success else StepStatus.FAILED


class TestRunReport(BaseModel):
    """Results of running a test case against one session."""

    __test__ = False

    session_key: str
    title: str
    results: List[StepResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: Optional[datetime] = Field(default=None)

    @property
    def passed(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.success)

    @property
    def success(self) -> bool:
        return self.failed == 0
