"""Test step interpreter.

This module provides the StepInterpreter, which executes declarative test
steps against the page of a live session. Steps run one at a time, in order,
each driver call awaited before the next is issued. Every step produces a
``StepResult``; an exception raised by the driver during a step is turned
into a failed result rather than propagated.

By default a run stops at the first failed step, so the returned results end
with the failure. ``continue_on_failure=True`` runs every step regardless.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from playwright.async_api import Page

from formpilot.browser.keyboard import (
    is_mac_platform,
    normalize_shortcut,
    parse_key_sequence,
    to_key_press,
)
from formpilot.browser.selector_resolver import resolve_selector
from formpilot.browser.session_manager import SessionManager
from formpilot.errors import (
    DriverOperationFailed,
    SerializationFailed,
    TestCaseNotFound,
    UnknownAction,
)
from formpilot.models.step_models import (
    StepAction,
    StepResult,
    TestCase,
    TestRunReport,
    TestStep,
    RejectedStep,
    decode_step_or_reject,
)
from formpilot.models.browser_models import utc_now

logger = logging.getLogger(__name__)

StepInput = Union[TestStep, RejectedStep, Mapping[str, Any]]
StepHandler = Callable[[Page, TestStep], Awaitable[Tuple[bool, str]]]

PAGE_STATE_SCRIPT = """
(() => {
    const active = document.activeElement;
    return {
        activeElement: active ? {
            tagName: active.tagName.toLowerCase(),
            className: active.className,
            id: active.id || null,
            type: active.type || null
        } : null,
        url: window.location.href,
        title: document.title
    };
})()
"""

VALIDATION_KINDS = ("visible", "hidden", "enabled", "disabled", "text", "value")


def _elapsed_ms(start_time: datetime) -> int:
    return int((datetime.now() - start_time).total_seconds() * 1000)


def _action_name(action: Any) -> str:
    return getattr(action, "value", None) or str(action)


class StepInterpreter:
    """Execute test steps against live browser sessions.

    Example:
        interpreter = StepInterpreter(sessions)
        results = await interpreter.execute("t1", [
            {"action": "NAVIGATE", "target": "http://localhost:4200/applicants"},
            {"action": "FILL_FIELD", "target": "first-name", "value": "John"},
            {"action": "CLICK_ELEMENT", "target": "save-button"},
        ])
    """

    def __init__(
        self,
        sessions: SessionManager,
        key_delay_ms: int = 50,
        settle_delay_ms: int = 200,
        is_mac: Optional[bool] = None,
    ):
        """Initialize the interpreter.

        Args:
            sessions: Session registry providing pages
            key_delay_ms: Pause between key sequences of one shortcut
            settle_delay_ms: Pause after a shortcut before reading page state
            is_mac: Use macOS modifier mapping (None = detect)
        """
        self.sessions = sessions
        self.key_delay_ms = key_delay_ms
        self.settle_delay_ms = settle_delay_ms
        self.is_mac = is_mac
        self._handlers: Dict[StepAction, StepHandler] = {
            StepAction.NAVIGATE: self._navigate,
            StepAction.FILL_FIELD: self._fill_field,
            StepAction.CLICK_ELEMENT: self._click_element,
            StepAction.SELECT_OPTION: self._select_option,
            StepAction.VALIDATE: self._validate,
            StepAction.WAIT: self._wait,
            StepAction.CLEAR_FIELD: self._clear_field,
            StepAction.SEND_KEYS: self._send_keys,
        }

    def _mac_mapping(self, is_mac: Optional[bool] = None) -> bool:
        if is_mac is not None:
            return is_mac
        if self.is_mac is not None:
            return self.is_mac
        return is_mac_platform()

    async def execute(
        self,
        session_key: str,
        steps: Sequence[StepInput],
        continue_on_failure: bool = False,
    ) -> List[StepResult]:
        """Execute steps in order against a session's page.

        Args:
            session_key: Session to run against
            steps: Decoded steps or raw step documents
            continue_on_failure: Keep going after a failed step

        Returns:
            One result per executed step

        Raises:
            SessionNotFound: If the session does not exist; no step runs
        """
        page = self.sessions.require_page(session_key)
        results: List[StepResult] = []

        for position, raw in enumerate(steps, start=1):
            result = await self._run(page, raw, position)
            results.append(result)
            if not result.success and not continue_on_failure:
                logger.info(
                    f"Session {session_key}: stopping after failed step {result.index} "
                    f"({result.action})"
                )
                break

        logger.info(
            f"Session {session_key}: executed {len(results)} of {len(steps)} steps, "
            f"{sum(1 for r in results if not r.success)} failed"
        )
        return results

    async def _run(self, page: Page, raw: StepInput, position: int) -> StepResult:
        step = raw if isinstance(raw, (TestStep, RejectedStep)) else decode_step_or_reject(raw, position)
        if isinstance(step, RejectedStep):
            logger.debug(f"Rejected step {step.index}: {step.error}")
            return step.to_result()
        return await self.execute_step(page, step)

    async def execute_step(self, page: Page, step: TestStep) -> StepResult:
        """Execute a single step.

        Never raises: unknown actions and driver errors become failed results.

        Args:
            page: Page to act on
            step: Step to execute

        Returns:
            Step result
        """
        start_time = datetime.now()
        action = _action_name(step.action)
        logger.debug(f"Step {step.index}: {action} {step.target!r}")

        handler = self._handlers.get(step.action)
        error: Optional[str] = None
        try:
            if handler is None:
                raise UnknownAction(step.action)
            success, generated = await handler(page, step)
            if not success:
                error = generated
        except UnknownAction as e:
            success, generated, error = False, str(e), str(e)
        except Exception as e:
            wrapped = DriverOperationFailed(action, e)
            logger.error(f"Step {step.index} {action} failed: {e}")
            success, generated, error = False, f"Step {step.index} {action} failed", str(wrapped)

        return StepResult(
            index=step.index,
            action=action,
            success=success,
            message=step.message or generated,
            error=error,
            duration_ms=_elapsed_ms(start_time),
        )

    async def _navigate(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        await page.goto(step.target)
        return True, f"Navigated to {step.target}"

    async def _fill_field(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        value = step.value or ""
        await page.locator(resolve_selector(step.target)).fill(value)
        return True, f"Field {step.target} filled with value {value}"

    async def _click_element(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        await page.locator(resolve_selector(step.target)).click()
        return True, f"Clicked element {step.target}"

    async def _select_option(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        value = step.value or ""
        await page.locator(resolve_selector(step.target)).select_option(value)
        return True, f"Selected option {value} in {step.target}"

    async def _wait(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        await page.locator(resolve_selector(step.target)).wait_for()
        return True, f"Waited for element {step.target}"

    async def _clear_field(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        await page.locator(resolve_selector(step.target)).clear()
        return True, f"Field {step.target} cleared"

    async def _validate(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        kind = (step.validation or "visible").strip().lower()
        if kind not in VALIDATION_KINDS:
            return False, f"Unsupported validation '{kind}' for element {step.target}"

        element = page.locator(resolve_selector(step.target))
        if kind == "visible":
            passed = await element.is_visible()
        elif kind == "hidden":
            passed = await element.is_hidden()
        elif kind == "enabled":
            passed = await element.is_enabled()
        elif kind == "disabled":
            passed = await element.is_disabled()
        elif kind == "text":
            passed = (step.value or "") in (await element.inner_text())
        else:
            passed = await element.input_value() == (step.value or "")

        outcome = "passed" if passed else "failed"
        return passed, f"Element {step.target} validation {kind} {outcome}"

    async def _send_keys(self, page: Page, step: TestStep) -> Tuple[bool, str]:
        normalized, executed = await self._press_shortcut(page, step.target, self._mac_mapping())
        return True, f"Sent keys {normalized} ({len(executed)} sequences)"

    async def _press_shortcut(
        self, page: Page, keys: str, is_mac: bool
    ) -> Tuple[str, List[Dict[str, Any]]]:
        normalized = normalize_shortcut(keys, is_mac)
        sequences = parse_key_sequence(normalized)
        executed = []
        for position, sequence in enumerate(sequences):
            if position > 0 and self.key_delay_ms:
                await asyncio.sleep(self.key_delay_ms / 1000)
            started = datetime.now()
            await page.keyboard.press(to_key_press(sequence))
            executed.append({
                "sequence": sequence.key,
                "pressed": to_key_press(sequence),
                "modifiers": {
                    "ctrl": sequence.ctrl,
                    "alt": sequence.alt,
                    "shift": sequence.shift,
                    "meta": sequence.meta,
                },
                "duration_ms": _elapsed_ms(started),
            })
        return normalized, executed

    async def execute_test_case(
        self,
        session_key: str,
        test_case: TestCase,
        continue_on_failure: bool = False,
    ) -> TestRunReport:
        """Execute a test case and collect its results into a report.

        Raises:
            SessionNotFound: If the session does not exist
        """
        report = TestRunReport(session_key=session_key, title=test_case.title)
        logger.info(f"Executing test case: {test_case.title} ({len(test_case.steps)} steps)")
        report.results = await self.execute(
            session_key, test_case.steps, continue_on_failure=continue_on_failure
        )
        report.finished_at = utc_now()
        return report

    async def run_stored_test_case(
        self,
        session_key: str,
        store: Any,
        test_case_id: str,
        continue_on_failure: bool = False,
    ) -> TestRunReport:
        """Load a test case from a store and execute it.

        Args:
            session_key: Session to run against
            store: Test-case store with ``find_test_case``
            test_case_id: Document id

        Raises:
            TestCaseNotFound: If the store has no such test case
            SessionNotFound: If the session does not exist
        """
        test_case = await store.find_test_case(test_case_id)
        if test_case is None:
            raise TestCaseNotFound(test_case_id)
        return await self.execute_test_case(
            session_key, test_case, continue_on_failure=continue_on_failure
        )

    async def send_keyboard_shortcut(
        self,
        session_key: str,
        keys: str,
        is_mac: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Press a keyboard shortcut and report page state before and after.

        Args:
            session_key: Session to act on
            keys: Shortcut such as ``"Ctrl+S"`` or ``"Tab Tab Enter"``
            is_mac: Use macOS modifier mapping (None = configured/detected)

        Returns:
            Original and normalized keys, executed sequences, page states

        Raises:
            SessionNotFound: If the session does not exist
            DriverOperationFailed: If the driver fails
        """
        page = self.sessions.require_page(session_key)
        mac = self._mac_mapping(is_mac)
        try:
            initial_state = await page.evaluate(PAGE_STATE_SCRIPT)
            normalized, executed = await self._press_shortcut(page, keys, mac)
            if self.settle_delay_ms:
                await asyncio.sleep(self.settle_delay_ms / 1000)
            final_state = await page.evaluate(PAGE_STATE_SCRIPT)
        except Exception as e:
            raise DriverOperationFailed("Keyboard shortcut", e)

        return {
            "success": True,
            "original_keys": keys,
            "normalized_keys": normalized,
            "platform": "macOS" if mac else "Windows/Linux",
            "executed_sequences": executed,
            "initial_state": initial_state,
            "final_state": final_state,
            "session_id": session_key,
        }

    async def evaluate(self, session_key: str, script: str) -> Any:
        """Evaluate JavaScript in a session's page.

        Returns:
            The evaluation result, guaranteed to be JSON-serializable

        Raises:
            SessionNotFound: If the session does not exist
            DriverOperationFailed: If evaluation fails in the page
            SerializationFailed: If the result cannot be represented as JSON
        """
        page = self.sessions.require_page(session_key)
        try:
            result = await page.evaluate(script)
        except Exception as e:
            raise DriverOperationFailed("JavaScript evaluation", e)

        try:
            json.dumps(result, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationFailed(f"Evaluation result cannot be serialized: {e}")
        return result


__all__ = ["StepInterpreter", "PAGE_STATE_SCRIPT"]
