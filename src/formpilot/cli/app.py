"""Main CLI application entry point."""

import asyncio
import json
import logging
import sys
from typing import Optional

import click

from formpilot.browser.keyboard import is_mac_platform, normalize_shortcut, parse_key_sequence
from formpilot.browser.selector_resolver import resolve_selector
from formpilot.browser.session_manager import DEFAULT_SESSION_KEY, SessionManager
from formpilot.cli.output import OutputRenderer
from formpilot.config.settings import FormPilotConfig, load_config
from formpilot.errors import TestCaseNotFound
from formpilot.interpreter.step_interpreter import StepInterpreter
from formpilot.models.step_models import TestCase, TestRunReport
from formpilot.store.files import load_test_case_file
from formpilot.store.redis_store import RedisTestCaseStore

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Configure root logging for a CLI invocation."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Suppress noisy loggers in non-verbose mode
    if not verbose:
        logging.getLogger("playwright").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)


def build_interpreter(sessions: SessionManager, config: FormPilotConfig) -> StepInterpreter:
    """Create a step interpreter with timing and key mapping from ``config``."""
    return StepInterpreter(
        sessions,
        key_delay_ms=config.key_delay_ms,
        settle_delay_ms=config.settle_delay_ms,
        is_mac=config.mac_keys,
    )


async def run_test_case(
    test_case: TestCase,
    config: FormPilotConfig,
    session_key: str = DEFAULT_SESSION_KEY,
    browser: Optional[str] = None,
    headless: Optional[bool] = None,
    continue_on_failure: bool = False,
) -> TestRunReport:
    """
    Launch a session, execute a test case in it and close it again.

    Args:
        test_case: Test case to execute
        config: Orchestrator configuration
        session_key: Session key to launch under
        browser: Browser kind (defaults to ``config.browser``)
        headless: Headless mode (defaults to ``config.headless``)
        continue_on_failure: Keep running after a failed step

    Returns:
        Test run report
    """
    async with SessionManager(context_options=config.context_options()) as sessions:
        await sessions.launch(
            session_key,
            browser or config.browser,
            headless=config.headless if headless is None else headless,
        )
        interpreter = build_interpreter(sessions, config)
        return await interpreter.execute_test_case(
            session_key, test_case, continue_on_failure=continue_on_failure
        )


async def fetch_stored_test_case(store: RedisTestCaseStore, test_case_id: str) -> TestCase:
    """
    Load a test case from Redis.

    Raises:
        TestCaseNotFound: If no document exists under ``test_case_id``
    """
    try:
        test_case = await store.find_test_case(test_case_id)
    finally:
        await store.close()
    if test_case is None:
        raise TestCaseNotFound(test_case_id)
    return test_case


def _report_and_exit(report: TestRunReport, as_json: bool) -> None:
    if as_json:
        payload = report.model_dump(mode="json")
        payload.update({"passed": report.passed, "failed": report.failed, "success": report.success})
        click.echo(json.dumps(payload, indent=2))
    else:
        OutputRenderer().render_report(report)
    sys.exit(0 if report.success else 1)


def _fail(error: Exception) -> None:
    OutputRenderer().render_error(error)
    sys.exit(1)


def run_options(command):
    """Options shared by the commands that execute a test case."""
    command = click.option(
        "--json", "as_json", is_flag=True, help="Print the report as JSON"
    )(command)
    command = click.option(
        "--continue-on-failure", is_flag=True, help="Keep running after a failed step"
    )(command)
    command = click.option(
        "--session", "session_key", default=DEFAULT_SESSION_KEY, show_default=True,
        help="Session key",
    )(command)
    command = click.option(
        "--headless/--headed", default=None, help="Run the browser headless or visible"
    )(command)
    command = click.option(
        "--browser", type=click.Choice(["chrome", "chromium", "firefox", "webkit"]),
        help="Browser to launch",
    )(command)
    return command


@click.group()
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.option(
    "--config", "config_path",
    type=click.Path(),
    help="Config file path",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[str]) -> None:
    """
    FormPilot - run declarative form tests in real browsers.

    Run a test case file:
        formpilot run applicant.yaml

    Run a test case stored in Redis:
        formpilot run-stored enrollment-success

    Inspect shortcut handling without a browser:
        formpilot keys "Ctrl+Shift+I" --mac
    """
    configure_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except Exception as e:
        _fail(e)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@run_options
@click.pass_obj
def run(
    config: FormPilotConfig,
    file: str,
    browser: Optional[str],
    headless: Optional[bool],
    session_key: str,
    continue_on_failure: bool,
    as_json: bool,
) -> None:
    """Run the test case in FILE (YAML or JSON)."""
    try:
        test_case = load_test_case_file(file)
        report = asyncio.run(run_test_case(
            test_case,
            config,
            session_key=session_key,
            browser=browser,
            headless=headless,
            continue_on_failure=continue_on_failure,
        ))
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        _fail(e)
    _report_and_exit(report, as_json)


@main.command("run-stored")
@click.argument("test_case_id")
@click.option("--redis-url", help="Redis URL (defaults to FORMPILOT_REDIS_URL)")
@run_options
@click.pass_obj
def run_stored(
    config: FormPilotConfig,
    test_case_id: str,
    redis_url: Optional[str],
    browser: Optional[str],
    headless: Optional[bool],
    session_key: str,
    continue_on_failure: bool,
    as_json: bool,
) -> None:
    """Run the test case stored in Redis under TEST_CASE_ID."""
    store = RedisTestCaseStore(
        redis_url=redis_url or config.redis_url,
        prefix=config.testcase_prefix,
    )

    async def _run() -> TestRunReport:
        test_case = await fetch_stored_test_case(store, test_case_id)
        return await run_test_case(
            test_case,
            config,
            session_key=session_key,
            browser=browser,
            headless=headless,
            continue_on_failure=continue_on_failure,
        )

    try:
        report = asyncio.run(_run())
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        _fail(e)
    _report_and_exit(report, as_json)


@main.command()
@click.argument("shortcut")
@click.option("--mac/--no-mac", default=None, help="Use macOS modifier mapping (default: detect)")
@click.option("--json", "as_json", is_flag=True, help="Print the sequences as JSON")
@click.pass_obj
def keys(config: FormPilotConfig, shortcut: str, mac: Optional[bool], as_json: bool) -> None:
    """Show how SHORTCUT is normalized and split into key presses."""
    if mac is None:
        mac = config.mac_keys if config.mac_keys is not None else is_mac_platform()

    normalized = normalize_shortcut(shortcut, mac)
    sequences = parse_key_sequence(normalized)
    if as_json:
        click.echo(json.dumps({
            "original": shortcut,
            "normalized": normalized,
            "platform": "macOS" if mac else "Windows/Linux",
            "sequences": [sequence.model_dump() for sequence in sequences],
        }, indent=2))
        return
    OutputRenderer().render_sequences(normalized, sequences)


@main.command()
@click.argument("selector")
def resolve(selector: str) -> None:
    """Print the locator SELECTOR resolves to."""
    click.echo(resolve_selector(selector))


if __name__ == "__main__":
    main()
