"""Rich output rendering for the CLI."""

import logging
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.traceback import Traceback

from formpilot.browser.keyboard import to_key_press
from formpilot.models.browser_models import KeySequence
from formpilot.models.step_models import TestRunReport

logger = logging.getLogger(__name__)


def _mark(flag: bool) -> str:
    return "x" if flag else ""


class OutputRenderer:
    """Render run reports, key sequences and errors to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize output renderer.

        Args:
            console: Rich console (creates new if not provided)
        """
        self.console = console or Console()

    def render_report(self, report: TestRunReport) -> None:
        """
        Render a test run as a table of step results followed by a summary line.

        Args:
            report: Completed test run
        """
        table = Table(title=escape(report.title), show_header=True)
        table.add_column("Step", justify="right")
        table.add_column("Action")
        table.add_column("Status")
        table.add_column("Message")
        table.add_column("Ms", justify="right")

        for result in report.results:
            status = "[green]passed[/green]" if result.success else "[red]failed[/red]"
            message = result.message if result.success else f"{result.message}\n{result.error or ''}".strip()
            table.add_row(
                str(result.index),
                escape(result.action),
                status,
                escape(message),
                str(result.duration_ms),
            )

        self.console.print(table)
        color = "green" if report.success else "red"
        self.console.print(
            f"[{color}]{report.passed} passed, {report.failed} failed[/{color}] "
            f"(session {escape(report.session_key)})"
        )

    def render_sequences(self, normalized: str, sequences: Sequence[KeySequence]) -> None:
        """
        Render a normalized shortcut and the key presses it parses into.

        Args:
            normalized: Normalized shortcut text
            sequences: Parsed key sequences
        """
        self.console.print(f"Normalized: [bold]{escape(normalized)}[/bold]")
        if not sequences:
            self.console.print("[dim]No key sequences[/dim]")
            return

        table = Table(show_header=True)
        for column in ("Key", "Ctrl", "Alt", "Shift", "Meta", "Press"):
            table.add_column(column)
        for sequence in sequences:
            table.add_row(
                escape(sequence.key),
                _mark(sequence.ctrl),
                _mark(sequence.alt),
                _mark(sequence.shift),
                _mark(sequence.meta),
                escape(to_key_press(sequence)),
            )
        self.console.print(table)

    def render_error(self, error: Exception) -> None:
        """
        Render an error message, with a traceback when debug logging is enabled.

        Args:
            error: Exception to report
        """
        self.console.print(f"[red]Error: {escape(str(error))}[/red]")
        if logger.isEnabledFor(logging.DEBUG):
            self.console.print(Traceback.from_exception(type(error), error, error.__traceback__))
