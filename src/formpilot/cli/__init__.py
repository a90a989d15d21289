"""FormPilot command-line interface."""

from formpilot.cli.app import main
from formpilot.cli.output import OutputRenderer

__all__ = ["main", "OutputRenderer"]
