"""Configuration for the form test orchestrator."""

from .settings import FormPilotConfig, load_config

__all__ = ["FormPilotConfig", "load_config"]
