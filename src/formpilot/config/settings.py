"""Orchestrator configuration with environment variable loading."""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field
from dotenv import load_dotenv

from formpilot.models.browser_models import ContextOptions

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def _env_optional_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip().lower() in ("true", "1", "yes", "on")


class FormPilotConfig(BaseModel):
    """Configuration for sessions, step execution and the test-case store."""

    # Browser defaults
    browser: str = Field(
        default_factory=lambda: os.getenv("FORMPILOT_BROWSER", "chrome"),
        description="Default browser kind (chrome, firefox, webkit)",
    )
    headless: bool = Field(
        default_factory=lambda: _env_bool("FORMPILOT_HEADLESS", True),
        description="Launch browsers headless by default",
    )
    viewport_width: int = Field(
        default_factory=lambda: int(os.getenv("FORMPILOT_VIEWPORT_WIDTH", "1920")),
        gt=0,
        description="Viewport width for new contexts",
    )
    viewport_height: int = Field(
        default_factory=lambda: int(os.getenv("FORMPILOT_VIEWPORT_HEIGHT", "1080")),
        gt=0,
        description="Viewport height for new contexts",
    )
    user_agent: Optional[str] = Field(
        default_factory=lambda: os.getenv("FORMPILOT_USER_AGENT") or None,
        description="User agent override for new contexts",
    )
    is_mobile: bool = Field(
        default_factory=lambda: _env_bool("FORMPILOT_IS_MOBILE", False),
        description="Emulate a mobile device in new contexts",
    )

    # Step execution
    key_delay_ms: int = Field(
        default_factory=lambda: int(os.getenv("FORMPILOT_KEY_DELAY_MS", "50")),
        ge=0,
        description="Delay between key sequences of one shortcut",
    )
    settle_delay_ms: int = Field(
        default_factory=lambda: int(os.getenv("FORMPILOT_SETTLE_DELAY_MS", "200")),
        ge=0,
        description="Wait after a keyboard shortcut before reading page state",
    )
    mac_keys: Optional[bool] = Field(
        default_factory=lambda: _env_optional_bool("FORMPILOT_MAC_KEYS"),
        description="Force macOS modifier mapping (None = detect from platform)",
    )

    # Test-case store
    redis_url: str = Field(
        default_factory=lambda: os.getenv("FORMPILOT_REDIS_URL", "redis://localhost:6379/0"),
        description="Redis connection URL for the test-case store",
    )
    testcase_prefix: str = Field(
        default_factory=lambda: os.getenv("FORMPILOT_TESTCASE_PREFIX", "testcase"),
        description="Redis key prefix for test-case documents",
    )

    class Config:
        """Pydantic config."""

        extra = "forbid"

    def context_options(self) -> ContextOptions:
        """Build browser context options from this configuration."""
        return ContextOptions(
            width=self.viewport_width,
            height=self.viewport_height,
            user_agent=self.user_agent,
            is_mobile=self.is_mobile,
        )


def get_config_paths() -> List[Path]:
    """
    Get configuration file paths in priority order.

    Returns:
        List of paths, highest priority last
    """
    return [
        Path.home() / ".formpilot" / "config.yaml",
        Path.cwd() / ".formpilot" / "config.yaml",
    ]


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    # Only merge 'formpilot' section if present, otherwise use whole file
    return data.get("formpilot", data)


def load_config(config_path: Optional[str] = None) -> FormPilotConfig:
    """
    Load configuration.

    Configuration is merged in this order (later overrides earlier):
    1. Environment variables (FORMPILOT_*) and defaults
    2. Global config (~/.formpilot/config.yaml)
    3. Project config (./.formpilot/config.yaml)
    4. Explicit config_path if provided

    Unreadable global or project files are skipped with a warning; an explicit
    ``config_path`` must exist and parse.

    Args:
        config_path: Optional explicit config file path

    Returns:
        Merged FormPilotConfig instance

    Raises:
        FileNotFoundError: If ``config_path`` does not exist
        pydantic.ValidationError: If a file sets an unknown or invalid field
    """
    merged: Dict[str, Any] = {}

    for path in get_config_paths():
        if path.exists():
            try:
                merged.update(_read_yaml(path))
                logger.debug(f"Loaded config from {path}")
            except Exception as e:
                logger.warning(f"Failed to load config from {path}: {e}")

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        merged.update(_read_yaml(path))
        logger.debug(f"Loaded config from {path}")

    return FormPilotConfig(**merged)
