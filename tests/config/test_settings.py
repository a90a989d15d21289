"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from formpilot.config.settings import FormPilotConfig, load_config
from formpilot.models.browser_models import ContextOptions


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files out of these tests."""
    monkeypatch.setattr("formpilot.config.settings.get_config_paths", lambda: [])
    for name in (
        "FORMPILOT_BROWSER",
        "FORMPILOT_HEADLESS",
        "FORMPILOT_VIEWPORT_WIDTH",
        "FORMPILOT_IS_MOBILE",
        "FORMPILOT_KEY_DELAY_MS",
        "FORMPILOT_MAC_KEYS",
        "FORMPILOT_REDIS_URL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestFormPilotConfig:
    def test_defaults(self):
        config = FormPilotConfig()

        assert config.browser == "chrome"
        assert config.headless is True
        assert config.key_delay_ms == 50
        assert config.settle_delay_ms == 200
        assert config.mac_keys is None
        assert config.redis_url == "redis://localhost:6379/0"
        assert config.testcase_prefix == "testcase"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FORMPILOT_BROWSER", "firefox")
        monkeypatch.setenv("FORMPILOT_HEADLESS", "false")
        monkeypatch.setenv("FORMPILOT_VIEWPORT_WIDTH", "1280")
        monkeypatch.setenv("FORMPILOT_MAC_KEYS", "yes")

        config = FormPilotConfig()

        assert config.browser == "firefox"
        assert config.headless is False
        assert config.viewport_width == 1280
        assert config.mac_keys is True

    def test_context_options(self):
        config = FormPilotConfig(viewport_width=1024, viewport_height=768, user_agent="FormPilot")

        assert config.context_options() == ContextOptions(
            width=1024, height=768, user_agent="FormPilot"
        )

    def test_mobile_emulation(self, monkeypatch):
        monkeypatch.setenv("FORMPILOT_IS_MOBILE", "true")

        config = FormPilotConfig(viewport_width=390, viewport_height=844)

        assert config.is_mobile is True
        assert config.context_options() == ContextOptions(width=390, height=844, is_mobile=True)
        assert config.context_options().to_playwright()["is_mobile"] is True

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            FormPilotConfig(browsr="chrome")


class TestLoadConfig:
    def test_without_files(self):
        assert load_config().browser == "chrome"

    def test_explicit_file_with_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("formpilot:\n  browser: webkit\n  key_delay_ms: 0\n")

        config = load_config(str(path))

        assert config.browser == "webkit"
        assert config.key_delay_ms == 0

    def test_explicit_file_without_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("headless: false\n")

        assert load_config(str(path)).headless is False

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_unreadable_project_file_skipped(self, tmp_path, monkeypatch):
        broken = tmp_path / "config.yaml"
        broken.write_text("- not\n- a mapping\n")
        monkeypatch.setattr("formpilot.config.settings.get_config_paths", lambda: [broken])

        assert load_config().browser == "chrome"
