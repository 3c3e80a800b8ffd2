"""
Tests for configuration system.
"""

import os

import pytest
from pydantic import ValidationError

from fare_funnel.config import (
    BrowserSettings,
    ConfigLoader,
    DetectionSettings,
    SelectionSettings,
    Settings,
    load_config,
)
from fare_funnel.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run each test in an empty directory with no FARE_FUNNEL__ env vars."""
    monkeypatch.chdir(tmp_path)
    for name in [n for n in os.environ if n.upper().startswith("FARE_FUNNEL__")]:
        monkeypatch.delenv(name)


class TestSettings:
    """Test the Settings classes."""

    def test_default_settings(self):
        """Test default settings are created correctly."""
        settings = Settings()

        assert settings.browser.browser_types == ["chromium", "webkit"]
        assert settings.browser.headless is True
        assert settings.detection.default_budget_s == 90.0
        assert settings.detection.poll_interval_ms == 250
        assert settings.detection.overlay_primary_s == 8.0
        assert settings.detection.overlay_priority_s == 2.0
        assert settings.detection.overlay_grace_s == 1.5
        assert settings.detection.overlay_secondary_s == 3.0
        assert settings.selection.default_cabin == "Economy"
        assert settings.run_timeout_s == 120.0

    def test_override_settings(self):
        """Test overriding settings."""
        settings = Settings(
            browser=BrowserSettings(browser_types=["webkit", "firefox"], headless=False),
            selection=SelectionSettings(default_cabin="Premium Economy"),
        )

        assert settings.browser.browser_types == ["webkit", "firefox"]
        assert settings.browser.headless is False
        assert settings.selection.default_cabin == "Premium Economy"

    def test_merge_with_overrides(self):
        """Test merging settings with overrides."""
        settings = Settings()
        new_settings = settings.merge_with({
            "browser": {"headless": False},
            "detection": {"retry_attempts": 3},
        })

        assert new_settings.browser.headless is False
        assert new_settings.detection.retry_attempts == 3
        # Other settings should remain default
        assert new_settings.browser.browser_types == ["chromium", "webkit"]
        assert settings.browser.headless is True

    def test_browser_settings_validation(self):
        """Test validation of browser settings."""
        assert BrowserSettings(timeout_ms=5000).timeout_ms == 5000

        with pytest.raises(ValidationError):
            BrowserSettings(timeout_ms=100)
        with pytest.raises(ValidationError):
            BrowserSettings(browser_types=["netscape"])
        with pytest.raises(ValidationError):
            BrowserSettings(browser_types=[])

    def test_detection_settings_validation(self):
        """Budgets must be positive."""
        with pytest.raises(ValidationError):
            DetectionSettings(default_budget_s=0)
        with pytest.raises(ValidationError):
            DetectionSettings(overlay_primary_s=-1)

    def test_unknown_cabin(self):
        """Only known cabins are accepted."""
        with pytest.raises(ValidationError):
            SelectionSettings(default_cabin="First")

    def test_env_vars(self, monkeypatch):
        """Nested settings are read from FARE_FUNNEL__ env vars."""
        monkeypatch.setenv("FARE_FUNNEL__DETECTION__DEFAULT_BUDGET_S", "45")
        monkeypatch.setenv("FARE_FUNNEL__BROWSER__HEADLESS", "false")

        settings = Settings()

        assert settings.detection.default_budget_s == 45.0
        assert settings.browser.headless is False


class TestConfigLoader:
    """Test YAML and .env loading."""

    def test_no_config_file(self):
        """Without a config file the defaults apply."""
        assert ConfigLoader().find_config_file() is None
        assert load_config().detection.default_budget_s == 90.0

    def test_yaml_file(self, tmp_path):
        """Values in config.yaml are loaded."""
        (tmp_path / "config.yaml").write_text(
            "detection:\n  default_budget_s: 60\nselection:\n  default_cabin: Business Class\n"
        )

        settings = load_config()

        assert settings.detection.default_budget_s == 60.0
        assert settings.selection.default_cabin == "Business Class"

    def test_explicit_path(self, tmp_path):
        """An explicit config path is used."""
        path = tmp_path / "custom.yaml"
        path.write_text("run_timeout_s: 300\n")

        assert load_config(config_path=path).run_timeout_s == 300.0

    def test_missing_explicit_path(self, tmp_path):
        """A missing explicit config file is an error."""
        with pytest.raises(ConfigurationError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Malformed YAML is a ConfigurationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("detection: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(config_path=path)

    def test_yaml_must_be_mapping(self, tmp_path):
        """A YAML list at the top level is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- chromium\n- webkit\n")

        with pytest.raises(ConfigurationError):
            load_config(config_path=path)

    def test_empty_yaml(self, tmp_path):
        """An empty file means defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(config_path=path).run_timeout_s == 120.0

    def test_overrides_win(self, tmp_path):
        """Keyword overrides beat the config file."""
        (tmp_path / "config.yaml").write_text("browser:\n  headless: true\n")

        settings = load_config(browser={"headless": False})

        assert settings.browser.headless is False

    def test_env_file(self, tmp_path):
        """A .env file feeds FARE_FUNNEL__ variables."""
        (tmp_path / ".env").write_text("FARE_FUNNEL__SELECTION__SCOPE_BUDGET_S=12\n")

        try:
            settings = load_config()
        finally:
            # load_dotenv writes straight into os.environ
            os.environ.pop("FARE_FUNNEL__SELECTION__SCOPE_BUDGET_S", None)

        assert settings.selection.scope_budget_s == 12.0

