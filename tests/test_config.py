"""Tests for settings loading."""

from pathlib import Path

import pytest

from pydoris.core.config import (
    LoggingConfig,
    ReaderConfig,
    Settings,
    expand_env_vars,
    load_settings,
)
from pydoris.core.exceptions import ConfigurationError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run without any settings file from the working or home directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("PYDORIS_READER__ENCODING", "PYDORIS_READER__SKIP_BLANK_LINES",
                 "PYDORIS_LOGGING__LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


class TestDefaults:
    """Tests for default settings."""

    def test_reader_defaults(self):
        config = ReaderConfig()
        assert config.encoding == "latin-1"
        assert config.skip_blank_lines is True
        assert config.warn_unknown_beacons is True

    def test_logging_defaults(self):
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.log_to_file is False
        assert config.log_dir == Path("logs")

    def test_load_without_file(self, isolated):
        """Defaults are used when no settings file is found."""
        settings = load_settings()
        assert isinstance(settings, Settings)
        assert settings.reader.encoding == "latin-1"


class TestValidation:
    """Tests for value validation."""

    def test_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            LoggingConfig(level="LOUD")

    def test_invalid_encoding(self):
        with pytest.raises(ValueError, match="Unknown text encoding"):
            ReaderConfig(encoding="no-such-codec")


class TestLoadSettings:
    """Tests for YAML settings files."""

    def test_load_yaml(self, isolated):
        path = isolated / "settings.yaml"
        path.write_text(
            "reader:\n"
            "  encoding: ascii\n"
            "  skip_blank_lines: false\n"
            "logging:\n"
            "  level: info\n"
            "  log_dir: /var/log/pydoris\n"
        )
        settings = load_settings(path)
        assert settings.reader.encoding == "ascii"
        assert settings.reader.skip_blank_lines is False
        assert settings.logging.level == "INFO"
        assert settings.logging.log_dir == Path("/var/log/pydoris")

    def test_default_location(self, isolated):
        """config/pydoris.yaml in the working directory is picked up."""
        (isolated / "config").mkdir()
        (isolated / "config" / "pydoris.yaml").write_text("reader:\n  encoding: utf-8\n")
        assert load_settings().reader.encoding == "utf-8"

    def test_env_var_expansion(self, isolated, monkeypatch):
        monkeypatch.setenv("DORIS_LOGS", "/data/doris/logs")
        path = isolated / "settings.yaml"
        path.write_text("logging:\n  log_dir: ${DORIS_LOGS}/reader\n")
        assert load_settings(path).logging.log_dir == Path("/data/doris/logs/reader")

    def test_environment_override(self, isolated, monkeypatch):
        """Nested settings can be set from PYDORIS_ variables."""
        monkeypatch.setenv("PYDORIS_READER__SKIP_BLANK_LINES", "false")
        assert load_settings().reader.skip_blank_lines is False

    def test_missing_explicit_file(self, isolated):
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_settings(isolated / "nope.yaml")

    def test_invalid_content(self, isolated):
        path = isolated / "settings.yaml"
        path.write_text("reader:\n  encoding: no-such-codec\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_settings(path)

    def test_empty_file(self, isolated):
        path = isolated / "settings.yaml"
        path.write_text("")
        assert load_settings(path).logging.level == "WARNING"


class TestExpandEnvVars:
    """Tests for recursive environment expansion."""

    def test_nested(self, monkeypatch):
        monkeypatch.setenv("DORIS_ROOT", "/data")
        value = {"a": "${DORIS_ROOT}/x", "b": ["$DORIS_ROOT", 3], "c": True}
        assert expand_env_vars(value) == {"a": "/data/x", "b": ["/data", 3], "c": True}


class TestSettingsModelConfig:
    """Tests for the environment settings of Settings."""

    def test_environment_prefix(self):
        assert Settings.model_config["env_prefix"] == "PYDORIS_"
        assert Settings.model_config["env_nested_delimiter"] == "__"

    def test_no_class_based_config(self):
        """Settings are declared with model_config, not a nested Config class."""
        assert "Config" not in vars(Settings)

    def test_environment_level(self, isolated, monkeypatch):
        monkeypatch.setenv("PYDORIS_LOGGING__LEVEL", "debug")
        assert load_settings().logging.level == "DEBUG"
