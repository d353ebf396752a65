"""
Configuration management for PyDORIS.

Uses Pydantic for validation and supports YAML configuration files
with environment variable expansion.
"""

from __future__ import annotations

import codecs
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pydoris.core.exceptions import ConfigurationError


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in strings."""
    if isinstance(value, str):
        return os.path.expandvars(value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(v) for v in value]
    return value


class ReaderConfig(BaseModel):
    """DORIS RINEX reader configuration."""

    encoding: str = "latin-1"
    skip_blank_lines: bool = True
    warn_unknown_beacons: bool = True

    @field_validator("encoding")
    @classmethod
    def check_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unknown text encoding: {value}") from e
        return value


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    log_dir: Path = Field(default=Path("logs"))
    log_to_file: bool = False
    log_to_console: bool = True
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return level


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_prefix="PYDORIS_",
        env_nested_delimiter="__",
    )

    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _search_paths(config_path: Path | str | None) -> list[Path]:
    if config_path:
        return [Path(config_path)]
    return [
        Path("config/pydoris.local.yaml"),
        Path("config/pydoris.yaml"),
        Path.home() / ".pydoris" / "settings.yaml",
    ]


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML file.

    Args:
        config_path: Path to YAML configuration file.
                    If None, tries default locations.

    Returns:
        Settings instance.

    Raises:
        ConfigurationError: If an explicit file is missing or the content
            does not validate.
    """
    if config_path and not Path(config_path).exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    config_data: dict[str, Any] = {}

    for path in _search_paths(config_path):
        if path.exists():
            with open(path) as f:
                raw_data = yaml.safe_load(f)
                if raw_data:
                    config_data = expand_env_vars(raw_data)
            break

    try:
        return Settings(**config_data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
