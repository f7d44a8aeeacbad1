"""
script_importer configuration classes.

Provides dataclass-based configuration loaded from YAML with environment
variable overrides. The importer itself never reads the environment; the
host builds a config here and hands it to ScriptImporter.from_config().
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@dataclass
class StagingConfig:
    """Where fetched artifacts are persisted."""

    directory: str = ""
    ensure_directories: bool = False
    install_exit_hook: bool = False

    def __post_init__(self):
        self.directory = os.getenv("SCRIPT_IMPORTER_STAGING_DIR", self.directory)
        self.ensure_directories = bool(self.ensure_directories)
        self.install_exit_hook = bool(self.install_exit_hook)


@dataclass
class HttpConfig:
    """Transport settings for talking to the packager."""

    timeout_seconds: float = 60
    max_connections: int = 10

    def __post_init__(self):
        """Ensure proper types from YAML/env vars."""
        self.timeout_seconds = float(
            os.getenv("SCRIPT_IMPORTER_HTTP_TIMEOUT", self.timeout_seconds)
        )
        self.max_connections = int(self.max_connections)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    log_dir: str = "logs"
    json_format: bool = True
    strip_url_queries: bool = False


@dataclass
class ImporterConfig:
    """Root configuration for script_importer."""

    staging: StagingConfig = field(default_factory=StagingConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.staging.directory:
            errors.append("staging.directory is required")
        if self.http.timeout_seconds <= 0:
            errors.append("http.timeout_seconds must be > 0")
        if self.http.max_connections < 1:
            errors.append("http.max_connections must be >= 1")
        if self.logging.level.upper() not in (
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ):
            errors.append(f"logging.level is not a valid level: '{self.logging.level}'")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


def _dict_to_config(data: Dict[str, Any]) -> ImporterConfig:
    """Convert dict to ImporterConfig with nested dataclasses."""
    return ImporterConfig(
        staging=StagingConfig(**data.get("staging", {})),
        http=HttpConfig(**data.get("http", {})),
        logging=LoggingConfig(**data.get("logging", {})),
    )


def load_config(
    config_path: Path,
    overrides: Optional[Dict[str, Any]] = None,
) -> ImporterConfig:
    """
    Load configuration from YAML file with optional overrides.

    A missing file yields defaults plus overrides.

    Args:
        config_path: Path to YAML config file
        overrides: Dict of overrides to apply after loading

    Returns:
        ImporterConfig instance

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path.exists():
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    if overrides:
        data = _deep_merge(data, overrides)

    return _dict_to_config(data)


def load_config_from_dict(data: Dict[str, Any]) -> ImporterConfig:
    """
    Load configuration from a dictionary.

    Useful for testing or programmatic config.
    """
    return _dict_to_config(data)
