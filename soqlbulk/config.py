"""
Configuration management for soqlbulk.

Loads config.yaml from the soqlbulk home directory:
- $SOQLBULK_HOME/config.yaml if SOQLBULK_HOME is set
- ~/.config/soqlbulk/config.yaml otherwise

An optional env_file is loaded with python-dotenv before any environment
lookups, so secrets like the session id can live outside config.yaml.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from soqlbulk.errors import ConfigurationError


SESSION_ID_ENV = "SOQLBULK_SESSION_ID"

REQUIRED_KEYS = ["instance_url", "project", "dataset"]


def get_soqlbulk_home() -> Path:
    """Return the soqlbulk home directory."""
    home = os.environ.get("SOQLBULK_HOME")
    if home:
        return Path(home)
    return Path("~/.config/soqlbulk").expanduser()


@dataclass
class SoqlBulkConfig:
    """Resolved soqlbulk configuration.

    Timing values are in seconds.
    """

    instance_url: str
    project: str
    dataset: str
    api_version: str = "48.0"
    session_id: Optional[str] = None
    poll_initial_delay: float = 1.0
    poll_interval: float = 5.0
    wait_interval: float = 10.0
    max_fetch_workers: int = 4
    request_timeout: float = 60.0
    log_level: str = "INFO"
    log_file: Optional[str] = None
    env_file: Optional[str] = None

    @property
    def rest_endpoint(self) -> str:
        """Bulk API async endpoint for this instance."""
        return f"{self.instance_url.rstrip('/')}/services/async/{self.api_version}"

    def resolve_session_id(self) -> str:
        """Return the session id from config or the environment.

        Raises:
            ConfigurationError: If no session id is available
        """
        session_id = self.session_id or os.environ.get(SESSION_ID_ENV)
        if not session_id:
            raise ConfigurationError(
                f"No session id configured. Set 'session_id' in config.yaml or {SESSION_ID_ENV}."
            )
        return session_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SoqlBulkConfig":
        missing = [k for k in REQUIRED_KEYS if not data.get(k)]
        if missing:
            raise ConfigurationError(f"Missing required config keys: {missing}")

        known = set(cls.__dataclass_fields__)
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {unknown}")

        config = cls(**data)
        config.api_version = str(config.api_version)
        if config.poll_interval <= 0 or config.wait_interval <= 0:
            raise ConfigurationError("poll_interval and wait_interval must be positive")
        if config.max_fetch_workers < 1:
            raise ConfigurationError("max_fetch_workers must be at least 1")
        return config


def load_config(config_path: Optional[Path] = None) -> SoqlBulkConfig:
    """
    Load soqlbulk configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to <home>/config.yaml

    Returns:
        SoqlBulkConfig instance

    Raises:
        FileNotFoundError: If the config file is missing
        ConfigurationError: If the config is empty, malformed or incomplete
    """
    if config_path is None:
        config_path = get_soqlbulk_home() / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"soqlbulk config.yaml not found at {config_path}. Run 'soqlbulk init' first."
        )

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax: {e}") from e

    if not data:
        raise ConfigurationError("Configuration file is empty")

    env_file = data.get("env_file")
    if env_file:
        load_dotenv(Path(env_file).expanduser())

    return SoqlBulkConfig.from_dict(data)
