"""Client configuration loaded from YAML and the environment."""
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from fitbody.data_layer.exceptions import ConfigError

DEFAULT_API_URL = "http://localhost:1200"

ENV_API_URL = "FITBODY_API_URL"
ENV_TIMEOUT = "FITBODY_TIMEOUT"
ENV_STORAGE_DIR = "FITBODY_STORAGE_DIR"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by the HTTP adapter and the stores.

    Attributes:
        api_url: Backend base URL, also used to build media URLs
        timeout_seconds: Per-request transport timeout
        storage_dir: Directory for durable key-value storage
        page_size: Default page size for list fetches
        log_level: Logging level name for the CLI
    """

    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 10.0
    storage_dir: str = ".fitbody"
    page_size: int = 10
    log_level: str = "WARNING"

    def __post_init__(self):
        if not self.api_url or not self.api_url.strip():
            raise ConfigError("api_url cannot be empty", key="api_url")
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigError(
                f"api_url must start with http:// or https://, got '{self.api_url}'", key="api_url"
            )
        if self.timeout_seconds <= 0:
            raise ConfigError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}",
                key="timeout_seconds",
            )
        if self.page_size <= 0:
            raise ConfigError(f"page_size must be positive, got {self.page_size}", key="page_size")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'",
                key="log_level",
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Build a config from a plain mapping, ignoring unknown keys.

        Raises:
            ConfigError: If a value has the wrong type
        """
        values: Dict[str, Any] = {}
        try:
            if "api_url" in data:
                if data["api_url"] is None:
                    raise ConfigError("api_url cannot be empty", key="api_url")
                values["api_url"] = str(data["api_url"]).rstrip("/")
            if "timeout_seconds" in data:
                values["timeout_seconds"] = float(data["timeout_seconds"])
            if "storage_dir" in data:
                values["storage_dir"] = str(data["storage_dir"])
            if "page_size" in data:
                values["page_size"] = int(data["page_size"])
            if "log_level" in data:
                values["log_level"] = str(data["log_level"]).upper()
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e
        return cls(**values)

    @classmethod
    def from_env(cls, base: Optional["ClientConfig"] = None) -> "ClientConfig":
        """Apply ``FITBODY_*`` environment overrides on top of *base*.

        Args:
            base: Starting config (defaults to built-in defaults)

        Returns:
            ClientConfig with overrides applied

        Raises:
            ConfigError: If an override cannot be parsed
        """
        config = base or cls()
        overrides: Dict[str, Any] = {}

        api_url = os.environ.get(ENV_API_URL)
        if api_url:
            overrides["api_url"] = api_url.rstrip("/")

        timeout = os.environ.get(ENV_TIMEOUT)
        if timeout:
            try:
                overrides["timeout_seconds"] = float(timeout)
            except ValueError as e:
                raise ConfigError(
                    f"Environment variable {ENV_TIMEOUT} must be a number, got '{timeout}'",
                    key="timeout_seconds",
                ) from e

        storage_dir = os.environ.get(ENV_STORAGE_DIR)
        if storage_dir:
            overrides["storage_dir"] = storage_dir

        return replace(config, **overrides) if overrides else config


class ClientConfigLoader:
    """Loader for client configuration from YAML."""

    def __init__(self, yaml_path: str):
        """Initialize loader.

        Args:
            yaml_path: Path to YAML configuration file
        """
        self.yaml_path = Path(yaml_path)

    def load(self) -> ClientConfig:
        """Load configuration from the YAML file, then apply environment overrides.

        The file may nest settings under a top-level ``client`` key or keep
        them at the top level.

        Returns:
            ClientConfig object

        Raises:
            ConfigError: If the file is missing, unparsable, or has bad values
        """
        if not self.yaml_path.exists():
            raise ConfigError(f"Configuration file not found: {self.yaml_path}")

        try:
            with open(self.yaml_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {self.yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{self.yaml_path} must contain a mapping")

        section = data.get("client", data)
        if not isinstance(section, dict):
            raise ConfigError("'client' section must be a mapping", key="client")

        return ClientConfig.from_env(ClientConfig.from_dict(section))


def load_config(path: Optional[str] = None) -> ClientConfig:
    """Load config from *path* if given, otherwise defaults plus environment."""
    if path:
        return ClientConfigLoader(path).load()
    return ClientConfig.from_env()
