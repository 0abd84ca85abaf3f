"""
Configuration Manager
---------------------
Application-side wiring for the API client.

Rules:
- Credentials never in code or config files
- Credentials come from the environment only
- The client itself never reads configuration implicitly
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import os

import yaml

from .logging import get_logger


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass
class SecretConfig:
    """Configuration for a secret."""
    name: str
    env_var: str
    required: bool = True
    description: str = ""


class SecretManager:
    """
    Loads API credentials from the environment.

    Values are never logged; only their names are.
    """

    REQUIRED_SECRETS: List[SecretConfig] = [
        SecretConfig("client_id", "CLARIFAI_CLIENT_ID",
                     description="OAuth2 client identifier"),
        SecretConfig("client_secret", "CLARIFAI_CLIENT_SECRET",
                     description="OAuth2 client secret"),
    ]

    def __init__(self):
        self._secrets: Dict[str, str] = {}
        self._logger = get_logger("infra.secrets")
        self._load_secrets()

    def _load_secrets(self) -> None:
        """Load secrets from environment."""
        for secret in self.REQUIRED_SECRETS:
            value = os.getenv(secret.env_var)
            if value:
                self._secrets[secret.name] = value
                self._logger.debug(f"Loaded secret: {secret.name}")
            elif secret.required:
                self._logger.warning(f"Missing required secret: {secret.env_var}")

    def get(self, name: str) -> Optional[str]:
        """Get a secret by name."""
        return self._secrets.get(name)

    def has(self, name: str) -> bool:
        return name in self._secrets

    def missing(self) -> List[str]:
        """Environment variables of required secrets that are not set."""
        return [
            secret.env_var for secret in self.REQUIRED_SECRETS
            if secret.required and not self.has(secret.name)
        ]

    def credentials(self) -> Tuple[str, str]:
        """Return (client_id, client_secret) or raise ConfigError."""
        missing = self.missing()
        if missing:
            raise ConfigError(f"Missing credentials: {', '.join(missing)}")
        return self._secrets["client_id"], self._secrets["client_secret"]


class ConfigManager:
    """
    Centralized configuration management.
    Loads configuration from YAML with environment variable overrides.
    """

    ENV_PREFIX = "CLARIFAI_"

    def __init__(self, config_path: str = "clarifai.yaml"):
        self._config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._logger = get_logger("infra.config")

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file."""
        if not self._config_path.exists():
            self._logger.debug(f"Config file not found: {self._config_path}")
            self._config = {}
            return

        with open(self._config_path, "r") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self._config_path}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigError(f"Top level of {self._config_path} must be a mapping")

        self._config = loaded
        self._logger.info(f"Loaded config from {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Supports dot notation: 'section.key'
        Environment variables override file config.
        """
        env_key = f"{self.ENV_PREFIX}{key.upper().replace('.', '_')}"
        env_value = os.getenv(env_key)
        if env_value is not None:
            return env_value

        value = self._config
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (runtime only, not persisted)."""
        parts = key.split('.')
        config = self._config

        for part in parts[:-1]:
            config = config.setdefault(part, {})

        config[parts[-1]] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire configuration section."""
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()


def load_client_config(manager: ConfigManager):
    """Build a ClientConfig from the 'client' section of the configuration."""
    from api.client import ClientConfig

    defaults = ClientConfig()
    timeout = manager.get("client.timeout_seconds", defaults.timeout_seconds)

    try:
        timeout = float(timeout) if timeout not in (None, "") else None
    except (TypeError, ValueError) as e:
        raise ConfigError(f"client.timeout_seconds must be a number, got {timeout!r}") from e

    return ClientConfig(
        api_root=str(manager.get("client.api_root", defaults.api_root)).rstrip("/"),
        version=str(manager.get("client.version", defaults.version)),
        timeout_seconds=timeout,
        user_agent=str(manager.get("client.user_agent", defaults.user_agent)),
    )


def create_client_from_env(config_path: Optional[str] = None):
    """Create a ClarifaiClient from environment credentials and optional YAML config."""
    from api.client import ClarifaiClient

    secrets = SecretManager()
    client_id, client_secret = secrets.credentials()
    manager = ConfigManager(config_path or "clarifai.yaml")

    return ClarifaiClient(client_id, client_secret, config=load_client_config(manager))
