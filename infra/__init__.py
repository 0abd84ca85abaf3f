# Infrastructure module - Logging and configuration
# The API client never reads config on its own; applications wire it here

from .logging import (
    get_logger, configure_logging, reset_logging,
    CallContext, get_call_id, generate_call_id
)
from .config import (
    ConfigManager, SecretManager, SecretConfig, ConfigError,
    load_client_config, create_client_from_env
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "reset_logging",
    "CallContext",
    "get_call_id",
    "generate_call_id",
    # Config
    "ConfigManager",
    "SecretManager",
    "SecretConfig",
    "ConfigError",
    "load_client_config",
    "create_client_from_env",
]
