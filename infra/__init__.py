# Infrastructure module - Logging and configuration

from .config import ConfigError, ConfigManager, get_config
from .logging import (
    get_logger, configure_logging, TurnContext,
    log_turn_end, get_turn_id, generate_turn_id
)

__all__ = [
    # Config
    "ConfigError",
    "ConfigManager",
    "get_config",
    # Logging
    "get_logger",
    "configure_logging",
    "TurnContext",
    "log_turn_end",
    "get_turn_id",
    "generate_turn_id",
]
