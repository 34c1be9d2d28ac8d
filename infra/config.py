"""
Configuration Manager
---------------------
Loads configuration from YAML with environment variable overrides.

Rules:
- Secrets never in code or in the YAML file
- API keys come from the environment only
- Values are read once; nothing reloads behind a running router
"""

from pathlib import Path
from typing import Any, Dict, Optional
import logging
import os

import yaml

ENV_PREFIX = "AAC"
DEFAULT_CONFIG_PATH = "config.yaml"

ENVIRONMENTS = ("development", "test", "production")


class ConfigError(ValueError):
    """A configuration value has the wrong shape."""


class ConfigManager:
    """
    Centralized configuration management.

    Supports dot notation ('router.fallback_model'). An environment
    variable AAC_ROUTER_FALLBACK_MODEL overrides the file value.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        self._config_path = Path(config_path or os.getenv(f"{ENV_PREFIX}_CONFIG", DEFAULT_CONFIG_PATH))
        self._config: Dict[str, Any] = {}
        self._logger = logging.getLogger("aac.infra.config")

        if data is not None:
            self._config = dict(data)
        else:
            self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file."""
        if self._config_path.exists():
            with open(self._config_path, "r") as f:
                self._config = yaml.safe_load(f) or {}
            self._logger.info(f"Loaded config from {self._config_path}")
        else:
            self._logger.debug(f"Config file not found: {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Environment variables override file config.
        """
        env_key = f"{ENV_PREFIX}_{key.upper().replace('.', '_')}"
        env_value = os.getenv(env_key)
        if env_value is not None:
            return env_value

        parts = key.split(".")
        value: Any = self._config

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def get_int(self, key: str, default: int) -> int:
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            self._logger.warning(f"Ignoring non-integer config value {key}={value!r}")
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value (runtime only, not persisted)."""
        parts = key.split(".")
        config = self._config

        for part in parts[:-1]:
            if part not in config:
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def get_mapping(self, key: str) -> Dict[str, Any]:
        """
        A nested table such as 'router.pricing'; empty when unset.

        Raises:
            ConfigError: the value is not a mapping (for example a plain
                string from an environment override)
        """
        value = self.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(f"{key} must be a mapping, got {type(value).__name__} {value!r}")
        return value

    @property
    def environment(self) -> str:
        env = str(self.get("environment", "development")).lower()
        if env not in ENVIRONMENTS:
            self._logger.warning(f"Unknown environment {env!r}, using development")
            return "development"
        return env

    @property
    def is_test(self) -> bool:
        return self.environment == "test"


def get_api_key(name: str = "ANTHROPIC_API_KEY") -> Optional[str]:
    """Read a provider API key from the environment."""
    return os.getenv(name) or None


_config: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Process configuration, loaded on first use."""
    global _config
    if _config is None:
        _config = ConfigManager()
    return _config
