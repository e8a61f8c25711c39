"""
================================================================================
Environment Configuration Loader
================================================================================

YAML-based, per-environment configuration with environment variable overrides.

Features:
    - One YAML file holding every environment (dev, qa, staging, ...)
    - One cached loader per environment name
    - Environment variable overrides, read once at load time
      (BASE_URL overrides base_url, AUTH_URL overrides auth_url, ...)
    - Dot notation path access and runtime overrides

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


# Default configuration file path
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config" / "environment.yaml"

DEFAULT_ENVIRONMENT = "dev"

# Top-level keys that may be overridden by an upper-cased environment variable
ENV_OVERRIDE_KEYS = (
    "base_url",
    "auth_url",
    "client_id",
    "client_secret",
    "resource_url",
    "email",
)


class ConfigError(Exception):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Configuration for a single environment.

    Configuration hierarchy (highest to lowest priority):
        1. Runtime overrides via set()
        2. Environment variables (BASE_URL, AUTH_URL, ...), read at load time
        3. The environment's section of the YAML file
        4. Default values passed to get()

    Usage:
        >>> config = ConfigLoader.load("dev")
        >>> config.get("base_url")
        'https://localhost:3000'

        >>> config.get("credentials.username")
        'demo_user'

        >>> config.get("timeout", 5.0)
        5.0
    """

    _cache: Dict[str, "ConfigLoader"] = {}

    def __init__(
        self,
        environment: str = DEFAULT_ENVIRONMENT,
        config_path: Optional[Path] = None,
    ) -> None:
        """
        Load configuration for one environment.

        Args:
            environment: Environment name (top-level key in the YAML file)
            config_path: Path to the YAML file. Falls back to CONFIG_PATH
                         env var, then DEFAULT_CONFIG_PATH.

        Raises:
            ConfigError: File missing, invalid YAML, or unknown environment
        """
        self.environment = environment
        self._config_path = Path(
            config_path or os.environ.get("CONFIG_PATH") or DEFAULT_CONFIG_PATH
        )
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def load(
        cls,
        environment: str = DEFAULT_ENVIRONMENT,
        config_path: Optional[Path] = None,
    ) -> "ConfigLoader":
        """
        Return the cached loader for an environment, loading it on first use.

        Args:
            environment: Environment name
            config_path: Optional YAML path, only used on first load

        Returns:
            ConfigLoader for the environment
        """
        if environment not in cls._cache:
            cls._cache[environment] = cls(environment, config_path)
        return cls._cache[environment]

    @classmethod
    def clear_cache(cls) -> None:
        """Drop every cached environment (for testing)."""
        cls._cache.clear()

    def _load_config(self) -> None:
        """Load this environment's section and apply env var overrides."""
        if not self._config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {self._config_path}"
            )

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                all_configs = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

        env_config = all_configs.get(self.environment) if isinstance(all_configs, dict) else None
        if not isinstance(env_config, dict):
            raise ConfigError(
                f'Environment "{self.environment}" not found in {self._config_path}'
            )

        self._config = copy.deepcopy(env_config)
        self._apply_env_overrides()
        logger.debug(
            f"Loaded configuration for '{self.environment}' from: {self._config_path}"
        )

    def _apply_env_overrides(self) -> None:
        for key in ENV_OVERRIDE_KEYS:
            env_value = os.environ.get(key.upper())
            if env_value is not None:
                self._config[key] = env_value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key: Dot-notation path (e.g., "credentials.username")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Override a configuration value at runtime.

        Intermediate sections are created as needed.
        """
        parts = key.split(".")
        section = self._config
        for part in parts[:-1]:
            if not isinstance(section.get(part), dict):
                section[part] = {}
            section = section[part]
        section[parts[-1]] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Returns:
            Section dictionary or empty dict if not found
        """
        value = self._config.get(section, {})
        return value if isinstance(value, dict) else {}

    def as_dict(self) -> Dict[str, Any]:
        """Return a copy of the resolved configuration."""
        return copy.deepcopy(self._config)

    def reload(self) -> None:
        """
        Reload configuration from file.

        Runtime overrides made with set() are discarded.
        """
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")


__all__ = [
    "ConfigLoader",
    "ConfigError",
    "DEFAULT_ENVIRONMENT",
]
