"""
Configuration loader for API version management.

Handles loading from multiple sources with proper priority:
Overrides > Environment Variables > Config File > Defaults
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .models import VersioningSettings


class ConfigError(ConfigurationError):
    """Configuration loading or validation error."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        super().__init__(message, **kwargs)


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Priority order (highest to lowest):
    1. Explicit overrides (passed directly to methods)
    2. Environment variables (AZC_*)
    3. Configuration file
    4. Default values
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "azure-constructs"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "versioning.yaml"
    ENV_PREFIX = "AZC_"
    CONFIG_PATH_ENV = "AZC_CONFIG_PATH"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        self.config_path = config_path or self._get_config_path_from_env()

    @classmethod
    def _get_config_path_from_env(cls) -> Path:
        """Get configuration path from environment variable or default."""
        env_path = os.environ.get(cls.CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path).expanduser()
        return cls.DEFAULT_CONFIG_FILE

    def load(self) -> VersioningSettings:
        """
        Load configuration from all sources and merge.

        Returns:
            Validated VersioningSettings object

        Raises:
            ConfigError: If configuration is invalid
        """
        try:
            config_dict: dict[str, Any] = {}

            if self.config_path.exists():
                file_config = self._load_file(self.config_path)
                config_dict = self._deep_merge(config_dict, file_config)

            env_config = self._load_from_env()
            config_dict = self._deep_merge(config_dict, env_config)

            return VersioningSettings.model_validate(config_dict)

        except ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e}", cause=e) from e

    def _load_file(self, path: Path) -> dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Configuration dictionary

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", cause=e) from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}", cause=e) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def _load_from_env(self) -> dict[str, Any]:
        """
        Load configuration from environment variables.

        Environment variable format:
        - AZC_LOG_LEVEL
        - AZC_VALIDATION__ENABLED
        - AZC_MIGRATION__EFFORT__HIGH_TOTAL

        Double underscore (__) separates nested keys.

        Returns:
            Configuration dictionary
        """
        config: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX) or key == self.CONFIG_PATH_ENV:
                continue

            config_key = key[len(self.ENV_PREFIX) :].lower()
            parts = config_key.split("__")

            current = config
            for part in parts[:-1]:
                if part not in current:
                    current[part] = {}
                current = current[part]

            current[parts[-1]] = self._convert_env_value(value)

        return config

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        Args:
            value: Environment variable value as string

        Returns:
            Converted value (bool, int, float, or str)
        """
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(
        self, base: dict[str, Any], update: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            update: Dictionary with updates

        Returns:
            Merged dictionary (base is not modified)
        """
        result = base.copy()

        for key, value in update.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def merge_overrides(
        self,
        config: VersioningSettings,
        overrides: dict[str, Any],
    ) -> VersioningSettings:
        """
        Merge explicit overrides (e.g. CLI options) into configuration.

        Args:
            config: Base configuration
            overrides: Values to merge (None values are ignored)

        Returns:
            New VersioningSettings with overrides applied
        """
        filtered = self._filter_none_values(overrides)
        if not filtered:
            return config

        config_dict = self._deep_merge(config.model_dump(), filtered)
        try:
            return VersioningSettings.model_validate(config_dict)
        except ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e}", cause=e) from e

    def _filter_none_values(self, data: dict[str, Any]) -> dict[str, Any]:
        """Recursively filter out None values from a dictionary."""
        result = {}
        for key, value in data.items():
            if value is None:
                continue
            elif isinstance(value, dict):
                filtered = self._filter_none_values(value)
                if filtered:
                    result[key] = filtered
            else:
                result[key] = value
        return result


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> VersioningSettings:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file
        overrides: Values to merge with highest priority

    Returns:
        Validated VersioningSettings object

    Raises:
        ConfigError: If configuration is invalid
    """
    loader = ConfigLoader(config_path)
    config = loader.load()

    if overrides:
        config = loader.merge_overrides(config, overrides)

    return config
