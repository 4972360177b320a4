"""
Configuration management for API version management.

Provides type-safe configuration loading and validation with support
for multiple configuration sources and priority-based merging.
"""

from .loader import ConfigError, ConfigLoader, load_config
from .models import (
    DEFAULT_FRAMEWORK_PROPERTIES,
    EffortThresholds,
    MigrationSettings,
    ValidationSettings,
    VersioningSettings,
)

__all__ = [
    "DEFAULT_FRAMEWORK_PROPERTIES",
    "ConfigError",
    "ConfigLoader",
    "EffortThresholds",
    "MigrationSettings",
    "ValidationSettings",
    "VersioningSettings",
    "load_config",
]
