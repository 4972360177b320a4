"""
Configuration models for API version management.

Provides type-safe configuration using pydantic with validation,
defaults, and schema enforcement.
"""

from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_FRAMEWORK_PROPERTIES = [
    "api_version",
    "enable_migration_analysis",
    "enable_validation",
    "enable_transformation",
    "ignore_changes",
    "resource_group_id",
    "parent_id",
    "monitoring",
    "virtual_network_id",
]


class EffortThresholds(BaseModel):
    """Breaking-change count thresholds used to estimate migration effort.

    A count strictly greater than a threshold triggers the effort level.
    """

    breaking_removed: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="PROPERTY_REMOVED count above which effort is BREAKING",
    )
    breaking_type_changed: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="PROPERTY_TYPE_CHANGED count above which effort is BREAKING",
    )
    high_removed: Annotated[int, Field(ge=0)] = Field(
        default=1,
        description="PROPERTY_REMOVED count above which effort is HIGH",
    )
    high_type_changed: Annotated[int, Field(ge=0)] = Field(
        default=1,
        description="PROPERTY_TYPE_CHANGED count above which effort is HIGH",
    )
    high_total: Annotated[int, Field(ge=0)] = Field(
        default=5,
        description="Total breaking changes above which effort is HIGH",
    )
    medium_total: Annotated[int, Field(ge=0)] = Field(
        default=2,
        description="Total breaking changes above which effort is MEDIUM",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class ValidationSettings(BaseModel):
    """Property validation settings."""

    enabled: bool = Field(
        default=True,
        description="Validate resource properties against the version schema",
    )
    framework_properties: List[str] = Field(
        default_factory=lambda: list(DEFAULT_FRAMEWORK_PROPERTIES),
        description="Property names consumed by the framework, never validated",
    )

    model_config = ConfigDict(extra="forbid")


class MigrationSettings(BaseModel):
    """Migration analysis settings."""

    analysis_enabled: bool = Field(
        default=True,
        description="Analyze migration to latest when a deprecated version is used",
    )
    effort: EffortThresholds = Field(
        default_factory=EffortThresholds,
        description="Effort estimation thresholds",
    )

    model_config = ConfigDict(extra="forbid")


class VersioningSettings(BaseModel):
    """Root configuration for the version management framework."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    validation: ValidationSettings = Field(
        default_factory=ValidationSettings,
        description="Property validation settings",
    )
    migration: MigrationSettings = Field(
        default_factory=MigrationSettings,
        description="Migration analysis settings",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level
