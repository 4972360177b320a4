"""API version management for Azure resource constructs.

Public API:
    ApiVersionManager: Registry of API versions per resource type, with
        lifecycle queries and migration analysis
    VersionConfig, ApiSchema, BreakingChange, ...: Version and schema models
"""

from .api_version_manager import BLOCKING_CHANGE_TYPES, ApiVersionManager
from .models import (
    ApiSchema,
    BreakingChange,
    BreakingChangeType,
    JsonValue,
    MigrationAnalysis,
    MigrationEffort,
    PropertyDefinition,
    PropertyTransformationType,
    PropertyType,
    PropertyValidation,
    ValidationResult,
    ValidationRule,
    ValidationRuleType,
    VersionChangeLog,
    VersionConfig,
    VersionConstraints,
    VersionLifecycle,
    VersionPhase,
    VersionSupportLevel,
    parse_date,
)

__all__ = [
    "BLOCKING_CHANGE_TYPES",
    "ApiSchema",
    "ApiVersionManager",
    "BreakingChange",
    "BreakingChangeType",
    "JsonValue",
    "MigrationAnalysis",
    "MigrationEffort",
    "PropertyDefinition",
    "PropertyTransformationType",
    "PropertyType",
    "PropertyValidation",
    "ValidationResult",
    "ValidationRule",
    "ValidationRuleType",
    "VersionChangeLog",
    "VersionConfig",
    "VersionConstraints",
    "VersionLifecycle",
    "VersionPhase",
    "VersionSupportLevel",
    "parse_date",
]
