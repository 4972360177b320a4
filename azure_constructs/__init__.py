"""Azure Constructs: API version management for AzAPI resource constructs.

The package is organised in layers:

- ``version_manager``: the version registry and migration analysis
- ``azapi``: per-resource version resolution, schema validation and the
  ``AzapiResource`` base class for concrete constructs
- ``catalog``: version sets declared in YAML
- ``config``: framework settings (defaults, YAML file, environment)
"""

from .azapi import AzapiResource, ResourceSchemaValidator, ResourceVersionManager
from .exceptions import AzureConstructsError
from .version_manager import (
    ApiSchema,
    ApiVersionManager,
    BreakingChange,
    BreakingChangeType,
    MigrationAnalysis,
    MigrationEffort,
    PropertyDefinition,
    PropertyType,
    VersionConfig,
    VersionSupportLevel,
)

__version__ = "0.1.0"

__all__ = [
    "ApiSchema",
    "ApiVersionManager",
    "AzapiResource",
    "AzureConstructsError",
    "BreakingChange",
    "BreakingChangeType",
    "MigrationAnalysis",
    "MigrationEffort",
    "PropertyDefinition",
    "PropertyType",
    "ResourceSchemaValidator",
    "ResourceVersionManager",
    "VersionConfig",
    "VersionSupportLevel",
    "__version__",
]
