"""Versioned AzAPI resource framework.

Public API:
    AzapiResource: Base class for versioned resource constructs
    ResourceVersionManager: Per-resource-type version resolution
    ResourceSchemaValidator: Property validation against a resolved schema
    SchemaMapper: Schema-driven validation, defaults and transformation
"""

from .azapi_resource import DEFAULT_SUBSCRIPTION_PARENT_ID, AzapiResource
from .resource_schema_validator import ResourceSchemaValidator
from .resource_version_manager import ResourceVersionManager
from .schema_mapper import SchemaMapper, describe_type

__all__ = [
    "DEFAULT_SUBSCRIPTION_PARENT_ID",
    "AzapiResource",
    "ResourceSchemaValidator",
    "ResourceVersionManager",
    "SchemaMapper",
    "describe_type",
]
