"""
Version catalogs: API version sets declared as data.

A catalog is a YAML (or already parsed) document listing the versions of
one or more resource types:

    resource_types:
      Microsoft.Resources/resourceGroups:
        - version: "2024-11-01"
          support_level: active
          release_date: "2024-11-01"
          breaking_changes:
            - change_type: property-removed
              property: managedBy
              description: managedBy is no longer accepted
          schema:
            properties:
              location:
                data_type: string
                required: true
                validation:
                  - rule_type: pattern-match
                    value: "^[a-z0-9]+$"

A version's schema inherits ``resource_type`` and ``version`` from its
position in the catalog unless they are given explicitly.
"""

from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping

import structlog
import yaml

from .exceptions import ConfigurationError
from .version_manager import (
    ApiSchema,
    ApiVersionManager,
    BreakingChange,
    PropertyDefinition,
    PropertyValidation,
    ValidationRule,
    VersionChangeLog,
    VersionConfig,
)

logger = structlog.get_logger(__name__)

_DATE_FIELDS = ("release_date", "deprecation_date", "sunset_date")


class CatalogError(ConfigurationError):
    """Raised when a version catalog cannot be read or is malformed."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "INVALID_CATALOG")
        super().__init__(message, **kwargs)


def _as_date_string(value: Any) -> Any:
    # YAML parses unquoted dates into date objects
    if isinstance(value, date):
        return value.isoformat()
    return value


def _require_mapping(data: Any, where: str) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise CatalogError(f"{where} must be a mapping, got {type(data).__name__}")
    return data


def _build(cls: type, data: Any, where: str) -> Any:
    if not isinstance(data, Mapping):
        raise CatalogError(f"{where} must be a mapping, got {type(data).__name__}")
    try:
        return cls(**data)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"Invalid {where}: {e}", cause=e) from e


def _build_rules(data: Any, where: str) -> List[ValidationRule]:
    return [
        _build(ValidationRule, rule, f"{where} rule {index}")
        for index, rule in enumerate(data or [])
    ]


def _build_schema(
    data: Mapping[str, Any], resource_type: str, version: str
) -> ApiSchema:
    where = f"schema of {resource_type}@{version}"
    if not isinstance(data, Mapping):
        raise CatalogError(f"{where} must be a mapping")

    schema_data = dict(data)
    schema_data.setdefault("resource_type", resource_type)
    schema_data.setdefault("version", version)

    raw_properties = schema_data.get("properties") or {}
    if not isinstance(raw_properties, Mapping):
        raise CatalogError(f"Properties of {where} must be a mapping")

    properties = {}
    for name, prop in raw_properties.items():
        prop_where = f"property '{name}' in {where}"
        prop_data = dict(_require_mapping(prop, prop_where))
        prop_data["validation"] = _build_rules(prop_data.get("validation"), prop_where)
        properties[name] = _build(PropertyDefinition, prop_data, prop_where)
    schema_data["properties"] = properties

    raw_rules = schema_data.get("validation_rules") or []
    if not isinstance(raw_rules, list):
        raise CatalogError(f"Validation rules of {where} must be a list")

    validation_rules = []
    for entry in raw_rules:
        entry_data = dict(
            _require_mapping(entry, f"validation entry in {where}")
        )
        entry_data["rules"] = _build_rules(entry_data.get("rules"), f"{where} validation")
        validation_rules.append(
            _build(PropertyValidation, entry_data, f"validation entry in {where}")
        )
    schema_data["validation_rules"] = validation_rules

    return _build(ApiSchema, schema_data, where)


def _build_version_config(resource_type: str, data: Any) -> VersionConfig:
    if not isinstance(data, Mapping):
        raise CatalogError(f"Version entries of {resource_type} must be mappings")

    config_data = dict(data)
    version = str(config_data.get("version") or "")
    config_data["version"] = version
    where = f"version {resource_type}@{version}"

    for date_field in _DATE_FIELDS:
        if date_field in config_data:
            config_data[date_field] = _as_date_string(config_data[date_field])

    if "schema" in config_data and config_data["schema"] is not None:
        config_data["schema"] = _build_schema(
            config_data["schema"], resource_type, version
        )

    config_data["breaking_changes"] = [
        _build(BreakingChange, change, f"breaking change in {where}")
        for change in (config_data.get("breaking_changes") or [])
    ]
    config_data["change_log"] = [
        _build(VersionChangeLog, entry, f"changelog entry in {where}")
        for entry in (config_data.get("change_log") or [])
    ]

    return _build(VersionConfig, config_data, where)


def load_version_configs(document: Mapping[str, Any]) -> Dict[str, List[VersionConfig]]:
    """Build version configs from a parsed catalog document.

    Returns:
        Mapping of resource type to its version configs, in catalog order

    Raises:
        CatalogError: If the document is malformed
    """
    if not isinstance(document, Mapping):
        raise CatalogError("Catalog must be a mapping")

    resource_types = document.get("resource_types")
    if not isinstance(resource_types, Mapping) or not resource_types:
        raise CatalogError("Catalog must define a non-empty 'resource_types' mapping")

    catalog: Dict[str, List[VersionConfig]] = {}
    for resource_type, versions in resource_types.items():
        if not isinstance(versions, list):
            raise CatalogError(f"Versions of {resource_type} must be a list")
        catalog[resource_type] = [
            _build_version_config(resource_type, entry) for entry in versions
        ]
    return catalog


def load_catalog(path: Path) -> Dict[str, List[VersionConfig]]:
    """Read a YAML catalog file.

    Raises:
        CatalogError: If the file cannot be read, parsed or is malformed
    """
    try:
        with open(path) as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}", cause=e) from e
    except OSError as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}", cause=e) from e

    return load_version_configs(document or {})


def register_catalog(manager: ApiVersionManager, path: Path) -> List[str]:
    """Register every resource type declared in a catalog file.

    Returns:
        The registered resource types

    Raises:
        CatalogError: If the catalog is malformed
        VersionRegistrationError: If a version set is rejected by the registry
    """
    catalog = load_catalog(path)
    for resource_type, versions in catalog.items():
        manager.register_resource_type(resource_type, versions)

    logger.info(
        "Registered version catalog",
        path=str(path),
        resource_types=len(catalog),
    )
    return list(catalog.keys())
