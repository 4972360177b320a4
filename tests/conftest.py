from typing import Any, Dict, List, Optional

import pytest

from azure_constructs.version_manager import (
    ApiSchema,
    ApiVersionManager,
    BreakingChange,
    PropertyDefinition,
    PropertyType,
    ValidationRule,
    ValidationRuleType,
    VersionConfig,
    VersionSupportLevel,
)

TEST_RESOURCE_TYPE = "Microsoft.Test/resources"
RESOURCE_GROUP_TYPE = "Microsoft.Resources/resourceGroups"


# ============================================================================
# Environment isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_config_env(monkeypatch, tmp_path):
    """Keep user config files and AZC_* variables out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("AZC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AZC_CONFIG_PATH", str(tmp_path / "no-such-config.yaml"))


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def manager():
    """Provide a fresh, empty version registry."""
    return ApiVersionManager()


@pytest.fixture
def reset_shared_manager(monkeypatch):
    """Start from no shared registry; restored after the test."""
    monkeypatch.setattr(ApiVersionManager, "_shared", None)


@pytest.fixture
def make_schema():
    """Factory building an ApiSchema for a resource type and version."""

    def _make(
        version: str,
        resource_type: str = TEST_RESOURCE_TYPE,
        properties: Optional[Dict[str, PropertyDefinition]] = None,
        **kwargs: Any,
    ) -> ApiSchema:
        return ApiSchema(
            resource_type=resource_type,
            version=version,
            properties=properties if properties is not None else {},
            **kwargs,
        )

    return _make


@pytest.fixture
def make_version(make_schema):
    """Factory building a VersionConfig whose release date defaults to its version."""

    def _make(
        version: str,
        support_level: VersionSupportLevel = VersionSupportLevel.ACTIVE,
        release_date: Optional[str] = None,
        resource_type: str = TEST_RESOURCE_TYPE,
        breaking_changes: Optional[List[BreakingChange]] = None,
        properties: Optional[Dict[str, PropertyDefinition]] = None,
        **kwargs: Any,
    ) -> VersionConfig:
        return VersionConfig(
            version=version,
            schema=make_schema(version, resource_type, properties),
            support_level=support_level,
            release_date=release_date or version,
            breaking_changes=breaking_changes or [],
            **kwargs,
        )

    return _make


# ============================================================================
# Resource Group Fixtures
# ============================================================================


@pytest.fixture
def resource_group_properties() -> Dict[str, PropertyDefinition]:
    """Property definitions of a resource group schema."""
    return {
        "name": PropertyDefinition(data_type=PropertyType.STRING, required=True),
        "location": PropertyDefinition(
            data_type=PropertyType.STRING,
            required=True,
            validation=[
                ValidationRule(
                    rule_type=ValidationRuleType.PATTERN_MATCH,
                    value=r"^[a-z0-9]+$",
                    message="Location must be a lowercase Azure region name",
                )
            ],
        ),
        "tags": PropertyDefinition(data_type=PropertyType.OBJECT, default_value={}),
        "managedBy": PropertyDefinition(data_type=PropertyType.STRING, deprecated=True),
    }


@pytest.fixture
def resource_group_versions(make_version, resource_group_properties) -> List[VersionConfig]:
    """Deprecated, maintenance and active resource group versions."""
    return [
        make_version(
            "2023-07-01",
            VersionSupportLevel.DEPRECATED,
            resource_type=RESOURCE_GROUP_TYPE,
            properties=resource_group_properties,
            deprecation_date="2024-11-01",
        ),
        make_version(
            "2024-03-01",
            VersionSupportLevel.MAINTENANCE,
            resource_type=RESOURCE_GROUP_TYPE,
            properties=resource_group_properties,
        ),
        make_version(
            "2024-11-01",
            VersionSupportLevel.ACTIVE,
            resource_type=RESOURCE_GROUP_TYPE,
            properties=resource_group_properties,
            breaking_changes=[
                BreakingChange(
                    change_type="property-removed",
                    property="managedBy",
                    description="managedBy is no longer accepted",
                )
            ],
        ),
    ]


@pytest.fixture
def resource_group_manager(manager, resource_group_versions):
    """Registry with the resource group versions registered."""
    manager.register_resource_type(RESOURCE_GROUP_TYPE, resource_group_versions)
    return manager
