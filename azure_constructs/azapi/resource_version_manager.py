"""Per-resource-type API version resolution.

ResourceVersionManager turns "an optional explicit version" into "the version
and schema to use" for one resource type, on top of an ApiVersionManager.
"""

from typing import List, Optional

import structlog

from ..exceptions import (
    SchemaResolutionError,
    UnsupportedApiVersionError,
    VersionManagementError,
)
from ..version_manager import (
    ApiSchema,
    ApiVersionManager,
    VersionConfig,
    VersionSupportLevel,
)

logger = structlog.get_logger(__name__)


class ResourceVersionManager:
    """Resolves API versions and schemas for a single resource type."""

    def __init__(
        self,
        resource_type: str,
        default_version: str,
        manager: Optional[ApiVersionManager] = None,
    ):
        """Initialize the resolver.

        Args:
            resource_type: Azure resource type (e.g. "Microsoft.Resources/resourceGroups")
            default_version: Version used when nothing is registered for the type
            manager: Registry to resolve against. Defaults to the shared registry.

        Raises:
            VersionManagementError: If resource_type or default_version is empty
        """
        if not resource_type or not resource_type.strip():
            raise VersionManagementError("Resource type cannot be empty")

        if not default_version or not default_version.strip():
            raise VersionManagementError("Default version cannot be empty")

        self._resource_type = resource_type
        self._default_version = default_version
        self._manager = manager or ApiVersionManager.instance()

    @property
    def resource_type(self) -> str:
        return self._resource_type

    @property
    def default_version(self) -> str:
        return self._default_version

    @property
    def manager(self) -> ApiVersionManager:
        return self._manager

    def resolve_api_version(self, explicit_version: Optional[str] = None) -> str:
        """Resolve the API version to use.

        1. An explicit version must be registered and is returned as is
        2. Otherwise the latest ACTIVE registered version
        3. Otherwise the default version, with a warning

        Raises:
            UnsupportedApiVersionError: If the explicit version is not registered
        """
        if explicit_version:
            if not self.validate_version(explicit_version):
                supported = self.supported_versions()
                raise UnsupportedApiVersionError(
                    f"Unsupported API version '{explicit_version}' for resource type "
                    f"'{self._resource_type}'. Supported versions: {', '.join(supported)}",
                    resource_type=self._resource_type,
                    version=explicit_version,
                    supported_versions=supported,
                )
            return explicit_version

        latest = self.latest_version()
        if latest:
            return latest

        if self.supported_versions():
            reason = f"No active version registered for {self._resource_type}"
        else:
            reason = f"No versions registered for {self._resource_type}"
        logger.warning(
            f"{reason}. Using default version: {self._default_version}",
            resource_type=self._resource_type,
            default_version=self._default_version,
        )
        return self._default_version

    def version_config(self, version: str) -> Optional[VersionConfig]:
        return self._manager.version_config(self._resource_type, version)

    def schema_for_version(self, version: str) -> ApiSchema:
        """Schema of a registered version.

        Raises:
            SchemaResolutionError: If the version is not registered
        """
        config = self.version_config(version)
        if config is None:
            raise SchemaResolutionError(
                "Cannot resolve schema: version configuration not found for "
                f"{self._resource_type}@{version}",
                resource_type=self._resource_type,
                version=version,
            )
        return config.schema

    def validate_version(self, version: str) -> bool:
        return self._manager.validate_version_support(self._resource_type, version)

    def latest_version(self) -> Optional[str]:
        return self._manager.latest_version(self._resource_type)

    def supported_versions(self) -> List[str]:
        return self._manager.supported_versions(self._resource_type)

    def is_deprecated(self, version: str) -> bool:
        """True for DEPRECATED or SUNSET versions; False for unknown versions."""
        config = self.version_config(version)
        if config is None:
            return False
        return config.support_level in (
            VersionSupportLevel.DEPRECATED,
            VersionSupportLevel.SUNSET,
        )

    def is_sunset(self, version: str) -> bool:
        """True for SUNSET versions; False for unknown versions."""
        config = self.version_config(version)
        if config is None:
            return False
        return config.support_level == VersionSupportLevel.SUNSET
