"""Base class for versioned AzAPI resource constructs.

Concrete constructs subclass AzapiResource, register their version configs
once with :meth:`AzapiResource.register_schemas`, and implement
``resource_type``, ``default_version`` and ``create_resource_body``. On
construction the base class resolves the API version, loads its schema,
injects defaults, validates properties, analyzes migration away from
deprecated versions, and builds the resource body.

Example:
    >>> class ResourceGroup(AzapiResource):
    ...     def resource_type(self):
    ...         return "Microsoft.Resources/resourceGroups"
    ...     def default_version(self):
    ...         return "2024-11-01"
    ...     def create_resource_body(self, props):
    ...         return {"location": props["location"], "tags": props.get("tags", {})}
    >>> AzapiResource.register_schemas("Microsoft.Resources/resourceGroups", VERSIONS)
    >>> rg = ResourceGroup("rg", {"location": "eastus"})
    >>> rg.azapi_type
    'Microsoft.Resources/resourceGroups@2024-11-01'
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from ..config.models import VersioningSettings
from ..exceptions import PropertyValidationError, SchemaResolutionError
from ..version_manager import (
    ApiSchema,
    ApiVersionManager,
    MigrationAnalysis,
    ValidationResult,
    VersionConfig,
)
from .resource_schema_validator import ResourceSchemaValidator
from .resource_version_manager import ResourceVersionManager

logger = structlog.get_logger(__name__)

DEFAULT_SUBSCRIPTION_PARENT_ID = (
    "/subscriptions/${data.azapi_client_config.current.subscription_id}"
)


class AzapiResource(ABC):
    """Versioned Azure resource declared through the AzAPI provider."""

    @staticmethod
    def register_schemas(
        resource_type: str,
        versions: Sequence[VersionConfig],
        manager: Optional[ApiVersionManager] = None,
    ) -> bool:
        """Register a resource type's versions once.

        Repeat calls for a type that is already registered are ignored, so
        every construct module can call this at import time.

        Returns:
            True if the versions were registered, False if already present

        Raises:
            VersionRegistrationError: If the version configs are invalid
        """
        manager = manager or ApiVersionManager.instance()
        if resource_type in manager.registered_resource_types():
            logger.debug(
                "Resource type already registered", resource_type=resource_type
            )
            return False

        manager.register_resource_type(resource_type, versions)
        return True

    def __init__(
        self,
        construct_id: str,
        props: Optional[Mapping[str, Any]] = None,
        manager: Optional[ApiVersionManager] = None,
        settings: Optional[VersioningSettings] = None,
    ):
        """Resolve, validate and build the resource.

        Args:
            construct_id: Identifier of the construct, also the default name
            props: Resource properties. Framework keys: ``name``, ``location``,
                ``api_version``, ``tags``, ``parent_id``, ``resource_group_id``,
                ``enable_validation``, ``enable_migration_analysis``
            manager: Version registry. Defaults to the shared registry.
            settings: Framework settings. Defaults to ``VersioningSettings()``.

        Raises:
            UnsupportedApiVersionError: If ``api_version`` is not registered
            SchemaResolutionError: If no schema exists for the resolved version
            PropertyValidationError: If location is required but missing, or
                the properties fail schema validation
        """
        if not construct_id or not construct_id.strip():
            raise ValueError("Construct id cannot be empty")

        props = dict(props or {})
        self.construct_id = construct_id
        self._settings = settings or VersioningSettings()
        self._manager = manager or ApiVersionManager.instance()
        self._resource_type = self.resource_type()

        self.name = self.resolve_name(props)
        self.location = self.resolve_location(props)

        self._version_manager = ResourceVersionManager(
            self._resource_type, self.default_version(), self._manager
        )
        self.resolved_api_version = self._version_manager.resolve_api_version(
            props.get("api_version")
        )
        self._tags: Dict[str, str] = dict(props.get("tags") or {})

        self.schema: ApiSchema = self._version_manager.schema_for_version(
            self.resolved_api_version
        )
        version_config = self._version_manager.version_config(self.resolved_api_version)
        if version_config is None:
            raise SchemaResolutionError(
                f"Version configuration not found for "
                f"{self._resource_type}@{self.resolved_api_version}",
                resource_type=self._resource_type,
                version=self.resolved_api_version,
            )
        self.version_config: VersionConfig = version_config

        self._schema_validator = ResourceSchemaValidator(
            self.schema, self._settings.validation.framework_properties
        )

        self.properties = self._process_properties(props)

        self.validation_result: Optional[ValidationResult] = None
        if props.get("enable_validation", self._settings.validation.enabled) is not False:
            self.validation_result = self._schema_validator.validate_props(self.properties)
            if not self.validation_result.valid:
                formatted = self._schema_validator.format_validation_errors(
                    self.validation_result
                )
                raise PropertyValidationError(
                    f"Property validation failed for {self._resource_type}:\n"
                    + "\n".join(formatted),
                    resource_type=self._resource_type,
                    validation_errors=formatted,
                )

        self.migration_analysis: Optional[MigrationAnalysis] = None
        if (
            props.get(
                "enable_migration_analysis", self._settings.migration.analysis_enabled
            )
            is not False
        ):
            self.migration_analysis = self._perform_migration_analysis()

        self.parent_id = self.resolve_parent_id(self.properties)
        self.body: Dict[str, Any] = self.create_resource_body(self.properties)

        self._log_framework_messages()

    # ------------------------------------------------------------------
    # Subclass contract
    # ------------------------------------------------------------------

    @abstractmethod
    def resource_type(self) -> str:
        """Azure resource type, e.g. "Microsoft.Resources/resourceGroups"."""

    @abstractmethod
    def default_version(self) -> str:
        """Version used when nothing is registered for the resource type."""

    @abstractmethod
    def create_resource_body(self, props: Dict[str, Any]) -> Dict[str, Any]:
        """Build the API request body from validated, defaulted properties."""

    def default_location(self) -> Optional[str]:
        return None

    def requires_location(self) -> bool:
        return False

    def parent_resource_for_location(self) -> Optional["AzapiResource"]:
        return None

    def resolve_name(self, props: Mapping[str, Any]) -> str:
        return props.get("name") or self.construct_id

    def resolve_location(self, props: Mapping[str, Any]) -> Optional[str]:
        """Explicit location, then parent location, then default location."""
        if props.get("location"):
            return props["location"]

        parent = self.parent_resource_for_location()
        if parent is not None and parent.location:
            return parent.location

        default = self.default_location()
        if default:
            return default

        if self.requires_location():
            raise PropertyValidationError(
                f"Location is required for {self._resource_type} but was not provided "
                "and could not be inherited from parent resource.",
                resource_type=self._resource_type,
            )
        return None

    def resolve_parent_id(self, props: Mapping[str, Any]) -> str:
        """Parent resource ID: explicit parent, resource group, or subscription."""
        return (
            props.get("parent_id")
            or props.get("resource_group_id")
            or DEFAULT_SUBSCRIPTION_PARENT_ID
        )

    # ------------------------------------------------------------------
    # Version API
    # ------------------------------------------------------------------

    def resolve_api_version(self, explicit_version: Optional[str] = None) -> str:
        return self._version_manager.resolve_api_version(explicit_version)

    def schema_for_version(self, version: str) -> ApiSchema:
        return self._version_manager.schema_for_version(version)

    def resolve_schema(self) -> ApiSchema:
        return self._version_manager.schema_for_version(self.resolved_api_version)

    def latest_version(self) -> Optional[str]:
        return self._version_manager.latest_version()

    def supported_versions(self) -> List[str]:
        return self._version_manager.supported_versions()

    def analyze_migration_to(self, target_version: str) -> MigrationAnalysis:
        """Migration analysis from this resource's resolved version."""
        return self._manager.analyze_migration(
            self._resource_type, self.resolved_api_version, target_version
        )

    @property
    def is_deprecated(self) -> bool:
        return self._version_manager.is_deprecated(self.resolved_api_version)

    @property
    def is_sunset(self) -> bool:
        return self._version_manager.is_sunset(self.resolved_api_version)

    # ------------------------------------------------------------------
    # Resource definition
    # ------------------------------------------------------------------

    @property
    def azapi_type(self) -> str:
        return f"{self._resource_type}@{self.resolved_api_version}"

    @property
    def tags(self) -> Dict[str, str]:
        return dict(self._tags)

    def add_tag(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("Tag key cannot be empty")
        self._tags[key] = value

    def resource_config(self) -> Dict[str, Any]:
        """Arguments of the azapi_resource block declaring this resource.

        Tags are emitted at the top level only. Location is emitted at the
        top level for top-level resource types whose body does not carry it.
        """
        body = {key: value for key, value in self.body.items() if key != "tags"}
        config: Dict[str, Any] = {
            "type": self.azapi_type,
            "name": self.name,
            "parent_id": self.parent_id,
            "body": body,
        }
        is_child_resource = len(self._resource_type.split("/")) > 2
        if not is_child_resource and self.location and "location" not in body:
            config["location"] = self.location
        if self._tags:
            config["tags"] = dict(self._tags)
        return config

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _process_properties(self, props: Dict[str, Any]) -> Dict[str, Any]:
        processed = dict(props)
        processed.setdefault("name", self.name)
        if self.location and not processed.get("location"):
            processed["location"] = self.location
        return self._schema_validator.apply_defaults(processed)

    def _perform_migration_analysis(self) -> Optional[MigrationAnalysis]:
        if not self._version_manager.is_deprecated(self.resolved_api_version):
            return None

        latest = self._version_manager.latest_version()
        if latest and latest != self.resolved_api_version:
            return self.analyze_migration_to(latest)
        return None

    def _log_framework_messages(self) -> None:
        version = self.resolved_api_version
        log = logger.bind(resource_type=self._resource_type, api_version=version)

        # Sunset versions count as deprecated too
        if self.is_deprecated:
            log.warning(
                f"API version {version} for {self._resource_type} is deprecated. "
                f"Consider upgrading to the latest version: {self.latest_version()}"
            )
        if self.is_sunset:
            log.error(
                f"API version {version} for {self._resource_type} has reached sunset. "
                f"Immediate migration to {self.latest_version()} is required."
            )

        analysis = self.migration_analysis
        if analysis is not None and not analysis.compatible:
            log.warning(
                f"Migration from {analysis.from_version} to {analysis.to_version} "
                f"has {len(analysis.breaking_changes)} breaking changes. "
                f"Estimated effort: {analysis.estimated_effort.value}"
            )

        if self.validation_result is not None:
            for warning in self.validation_result.warnings:
                log.warning(f"Property validation warning: {warning}")
