"""API Version Manager for Azure resource schemas.

This module provides the version registry used by every versioned resource:

- Version registry and metadata storage, one entry per resource type
- Version resolution (latest active, constraint-based selection)
- Lifecycle queries
- Migration analysis between versions with effort estimation

Registries are plain objects: construct one per composition root (or per
test), or use :meth:`ApiVersionManager.instance` for the process-wide shared
registry.
"""

import threading
from datetime import datetime, timezone
from typing import ClassVar, Dict, List, Optional, Sequence

import structlog

from ..config.models import EffortThresholds, VersioningSettings
from ..exceptions import VersionNotFoundError, VersionRegistrationError
from .models import (
    BreakingChange,
    BreakingChangeType,
    MigrationAnalysis,
    MigrationEffort,
    ResourceTypeRegistry,
    VersionConfig,
    VersionConstraints,
    VersionLifecycle,
    VersionSupportLevel,
    is_valid_date,
    parse_date,
)

logger = structlog.get_logger(__name__)

# Any one of these change kinds rules out an automatic upgrade
BLOCKING_CHANGE_TYPES = frozenset(
    {
        BreakingChangeType.PROPERTY_REMOVED,
        BreakingChangeType.SCHEMA_RESTRUCTURED,
        BreakingChangeType.PROPERTY_TYPE_CHANGED,
    }
)


def _utc_now() -> datetime:
    # parse_date yields naive UTC, so compare against naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ApiVersionManager:
    """Registry of API versions per Azure resource type.

    Example:
        >>> manager = ApiVersionManager()
        >>> manager.register_resource_type("Microsoft.Resources/resourceGroups", versions)
        >>> manager.latest_version("Microsoft.Resources/resourceGroups")
        '2024-11-01'
        >>> analysis = manager.analyze_migration(
        ...     "Microsoft.Resources/resourceGroups", "2024-01-01", "2024-11-01"
        ... )

    Thread Safety: registration is serialized by an internal lock and installs
    a fully built entry; lookups read completed entries only.
    """

    _shared: ClassVar[Optional["ApiVersionManager"]] = None
    _shared_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, effort_thresholds: Optional[EffortThresholds] = None):
        """Initialize an empty registry.

        Args:
            effort_thresholds: Breaking-change thresholds for effort
                estimation. Defaults to the standard thresholds.
        """
        self.effort_thresholds = effort_thresholds or EffortThresholds()
        self._registry: Dict[str, ResourceTypeRegistry] = {}
        self._lock = threading.Lock()

    @classmethod
    def instance(cls) -> "ApiVersionManager":
        """Return the process-wide shared registry, creating it on first access."""
        if cls._shared is None:
            with cls._shared_lock:
                if cls._shared is None:
                    cls._shared = cls()
        return cls._shared

    @classmethod
    def from_settings(cls, settings: VersioningSettings) -> "ApiVersionManager":
        """Create a registry configured from :class:`VersioningSettings`."""
        return cls(effort_thresholds=settings.migration.effort)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_resource_type(
        self, resource_type: str, versions: Sequence[VersionConfig]
    ) -> None:
        """Register every version of a resource type in one call.

        The whole batch is validated before anything is stored; an existing
        entry for the same resource type is replaced.

        Args:
            resource_type: Azure resource type (e.g. "Microsoft.Resources/resourceGroups")
            versions: All version configurations for the resource type

        Raises:
            VersionRegistrationError: If the resource type or versions list is
                empty, a version config is invalid, or a version is duplicated
        """
        self._validate_resource_type_input(resource_type, versions)

        version_map: Dict[str, VersionConfig] = {}
        latest_version: Optional[str] = None
        latest_release: Optional[datetime] = None

        for config in versions:
            self._validate_version_config(config, resource_type)

            if config.version in version_map:
                raise VersionRegistrationError(
                    f"Duplicate version '{config.version}' found for resource type '{resource_type}'",
                    resource_type=resource_type,
                    version=config.version,
                )

            version_map[config.version] = config

            release = parse_date(config.release_date)
            if config.support_level == VersionSupportLevel.ACTIVE and (
                latest_release is None or release >= latest_release
            ):
                latest_version = config.version
                latest_release = release

        entry = ResourceTypeRegistry(
            resource_type=resource_type,
            versions=version_map,
            latest_version=latest_version,
        )

        with self._lock:
            replaced = resource_type in self._registry
            self._registry[resource_type] = entry

        logger.info(
            "Registered resource type versions",
            resource_type=resource_type,
            versions=len(version_map),
            latest_version=latest_version,
            replaced=replaced,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def latest_version(self, resource_type: str) -> Optional[str]:
        """Latest ACTIVE version of a resource type.

        Returns:
            The ACTIVE version with the newest release date, or None if the
            type is unregistered or has no ACTIVE version
        """
        entry = self._registry.get(resource_type)
        if entry is None:
            return None
        return entry.latest_version

    def version_config(
        self, resource_type: str, version: str
    ) -> Optional[VersionConfig]:
        """Configuration of one version, or None if either key is unknown."""
        entry = self._registry.get(resource_type)
        if entry is None:
            return None
        return entry.versions.get(version)

    def supported_versions(self, resource_type: str) -> List[str]:
        """All registered versions of a resource type, newest release first."""
        entry = self._registry.get(resource_type)
        if entry is None:
            return []
        return [
            config.version
            for config in self._sorted_by_release(entry.versions.values(), newest_first=True)
        ]

    def validate_version_support(self, resource_type: str, version: str) -> bool:
        """True if ``version`` is registered for ``resource_type``."""
        entry = self._registry.get(resource_type)
        if entry is None:
            return False
        return version in entry.versions

    def registered_resource_types(self) -> List[str]:
        """All resource types currently in the registry."""
        return list(self._registry.keys())

    def version_lifecycle(
        self, resource_type: str, version: str
    ) -> Optional[VersionLifecycle]:
        """Lifecycle view of a version, or None if the version is unknown."""
        config = self.version_config(resource_type, version)
        if config is None:
            return None

        return VersionLifecycle(
            version=config.version,
            phase=config.support_level,
            transition_date=config.release_date,
            next_phase=config.support_level.next_phase,
            estimated_sunset_date=config.sunset_date,
        )

    def _find_version_by_constraints(
        self, resource_type: str, constraints: VersionConstraints
    ) -> Optional[str]:
        """Newest version of a resource type matching ``constraints``.

        Filters by exact support level (if given), drops DEPRECATED versions
        unless ``exclude_deprecated`` is False, and drops versions released
        before ``not_older_than``. ``required_features`` is not evaluated.

        Returns:
            The matching version with the newest release date, or None
        """
        entry = self._registry.get(resource_type)
        if entry is None:
            return None

        not_older_than = (
            parse_date(constraints.not_older_than)
            if constraints.not_older_than is not None
            else None
        )

        candidates = []
        for config in entry.versions.values():
            if (
                constraints.support_level is not None
                and config.support_level != constraints.support_level
            ):
                continue

            if (
                constraints.exclude_deprecated is not False
                and config.support_level == VersionSupportLevel.DEPRECATED
            ):
                continue

            if (
                not_older_than is not None
                and parse_date(config.release_date) < not_older_than
            ):
                continue

            candidates.append(config)

        if not candidates:
            return None

        return self._sorted_by_release(candidates, newest_first=True)[0].version

    # ------------------------------------------------------------------
    # Migration analysis
    # ------------------------------------------------------------------

    def analyze_migration(
        self, resource_type: str, from_version: str, to_version: str
    ) -> MigrationAnalysis:
        """Analyze the upgrade path from ``from_version`` to ``to_version``.

        Breaking changes are collected from every version released after
        ``from_version`` up to and including ``to_version``.

        Raises:
            VersionNotFoundError: If either version is not registered
        """
        from_config = self.version_config(resource_type, from_version)
        to_config = self.version_config(resource_type, to_version)

        if from_config is None:
            raise VersionNotFoundError(
                f"Source version '{from_version}' not found for resource type '{resource_type}'",
                resource_type=resource_type,
                version=from_version,
            )

        if to_config is None:
            raise VersionNotFoundError(
                f"Target version '{to_version}' not found for resource type '{resource_type}'",
                resource_type=resource_type,
                version=to_version,
            )

        breaking_changes = self._collect_breaking_changes(
            resource_type, from_version, to_version
        )

        analysis = MigrationAnalysis(
            from_version=from_version,
            to_version=to_version,
            compatible=len(breaking_changes) == 0,
            breaking_changes=breaking_changes,
            warnings=self._generate_migration_warnings(from_config, to_config),
            estimated_effort=self._calculate_migration_effort(breaking_changes),
            automatic_upgrade_possible=self._can_auto_upgrade(breaking_changes),
        )

        logger.debug(
            "Analyzed migration",
            resource_type=resource_type,
            from_version=from_version,
            to_version=to_version,
            breaking_changes=len(breaking_changes),
            estimated_effort=analysis.estimated_effort.value,
        )
        return analysis

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _sorted_by_release(
        configs, newest_first: bool = False
    ) -> List[VersionConfig]:
        return sorted(
            configs,
            key=lambda config: parse_date(config.release_date),
            reverse=newest_first,
        )

    @staticmethod
    def _validate_resource_type_input(
        resource_type: str, versions: Sequence[VersionConfig]
    ) -> None:
        if not resource_type or not resource_type.strip():
            raise VersionRegistrationError("Resource type cannot be empty")

        if not versions:
            raise VersionRegistrationError(
                "Versions array cannot be empty", resource_type=resource_type
            )

    @staticmethod
    def _validate_version_config(config: VersionConfig, resource_type: str) -> None:
        if config.version is not None and not isinstance(config.version, str):
            raise VersionRegistrationError(
                f"Version must be a string for resource type '{resource_type}', "
                f"got {type(config.version).__name__}",
                resource_type=resource_type,
                version=str(config.version),
            )

        if not config.version or not config.version.strip():
            raise VersionRegistrationError(
                f"Version string cannot be empty for resource type '{resource_type}'",
                resource_type=resource_type,
            )

        if config.schema is None:
            raise VersionRegistrationError(
                f"Schema is required for version '{config.version}' of resource type '{resource_type}'",
                resource_type=resource_type,
                version=config.version,
            )

        if config.schema.resource_type != resource_type:
            raise VersionRegistrationError(
                f"Schema resource type '{config.schema.resource_type}' does not match "
                f"registered resource type '{resource_type}'",
                resource_type=resource_type,
                version=config.version,
            )

        if config.schema.version != config.version:
            raise VersionRegistrationError(
                f"Schema version '{config.schema.version}' does not match "
                f"config version '{config.version}'",
                resource_type=resource_type,
                version=config.version,
            )

        if not config.support_level:
            raise VersionRegistrationError(
                f"Support level is required for version '{config.version}' "
                f"of resource type '{resource_type}'",
                resource_type=resource_type,
                version=config.version,
            )

        if not config.release_date or not str(config.release_date).strip():
            raise VersionRegistrationError(
                f"Release date is required for version '{config.version}' "
                f"of resource type '{resource_type}'",
                resource_type=resource_type,
                version=config.version,
            )

        if not is_valid_date(config.release_date):
            raise VersionRegistrationError(
                f"Invalid release date format '{config.release_date}' for version "
                f"'{config.version}' of resource type '{resource_type}'",
                resource_type=resource_type,
                version=config.version,
            )

    def _collect_breaking_changes(
        self, resource_type: str, from_version: str, to_version: str
    ) -> List[BreakingChange]:
        entry = self._registry.get(resource_type)
        if entry is None:
            return []

        ordered = [
            config.version
            for config in self._sorted_by_release(entry.versions.values())
        ]
        if from_version not in ordered or to_version not in ordered:
            return []

        from_index = ordered.index(from_version)
        to_index = ordered.index(to_version)

        breaking_changes: List[BreakingChange] = []
        for version in ordered[from_index + 1 : to_index + 1]:
            breaking_changes.extend(entry.versions[version].breaking_changes or [])
        return breaking_changes

    @staticmethod
    def _generate_migration_warnings(
        from_config: VersionConfig, to_config: VersionConfig
    ) -> List[str]:
        warnings: List[str] = []

        if from_config.support_level == VersionSupportLevel.DEPRECATED:
            warnings.append(
                f"Source version '{from_config.version}' is deprecated. "
                "Consider migrating to avoid future compatibility issues."
            )

        if to_config.support_level == VersionSupportLevel.DEPRECATED:
            warnings.append(
                f"Target version '{to_config.version}' is deprecated. "
                "Consider using a newer version."
            )

        if from_config.sunset_date and is_valid_date(from_config.sunset_date):
            if parse_date(from_config.sunset_date) < _utc_now():
                warnings.append(
                    f"Source version '{from_config.version}' has reached sunset date "
                    f"({from_config.sunset_date}). Immediate migration is required."
                )

        return warnings

    def _calculate_migration_effort(
        self, breaking_changes: List[BreakingChange]
    ) -> MigrationEffort:
        if not breaking_changes:
            return MigrationEffort.LOW

        thresholds = self.effort_thresholds
        removed = sum(
            1 for bc in breaking_changes
            if bc.change_type == BreakingChangeType.PROPERTY_REMOVED
        )
        restructured = sum(
            1 for bc in breaking_changes
            if bc.change_type == BreakingChangeType.SCHEMA_RESTRUCTURED
        )
        type_changed = sum(
            1 for bc in breaking_changes
            if bc.change_type == BreakingChangeType.PROPERTY_TYPE_CHANGED
        )

        if (
            restructured > 0
            or removed > thresholds.breaking_removed
            or type_changed > thresholds.breaking_type_changed
        ):
            return MigrationEffort.BREAKING

        if (
            removed > thresholds.high_removed
            or type_changed > thresholds.high_type_changed
            or len(breaking_changes) > thresholds.high_total
        ):
            return MigrationEffort.HIGH

        if len(breaking_changes) > thresholds.medium_total:
            return MigrationEffort.MEDIUM

        return MigrationEffort.LOW

    @staticmethod
    def _can_auto_upgrade(breaking_changes: List[BreakingChange]) -> bool:
        return not any(bc.change_type in BLOCKING_CHANGE_TYPES for bc in breaking_changes)
