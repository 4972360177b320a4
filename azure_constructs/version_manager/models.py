"""Data models for the API version management framework.

This module defines the value objects shared by the version registry, the
migration analysis engine, the schema mapper and the versioned resource base:

- Enumerations for lifecycle phases, property kinds and breaking changes
- Frozen dataclasses describing schemas, versions and analysis results
- Date parsing helpers used for release/sunset comparisons

All dataclasses are frozen; the registry stores them by reference and never
mutates them.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]
"""Generic JSON-like value used for defaults and breaking-change values."""

DateLike = Union[str, date, datetime]


class VersionSupportLevel(str, Enum):
    """Lifecycle support level of an API version, in forward order."""

    ACTIVE = "active"  # Full feature development and bug fixes
    MAINTENANCE = "maintenance"  # Critical bug fixes only
    DEPRECATED = "deprecated"  # Security fixes only, migration recommended
    SUNSET = "sunset"  # No longer supported

    @property
    def next_phase(self) -> Optional["VersionSupportLevel"]:
        """The phase that follows this one, or None after SUNSET."""
        return _NEXT_PHASE.get(self)


_NEXT_PHASE = {
    VersionSupportLevel.ACTIVE: VersionSupportLevel.MAINTENANCE,
    VersionSupportLevel.MAINTENANCE: VersionSupportLevel.DEPRECATED,
    VersionSupportLevel.DEPRECATED: VersionSupportLevel.SUNSET,
}


class VersionPhase(str, Enum):
    """Phases of an API version lifecycle, including preview."""

    PREVIEW = "preview"
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    DEPRECATED = "deprecated"
    SUNSET = "sunset"


class MigrationEffort(str, Enum):
    """Estimated effort of a version migration.

    Members are ordered: LOW < MEDIUM < HIGH < BREAKING.
    """

    LOW = "low"  # < 1 hour, mostly automatic
    MEDIUM = "medium"  # 1-8 hours
    HIGH = "high"  # 1-3 days
    BREAKING = "breaking"  # > 3 days, major refactoring

    @property
    def severity(self) -> int:
        return list(MigrationEffort).index(self)

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, MigrationEffort):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, MigrationEffort):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, MigrationEffort):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, MigrationEffort):
            return NotImplemented
        return self.severity >= other.severity


class PropertyType(str, Enum):
    """Kind of value a schema property holds."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    ANY = "any"


class ValidationRuleType(str, Enum):
    """Kinds of validation rules applied to property values."""

    REQUIRED = "required"
    TYPE_CHECK = "type-check"
    PATTERN_MATCH = "pattern-match"
    VALUE_RANGE = "value-range"
    CUSTOM_VALIDATION = "custom-validation"


class BreakingChangeType(str, Enum):
    """Categories of incompatibilities between API versions."""

    PROPERTY_REMOVED = "property-removed"
    PROPERTY_RENAMED = "property-renamed"
    PROPERTY_TYPE_CHANGED = "property-type-changed"
    PROPERTY_REQUIRED = "property-required"
    SCHEMA_RESTRUCTURED = "schema-restructured"


class PropertyTransformationType(str, Enum):
    """Transformations applied when mapping properties between schemas."""

    DIRECT_COPY = "direct-copy"
    VALUE_MAPPING = "value-mapping"
    STRUCTURE_TRANSFORMATION = "structure-transformation"
    CUSTOM_FUNCTION = "custom-function"


def _coerce_enum(instance: Any, attribute: str, enum_cls: type) -> None:
    value = getattr(instance, attribute)
    if value is not None and not isinstance(value, enum_cls):
        object.__setattr__(instance, attribute, enum_cls(value))


@dataclass(frozen=True)
class ValidationRule:
    """A single validation rule for a property.

    Attributes:
        rule_type: Kind of rule
        value: Rule parameter. PATTERN_MATCH takes a regex string, VALUE_RANGE
            a mapping with ``min``/``max`` and/or ``min_length``/``max_length``,
            CUSTOM_VALIDATION a callable returning a truthy value on success.
        message: Error message used instead of the generated default
    """

    rule_type: ValidationRuleType
    value: Any = None
    message: Optional[str] = None

    def __post_init__(self) -> None:
        _coerce_enum(self, "rule_type", ValidationRuleType)


@dataclass(frozen=True)
class PropertyDefinition:
    """Definition of one property in an API schema."""

    data_type: PropertyType
    required: bool = False
    default_value: JsonValue = None
    deprecated: bool = False
    added_in_version: Optional[str] = None
    removed_in_version: Optional[str] = None
    description: str = ""
    validation: List[ValidationRule] = field(default_factory=list)

    def __post_init__(self) -> None:
        _coerce_enum(self, "data_type", PropertyType)


@dataclass(frozen=True)
class PropertyValidation:
    """Schema-level rules attached to a named property."""

    property: str
    rules: List[ValidationRule] = field(default_factory=list)


@dataclass(frozen=True)
class ApiSchema:
    """Complete schema of one resource type at one API version.

    ``required``, ``optional`` and ``deprecated`` are derived from the
    property definitions when not given explicitly.
    """

    resource_type: str
    version: str
    properties: Dict[str, PropertyDefinition] = field(default_factory=dict)
    required: Optional[List[str]] = None
    optional: Optional[List[str]] = None
    deprecated: Optional[List[str]] = None
    transformation_rules: Dict[str, str] = field(default_factory=dict)
    validation_rules: List[PropertyValidation] = field(default_factory=list)

    def __post_init__(self) -> None:
        properties = self.properties or {}
        if self.required is None:
            object.__setattr__(
                self,
                "required",
                [name for name, prop in properties.items() if prop.required],
            )
        if self.optional is None:
            object.__setattr__(
                self,
                "optional",
                [name for name, prop in properties.items() if not prop.required],
            )
        if self.deprecated is None:
            object.__setattr__(
                self,
                "deprecated",
                [name for name, prop in properties.items() if prop.deprecated],
            )


@dataclass(frozen=True)
class BreakingChange:
    """A breaking change introduced by a version relative to its predecessor."""

    change_type: BreakingChangeType
    description: str
    property: Optional[str] = None
    old_value: JsonValue = None
    new_value: JsonValue = None
    migration_path: Optional[str] = None

    def __post_init__(self) -> None:
        _coerce_enum(self, "change_type", BreakingChangeType)


@dataclass(frozen=True)
class VersionChangeLog:
    """Changelog entry of a version (added, changed, deprecated, removed, fixed)."""

    change_type: str
    description: str
    affected_property: Optional[str] = None
    breaking: bool = False


@dataclass(frozen=True)
class VersionConfig:
    """One API version of one resource type, with lifecycle metadata."""

    version: str
    schema: ApiSchema
    support_level: VersionSupportLevel
    release_date: str
    deprecation_date: Optional[str] = None
    sunset_date: Optional[str] = None
    breaking_changes: List[BreakingChange] = field(default_factory=list)
    migration_guide: Optional[str] = None
    change_log: List[VersionChangeLog] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.support_level:
            _coerce_enum(self, "support_level", VersionSupportLevel)


@dataclass(frozen=True)
class MigrationAnalysis:
    """Result of analyzing the upgrade path between two versions."""

    from_version: str
    to_version: str
    compatible: bool
    breaking_changes: List[BreakingChange]
    warnings: List[str]
    estimated_effort: MigrationEffort
    automatic_upgrade_possible: bool


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating properties against a schema."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    property_errors: Optional[Dict[str, List[str]]] = None


@dataclass(frozen=True)
class VersionLifecycle:
    """Lifecycle view of a registered version."""

    version: str
    phase: VersionSupportLevel
    transition_date: Optional[str] = None
    next_phase: Optional[VersionSupportLevel] = None
    estimated_sunset_date: Optional[str] = None


@dataclass(frozen=True)
class VersionConstraints:
    """Constraints for automatic version selection.

    ``required_features`` is accepted but not evaluated: versions carry no
    feature metadata, so every version satisfies every feature.
    """

    support_level: Optional[VersionSupportLevel] = None
    not_older_than: Optional[DateLike] = None
    required_features: List[str] = field(default_factory=list)
    exclude_deprecated: bool = True

    def __post_init__(self) -> None:
        _coerce_enum(self, "support_level", VersionSupportLevel)


@dataclass
class ResourceTypeRegistry:
    """Registry entry holding every version of one resource type."""

    resource_type: str
    versions: Dict[str, VersionConfig]
    latest_version: Optional[str] = None


CustomValidator = Callable[[Any], Any]


def parse_date(value: DateLike) -> datetime:
    """Parse an ISO-8601 date or datetime into a naive UTC datetime.

    Args:
        value: Date string (e.g. "2024-11-01", "2024-11-01T10:00:00Z"),
            ``date`` or ``datetime``

    Returns:
        Naive datetime; timezone-aware input is converted to UTC first

    Raises:
        ValueError: If the string is empty or not ISO-8601
        TypeError: If the value is not a string, date or datetime
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Date cannot be empty")
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported date value: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_valid_date(value: Any) -> bool:
    """Return True if ``value`` can be parsed by :func:`parse_date`."""
    try:
        parse_date(value)
    except (TypeError, ValueError):
        return False
    return True


__all__ = [
    "ApiSchema",
    "BreakingChange",
    "BreakingChangeType",
    "CustomValidator",
    "DateLike",
    "JsonValue",
    "MigrationAnalysis",
    "MigrationEffort",
    "PropertyDefinition",
    "PropertyTransformationType",
    "PropertyType",
    "PropertyValidation",
    "ResourceTypeRegistry",
    "ValidationResult",
    "ValidationRule",
    "ValidationRuleType",
    "VersionChangeLog",
    "VersionConfig",
    "VersionConstraints",
    "VersionLifecycle",
    "VersionPhase",
    "VersionSupportLevel",
    "is_valid_date",
    "parse_date",
]
