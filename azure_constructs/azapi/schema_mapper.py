"""Schema-driven property validation and transformation.

SchemaMapper validates resource properties against an ApiSchema, injects
schema defaults, and maps properties between schema versions (renames plus
type coercion). Property paths are tracked so errors point at the offending
property.
"""

import copy
import math
import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..config.models import DEFAULT_FRAMEWORK_PROPERTIES
from ..exceptions import PropertyTransformationError, SchemaDefinitionError
from ..version_manager import (
    ApiSchema,
    PropertyDefinition,
    PropertyType,
    ValidationResult,
    ValidationRule,
    ValidationRuleType,
)

logger = structlog.get_logger(__name__)


def describe_type(value: Any) -> str:
    """Schema type name of a Python value, used in error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class SchemaMapper:
    """Validates and transforms properties for one ApiSchema.

    Example:
        >>> mapper = SchemaMapper.create(schema)
        >>> result = mapper.validate_properties({"name": "rg", "location": "eastus"})
        >>> result.valid
        True
    """

    @classmethod
    def create(
        cls,
        schema: ApiSchema,
        framework_properties: Optional[Iterable[str]] = None,
    ) -> "SchemaMapper":
        """Create a mapper after checking the schema is well formed.

        Raises:
            SchemaDefinitionError: If the schema lacks a resource type, version,
                properties mapping or required list
        """
        if schema is None:
            raise SchemaDefinitionError("Schema cannot be None")

        if not schema.resource_type or not schema.resource_type.strip():
            raise SchemaDefinitionError("Schema must have a valid resource_type")

        if not schema.version or not schema.version.strip():
            raise SchemaDefinitionError("Schema must have a valid version")

        if schema.properties is None:
            raise SchemaDefinitionError("Schema must have a properties definition")

        if schema.required is None:
            raise SchemaDefinitionError("Schema must have a required properties list")

        return cls(schema, framework_properties)

    def __init__(
        self,
        schema: ApiSchema,
        framework_properties: Optional[Iterable[str]] = None,
    ):
        self._schema = schema
        self._framework_properties = frozenset(
            DEFAULT_FRAMEWORK_PROPERTIES
            if framework_properties is None
            else framework_properties
        )

    @property
    def schema(self) -> ApiSchema:
        return self._schema

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_properties(self, properties: Optional[Mapping]) -> ValidationResult:
        """Validate properties against the schema.

        Checks required properties, property types, per-property rules and
        schema-level rules. Unknown and deprecated properties produce
        warnings; framework properties are skipped.
        """
        errors: List[str] = []
        warnings: List[str] = []
        property_errors: Dict[str, List[str]] = {}

        if properties is None:
            errors.append("Properties cannot be None")
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        if not isinstance(properties, Mapping):
            errors.append(
                f"Properties must be an object, got: {describe_type(properties)}"
            )
            return ValidationResult(valid=False, errors=errors, warnings=warnings)

        try:
            self._validate_required_properties(properties, errors, property_errors)
            self._validate_individual_properties(
                properties, errors, warnings, property_errors
            )
            self._apply_schema_validation_rules(properties, errors, property_errors)
        except Exception as e:
            # Raised by custom validators
            logger.debug("Validation raised", error=str(e))
            errors.append(f"Validation failed: {e}")

        return ValidationResult(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            property_errors=property_errors or None,
        )

    def _validate_required_properties(
        self,
        properties: Mapping,
        errors: List[str],
        property_errors: Dict[str, List[str]],
    ) -> None:
        for name in self._schema.required:
            if properties.get(name) is None:
                error = f"Required property '{name}' is missing"
                errors.append(error)
                property_errors.setdefault(name, []).append(error)

    def _validate_individual_properties(
        self,
        properties: Mapping,
        errors: List[str],
        warnings: List[str],
        property_errors: Dict[str, List[str]],
    ) -> None:
        for name, value in properties.items():
            if name in self._framework_properties:
                continue

            prop_def = self._schema.properties.get(name)
            if prop_def is None:
                warnings.append(f"Unknown property '{name}' not defined in schema")
                continue

            if prop_def.deprecated:
                warnings.append(f"Property '{name}' is deprecated")

            prop_errors = self._validate_property_type(value, prop_def, name)
            if value is not None and prop_def.validation:
                prop_errors.extend(
                    self._apply_validation_rules(value, prop_def.validation, name)
                )

            if prop_errors:
                errors.extend(prop_errors)
                property_errors.setdefault(name, []).extend(prop_errors)

    def _validate_property_type(
        self, value: Any, prop_def: PropertyDefinition, path: str
    ) -> List[str]:
        if value is None:
            # Required-list members are reported by the required check
            if prop_def.required and path not in self._schema.required:
                return [f"Property '{path}' is required but is null"]
            return []

        data_type = prop_def.data_type
        if data_type == PropertyType.STRING:
            ok = isinstance(value, str)
        elif data_type == PropertyType.NUMBER:
            ok = _is_number(value)
        elif data_type == PropertyType.BOOLEAN:
            ok = isinstance(value, bool)
        elif data_type == PropertyType.ARRAY:
            ok = isinstance(value, (list, tuple))
        elif data_type == PropertyType.OBJECT:
            ok = isinstance(value, Mapping)
        elif data_type == PropertyType.ANY:
            ok = True
        else:
            return [f"Unknown data type '{data_type}' for property '{path}'"]

        if ok:
            return []
        return [
            f"Property '{path}' must be {_EXPECTED_TYPE[data_type]}, "
            f"got: {describe_type(value)}"
        ]

    def _apply_validation_rules(
        self, value: Any, rules: List[ValidationRule], path: str
    ) -> List[str]:
        errors: List[str] = []

        for rule in rules:
            rule_type = rule.rule_type

            if rule_type == ValidationRuleType.REQUIRED:
                if value is None or value == "":
                    errors.append(rule.message or f"Property '{path}' is required")

            elif rule_type == ValidationRuleType.PATTERN_MATCH:
                if isinstance(value, str) and rule.value:
                    if not re.search(rule.value, value):
                        errors.append(
                            rule.message
                            or f"Property '{path}' does not match required pattern"
                        )

            elif rule_type == ValidationRuleType.VALUE_RANGE:
                if isinstance(rule.value, Mapping):
                    errors.extend(self._check_range(value, rule, path))

            elif rule_type == ValidationRuleType.CUSTOM_VALIDATION:
                if callable(rule.value) and not rule.value(value):
                    errors.append(
                        rule.message or f"Property '{path}' failed custom validation"
                    )

            # TYPE_CHECK is covered by _validate_property_type

        return errors

    @staticmethod
    def _check_range(value: Any, rule: ValidationRule, path: str) -> List[str]:
        bounds = rule.value
        errors: List[str] = []

        if _is_number(value):
            minimum, maximum = bounds.get("min"), bounds.get("max")
            if minimum is not None and value < minimum:
                errors.append(rule.message or f"Property '{path}' must be at least {minimum}")
            if maximum is not None and value > maximum:
                errors.append(rule.message or f"Property '{path}' must be at most {maximum}")

        elif isinstance(value, str):
            min_length, max_length = bounds.get("min_length"), bounds.get("max_length")
            if min_length is not None and len(value) < min_length:
                errors.append(
                    rule.message
                    or f"Property '{path}' must be at least {min_length} characters"
                )
            if max_length is not None and len(value) > max_length:
                errors.append(
                    rule.message
                    or f"Property '{path}' must be at most {max_length} characters"
                )

        return errors

    def _apply_schema_validation_rules(
        self,
        properties: Mapping,
        errors: List[str],
        property_errors: Dict[str, List[str]],
    ) -> None:
        for validation in self._schema.validation_rules or []:
            rule_errors = self._apply_validation_rules(
                properties.get(validation.property),
                validation.rules,
                validation.property,
            )
            if rule_errors:
                errors.extend(rule_errors)
                property_errors.setdefault(validation.property, []).extend(rule_errors)

    # ------------------------------------------------------------------
    # Defaults and transformation
    # ------------------------------------------------------------------

    def apply_defaults(self, properties: Optional[Mapping]) -> Dict[str, Any]:
        """Return a copy of ``properties`` with schema defaults for absent keys."""
        result = dict(properties or {})
        for name, prop_def in self._schema.properties.items():
            if name not in result and prop_def.default_value is not None:
                result[name] = copy.deepcopy(prop_def.default_value)
        return result

    def transform_properties(
        self, source_props: Optional[Mapping], target_schema: ApiSchema
    ) -> Dict[str, Any]:
        """Map properties onto ``target_schema``.

        Keys are renamed by the target's transformation rules, then values of
        known target properties are coerced to the target type. Keys unknown
        to the target schema are copied unchanged.

        Raises:
            PropertyTransformationError: If a value cannot be coerced
        """
        if not source_props:
            return {}

        if target_schema is None:
            raise PropertyTransformationError("Target schema cannot be None")

        rules = target_schema.transformation_rules or {}
        result: Dict[str, Any] = {}

        for source_key, value in source_props.items():
            target_key = rules.get(source_key, source_key)
            target_def = target_schema.properties.get(target_key)
            if target_def is None:
                result[target_key] = value
                continue
            try:
                result[target_key] = self._transform_value(value, target_def, target_key)
            except PropertyTransformationError as e:
                raise PropertyTransformationError(
                    f"Property transformation failed: {e.message}",
                    property_path=target_key,
                    cause=e,
                ) from e

        return result

    def map_property(
        self, property_name: str, value: Any, target_property: PropertyDefinition
    ) -> Any:
        """Coerce a single value to ``target_property``'s type.

        Raises:
            PropertyTransformationError: If the name is empty, the definition
                is missing, or the value cannot be coerced
        """
        if not property_name or not property_name.strip():
            raise PropertyTransformationError("Property name cannot be empty")

        if target_property is None:
            raise PropertyTransformationError(
                "Target property definition cannot be None",
                property_path=property_name,
            )

        try:
            return self._transform_value(value, target_property, property_name)
        except PropertyTransformationError as e:
            raise PropertyTransformationError(
                f"Property mapping failed for '{property_name}': {e.message}",
                property_path=property_name,
                cause=e,
            ) from e

    def _transform_value(
        self, value: Any, target: PropertyDefinition, path: str
    ) -> Any:
        if value is None:
            return copy.deepcopy(target.default_value)

        data_type = target.data_type
        if data_type == PropertyType.STRING:
            return self._to_string(value, path)
        if data_type == PropertyType.NUMBER:
            return self._to_number(value, path)
        if data_type == PropertyType.BOOLEAN:
            return self._to_boolean(value, path)
        if data_type == PropertyType.ARRAY:
            if isinstance(value, (list, tuple)):
                return list(value)
            raise PropertyTransformationError(
                f"Expected array at '{path}', got: {describe_type(value)}",
                property_path=path,
            )
        if data_type == PropertyType.OBJECT:
            if isinstance(value, Mapping):
                return dict(value)
            raise PropertyTransformationError(
                f"Expected object at '{path}', got: {describe_type(value)}",
                property_path=path,
            )
        return value

    @staticmethod
    def _to_string(value: Any, path: str) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if _is_number(value):
            return str(value)
        raise PropertyTransformationError(
            f"Cannot convert value at '{path}' to string. Got: {describe_type(value)}",
            property_path=path,
        )

    @staticmethod
    def _to_number(value: Any, path: str) -> Any:
        if _is_number(value):
            return value
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                pass
            try:
                parsed = float(text)
            except ValueError:
                parsed = math.nan
            if not math.isnan(parsed):
                return parsed
        raise PropertyTransformationError(
            f"Cannot convert value at '{path}' to number. Got: {describe_type(value)}",
            property_path=path,
        )

    @staticmethod
    def _to_boolean(value: Any, path: str) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
        if _is_number(value):
            return value != 0
        raise PropertyTransformationError(
            f"Cannot convert value at '{path}' to boolean. Got: {describe_type(value)}",
            property_path=path,
        )


_EXPECTED_TYPE = {
    PropertyType.STRING: "a string",
    PropertyType.NUMBER: "a number",
    PropertyType.BOOLEAN: "a boolean",
    PropertyType.ARRAY: "an array",
    PropertyType.OBJECT: "an object",
}
