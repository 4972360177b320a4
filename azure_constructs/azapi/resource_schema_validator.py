"""Property validation against a resolved API schema.

ResourceSchemaValidator is the validation front end used by AzapiResource:
it wraps a SchemaMapper and formats results for error messages.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..exceptions import SchemaDefinitionError
from ..version_manager import ApiSchema, ValidationResult
from .schema_mapper import SchemaMapper


class ResourceSchemaValidator:
    """Validates resource properties against one ApiSchema."""

    def __init__(
        self,
        schema: ApiSchema,
        framework_properties: Optional[Iterable[str]] = None,
    ):
        """Initialize the validator.

        Args:
            schema: Schema to validate against
            framework_properties: Property names skipped during validation

        Raises:
            SchemaDefinitionError: If the schema is None or malformed
        """
        if schema is None:
            raise SchemaDefinitionError("Schema cannot be None")

        self._schema = schema
        self._mapper = SchemaMapper.create(schema, framework_properties)

    @property
    def schema(self) -> ApiSchema:
        return self._schema

    @property
    def resource_type(self) -> str:
        return self._schema.resource_type

    @property
    def version(self) -> str:
        return self._schema.version

    def validate_props(self, properties: Optional[Mapping[str, Any]]) -> ValidationResult:
        if properties is None:
            return ValidationResult(
                valid=False, errors=["Properties cannot be None"], warnings=[]
            )
        return self._mapper.validate_properties(properties)

    def validate_schema(self) -> ValidationResult:
        """Check the schema itself is usable for validation."""
        errors: List[str] = []
        warnings: List[str] = []

        if not self._schema.resource_type:
            errors.append("Schema is missing resource_type")
        if not self._schema.version:
            errors.append("Schema is missing version")
        if self._schema.properties is None:
            errors.append("Schema is missing properties definition")
        if self._schema.required is None:
            errors.append("Schema is missing required properties list")

        if self._schema.required is not None and not self._schema.required:
            warnings.append("Schema has no required properties defined")
        if self._schema.properties is not None and not self._schema.properties:
            warnings.append("Schema has no properties defined")

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def apply_defaults(self, properties: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        return self._mapper.apply_defaults(properties)

    @staticmethod
    def format_validation_errors(result: ValidationResult) -> List[str]:
        """General errors first, then one ``[property] message`` line per property error."""
        formatted = list(result.errors)
        for prop, messages in (result.property_errors or {}).items():
            for message in messages:
                formatted.append(f"[{prop}] {message}")
        return formatted

    def is_property_required(self, name: str) -> bool:
        return name in (self._schema.required or [])

    def is_property_deprecated(self, name: str) -> bool:
        prop_def = self._schema.properties.get(name)
        return bool(prop_def and prop_def.deprecated)

    def required_properties(self) -> List[str]:
        return list(self._schema.required or [])

    def deprecated_properties(self) -> List[str]:
        return [
            name for name, prop_def in self._schema.properties.items() if prop_def.deprecated
        ]
