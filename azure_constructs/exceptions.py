"""
Custom Exception Hierarchy for Azure Constructs

This module provides the exception hierarchy used by the API version
management framework. Every error carries structured context (resource type,
version, error code) so callers and log processors can act on it without
parsing messages.
"""

from typing import Any, Dict, List, Optional


class AzureConstructsError(Exception):
    """
    Base exception class for all Azure Constructs related errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


def _with_version_context(
    kwargs: Dict[str, Any],
    resource_type: Optional[str],
    version: Optional[str],
) -> Dict[str, Any]:
    context = kwargs.get("context", {})
    if resource_type:
        context["resource_type"] = resource_type
    if version:
        context["version"] = version
    kwargs["context"] = context
    return kwargs


# Version management exceptions
class VersionManagementError(AzureConstructsError):
    """Base class for API version registry and resolution errors."""

    pass


class VersionRegistrationError(VersionManagementError):
    """Raised when a resource type registration is rejected."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        version: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_version_context(kwargs, resource_type, version)
        kwargs.setdefault("error_code", "INVALID_VERSION_REGISTRATION")
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.version = version


class UnsupportedApiVersionError(VersionManagementError):
    """Raised when an explicitly requested API version is not registered."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        version: Optional[str] = None,
        supported_versions: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_version_context(kwargs, resource_type, version)
        kwargs.setdefault("error_code", "UNSUPPORTED_API_VERSION")
        kwargs.setdefault(
            "recovery_suggestion",
            "Pin one of the supported versions or omit the version to use the latest",
        )
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.version = version
        self.supported_versions = list(supported_versions or [])


class VersionNotFoundError(VersionManagementError):
    """Raised when a migration references a version that is not registered."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        version: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_version_context(kwargs, resource_type, version)
        kwargs.setdefault("error_code", "VERSION_NOT_FOUND")
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.version = version


class SchemaResolutionError(VersionManagementError):
    """Raised when no schema is registered for a resource type and version."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        version: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs = _with_version_context(kwargs, resource_type, version)
        kwargs.setdefault("error_code", "SCHEMA_RESOLUTION_FAILED")
        kwargs.setdefault(
            "recovery_suggestion",
            "Ensure the version is registered with the ApiVersionManager",
        )
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.version = version


# Schema-related exceptions
class SchemaError(AzureConstructsError):
    """Base class for schema definition, mapping and validation errors."""

    pass


class SchemaDefinitionError(SchemaError):
    """Raised when an ApiSchema is structurally invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "INVALID_SCHEMA")
        super().__init__(message, **kwargs)


class PropertyTransformationError(SchemaError):
    """Raised when a property value cannot be mapped to the target schema."""

    def __init__(
        self, message: str, property_path: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if property_path:
            context["property_path"] = property_path
        kwargs["context"] = context
        kwargs.setdefault("error_code", "PROPERTY_TRANSFORMATION_FAILED")
        super().__init__(message, **kwargs)
        self.property_path = property_path


class PropertyValidationError(SchemaError):
    """Raised when resource properties fail schema validation."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if resource_type:
            context["resource_type"] = resource_type
        kwargs["context"] = context
        kwargs.setdefault("error_code", "PROPERTY_VALIDATION_FAILED")
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.validation_errors = list(validation_errors or [])


# Configuration-related exceptions
class ConfigurationError(AzureConstructsError):
    """Base class for configuration and catalog loading errors."""

    pass
