"""
Tests for the Azure Constructs exception hierarchy.
"""

import pytest

from azure_constructs.catalog import CatalogError
from azure_constructs.config import ConfigError
from azure_constructs.exceptions import (
    AzureConstructsError,
    ConfigurationError,
    PropertyTransformationError,
    PropertyValidationError,
    SchemaDefinitionError,
    SchemaError,
    SchemaResolutionError,
    UnsupportedApiVersionError,
    VersionManagementError,
    VersionNotFoundError,
    VersionRegistrationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error_cls,base_cls,code",
        [
            (VersionRegistrationError, VersionManagementError, "INVALID_VERSION_REGISTRATION"),
            (UnsupportedApiVersionError, VersionManagementError, "UNSUPPORTED_API_VERSION"),
            (VersionNotFoundError, VersionManagementError, "VERSION_NOT_FOUND"),
            (SchemaResolutionError, VersionManagementError, "SCHEMA_RESOLUTION_FAILED"),
            (SchemaDefinitionError, SchemaError, "INVALID_SCHEMA"),
            (PropertyTransformationError, SchemaError, "PROPERTY_TRANSFORMATION_FAILED"),
            (PropertyValidationError, SchemaError, "PROPERTY_VALIDATION_FAILED"),
            (ConfigError, ConfigurationError, "INVALID_CONFIG"),
            (CatalogError, ConfigurationError, "INVALID_CATALOG"),
        ],
    )
    def test_error_codes(self, error_cls, base_cls, code):
        error = error_cls("boom")

        assert isinstance(error, base_cls)
        assert isinstance(error, AzureConstructsError)
        assert error.error_code == code


class TestFormatting:
    def test_str_includes_code_and_context(self):
        error = VersionNotFoundError(
            "Target version missing",
            resource_type="Microsoft.Test/resources",
            version="2030-01-01",
        )

        assert str(error) == (
            "[VERSION_NOT_FOUND] Target version missing "
            "(context: resource_type=Microsoft.Test/resources, version=2030-01-01)"
        )

    def test_str_includes_cause_and_suggestion(self):
        cause = ValueError("bad date")
        error = AzureConstructsError(
            "Failed", error_code="X", cause=cause, recovery_suggestion="Fix the date"
        )

        assert str(error) == "[X] Failed (caused by: bad date) (suggestion: Fix the date)"

    def test_to_dict(self):
        error = UnsupportedApiVersionError(
            "Unsupported API version",
            resource_type="Microsoft.Test/resources",
            version="2099-01-01",
            supported_versions=["2024-06-01"],
        )

        data = error.to_dict()

        assert data["error_type"] == "UnsupportedApiVersionError"
        assert data["error_code"] == "UNSUPPORTED_API_VERSION"
        assert data["context"] == {
            "resource_type": "Microsoft.Test/resources",
            "version": "2099-01-01",
        }
        assert data["cause"] is None
        assert data["recovery_suggestion"]
        assert error.supported_versions == ["2024-06-01"]

    def test_explicit_error_code_kept(self):
        error = VersionRegistrationError("nope", error_code="CUSTOM")

        assert error.error_code == "CUSTOM"

    def test_property_errors_carry_details(self):
        transformation = PropertyTransformationError("bad", property_path="sku.name")
        validation = PropertyValidationError(
            "invalid", resource_type="Microsoft.Test/resources", validation_errors=["[a] b"]
        )

        assert transformation.context == {"property_path": "sku.name"}
        assert validation.validation_errors == ["[a] b"]
        assert validation.context == {"resource_type": "Microsoft.Test/resources"}
