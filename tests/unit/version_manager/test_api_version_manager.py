"""
Unit tests for the API version registry.

Tests registration validation and atomicity, latest-version selection,
lookups, lifecycle queries and constraint-based selection.
"""

import threading

import pytest

from azure_constructs.config import EffortThresholds, VersioningSettings
from azure_constructs.exceptions import VersionRegistrationError
from azure_constructs.version_manager import (
    ApiSchema,
    ApiVersionManager,
    VersionConfig,
    VersionConstraints,
    VersionSupportLevel,
)

TEST_TYPE = "Microsoft.Test/resources"


class TestRegistration:
    """Test register_resource_type validation and storage."""

    def test_basic_round_trip(self, manager, make_version):
        """Register three versions and read them back newest first."""
        versions = [
            make_version("2024-01-01", VersionSupportLevel.DEPRECATED),
            make_version("2024-06-01", VersionSupportLevel.ACTIVE),
            make_version("2024-12-01", VersionSupportLevel.ACTIVE),
        ]

        manager.register_resource_type(TEST_TYPE, versions)

        assert manager.latest_version(TEST_TYPE) == "2024-12-01"
        assert manager.supported_versions(TEST_TYPE) == [
            "2024-12-01",
            "2024-06-01",
            "2024-01-01",
        ]
        assert manager.registered_resource_types() == [TEST_TYPE]

    def test_version_config_returns_registered_objects(self, manager, make_version):
        """Lookups return the exact objects that were registered."""
        versions = [make_version("2024-01-01"), make_version("2024-06-01")]
        manager.register_resource_type(TEST_TYPE, versions)

        for config in versions:
            assert manager.version_config(TEST_TYPE, config.version) is config

    def test_supported_versions_sorted_by_release_date_not_input_order(
        self, manager, make_version
    ):
        """Sorting uses release dates, not version strings or input order."""
        versions = [
            make_version("b", release_date="2024-06-01"),
            make_version("a", release_date="2024-12-01"),
            make_version("c", release_date="2023-01-01"),
        ]
        manager.register_resource_type(TEST_TYPE, versions)

        assert manager.supported_versions(TEST_TYPE) == ["a", "b", "c"]

    def test_empty_resource_type_rejected(self, manager, make_version):
        with pytest.raises(VersionRegistrationError, match="Resource type cannot be empty"):
            manager.register_resource_type("   ", [make_version("2024-01-01")])

    def test_empty_versions_rejected(self, manager):
        with pytest.raises(VersionRegistrationError, match="Versions array cannot be empty"):
            manager.register_resource_type(TEST_TYPE, [])

    def test_empty_version_string_rejected(self, manager, make_schema):
        config = VersionConfig(
            version="",
            schema=make_schema(""),
            support_level=VersionSupportLevel.ACTIVE,
            release_date="2024-01-01",
        )
        with pytest.raises(VersionRegistrationError, match="Version string cannot be empty"):
            manager.register_resource_type(TEST_TYPE, [config])

    def test_non_string_version_rejected(self, manager, make_schema):
        config = VersionConfig(
            version=20240101,
            schema=make_schema("20240101"),
            support_level=VersionSupportLevel.ACTIVE,
            release_date="2024-01-01",
        )
        with pytest.raises(VersionRegistrationError, match="Version must be a string") as exc_info:
            manager.register_resource_type(TEST_TYPE, [config])

        assert exc_info.value.context["version"] == "20240101"
        assert manager.registered_resource_types() == []

    def test_missing_schema_rejected(self, manager):
        config = VersionConfig(
            version="2024-01-01",
            schema=None,
            support_level=VersionSupportLevel.ACTIVE,
            release_date="2024-01-01",
        )
        with pytest.raises(VersionRegistrationError, match="Schema is required"):
            manager.register_resource_type(TEST_TYPE, [config])

    def test_schema_resource_type_mismatch_rejected(self, manager, make_version):
        config = make_version("2024-01-01", resource_type="Microsoft.Other/things")
        with pytest.raises(VersionRegistrationError, match="does not match") as exc_info:
            manager.register_resource_type(TEST_TYPE, [config])

        assert exc_info.value.resource_type == TEST_TYPE
        assert exc_info.value.version == "2024-01-01"

    def test_schema_version_mismatch_rejected(self, manager, make_schema):
        config = VersionConfig(
            version="2024-01-01",
            schema=make_schema("2023-01-01"),
            support_level=VersionSupportLevel.ACTIVE,
            release_date="2024-01-01",
        )
        with pytest.raises(
            VersionRegistrationError,
            match="Schema version '2023-01-01' does not match config version '2024-01-01'",
        ):
            manager.register_resource_type(TEST_TYPE, [config])

    def test_missing_support_level_rejected(self, manager, make_schema):
        config = VersionConfig(
            version="2024-01-01",
            schema=make_schema("2024-01-01"),
            support_level=None,
            release_date="2024-01-01",
        )
        with pytest.raises(VersionRegistrationError, match="Support level is required"):
            manager.register_resource_type(TEST_TYPE, [config])

    def test_missing_release_date_rejected(self, manager, make_schema):
        config = VersionConfig(
            version="2024-01-01",
            schema=make_schema("2024-01-01"),
            support_level=VersionSupportLevel.ACTIVE,
            release_date="",
        )
        with pytest.raises(VersionRegistrationError, match="Release date is required"):
            manager.register_resource_type(TEST_TYPE, [config])

    def test_unparseable_release_date_rejected(self, manager, make_version):
        config = make_version("2024-01-01", release_date="not-a-date")
        with pytest.raises(VersionRegistrationError, match="Invalid release date format"):
            manager.register_resource_type(TEST_TYPE, [config])

    def test_duplicate_versions_rejected(self, manager, make_version):
        """Duplicates are rejected even when their content differs."""
        versions = [
            make_version("2024-01-01", VersionSupportLevel.ACTIVE),
            make_version(
                "2024-01-01", VersionSupportLevel.DEPRECATED, release_date="2023-05-05"
            ),
        ]
        with pytest.raises(VersionRegistrationError, match="Duplicate version '2024-01-01'"):
            manager.register_resource_type(TEST_TYPE, versions)

    def test_failed_registration_leaves_no_entry(self, manager, make_version):
        """A single invalid version aborts the whole batch."""
        versions = [
            make_version("2024-01-01"),
            make_version("2024-06-01"),
            make_version("2024-12-01", release_date="garbage"),
        ]
        with pytest.raises(VersionRegistrationError):
            manager.register_resource_type(TEST_TYPE, versions)

        assert TEST_TYPE not in manager.registered_resource_types()
        assert manager.supported_versions(TEST_TYPE) == []

    def test_failed_reregistration_keeps_previous_entry(self, manager, make_version):
        manager.register_resource_type(TEST_TYPE, [make_version("2024-01-01")])

        with pytest.raises(VersionRegistrationError):
            manager.register_resource_type(
                TEST_TYPE, [make_version("2024-06-01"), make_version("2024-06-01")]
            )

        assert manager.supported_versions(TEST_TYPE) == ["2024-01-01"]

    def test_reregistration_replaces_entry(self, manager, make_version):
        manager.register_resource_type(TEST_TYPE, [make_version("2024-01-01")])
        manager.register_resource_type(TEST_TYPE, [make_version("2024-06-01")])

        assert manager.supported_versions(TEST_TYPE) == ["2024-06-01"]
        assert manager.registered_resource_types() == [TEST_TYPE]

    def test_schema_without_properties_is_accepted(self, manager):
        config = VersionConfig(
            version="2024-01-01",
            schema=ApiSchema(resource_type=TEST_TYPE, version="2024-01-01"),
            support_level=VersionSupportLevel.ACTIVE,
            release_date="2024-01-01",
        )
        manager.register_resource_type(TEST_TYPE, [config])

        assert manager.validate_version_support(TEST_TYPE, "2024-01-01")

    def test_support_level_accepts_string_values(self, manager, make_schema):
        config = VersionConfig(
            version="2024-01-01",
            schema=make_schema("2024-01-01"),
            support_level="active",
            release_date="2024-01-01",
        )
        manager.register_resource_type(TEST_TYPE, [config])

        assert manager.latest_version(TEST_TYPE) == "2024-01-01"

    def test_concurrent_registration_keeps_every_type(self, manager, make_version):
        """Registrations from several threads are all retained."""
        resource_types = [f"Microsoft.Test/type{i}" for i in range(20)]
        batches = {
            rt: [make_version("2024-01-01", resource_type=rt)] for rt in resource_types
        }

        threads = [
            threading.Thread(
                target=manager.register_resource_type, args=(rt, batches[rt])
            )
            for rt in resource_types
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(manager.registered_resource_types()) == sorted(resource_types)


class TestLatestVersion:
    """Test latest ACTIVE version selection."""

    def test_latest_is_newest_active(self, manager, make_version):
        versions = [
            make_version("2024-01-01", VersionSupportLevel.ACTIVE),
            make_version("2024-12-01", VersionSupportLevel.MAINTENANCE),
            make_version("2024-06-01", VersionSupportLevel.ACTIVE),
        ]
        manager.register_resource_type(TEST_TYPE, versions)

        assert manager.latest_version(TEST_TYPE) == "2024-06-01"

    def test_no_active_version_returns_none(self, manager, make_version):
        versions = [
            make_version("2024-01-01", VersionSupportLevel.DEPRECATED),
            make_version("2024-06-01", VersionSupportLevel.MAINTENANCE),
        ]
        manager.register_resource_type(TEST_TYPE, versions)

        assert manager.latest_version(TEST_TYPE) is None

    def test_unregistered_type_returns_none(self, manager):
        assert manager.latest_version("Microsoft.Unknown/things") is None

    def test_release_dates_with_time_components(self, manager, make_version):
        versions = [
            make_version("v1", release_date="2024-06-01T08:00:00Z"),
            make_version("v2", release_date="2024-06-01T09:30:00+00:00"),
        ]
        manager.register_resource_type(TEST_TYPE, versions)

        assert manager.latest_version(TEST_TYPE) == "v2"


class TestLookups:
    """Test pure lookup operations."""

    def test_version_config_unknown_keys(self, resource_group_manager):
        assert resource_group_manager.version_config("Microsoft.Unknown/x", "2024-11-01") is None
        assert (
            resource_group_manager.version_config(
                "Microsoft.Resources/resourceGroups", "1999-01-01"
            )
            is None
        )

    def test_validate_version_support(self, resource_group_manager):
        rg = "Microsoft.Resources/resourceGroups"
        assert resource_group_manager.validate_version_support(rg, "2024-03-01") is True
        assert resource_group_manager.validate_version_support(rg, "2099-01-01") is False
        assert (
            resource_group_manager.validate_version_support("Microsoft.Unknown/x", "2024-03-01")
            is False
        )

    def test_supported_versions_unregistered_type(self, manager):
        assert manager.supported_versions("Microsoft.Unknown/x") == []

    def test_registered_resource_types_empty(self, manager):
        assert manager.registered_resource_types() == []


class TestVersionLifecycle:
    """Test lifecycle views of registered versions."""

    @pytest.mark.parametrize(
        "level,expected_next",
        [
            (VersionSupportLevel.ACTIVE, VersionSupportLevel.MAINTENANCE),
            (VersionSupportLevel.MAINTENANCE, VersionSupportLevel.DEPRECATED),
            (VersionSupportLevel.DEPRECATED, VersionSupportLevel.SUNSET),
            (VersionSupportLevel.SUNSET, None),
        ],
    )
    def test_next_phase(self, manager, make_version, level, expected_next):
        manager.register_resource_type(TEST_TYPE, [make_version("2024-01-01", level)])

        lifecycle = manager.version_lifecycle(TEST_TYPE, "2024-01-01")

        assert lifecycle.phase == level
        assert lifecycle.next_phase == expected_next

    def test_lifecycle_fields(self, manager, make_version):
        config = make_version(
            "2024-01-01",
            VersionSupportLevel.DEPRECATED,
            release_date="2024-01-15",
            sunset_date="2026-01-01",
        )
        manager.register_resource_type(TEST_TYPE, [config])

        lifecycle = manager.version_lifecycle(TEST_TYPE, "2024-01-01")

        assert lifecycle.version == "2024-01-01"
        assert lifecycle.transition_date == "2024-01-15"
        assert lifecycle.estimated_sunset_date == "2026-01-01"

    def test_unknown_version_returns_none(self, manager, make_version):
        manager.register_resource_type(TEST_TYPE, [make_version("2024-01-01")])

        assert manager.version_lifecycle(TEST_TYPE, "2030-01-01") is None
        assert manager.version_lifecycle("Microsoft.Unknown/x", "2024-01-01") is None


class TestFindVersionByConstraints:
    """Test constraint-based version selection."""

    @pytest.fixture
    def registered(self, manager, make_version):
        manager.register_resource_type(
            TEST_TYPE,
            [
                make_version("2023-01-01", VersionSupportLevel.DEPRECATED),
                make_version("2023-06-01", VersionSupportLevel.MAINTENANCE),
                make_version("2024-01-01", VersionSupportLevel.ACTIVE),
                make_version("2024-06-01", VersionSupportLevel.ACTIVE),
            ],
        )
        return manager

    def test_support_level_selects_newest_match(self, registered):
        constraints = VersionConstraints(support_level=VersionSupportLevel.ACTIVE)

        assert registered._find_version_by_constraints(TEST_TYPE, constraints) == "2024-06-01"

    def test_maintenance_only(self, registered):
        constraints = VersionConstraints(support_level=VersionSupportLevel.MAINTENANCE)

        assert registered._find_version_by_constraints(TEST_TYPE, constraints) == "2023-06-01"

    def test_deprecated_excluded_by_default(self, registered):
        constraints = VersionConstraints(support_level=VersionSupportLevel.DEPRECATED)

        assert registered._find_version_by_constraints(TEST_TYPE, constraints) is None

    def test_deprecated_included_when_not_excluded(self, registered):
        constraints = VersionConstraints(
            support_level=VersionSupportLevel.DEPRECATED, exclude_deprecated=False
        )

        assert registered._find_version_by_constraints(TEST_TYPE, constraints) == "2023-01-01"

    def test_not_older_than(self, registered):
        constraints = VersionConstraints(
            not_older_than="2023-03-01", exclude_deprecated=False
        )
        assert registered._find_version_by_constraints(TEST_TYPE, constraints) == "2024-06-01"

        constraints = VersionConstraints(not_older_than="2025-01-01")
        assert registered._find_version_by_constraints(TEST_TYPE, constraints) is None

    def test_not_older_than_is_inclusive(self, registered):
        constraints = VersionConstraints(
            support_level=VersionSupportLevel.MAINTENANCE, not_older_than="2023-06-01"
        )

        assert registered._find_version_by_constraints(TEST_TYPE, constraints) == "2023-06-01"

    def test_required_features_do_not_filter(self, registered):
        constraints = VersionConstraints(required_features=["privateEndpoints"])

        assert registered._find_version_by_constraints(TEST_TYPE, constraints) == "2024-06-01"

    def test_unregistered_type(self, manager):
        assert manager._find_version_by_constraints("Microsoft.Unknown/x", VersionConstraints()) is None


class TestSharedInstance:
    """Test the process-wide shared registry."""

    def test_instance_is_lazily_created_once(self, reset_shared_manager):
        first = ApiVersionManager.instance()
        second = ApiVersionManager.instance()

        assert first is second
        assert isinstance(first, ApiVersionManager)

    def test_constructed_registries_are_independent(
        self, reset_shared_manager, make_version
    ):
        local = ApiVersionManager()
        local.register_resource_type(TEST_TYPE, [make_version("2024-01-01")])

        assert TEST_TYPE not in ApiVersionManager.instance().registered_resource_types()

    def test_from_settings_uses_effort_thresholds(self):
        settings = VersioningSettings(migration={"effort": {"medium_total": 0}})

        manager = ApiVersionManager.from_settings(settings)

        assert manager.effort_thresholds == EffortThresholds(medium_total=0)
