"""CLI commands for the azure-constructs entry point."""

from .versions import lifecycle, migrate, resource_types, versions

__all__ = ["lifecycle", "migrate", "resource_types", "versions"]
