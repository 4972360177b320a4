"""Version catalog inspection commands.

This module provides commands for inspecting a version catalog file:
- 'versions': List the versions of a resource type
- 'lifecycle': Show the lifecycle phase of one version
- 'migrate': Analyze the migration between two versions
- 'resource-types': List the resource types a catalog declares
"""

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..catalog import register_catalog
from ..config import VersioningSettings
from ..exceptions import AzureConstructsError
from ..version_manager import ApiVersionManager, VersionSupportLevel

console = Console()

_SUPPORT_LEVEL_STYLES = {
    VersionSupportLevel.ACTIVE: "green",
    VersionSupportLevel.MAINTENANCE: "cyan",
    VersionSupportLevel.DEPRECATED: "yellow",
    VersionSupportLevel.SUNSET: "red",
}

catalog_argument = click.argument(
    "catalog", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)


def _load_manager(ctx: click.Context, catalog: Path) -> ApiVersionManager:
    settings = (ctx.obj or {}).get("settings") or VersioningSettings()
    manager = ApiVersionManager.from_settings(settings)
    register_catalog(manager, catalog)
    return manager


def _fail(message: str) -> NoReturn:
    console.print(f"[red]{escape(message)}[/red]")
    sys.exit(1)


def _styled_level(level: VersionSupportLevel) -> str:
    style = _SUPPORT_LEVEL_STYLES.get(level, "white")
    return f"[{style}]{level.value}[/{style}]"


@click.command("versions")
@catalog_argument
@click.argument("resource_type")
@click.pass_context
def versions(ctx: click.Context, catalog: Path, resource_type: str) -> None:
    """List the registered versions of RESOURCE_TYPE, newest first.

    Examples:
        azure-constructs versions catalog.yaml Microsoft.Resources/resourceGroups
    """
    try:
        manager = _load_manager(ctx, catalog)
    except AzureConstructsError as e:
        _fail(f"Failed to load catalog: {e}")

    supported = manager.supported_versions(resource_type)
    if not supported:
        _fail(f"Resource type '{resource_type}' is not registered in {catalog}")

    latest = manager.latest_version(resource_type)

    table = Table(title=f"API Versions: {resource_type}", show_header=True)
    table.add_column("Version", style="cyan")
    table.add_column("Support Level")
    table.add_column("Released")
    table.add_column("Sunset", style="dim")
    table.add_column("Breaking", justify="right")
    table.add_column("Latest")

    for version in supported:
        config = manager.version_config(resource_type, version)
        table.add_row(
            version,
            _styled_level(config.support_level),
            config.release_date,
            config.sunset_date or "-",
            str(len(config.breaking_changes)),
            "✓" if version == latest else "",
        )

    console.print(table)
    if latest is None:
        console.print("[yellow]No active version registered[/yellow]")


@click.command("lifecycle")
@catalog_argument
@click.argument("resource_type")
@click.argument("version")
@click.pass_context
def lifecycle(ctx: click.Context, catalog: Path, resource_type: str, version: str) -> None:
    """Show the lifecycle phase of VERSION of RESOURCE_TYPE."""
    try:
        manager = _load_manager(ctx, catalog)
    except AzureConstructsError as e:
        _fail(f"Failed to load catalog: {e}")

    info = manager.version_lifecycle(resource_type, version)
    if info is None:
        _fail(f"Version '{version}' not found for resource type '{resource_type}'")

    table = Table(title=f"Lifecycle: {resource_type}@{version}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Phase", _styled_level(info.phase))
    table.add_row("Since", info.transition_date or "-")
    table.add_row("Next phase", info.next_phase.value if info.next_phase else "-")
    table.add_row("Estimated sunset", info.estimated_sunset_date or "-")
    console.print(table)


@click.command("migrate")
@catalog_argument
@click.argument("resource_type")
@click.argument("from_version")
@click.argument("to_version")
@click.option(
    "--fail-on-breaking",
    is_flag=True,
    help="Exit with status 1 if the migration has breaking changes",
)
@click.pass_context
def migrate(
    ctx: click.Context,
    catalog: Path,
    resource_type: str,
    from_version: str,
    to_version: str,
    fail_on_breaking: bool,
) -> None:
    """Analyze the migration of RESOURCE_TYPE from FROM_VERSION to TO_VERSION.

    Examples:
        azure-constructs migrate catalog.yaml Microsoft.Storage/storageAccounts \\
            2023-01-01 2024-01-01 --fail-on-breaking
    """
    try:
        manager = _load_manager(ctx, catalog)
        analysis = manager.analyze_migration(resource_type, from_version, to_version)
    except AzureConstructsError as e:
        _fail(f"Migration analysis failed: {e}")

    console.print(f"[bold]Migration {from_version} -> {to_version}[/bold]")
    console.print(f"Compatible: {'yes' if analysis.compatible else 'no'}")
    console.print(f"Estimated effort: {analysis.estimated_effort.value}")
    console.print(
        "Automatic upgrade possible: "
        f"{'yes' if analysis.automatic_upgrade_possible else 'no'}"
    )

    if analysis.breaking_changes:
        table = Table(title="Breaking Changes", show_header=True)
        table.add_column("Type", style="yellow")
        table.add_column("Property", style="cyan")
        table.add_column("Description")
        for change in analysis.breaking_changes:
            table.add_row(
                change.change_type.value,
                change.property or "-",
                escape(change.description),
            )
        console.print(table)

    for warning in analysis.warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")

    if not analysis.compatible and fail_on_breaking:
        console.print(
            Panel(
                f"{len(analysis.breaking_changes)} breaking change(s) found",
                style="red",
                title="Incompatible",
            )
        )
        sys.exit(1)


@click.command("resource-types")
@catalog_argument
@click.pass_context
def resource_types(ctx: click.Context, catalog: Path) -> None:
    """List the resource types declared in CATALOG."""
    try:
        manager = _load_manager(ctx, catalog)
    except AzureConstructsError as e:
        _fail(f"Failed to load catalog: {e}")

    table = Table(title="Registered Resource Types", show_header=True)
    table.add_column("Resource Type", style="cyan")
    table.add_column("Versions", justify="right")
    table.add_column("Latest", style="green")
    for resource_type in sorted(manager.registered_resource_types()):
        table.add_row(
            resource_type,
            str(len(manager.supported_versions(resource_type))),
            manager.latest_version(resource_type) or "-",
        )
    console.print(table)
