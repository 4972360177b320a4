"""Command line entry point for inspecting API version catalogs."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from .commands.versions import lifecycle, migrate, resource_types, versions
from .config import ConfigError, load_config
from .logging_config import configure_logging

console = Console()


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Logging level (DEBUG, INFO, WARNING, ERROR). Overrides the config file.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to a versioning YAML config file",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], config_path: Optional[Path]) -> None:
    """Azure Constructs - API version management for AzAPI resources."""
    ctx.ensure_object(dict)

    overrides = {"log_level": log_level} if log_level else None
    try:
        settings = load_config(config_path, overrides=overrides)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(1)

    configure_logging(settings.log_level)
    ctx.obj["settings"] = settings


cli.add_command(versions)
cli.add_command(lifecycle)
cli.add_command(migrate)
cli.add_command(resource_types)


if __name__ == "__main__":
    cli()
