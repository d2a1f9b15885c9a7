"""Configuration management commands for cloudagent.

This module provides CLI commands for viewing and managing
the cloudagent configuration file.
"""

from __future__ import annotations

import json

import click
import yaml

from cloudagent.cli.context import Context, pass_context
from cloudagent.core.config import ConfigManager, get_default_config_path
from cloudagent.core.exceptions import ConfigurationError
from cloudagent.utils.output import console, print_error, print_info, print_success


@click.group()
def config() -> None:
    """Manage cloudagent configuration.

    Commands for viewing, validating, and initializing the
    configuration file.
    """


@config.command("show")
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    help="Output format.",
)
@click.option(
    "--effective",
    is_flag=True,
    help="Show the settings after environment and flag overrides.",
)
@pass_context
def config_show(ctx: Context, fmt: str, effective: bool) -> None:
    """Show current configuration.

    Displays the configuration file contents, or with --effective the
    settings this invocation would use. Tokens are masked.

    Examples:

        $ ca config show

        $ ca --zone europe-west1-b config show --effective --format json
    """
    try:
        config_manager = ctx.init_config()
        if effective:
            data = ctx.init_settings().model_dump(exclude_none=True)
            if data.get("github_token"):
                data["github_token"] = "********"
        else:
            data = config_manager.to_dict(mask_secrets=True)
    except ConfigurationError as e:
        print_error(str(e))
        raise SystemExit(1) from e

    if fmt == "json":
        console.print_json(json.dumps(data, indent=2, default=str))
    else:
        console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))

    console.print(f"\n[dim]Config file: {config_manager.path}[/dim]")


@config.command("validate")
@pass_context
def config_validate(ctx: Context) -> None:
    """Validate the configuration file.

    Checks that the configuration file exists and contains
    valid YAML with correct structure.

    Examples:

        $ ca config validate
    """
    config_path = ctx.config_path or get_default_config_path()

    if not config_path.exists():
        print_error(f"Configuration file not found: {config_path}")
        print_info("Run 'ca config init' to create a default config.")
        raise SystemExit(1)

    try:
        config_manager = ConfigManager(config_path)
    except ConfigurationError as e:
        print_error(f"Invalid configuration: {e}")
        raise SystemExit(1) from e

    defaults = config_manager.config.defaults
    print_success(f"Configuration is valid: {config_path}")
    console.print(f"  Agent: {defaults.agent}")
    console.print(f"  Zone: {defaults.zone}")
    console.print(f"  Machine Type: {defaults.machine_type}")
    console.print(f"  State Dir: {defaults.state_dir}")
    console.print(f"  Log Level: {config_manager.config.logging.level}")


@config.command("init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration.",
)
@pass_context
def config_init(ctx: Context, force: bool) -> None:
    """Create a default configuration file.

    Creates an example configuration file with default values.

    Examples:

        $ ca config init

        $ ca config init --force
    """
    config_path = ctx.config_path or get_default_config_path()

    if config_path.exists() and not force:
        print_error(f"Configuration already exists: {config_path}")
        print_info("Use --force to overwrite.")
        raise SystemExit(1)

    try:
        path = ConfigManager.create_example_config(config_path)
    except OSError as e:
        print_error(f"Failed to create configuration: {e}")
        raise SystemExit(1) from e

    print_success(f"Created configuration at: {path}")
    print_info("Edit this file to set your project, zone and defaults.")


@config.command("path")
@pass_context
def config_path(ctx: Context) -> None:
    """Show the configuration file path.

    Displays the path where cloudagent looks for its configuration.

    Examples:

        $ ca config path
    """
    path = ctx.config_path or get_default_config_path()
    console.print(str(path))

    if path.exists():
        console.print("[dim](file exists)[/dim]")
    else:
        console.print("[dim](file does not exist)[/dim]")
