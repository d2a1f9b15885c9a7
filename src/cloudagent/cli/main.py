"""Main CLI entry point for cloudagent.

This module defines the main CLI group and global options that are
shared across all commands. Every option can also be given through an
environment variable. Without a subcommand, ``deploy`` runs.
"""

from __future__ import annotations

import os
import sys
import traceback
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from cloudagent import __version__
from cloudagent.cli.config_cmd import config
from cloudagent.cli.context import Context, pass_context
from cloudagent.cli.deploy import deploy
from cloudagent.cli.vm import list_vms, reapply, scp, ssh, start, stop, terminate
from cloudagent.core.config import get_default_config_path
from cloudagent.core.exceptions import CloudAgentError
from cloudagent.utils.logging import configure_logging
from cloudagent.utils.output import error_console, print_error

DEFAULT_COMMAND = "deploy"


class DefaultCommandGroup(click.Group):
    """A group that routes unknown leading arguments to a default command.

    ``ca git@github.com:org/repo.git`` runs ``ca deploy git@github.com:org/repo.git``.
    """

    def __init__(self, *args: Any, default_command: str = DEFAULT_COMMAND, **kwargs: Any) -> None:
        kwargs.setdefault("invoke_without_command", True)
        context_settings = kwargs.setdefault("context_settings", {})
        context_settings.setdefault("ignore_unknown_options", True)
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if args and self.get_command(ctx, args[0]) is None:
            default = self.get_command(ctx, self.default_command)
            if default is not None:
                return self.default_command, default, args
        return super().resolve_command(ctx, args)


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console = Console()
    console.print(f"cloudagent version [cyan]{__version__}[/cyan]")
    ctx.exit()


@click.group(cls=DefaultCommandGroup)
@click.option("--agent", envvar="AGENT", help="Agent backend (auggie, claude, codex).")
@click.option("--project-id", envvar="PROJECT_ID", help="GCP project (default: gcloud config).")
@click.option("--region", envvar="REGION", help="GCP region.")
@click.option("--zone", envvar="ZONE", help="GCP zone for the VM.")
@click.option("--machine-type", envvar="MACHINE_TYPE", help="Compute Engine machine type.")
@click.option("--cluster-name", envvar="CLUSTER_NAME", help="GKE cluster to configure.")
@click.option("--ssh-key", envvar="SSH_KEY", help="SSH private key (default: auto-detect).")
@click.option("--github-token", envvar="GITHUB_TOKEN", help="GitHub personal access token.")
@click.option(
    "--github-token-file",
    envvar="GITHUB_TOKEN_FILE",
    type=click.Path(dir_okay=False),
    help="File containing a GitHub personal access token.",
)
@click.option(
    "--skip-deletion",
    envvar="SKIP_DELETION",
    help="Value of the skip_deletion label (yes/no).",
)
@click.option(
    "--permissions",
    envvar="PERMISSIONS",
    help="Comma-separated permissions for the VM (e.g. compute,gke or admin).",
)
@click.option(
    "--strict-permissions",
    is_flag=True,
    envvar="CLOUDAGENT_STRICT_PERMISSIONS",
    help="Fail on unknown permission names instead of ignoring them.",
)
@click.option(
    "--additional-ip",
    envvar="ADDITIONAL_IP",
    help="Extra address allowed to reach the VM over SSH.",
)
@click.option("--username", envvar="USERNAME", help="Owner name override.")
@click.option("--company", envvar="COMPANY", help="Organization suffix for the owner label.")
@click.option(
    "--state-dir",
    envvar="CLOUDAGENT_STATE_DIR",
    type=click.Path(file_okay=False),
    help="Terraform working directory.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v, -vv, -vvv for more).",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    envvar="CLOUDAGENT_DEBUG",
    help="Show full error tracebacks.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    envvar="CLOUDAGENT_CONFIG",
    help=f"Path to config file (default: {get_default_config_path()}).",
)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@pass_context
@click.pass_context
def cli(
    click_ctx: click.Context,
    ctx: Context,
    verbose: int,
    debug: bool,
    config_path: str | None,
    strict_permissions: bool,
    **settings: str | None,
) -> None:
    """ca - Run coding agents on your own cloud VM.

    Creates (or reuses) one GCP VM per operator with Terraform, installs
    GitHub and agent credentials on it, and clones your repositories
    into /workspace.

    Use -v, -vv, or -vvv for increasing levels of verbosity.

    Examples:

        # Deploy the repository in the current directory

        $ ca

        # Deploy specific repositories with Claude Code

        $ AGENT=claude ca git@github.com:org/repo.git

        # Connect to the VM

        $ ca ssh

        # Copy a result back

        $ ca scp vm:/workspace/out.txt ./out.txt
    """
    ctx.verbose = verbose
    ctx.debug = debug

    configure_logging(verbosity=verbose)

    if config_path:
        ctx.config_path = Path(config_path).expanduser()

    ctx.overrides = dict(settings)
    if strict_permissions:
        ctx.overrides["strict_permissions"] = True

    if click_ctx.invoked_subcommand is None:
        click_ctx.invoke(deploy)


cli.add_command(deploy)
cli.add_command(list_vms)
cli.add_command(start)
cli.add_command(stop)
cli.add_command(terminate)
cli.add_command(ssh)
cli.add_command(scp)
cli.add_command(reapply)
cli.add_command(reapply, name="tf")
cli.add_command(config)


def main() -> None:
    """Main entry point with error handling."""
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        error_console.print("\n[dim]Aborted[/dim]")
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except CloudAgentError as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        error_console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("CLOUDAGENT_DEBUG") or "--debug" in sys.argv:
            traceback.print_exc()
        else:
            print_error(f"Unexpected error: {e}")
            error_console.print("[dim]Use --debug for full traceback[/dim]")
        sys.exit(1)


if __name__ == "__main__":
    main()
