"""VM lifecycle commands for cloudagent.

This module provides CLI commands for listing, starting, stopping,
terminating and connecting to the operator's VM.
"""

from __future__ import annotations

from typing import Any

import click

from cloudagent.cli.context import Context, pass_context
from cloudagent.core.exceptions import CloudAgentError
from cloudagent.core.orchestrator import Command
from cloudagent.utils.output import OutputFormat, OutputFormatter, print_error, print_info


def run_command(ctx: Context, command: Command, **kwargs: Any) -> Any:
    """Dispatch a command, turning tool errors into a message and exit 1."""
    try:
        orchestrator = ctx.init_orchestrator()
        return orchestrator.dispatch(command, **kwargs)
    except CloudAgentError as e:
        print_error(str(e))
        raise SystemExit(1) from e


@click.command("list")
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["table", "json", "yaml"]),
    default="table",
    help="Output format.",
)
@pass_context
def list_vms(ctx: Context, fmt: str) -> None:
    """List cloud-agent VMs in the project.

    Shows every VM labelled purpose=cloud-agent, not just your own.

    Examples:

        $ ca list

        $ ca list --format json
    """
    instances = run_command(ctx, Command.LIST)

    if not instances:
        print_info("No cloud-agent VMs found")
        return

    formatter = OutputFormatter(OutputFormat(fmt))
    formatter.print_instances(instances)


@click.command("start")
@pass_context
def start(ctx: Context) -> None:
    """Start your stopped VM.

    Examples:

        $ ca start
    """
    run_command(ctx, Command.START)


@click.command("stop")
@pass_context
def stop(ctx: Context) -> None:
    """Stop your VM. Disks and workspace are kept.

    Examples:

        $ ca stop
    """
    run_command(ctx, Command.STOP)


@click.command("terminate")
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@pass_context
def terminate(ctx: Context, yes: bool) -> None:
    """Delete your VM. This action is irreversible.

    Uses Terraform when local state exists, so the firewall rules and
    service account are removed as well.

    Examples:

        $ ca terminate

        $ ca terminate --yes
    """

    def confirm(question: str) -> bool:
        return yes or click.confirm(question, default=False)

    run_command(ctx, Command.TERMINATE, confirm=confirm)


@click.command("ssh")
@pass_context
def ssh(ctx: Context) -> None:
    """Open a tmux session on your VM.

    Attaches to the existing tmux session or starts a new one.

    Examples:

        $ ca ssh
    """
    run_command(ctx, Command.SSH)


@click.command("scp")
@click.argument("src")
@click.argument("dst")
@pass_context
def scp(ctx: Context, src: str, dst: str) -> None:
    """Copy files to or from your VM.

    Prefix a path with 'vm:' to refer to the VM. Directories are
    copied recursively.

    Examples:

        $ ca scp ./notes.md vm:/workspace/

        $ ca scp vm:/workspace/out.txt ./out.txt
    """
    run_command(ctx, Command.SCP, src=src, dst=dst)


@click.command("reapply")
@pass_context
def reapply(ctx: Context) -> None:
    """Re-apply the VM configuration with Terraform.

    Refreshes the firewall allow-list with your current address (for
    example after changing networks). Credentials and repositories are
    not touched. Also available as 'ca tf'.

    Examples:

        $ ca reapply

        $ ADDITIONAL_IP=203.0.113.7 ca tf
    """
    run_command(ctx, Command.REAPPLY_CONFIG)
