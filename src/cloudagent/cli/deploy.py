"""Deploy command for cloudagent."""

from __future__ import annotations

import click

from cloudagent.cli.context import Context, pass_context
from cloudagent.cli.vm import run_command
from cloudagent.core.orchestrator import Command


@click.command("deploy")
@click.argument("repos", nargs=-1)
@click.option(
    "--create-vm",
    "force_create",
    is_flag=True,
    help="Create the VM even if one appears to exist.",
)
@click.option(
    "--skip-vm",
    "skip_create",
    is_flag=True,
    help="Reuse the existing VM; fail if there is none.",
)
@click.option(
    "--skip-creds",
    is_flag=True,
    help="Do not transfer GitHub or agent credentials.",
)
@pass_context
def deploy(
    ctx: Context,
    repos: tuple[str, ...],
    force_create: bool,
    skip_create: bool,
    skip_creds: bool,
) -> None:
    """Create or reuse your VM and set it up for the agent.

    REPOS are repository URLs to clone into /workspace. Without any,
    the origin of the current git repository is used. This is the
    default command, so 'ca REPO' is the same as 'ca deploy REPO'.

    Examples:

        $ ca

        $ ca git@github.com:org/repo.git

        $ ca deploy --skip-vm --skip-creds https://github.com/org/repo.git
    """
    run_command(
        ctx,
        Command.DEPLOY,
        repos=list(repos),
        force_create=force_create,
        skip_create=skip_create,
        skip_creds=skip_creds,
    )
