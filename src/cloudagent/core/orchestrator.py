"""Deployment orchestrator.

The ``Orchestrator`` owns one invocation: it derives the operator's
identity, decides whether the VM must be created, drives provisioning,
fans out credentials, syncs repositories, and implements the lifecycle
verbs. External tools are reached only through the wrappers in
``cloudagent.core``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any

import requests

from cloudagent.agents.base import Agent
from cloudagent.core.config import Settings
from cloudagent.core.credentials import (
    CredentialFanout,
    FanoutReport,
    build_git_bundle,
    find_ssh_key,
    read_github_token,
)
from cloudagent.core.exceptions import ConfigurationError
from cloudagent.core.existence import ExistenceResolver
from cloudagent.core.gcloud import GcloudClient, get_configured_project
from cloudagent.core.identity import NamePrompt, derive_identity
from cloudagent.core.network import build_allowed_ips
from cloudagent.core.provisioner import ProvisionAction, Provisioner, decide_action
from cloudagent.core.repos import (
    detect_current_repo,
    extract_repo_name,
    sync_repositories,
    validate_repo_url,
)
from cloudagent.core.ssh import SSHTransport, copy_files, open_interactive_session
from cloudagent.core.terraform import TerraformRunner
from cloudagent.models.identity import VmConnectionInfo, VmIdentity
from cloudagent.models.vm import Instance
from cloudagent.utils.logging import get_logger
from cloudagent.utils.output import (
    print_header,
    print_info,
    print_success,
    print_warning,
)

logger = get_logger("orchestrator")


class Command(str, Enum):
    """Verbs the orchestrator can carry out."""

    LIST = "list"
    START = "start"
    STOP = "stop"
    TERMINATE = "terminate"
    SSH = "ssh"
    SCP = "scp"
    REAPPLY_CONFIG = "reapply"
    DEPLOY = "deploy"


@dataclass
class DeployResult:
    """What a deploy did."""

    action: ProvisionAction
    connection: VmConnectionInfo
    credentials: FanoutReport | None
    repos: list[str]


class Orchestrator:
    """Carries out one command for the operator's VM.

    Args:
        settings: Invocation settings.
        agent: Selected agent backend.
        terraform: Terraform runner (built from ``settings.state_dir`` if omitted).
        gcloud: gcloud client (built from the resolved project if omitted).
        show_progress: Show spinners during long operations.
        prompt: Asks for first/last name when it cannot be derived.
        transport_factory: Builds the SSH transport for a connection.
        http_session: Session used for public address lookups.
    """

    def __init__(
        self,
        settings: Settings,
        agent: Agent,
        terraform: TerraformRunner | None = None,
        gcloud: GcloudClient | None = None,
        show_progress: bool = True,
        prompt: NamePrompt | None = None,
        transport_factory: Callable[..., SSHTransport] = SSHTransport,
        http_session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.agent = agent
        self._terraform = terraform
        self._gcloud = gcloud
        self.show_progress = show_progress
        self.prompt = prompt
        self.transport_factory = transport_factory
        self.http_session = http_session

    @cached_property
    def project_id(self) -> str:
        """GCP project from settings, else from gcloud's configuration.

        Raises:
            ConfigurationError: If no project is configured anywhere.
        """
        project = self.settings.project_id or get_configured_project()
        if not project:
            raise ConfigurationError(
                "No GCP project configured. Set PROJECT_ID or run "
                "'gcloud config set project <project>'"
            )
        return project

    @property
    def terraform(self) -> TerraformRunner:
        if self._terraform is None:
            self._terraform = TerraformRunner(self.settings.state_path)
        return self._terraform

    @property
    def gcloud(self) -> GcloudClient:
        if self._gcloud is None:
            self._gcloud = GcloudClient(self.project_id, self.settings.zone)
        return self._gcloud

    @cached_property
    def provisioner(self) -> Provisioner:
        settings = self.settings.model_copy(update={"project_id": self.project_id})
        return Provisioner(
            settings,
            self.terraform,
            self.gcloud,
            show_progress=self.show_progress,
        )

    @cached_property
    def identity(self) -> VmIdentity:
        return derive_identity(
            username_override=self.settings.username,
            company=self.settings.company,
            prompt=self.prompt,
        )

    @cached_property
    def ssh_key_path(self) -> str | None:
        return find_ssh_key(self.settings.ssh_key)

    def dispatch(self, command: Command, **kwargs: Any) -> Any:
        """Run the handler for ``command`` with the given arguments."""
        handlers: dict[Command, Callable[..., Any]] = {
            Command.LIST: self.list_instances,
            Command.START: self.start,
            Command.STOP: self.stop,
            Command.TERMINATE: self.terminate,
            Command.SSH: self.ssh,
            Command.SCP: self.scp,
            Command.REAPPLY_CONFIG: self.reapply,
            Command.DEPLOY: self.deploy,
        }
        logger.debug(f"Dispatching {command.value}")
        return handlers[command](**kwargs)

    def list_instances(self) -> list[Instance]:
        """All cloud-agent VMs in the project."""
        return self.gcloud.list_instances()

    def start(self) -> None:
        name = self.identity.name
        self.gcloud.start(name)
        print_success(f"Started {name}")

    def stop(self) -> None:
        name = self.identity.name
        self.gcloud.stop(name)
        print_success(f"Stopped {name}")

    def terminate(self, confirm: Callable[[str], bool]) -> bool:
        """Delete the VM after confirmation.

        Terraform destroy is used when local state manages this VM so that
        the firewall and service account go too; otherwise the instance is
        deleted directly.

        Args:
            confirm: Asked with a question; returns True to proceed.

        Returns:
            False when the operator declined.
        """
        name = self.identity.name
        if not confirm(f"Permanently delete VM '{name}'?"):
            print_info("Termination cancelled")
            return False

        tool = self.provisioner.destroy(self.identity)
        print_success(f"Terminated {name} ({tool})")
        return True

    def connection(self) -> VmConnectionInfo:
        """Resolve how to reach the VM."""
        if not self.ssh_key_path:
            print_warning("No SSH key found; relying on ssh defaults")
        return self.provisioner.resolve_connection(self.identity, self.ssh_key_path)

    def ssh(self) -> None:
        connection = self.connection()
        print_info(f"Connecting to {self.identity.name} ({connection.target})...")
        open_interactive_session(connection)

    def scp(self, src: str, dst: str) -> None:
        copy_files(self.connection(), src, dst)
        print_success("Copy complete")

    def reapply(self) -> ProvisionAction:
        """Refresh the VM configuration, firewall allow-list included.

        Credentials and repositories are left alone.

        Raises:
            ConfigurationError: If local state does not manage this VM.
        """
        self.provisioner.require_state(self.identity)
        logger.info(f"Provisioning action: {ProvisionAction.UPDATING.value}")
        allowed = build_allowed_ips(self.settings.additional_ip, self.http_session)
        print_info(f"Allowing SSH from: {allowed}")
        self.provisioner.update(self.identity, allowed, self.ssh_key_path)
        print_success(f"Configuration re-applied to {self.identity.name}")
        return ProvisionAction.UPDATING

    def check_agent(self) -> None:
        """Warn when the agent CLI is missing or not logged in locally."""
        agent = self.agent
        if not agent.is_installed_locally():
            print_warning(
                f"{agent.display_name} is not installed locally. "
                f"Install it with: {agent.install_command}"
            )
        elif not agent.is_authenticated():
            print_warning(f"{agent.display_name} is not logged in. {agent.login_instructions}")
        else:
            logger.info(f"{agent.display_name} found and logged in")

    def resolve_repos(self, repos: list[str]) -> list[str]:
        """Validate the given repositories, defaulting to the current one."""
        if not repos:
            try:
                repos = [detect_current_repo()]
            except ConfigurationError as e:
                print_warning(f"{e.message} No repository will be synced.")
                return []
        return [validate_repo_url(url) for url in repos]

    def deploy(
        self,
        repos: list[str] | None = None,
        force_create: bool = False,
        skip_create: bool = False,
        skip_creds: bool = False,
    ) -> DeployResult:
        """Create or reuse the VM, install credentials and sync repositories.

        Raises:
            ConfigurationError: For invalid flags, identity or repositories.
            VMNotFoundError: If reuse was requested and there is no VM.
            NetworkDetectionError: If the firewall allow-list cannot be built.
            ProvisioningError: If Terraform fails.
            RepositorySyncError: If a repository cannot be synced.
        """
        self.check_agent()
        repo_urls = self.resolve_repos(list(repos or []))

        identity = self.identity
        print_info(f"VM: {identity.name} (owner {identity.owner})")

        existence = ExistenceResolver(self.terraform, self.gcloud).resolve(identity)
        action = decide_action(existence, force_create, skip_create, identity.name)
        logger.info(f"Provisioning action: {action.value} (source {existence.source.value})")

        if action is ProvisionAction.NEEDS_CREATE:
            allowed = build_allowed_ips(self.settings.additional_ip, self.http_session)
            print_info(f"Allowing SSH from: {allowed}")
            connection = self.provisioner.create(identity, allowed, self.ssh_key_path)
            print_success(f"Created {identity.name}")
        else:
            print_info(f"Reusing existing VM {identity.name}")
            connection = self.provisioner.resolve_connection(identity, self.ssh_key_path)

        report = None
        with self.transport_factory(connection, timeout=self.settings.ssh_timeout) as transport:
            if skip_creds:
                print_info("Skipping credential transfer")
            else:
                bundle = build_git_bundle(self.ssh_key_path, read_github_token(self.settings))
                report = CredentialFanout(transport, self.agent).run(bundle)

            sync_repositories(transport, repo_urls)

        self.print_ready(connection, repo_urls)
        return DeployResult(
            action=action,
            connection=connection,
            credentials=report,
            repos=repo_urls,
        )

    def print_ready(self, connection: VmConnectionInfo, repos: list[str]) -> None:
        """Show how to connect and start working."""
        key = f"-i {connection.ssh_key_path} " if connection.ssh_key_path else ""
        workdir = f"/workspace/{extract_repo_name(repos[0])}" if repos else "/workspace"
        body = "\n".join(
            [
                "Connect (tmux):   ca ssh",
                f"Or manually:      ssh {key}{connection.target}",
                "",
                f"Start working:    cd {workdir} && {self.agent.remote_run_command()}",
                f"Agent missing?    {self.agent.remote_install_instructions()}",
                "",
                "Manage the VM:    ca list | ca stop | ca start | ca terminate",
            ]
        )
        print_header("Cloud Agent Ready", body)
