"""Base class for coding-agent backends.

Each agent knows how to tell whether it is installed and logged in on
the operator's machine, where its credential lives, and how that
credential is installed on the VM. The orchestrator never looks inside
agent credential files.
"""

from __future__ import annotations

import posixpath
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from cloudagent.core.exceptions import CredentialTransferError, SSHConnectionError
from cloudagent.core.ssh import SSHTransport
from cloudagent.models.credentials import CredentialSpec
from cloudagent.utils.logging import get_logger

logger = get_logger("agents")


class Agent(ABC):
    """A pluggable coding assistant run on the VM.

    Args:
        home: Home directory to read local credentials from. Defaults
            to the current user's home.

    Attributes:
        name: Registry key (``auggie``, ``claude``, ``codex``).
        display_name: Human readable name.
        command: Executable name, locally and on the VM.
        install_command: How to install the CLI.
        login_instructions: What to run when not logged in locally.
        credential_kind: Kind used in the credential bundle.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    command: ClassVar[str]
    install_command: ClassVar[str]
    login_instructions: ClassVar[str]
    credential_kind: ClassVar[str]

    def __init__(self, home: Path | None = None) -> None:
        self.home = home or Path.home()

    def is_installed_locally(self) -> bool:
        """True when the agent CLI is on the local PATH."""
        return shutil.which(self.command) is not None

    @abstractmethod
    def is_authenticated(self) -> bool:
        """True when the local agent has a usable login."""

    @abstractmethod
    def extract_credential(self) -> CredentialSpec:
        """Locate the local credential to install on the VM.

        Raises:
            CredentialTransferError: If no credential is available.
        """

    def after_upload_command(self) -> str | None:
        """Extra shell command run on the VM after the upload, if any."""
        return None

    def transfer_credential(self, transport: SSHTransport) -> None:
        """Install the agent credential on the VM.

        Raises:
            CredentialTransferError: If extraction or any remote step fails.
        """
        spec = self.extract_credential()

        remote_dir = posixpath.dirname(spec.remote_path)
        try:
            if remote_dir and remote_dir != "~":
                self._run_step(transport, f"mkdir -p {remote_dir}")

            if spec.local_value is not None:
                transport.put_text(spec.local_value, spec.remote_path, spec.mode)
            else:
                transport.put_file(spec.local_path, spec.remote_path, spec.mode)

            extra = self.after_upload_command()
            if extra:
                self._run_step(transport, extra)
        except (SSHConnectionError, OSError) as e:
            raise CredentialTransferError(self.credential_kind, str(e)) from e

        logger.info(f"{self.display_name} credential installed at {spec.remote_path}")

    def _run_step(self, transport: SSHTransport, command: str) -> None:
        result = transport.run(command)
        if not result.success:
            raise CredentialTransferError(
                self.credential_kind, result.stderr or f"'{command}' failed"
            )

    def remote_run_command(self) -> str:
        """Command that starts the agent on the VM."""
        return self.command

    def remote_install_instructions(self) -> str:
        """How to install the agent on the VM by hand."""
        return self.install_command
