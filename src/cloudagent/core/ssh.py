"""SSH transport to the operator's VM.

This module provides the connection used after provisioning:
- Command execution over a single paramiko connection
- SFTP uploads from memory with explicit permission bits
- Connection retry with exponential backoff while the guest boots
- Interactive tmux sessions and recursive copies via the system ssh/scp
"""

from __future__ import annotations

import contextlib
import io
import subprocess
from dataclasses import dataclass
from pathlib import Path

import paramiko

from cloudagent.core.exceptions import (
    SSHAuthenticationError,
    SSHConnectionError,
    SSHTimeoutError,
)
from cloudagent.models.identity import VmConnectionInfo
from cloudagent.utils.logging import get_logger
from cloudagent.utils.retry import retry_with_backoff

logger = get_logger("ssh")

TMUX_COMMAND = "tmux attach-session 2>/dev/null || tmux new-session"
VM_PREFIX = "vm:"


@dataclass
class SSHResult:
    """Result from an SSH command execution.

    Args:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        exit_code: Exit code of the command.
        host: Address of the VM where the command ran.
        command: The command that was executed.

    Attributes:
        success: True if exit code is 0.
    """

    stdout: str
    stderr: str
    exit_code: int
    host: str
    command: str

    @property
    def success(self) -> bool:
        """Check if command succeeded (exit code 0)."""
        return self.exit_code == 0


def sftp_path(remote_path: str) -> str:
    """Translate a ``~/``-relative path into one SFTP resolves against home.

    Example:
        >>> sftp_path("~/.ssh/id_ed25519")
        '.ssh/id_ed25519'
    """
    if remote_path == "~":
        return "."
    if remote_path.startswith("~/"):
        return remote_path[2:]
    return remote_path


class SSHTransport:
    """A single SSH connection to the VM.

    The connection is opened lazily on first use and reused for every
    command and upload of one invocation.

    Args:
        connection: Address, user and key for the VM.
        timeout: Connection timeout in seconds.

    Example:
        >>> with SSHTransport(info) as transport:
        ...     result = transport.run("ls /workspace")
        ...     transport.put_text("secret", "~/.git-credentials", 0o600)
    """

    def __init__(self, connection: VmConnectionInfo, timeout: int = 10) -> None:
        self.connection = connection
        self.timeout = timeout
        self._client: paramiko.SSHClient | None = None

    @property
    def host(self) -> str:
        """Address of the VM."""
        return self.connection.external_ip

    def _create_client(self) -> paramiko.SSHClient:
        """Create a new SSH client connection.

        Raises:
            SSHAuthenticationError: If authentication fails.
            SSHTimeoutError: If connection times out.
            SSHConnectionError: For other connection failures.
        """
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        key_filename = None
        if self.connection.ssh_key_path:
            if Path(self.connection.ssh_key_path).exists():
                key_filename = self.connection.ssh_key_path
            else:
                logger.warning(f"SSH key not found: {self.connection.ssh_key_path}")

        try:
            logger.debug(f"Connecting to {self.host} as {self.connection.ssh_user}")
            client.connect(
                hostname=self.host,
                username=self.connection.ssh_user,
                key_filename=key_filename,
                look_for_keys=True,
                allow_agent=True,
                timeout=self.timeout,
            )
            logger.debug(f"Connected to {self.host}")
            return client

        except paramiko.AuthenticationException as e:
            client.close()
            raise SSHAuthenticationError(self.host, self.connection.ssh_user) from e

        except TimeoutError as e:
            client.close()
            raise SSHTimeoutError(self.host, self.timeout) from e

        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise SSHConnectionError(self.host, str(e)) from e

    @retry_with_backoff(
        max_attempts=3,
        base_delay=2.0,
        exceptions=(SSHTimeoutError, SSHConnectionError),
    )
    def connect(self) -> paramiko.SSHClient:
        """Open the connection, or return the one already open.

        Returns:
            Connected SSH client.
        """
        if self._client is not None:
            transport = self._client.get_transport()
            if transport is not None and transport.is_active():
                return self._client
            self.close()

        self._client = self._create_client()
        return self._client

    def run(self, command: str, timeout: int | None = None) -> SSHResult:
        """Execute a command on the VM.

        Commands are never retried; callers inspect ``SSHResult.success``.

        Args:
            command: Shell command to execute.
            timeout: Command execution timeout.

        Returns:
            SSHResult with command output and exit code.

        Raises:
            SSHConnectionError: If the connection fails or drops.
        """
        logger.debug(f"Executing on {self.host}: {command}")
        client = self.connect()

        try:
            _stdin, stdout, stderr = client.exec_command(command, timeout=timeout)
            stdout_data = stdout.read().decode("utf-8", errors="replace")
            stderr_data = stderr.read().decode("utf-8", errors="replace")
            exit_code = stdout.channel.recv_exit_status()

        except TimeoutError as e:
            raise SSHConnectionError(self.host, f"Command timed out after {timeout}s") from e

        except paramiko.SSHException as e:
            self.close()
            raise SSHConnectionError(self.host, str(e)) from e

        result = SSHResult(
            stdout=stdout_data.strip(),
            stderr=stderr_data.strip(),
            exit_code=exit_code,
            host=self.host,
            command=command,
        )

        if result.success:
            logger.debug(f"Command succeeded on {self.host}")
        else:
            logger.warning(f"Command failed on {self.host} with exit code {exit_code}")

        return result

    def put_bytes(self, data: bytes, remote_path: str, mode: int = 0o600) -> None:
        """Upload in-memory content to the VM and set its permissions.

        Args:
            data: File content.
            remote_path: Destination path, ``~/`` meaning the login's home.
            mode: Permission bits applied after upload.

        Raises:
            SSHConnectionError: If the upload fails.
        """
        path = sftp_path(remote_path)
        client = self.connect()
        logger.debug(f"Uploading {len(data)} bytes to {self.host}:{path}")

        try:
            sftp = client.open_sftp()
            try:
                sftp.putfo(io.BytesIO(data), path)
                sftp.chmod(path, mode)
            finally:
                sftp.close()
        except (paramiko.SSHException, OSError) as e:
            raise SSHConnectionError(self.host, f"upload to {remote_path} failed: {e}") from e

    def put_text(self, content: str, remote_path: str, mode: int = 0o600) -> None:
        """Upload a string as a file on the VM."""
        self.put_bytes(content.encode("utf-8"), remote_path, mode)

    def put_file(self, local_path: str | Path, remote_path: str, mode: int = 0o600) -> None:
        """Upload a local file to the VM.

        The file is read into memory first so no temporary copy is made.
        """
        data = Path(local_path).expanduser().read_bytes()
        self.put_bytes(data, remote_path, mode)

    def close(self) -> None:
        """Close the connection if open."""
        if self._client is not None:
            with contextlib.suppress(Exception):
                self._client.close()
            self._client = None
            logger.debug(f"Closed connection to {self.host}")

    def __enter__(self) -> SSHTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _ssh_options(connection: VmConnectionInfo) -> list[str]:
    """Options shared by the interactive ssh and scp invocations."""
    options = []
    if connection.ssh_key_path:
        options.extend(["-i", connection.ssh_key_path])
    options.extend(["-o", "StrictHostKeyChecking=accept-new"])
    return options


def interactive_command(connection: VmConnectionInfo) -> list[str]:
    """Build the ssh command line that attaches to (or creates) a tmux session."""
    return ["ssh", *_ssh_options(connection), "-t", connection.target, TMUX_COMMAND]


def rewrite_vm_path(path: str, connection: VmConnectionInfo) -> str:
    """Replace the ``vm:`` shorthand with ``user@ip:``.

    Example:
        >>> rewrite_vm_path("vm:/workspace/out.txt", info)
        'jane-doe@34.1.2.3:/workspace/out.txt'
    """
    if path.startswith(VM_PREFIX):
        return f"{connection.target}:{path[len(VM_PREFIX):]}"
    return path


def scp_command(connection: VmConnectionInfo, src: str, dst: str) -> list[str]:
    """Build the recursive scp command line with ``vm:`` rewritten in both paths."""
    return [
        "scp",
        *_ssh_options(connection),
        "-r",
        rewrite_vm_path(src, connection),
        rewrite_vm_path(dst, connection),
    ]


def open_interactive_session(connection: VmConnectionInfo) -> None:
    """Hand the terminal to an interactive tmux session on the VM.

    Raises:
        SSHConnectionError: If ssh exits with a failure status.
    """
    cmd = interactive_command(connection)
    logger.info(f"Opening interactive session: {' '.join(cmd)}")
    result = subprocess.run(cmd, check=False)
    if result.returncode != 0:
        raise SSHConnectionError(
            connection.external_ip, f"ssh exited with status {result.returncode}"
        )


def copy_files(connection: VmConnectionInfo, src: str, dst: str) -> None:
    """Copy files between the workstation and the VM with scp.

    Raises:
        SSHConnectionError: If scp exits with a failure status.
    """
    cmd = scp_command(connection, src, dst)
    logger.info(f"Copying files: {' '.join(cmd)}")
    result = subprocess.run(cmd, check=False)
    if result.returncode != 0:
        raise SSHConnectionError(
            connection.external_ip, f"scp exited with status {result.returncode}"
        )
