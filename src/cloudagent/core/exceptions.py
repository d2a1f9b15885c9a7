"""Custom exceptions for cloudagent.

This module defines a hierarchy of exceptions used throughout cloudagent
to provide meaningful error messages and enable proper error handling.

Exception Hierarchy:
    CloudAgentError (base)
    ├── ConfigurationError
    │   ├── ConfigNotFoundError
    │   ├── MissingIdentityError
    │   ├── UnknownAgentError
    │   └── UnknownPermissionError
    ├── NetworkDetectionError
    ├── ProvisioningError
    ├── VMOperationError
    │   └── VMNotFoundError
    ├── SSHConnectionError
    │   ├── SSHAuthenticationError
    │   └── SSHTimeoutError
    ├── CredentialTransferError
    └── RepositorySyncError
"""

from __future__ import annotations

from typing import Any


class CloudAgentError(Exception):
    """Base exception for all cloudagent errors.

    Args:
        message: Human-readable error message.
        details: Optional dictionary with additional error context.

    Attributes:
        message: The error message.
        details: Additional context about the error.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(CloudAgentError):
    """Raised when there is a configuration-related error.

    Examples:
        - Invalid YAML syntax in config file
        - No GCP project configured
        - Invalid operator identity or flag combination
    """


class ConfigNotFoundError(ConfigurationError):
    """Raised when the configuration file cannot be found.

    Args:
        path: The path where the config was expected.
    """

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Configuration file not found: {path}",
            details={"path": path},
        )
        self.path = path


class MissingIdentityError(ConfigurationError):
    """Raised when the operator's first or last name cannot be determined."""

    def __init__(self) -> None:
        super().__init__("First and last name are required to derive the VM owner")


class UnknownAgentError(ConfigurationError):
    """Raised when the requested agent is not in the registry.

    Args:
        name: The agent name that was requested.
        available: Names of the registered agents.
    """

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"Unknown agent '{name}'. Available agents: {', '.join(available)}",
        )
        self.name = name
        self.available = available


class UnknownPermissionError(ConfigurationError):
    """Raised when strict permission checking rejects a permission name.

    Args:
        names: The unrecognized permission names.
    """

    def __init__(self, names: list[str]) -> None:
        super().__init__(
            f"Unknown permission(s): {', '.join(names)}",
            details={"permissions": ",".join(names)},
        )
        self.names = names


class NetworkDetectionError(CloudAgentError):
    """Raised when no public address can be detected for the firewall allow-list."""

    def __init__(self, message: str = "Could not detect your public IP address") -> None:
        super().__init__(
            f"{message}. A public address is required to secure the firewall rules."
        )


class ProvisioningError(CloudAgentError):
    """Raised when a Terraform operation fails.

    Args:
        operation: The Terraform subcommand that failed (init, apply, destroy).
        output: Diagnostic output from the tool.
    """

    def __init__(self, operation: str, output: str = "") -> None:
        message = f"Terraform {operation} failed"
        if output:
            message = f"{message}:\n{output}"
        super().__init__(message)
        self.operation = operation
        self.output = output


class VMOperationError(CloudAgentError):
    """Raised when a VM lifecycle operation fails.

    Args:
        vm_name: The name of the VM.
        operation: The operation that failed (e.g., 'start', 'stop').
        message: Description of the failure.
    """

    def __init__(self, vm_name: str, operation: str, message: str) -> None:
        super().__init__(
            f"Failed to {operation} VM '{vm_name}': {message}",
            details={"vm_name": vm_name, "operation": operation},
        )
        self.vm_name = vm_name
        self.operation = operation


class VMNotFoundError(VMOperationError):
    """Raised when a VM cannot be found.

    Args:
        vm_name: The name of the VM.
    """

    def __init__(self, vm_name: str) -> None:
        super().__init__(vm_name, "find", "VM does not exist")


class SSHConnectionError(CloudAgentError):
    """Raised when an SSH connection fails.

    Args:
        host: The hostname or IP address.
        message: Description of the connection failure.
    """

    def __init__(self, host: str, message: str) -> None:
        super().__init__(
            f"SSH connection to '{host}' failed: {message}",
            details={"host": host},
        )
        self.host = host


class SSHAuthenticationError(SSHConnectionError):
    """Raised when SSH authentication fails.

    Args:
        host: The hostname or IP address.
        username: The username used for authentication.
    """

    def __init__(self, host: str, username: str | None = None) -> None:
        msg = "authentication failed"
        if username:
            msg = f"authentication failed for user '{username}'"
        super().__init__(host, msg)
        self.username = username


class SSHTimeoutError(SSHConnectionError):
    """Raised when an SSH connection times out.

    Args:
        host: The hostname or IP address.
        timeout: The timeout value in seconds.
    """

    def __init__(self, host: str, timeout: int) -> None:
        super().__init__(host, f"connection timed out after {timeout}s")
        self.timeout = timeout
        self.details["timeout"] = timeout


class CredentialTransferError(CloudAgentError):
    """Raised by a single credential transfer step.

    The credential fan-out downgrades these to warnings; they never
    abort an invocation.

    Args:
        kind: The credential kind being transferred.
        message: Description of the failure.
    """

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f"Could not transfer {kind}: {message}", details={"kind": kind})
        self.kind = kind


class RepositorySyncError(CloudAgentError):
    """Raised when a repository cannot be cloned or updated on the VM.

    Args:
        repo: The repository URL.
        message: Description of the failure.
    """

    def __init__(self, repo: str, message: str) -> None:
        super().__init__(f"Failed to sync repository '{repo}': {message}")
        self.repo = repo
