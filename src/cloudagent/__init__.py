"""cloudagent - provision per-operator GCP VMs for autonomous coding agents.

This package provides a command-line interface that creates (or reuses)
one VM per operator through Terraform, installs GitHub and agent
credentials on it, and syncs repositories into its workspace.

Example:
    $ ca deploy git@github.com:org/repo.git
    $ ca ssh
    $ ca scp vm:/workspace/out.txt ./out.txt
    $ ca terminate
"""

__version__ = "0.1.0"

from cloudagent.core.exceptions import (
    CloudAgentError,
    ConfigurationError,
    ProvisioningError,
    SSHConnectionError,
    VMNotFoundError,
    VMOperationError,
)

__all__ = [
    "CloudAgentError",
    "ConfigurationError",
    "ProvisioningError",
    "SSHConnectionError",
    "VMNotFoundError",
    "VMOperationError",
    "__version__",
]
