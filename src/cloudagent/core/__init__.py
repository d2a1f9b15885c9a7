"""Core functionality for cloudagent.

This module contains the core business logic including configuration
management, the SSH transport and the exception hierarchy. The
orchestrator and its collaborators live in their own submodules.
"""

from cloudagent.core.config import Config, ConfigManager, Settings
from cloudagent.core.exceptions import (
    CloudAgentError,
    ConfigurationError,
    CredentialTransferError,
    NetworkDetectionError,
    ProvisioningError,
    SSHConnectionError,
    VMNotFoundError,
    VMOperationError,
)
from cloudagent.core.ssh import SSHTransport

__all__ = [
    "CloudAgentError",
    "Config",
    "ConfigManager",
    "ConfigurationError",
    "CredentialTransferError",
    "NetworkDetectionError",
    "ProvisioningError",
    "SSHConnectionError",
    "SSHTransport",
    "Settings",
    "VMNotFoundError",
    "VMOperationError",
]
