"""Data models for cloudagent.

This module contains Pydantic models for identity, network policy,
instances and credentials.
"""

from cloudagent.models.credentials import CredentialBundle, CredentialSpec
from cloudagent.models.identity import VmConnectionInfo, VmIdentity
from cloudagent.models.network import AllowedIpSet
from cloudagent.models.vm import ExistenceSource, Instance, InstanceStatus, VmExistenceRecord

__all__ = [
    "AllowedIpSet",
    "CredentialBundle",
    "CredentialSpec",
    "ExistenceSource",
    "Instance",
    "InstanceStatus",
    "VmConnectionInfo",
    "VmExistenceRecord",
    "VmIdentity",
]
