"""Identity and connection models for cloudagent.

This module defines the derived operator identity that names the VM
and the connection details used to reach it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VmIdentity(BaseModel):
    """Deterministic identity for the operator's VM.

    Args:
        name: GCE instance name (lowercase, hyphen separated).
        owner: Owner label value (lowercase, underscore separated).
        ssh_username: Login created on the guest by SSH hardening.

    Example:
        >>> identity = VmIdentity(
        ...     name="jane-doe-cloud-agent",
        ...     owner="jane_doe",
        ...     ssh_username="jane-doe",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: Annotated[str, Field(min_length=1, max_length=63, description="VM name")]
    owner: Annotated[str, Field(min_length=1, description="Owner label")]
    ssh_username: Annotated[str, Field(min_length=1, description="Guest SSH user")]


class VmConnectionInfo(BaseModel):
    """Everything needed to open a direct connection to the VM.

    Args:
        external_ip: Public address of the VM.
        internal_ip: VPC-internal address of the VM (if known).
        ssh_user: Hardened login on the guest.
        ssh_key_path: Private key used to authenticate.
    """

    external_ip: Annotated[str, Field(min_length=1, description="External IP")]
    internal_ip: str | None = Field(default=None, description="Internal IP")
    ssh_user: Annotated[str, Field(min_length=1, description="SSH user")]
    ssh_key_path: str | None = Field(default=None, description="SSH private key")

    @field_validator("ssh_key_path")
    @classmethod
    def expand_ssh_key_path(cls, v: str | None) -> str | None:
        """Expand ~ in SSH key path."""
        if v is not None:
            return str(Path(v).expanduser())
        return v

    @property
    def target(self) -> str:
        """The ``user@host`` form used by ssh and scp."""
        return f"{self.ssh_user}@{self.external_ip}"
