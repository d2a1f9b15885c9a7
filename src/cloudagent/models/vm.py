"""VM models for cloudagent.

This module defines the data models for Compute Engine instances
reported by gcloud and for the create-vs-reuse existence verdict.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field


class InstanceStatus(str, Enum):
    """Compute Engine instance lifecycle states."""

    PROVISIONING = "PROVISIONING"
    STAGING = "STAGING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    SUSPENDING = "SUSPENDING"
    SUSPENDED = "SUSPENDED"
    REPAIRING = "REPAIRING"
    TERMINATED = "TERMINATED"
    UNKNOWN = "UNKNOWN"

    @property
    def color(self) -> str:
        """Rich color for this state.

        Returns:
            Color name for Rich console output.
        """
        colors = {
            InstanceStatus.RUNNING: "green",
            InstanceStatus.TERMINATED: "red",
            InstanceStatus.PROVISIONING: "yellow",
            InstanceStatus.STAGING: "yellow",
            InstanceStatus.STOPPING: "yellow",
            InstanceStatus.SUSPENDING: "yellow",
            InstanceStatus.SUSPENDED: "blue",
            InstanceStatus.REPAIRING: "magenta",
            InstanceStatus.UNKNOWN: "dim",
        }
        return colors.get(self, "white")

    @property
    def symbol(self) -> str:
        """Status symbol for this state.

        Returns:
            Unicode symbol representing the state.
        """
        symbols = {
            InstanceStatus.RUNNING: "●",
            InstanceStatus.TERMINATED: "○",
            InstanceStatus.PROVISIONING: "◐",
            InstanceStatus.STAGING: "◐",
            InstanceStatus.STOPPING: "◑",
            InstanceStatus.SUSPENDING: "◑",
            InstanceStatus.SUSPENDED: "◉",
        }
        return symbols.get(self, "?")


class Instance(BaseModel):
    """A cloud-agent VM as reported by ``gcloud compute instances list``.

    Args:
        name: Instance name.
        zone: Zone short name (e.g. ``us-central1-a``).
        status: Current lifecycle state.
        owner: Value of the ``owner`` label.
        skip_deletion: Value of the ``skip_deletion`` label.
        external_ip: NAT address of the first interface.
    """

    name: Annotated[str, Field(min_length=1, description="Instance name")]
    zone: str | None = Field(default=None, description="Zone")
    status: InstanceStatus = Field(default=InstanceStatus.UNKNOWN, description="State")
    owner: str | None = Field(default=None, description="Owner label")
    skip_deletion: str | None = Field(default=None, description="skip_deletion label")
    external_ip: str | None = Field(default=None, description="External IP")

    @property
    def status_display(self) -> str:
        """Formatted status string with symbol.

        Returns:
            String like "● RUNNING" for display.
        """
        return f"{self.status.symbol} {self.status.value}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = self.model_dump(exclude_none=True)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_gcloud_output(cls, data: dict[str, Any]) -> Instance:
        """Create an Instance from one element of gcloud's JSON output.

        Args:
            data: Dictionary from ``gcloud compute instances list --format=json``.

        Returns:
            Instance populated with gcloud data.
        """
        try:
            status = InstanceStatus(str(data.get("status", "UNKNOWN")).upper())
        except ValueError:
            status = InstanceStatus.UNKNOWN

        labels = data.get("labels") or {}

        external_ip = None
        for interface in data.get("networkInterfaces") or []:
            for access in interface.get("accessConfigs") or []:
                if access.get("natIP"):
                    external_ip = access["natIP"]
                    break
            if external_ip:
                break

        zone = data.get("zone")
        if zone:
            zone = zone.rsplit("/", 1)[-1]

        return cls(
            name=data.get("name", "unknown"),
            zone=zone,
            status=status,
            owner=labels.get("owner"),
            skip_deletion=labels.get("skip_deletion"),
            external_ip=external_ip,
        )


class ExistenceSource(str, Enum):
    """Where the existence verdict came from."""

    LOCAL_STATE = "local_state"
    PROVIDER_QUERY = "provider_query"
    NONE = "none"


class VmExistenceRecord(BaseModel):
    """Whether the operator's VM exists, and who said so."""

    model_config = ConfigDict(frozen=True)

    exists: bool
    source: ExistenceSource
