"""Firewall allow-list model for cloudagent."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AllowedIpSet(BaseModel):
    """Ordered set of CIDR entries allowed to reach the VM's SSH port.

    Entries keep insertion order and are never duplicated.

    Example:
        >>> ips = AllowedIpSet()
        >>> ips.add("1.2.3.4/32")
        >>> ips.to_terraform()
        ['1.2.3.4/32']
    """

    entries: list[str] = Field(default_factory=list, description="CIDR entries")

    def add(self, cidr: str) -> None:
        """Append a CIDR entry unless it is already present."""
        if cidr not in self.entries:
            self.entries.append(cidr)

    @property
    def is_empty(self) -> bool:
        """True when no source is allowed."""
        return not self.entries

    def to_terraform(self) -> list[str]:
        """Serialize for the Terraform ``allowed_ips`` variable.

        Raises:
            ValueError: If the set is empty.
        """
        if self.is_empty:
            raise ValueError("Refusing to serialize an empty firewall allow-list")
        return list(self.entries)

    def __contains__(self, cidr: object) -> bool:
        return cidr in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __str__(self) -> str:
        return ", ".join(self.entries)
