"""Credential models for cloudagent.

Credential material is held only in memory for the duration of a
transfer; ``local_value`` is never included in reprs or dumps.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

GIT_SSH_KEY = "git-ssh-key"
GIT_PAT = "git-pat"


class CredentialSpec(BaseModel):
    """One credential artifact and where it goes on the guest.

    Args:
        kind: Credential kind (``git-ssh-key``, ``git-pat`` or an agent kind).
        local_path: File to read on the operator's machine.
        local_value: In-memory material, used instead of ``local_path``.
        remote_path: Destination on the guest, relative to the home directory.
        mode: File permission bits applied on the guest.
    """

    kind: str
    local_path: str | None = None
    local_value: str | None = Field(default=None, repr=False, exclude=True)
    remote_path: str
    mode: int = 0o600

    @model_validator(mode="after")
    def check_source(self) -> CredentialSpec:
        """Exactly one of local_path or local_value must be given."""
        if (self.local_path is None) == (self.local_value is None):
            raise ValueError("Provide exactly one of local_path or local_value")
        return self


class CredentialBundle(BaseModel):
    """Credential specs keyed by kind."""

    items: dict[str, CredentialSpec] = Field(default_factory=dict)

    def add(self, spec: CredentialSpec) -> None:
        """Add or replace the spec for its kind."""
        self.items[spec.kind] = spec

    def get(self, kind: str) -> CredentialSpec | None:
        """Get a spec by kind."""
        return self.items.get(kind)
