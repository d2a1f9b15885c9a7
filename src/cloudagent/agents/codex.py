"""Codex (OpenAI) agent."""

from __future__ import annotations

from pathlib import Path

from cloudagent.agents.base import Agent
from cloudagent.core.exceptions import CredentialTransferError
from cloudagent.models.credentials import CredentialSpec


class CodexAgent(Agent):
    name = "codex"
    display_name = "Codex (OpenAI)"
    command = "codex"
    install_command = "npm install -g @openai/codex"
    login_instructions = "Run 'codex' locally and complete the login first."
    credential_kind = "codex-config"

    remote_path = "~/.codex/config.toml"

    @property
    def config_path(self) -> Path:
        return self.home / ".codex" / "config.toml"

    def is_authenticated(self) -> bool:
        return self.config_path.is_file()

    def extract_credential(self) -> CredentialSpec:
        if not self.config_path.is_file():
            raise CredentialTransferError(
                self.credential_kind,
                f"{self.config_path} not found. {self.login_instructions}",
            )
        return CredentialSpec(
            kind=self.credential_kind,
            local_path=str(self.config_path),
            remote_path=self.remote_path,
            mode=0o600,
        )
