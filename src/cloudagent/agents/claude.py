"""Claude Code agent."""

from __future__ import annotations

from pathlib import Path

from cloudagent.agents.base import Agent
from cloudagent.core.exceptions import CredentialTransferError
from cloudagent.models.credentials import CredentialSpec


class ClaudeAgent(Agent):
    """Transfers the whole ``~/.claude.json`` settings file."""

    name = "claude"
    display_name = "Claude Code"
    command = "claude"
    install_command = "npm install -g @anthropic-ai/claude-code"
    login_instructions = "Run 'claude' locally and complete the login first."
    credential_kind = "claude-settings"

    remote_path = "~/.claude.json"

    @property
    def settings_path(self) -> Path:
        return self.home / ".claude.json"

    def is_authenticated(self) -> bool:
        """Logged in once the settings file records an OAuth account."""
        try:
            return '"oauthAccount"' in self.settings_path.read_text()
        except OSError:
            return False

    def extract_credential(self) -> CredentialSpec:
        if not self.settings_path.is_file():
            raise CredentialTransferError(
                self.credential_kind,
                f"{self.settings_path} not found. {self.login_instructions}",
            )
        return CredentialSpec(
            kind=self.credential_kind,
            local_path=str(self.settings_path),
            remote_path=self.remote_path,
            mode=0o600,
        )

    def after_upload_command(self) -> str | None:
        return "mkdir -p ~/.claude"
