"""Auggie (Augment Code) agent."""

from __future__ import annotations

import re
import subprocess

from cloudagent.agents.base import Agent
from cloudagent.core.exceptions import CredentialTransferError
from cloudagent.models.credentials import CredentialSpec

SESSION_PATTERN = re.compile(r"\{.*\}")


class AuggieAgent(Agent):
    """Transfers the session token printed by ``auggie tokens print``."""

    name = "auggie"
    display_name = "Auggie (Augment CLI)"
    command = "auggie"
    install_command = "npm install -g @augmentcode/auggie"
    login_instructions = "Run 'auggie login' locally first."
    credential_kind = "auggie-session"

    remote_path = "~/.augment/session.json"

    def _print_tokens(self) -> str | None:
        try:
            result = subprocess.run(
                [self.command, "tokens", "print"],
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout

    def _session_json(self) -> str | None:
        output = self._print_tokens()
        if not output:
            return None
        match = SESSION_PATTERN.search(output)
        return match.group(0) if match else None

    def is_authenticated(self) -> bool:
        return self._print_tokens() is not None

    def extract_credential(self) -> CredentialSpec:
        session = self._session_json()
        if session is None:
            raise CredentialTransferError(
                self.credential_kind, f"no Auggie session found. {self.login_instructions}"
            )
        return CredentialSpec(
            kind=self.credential_kind,
            local_value=session,
            remote_path=self.remote_path,
            mode=0o600,
        )
