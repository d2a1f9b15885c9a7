"""Tests for the agent registry and backends."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture

from cloudagent.agents import AuggieAgent, ClaudeAgent, CodexAgent, get_agent, list_agents
from cloudagent.core.exceptions import (
    ConfigurationError,
    CredentialTransferError,
    UnknownAgentError,
)
from cloudagent.core.ssh import SSHResult


class TestRegistry:
    """Tests for agent lookup."""

    def test_registered_names(self) -> None:
        assert list_agents() == ["auggie", "claude", "codex"]

    @pytest.mark.parametrize(
        ("name", "cls"),
        [("auggie", AuggieAgent), ("Claude", ClaudeAgent), (" codex ", CodexAgent)],
    )
    def test_lookup(self, name: str, cls: type) -> None:
        assert isinstance(get_agent(name), cls)

    def test_unknown_agent(self) -> None:
        with pytest.raises(UnknownAgentError) as exc_info:
            get_agent("copilot")

        assert "copilot" in str(exc_info.value)
        assert "auggie, claude, codex" in str(exc_info.value)
        assert isinstance(exc_info.value, ConfigurationError)

    def test_home_is_passed_through(self, tmp_path: Path) -> None:
        assert get_agent("claude", home=tmp_path).home == tmp_path


class TestClaudeAgent:
    """Tests for ClaudeAgent."""

    def test_authenticated(self, tmp_path: Path) -> None:
        (tmp_path / ".claude.json").write_text('{"oauthAccount": {}}')

        assert ClaudeAgent(home=tmp_path).is_authenticated() is True

    def test_not_logged_in(self, tmp_path: Path) -> None:
        (tmp_path / ".claude.json").write_text('{"numStartups": 3}')

        assert ClaudeAgent(home=tmp_path).is_authenticated() is False

    def test_no_settings(self, tmp_path: Path) -> None:
        agent = ClaudeAgent(home=tmp_path)

        assert agent.is_authenticated() is False
        with pytest.raises(CredentialTransferError, match="claude"):
            agent.extract_credential()

    def test_transfer(self, tmp_path: Path, mock_transport: MagicMock) -> None:
        """The whole settings file is uploaded, then ~/.claude is created."""
        settings = tmp_path / ".claude.json"
        settings.write_text('{"oauthAccount": {}}')

        ClaudeAgent(home=tmp_path).transfer_credential(mock_transport)

        mock_transport.put_file.assert_called_once_with(str(settings), "~/.claude.json", 0o600)
        mock_transport.run.assert_called_once_with("mkdir -p ~/.claude")


class TestCodexAgent:
    """Tests for CodexAgent."""

    def test_transfer_creates_directory(
        self, tmp_path: Path, mock_transport: MagicMock
    ) -> None:
        config = tmp_path / ".codex" / "config.toml"
        config.parent.mkdir()
        config.write_text('model = "o4-mini"\n')
        agent = CodexAgent(home=tmp_path)

        assert agent.is_authenticated() is True
        agent.transfer_credential(mock_transport)

        mock_transport.run.assert_called_once_with("mkdir -p ~/.codex")
        mock_transport.put_file.assert_called_once_with(
            str(config), "~/.codex/config.toml", 0o600
        )

    def test_remote_step_failure(
        self, tmp_path: Path, mock_transport: MagicMock, failed_result: SSHResult
    ) -> None:
        config = tmp_path / ".codex" / "config.toml"
        config.parent.mkdir()
        config.write_text("")
        mock_transport.run.return_value = failed_result

        with pytest.raises(CredentialTransferError, match="error message"):
            CodexAgent(home=tmp_path).transfer_credential(mock_transport)

        mock_transport.put_file.assert_not_called()


class TestAuggieAgent:
    """Tests for AuggieAgent."""

    def test_session_extracted_from_output(
        self, mocker: MockerFixture, mock_transport: MagicMock
    ) -> None:
        """Only the JSON object is kept from the CLI's output."""
        mocker.patch(
            "cloudagent.agents.auggie.subprocess.run",
            return_value=subprocess.CompletedProcess(
                args=[],
                returncode=0,
                stdout='SESSION=\n{"accessToken": "abc", "tenantURL": "https://t"}\n',
                stderr="",
            ),
        )
        agent = AuggieAgent()

        assert agent.is_authenticated() is True
        agent.transfer_credential(mock_transport)

        mock_transport.run.assert_called_once_with("mkdir -p ~/.augment")
        mock_transport.put_text.assert_called_once_with(
            '{"accessToken": "abc", "tenantURL": "https://t"}',
            "~/.augment/session.json",
            0o600,
        )

    def test_not_logged_in(self, mocker: MockerFixture) -> None:
        mocker.patch(
            "cloudagent.agents.auggie.subprocess.run",
            return_value=subprocess.CompletedProcess(
                args=[], returncode=1, stdout="", stderr="not logged in"
            ),
        )

        agent = AuggieAgent()

        assert agent.is_authenticated() is False
        with pytest.raises(CredentialTransferError, match="auggie login"):
            agent.extract_credential()

    def test_cli_missing(self, mocker: MockerFixture) -> None:
        mocker.patch("cloudagent.agents.auggie.subprocess.run", side_effect=FileNotFoundError())

        assert AuggieAgent().is_authenticated() is False

    def test_remote_commands(self) -> None:
        agent = AuggieAgent()

        assert agent.remote_run_command() == "auggie"
        assert agent.remote_install_instructions() == "npm install -g @augmentcode/auggie"
