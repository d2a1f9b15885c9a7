"""Tests for the top-level CLI group and deploy routing."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cloudagent import __version__
from cloudagent.cli.main import cli
from cloudagent.core.exceptions import NetworkDetectionError, VMNotFoundError
from cloudagent.core.orchestrator import Command

REPO = "git@github.com:org/repo.git"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_orchestrator() -> Generator[MagicMock, None, None]:
    """Replace the orchestrator built by the CLI context."""
    with patch("cloudagent.cli.context.Context.init_orchestrator") as mock:
        orchestrator = MagicMock()
        mock.return_value = orchestrator
        yield orchestrator


def deploy_kwargs(**overrides: object) -> dict[str, object]:
    kwargs: dict[str, object] = {
        "repos": [],
        "force_create": False,
        "skip_create": False,
        "skip_creds": False,
    }
    kwargs.update(overrides)
    return kwargs


class TestGlobalOptions:
    """Tests for options handled by the group itself."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for name in ("deploy", "list", "terminate", "scp", "tf", "config"):
            assert name in result.output


class TestDeployRouting:
    """Tests for the default deploy command."""

    def test_no_arguments_deploys(self, runner: CliRunner, mock_orchestrator: MagicMock) -> None:
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        mock_orchestrator.dispatch.assert_called_once_with(Command.DEPLOY, **deploy_kwargs())

    def test_bare_repository_deploys(
        self, runner: CliRunner, mock_orchestrator: MagicMock
    ) -> None:
        """'ca REPO' is the same as 'ca deploy REPO'."""
        result = runner.invoke(cli, [REPO, "https://github.com/org/other"])

        assert result.exit_code == 0
        mock_orchestrator.dispatch.assert_called_once_with(
            Command.DEPLOY,
            **deploy_kwargs(repos=[REPO, "https://github.com/org/other"]),
        )

    def test_bare_flag_deploys(self, runner: CliRunner, mock_orchestrator: MagicMock) -> None:
        result = runner.invoke(cli, ["--skip-vm", REPO])

        assert result.exit_code == 0
        mock_orchestrator.dispatch.assert_called_once_with(
            Command.DEPLOY, **deploy_kwargs(repos=[REPO], skip_create=True)
        )

    def test_explicit_deploy(self, runner: CliRunner, mock_orchestrator: MagicMock) -> None:
        result = runner.invoke(cli, ["deploy", "--create-vm", "--skip-creds", REPO])

        assert result.exit_code == 0
        mock_orchestrator.dispatch.assert_called_once_with(
            Command.DEPLOY,
            **deploy_kwargs(repos=[REPO], force_create=True, skip_creds=True),
        )

    def test_fatal_error_exits_nonzero(
        self, runner: CliRunner, mock_orchestrator: MagicMock
    ) -> None:
        mock_orchestrator.dispatch.side_effect = NetworkDetectionError()

        result = runner.invoke(cli, [REPO])

        assert result.exit_code == 1
        assert "public IP" in result.output

    def test_skip_vm_without_vm(self, runner: CliRunner, mock_orchestrator: MagicMock) -> None:
        mock_orchestrator.dispatch.side_effect = VMNotFoundError("jane-doe-cloud-agent")

        result = runner.invoke(cli, ["deploy", "--skip-vm"])

        assert result.exit_code == 1
        assert "jane-doe-cloud-agent" in result.output


class TestAgentSelection:
    """Tests for agent resolution."""

    def test_unknown_agent_fails_before_any_work(self, runner: CliRunner) -> None:
        with patch("cloudagent.cli.context.Orchestrator") as orchestrator_cls:
            result = runner.invoke(cli, ["--agent", "copilot", "list"])

        assert result.exit_code == 1
        assert "Unknown agent 'copilot'" in result.output
        orchestrator_cls.assert_not_called()

    def test_agent_from_environment(self, runner: CliRunner) -> None:
        with patch("cloudagent.cli.context.Orchestrator") as orchestrator_cls:
            orchestrator_cls.return_value.dispatch.return_value = None
            result = runner.invoke(cli, ["start"], env={"AGENT": "codex"})

        assert result.exit_code == 0
        settings, agent = orchestrator_cls.call_args[0]
        assert settings.agent == "codex"
        assert agent.name == "codex"


class TestSettingsPrecedence:
    """Tests for flag, environment and file precedence."""

    def test_flag_beats_environment_and_file(
        self, runner: CliRunner, temp_config_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            [
                "--config",
                str(temp_config_file),
                "--zone",
                "us-east1-b",
                "config",
                "show",
                "--effective",
                "--format",
                "json",
            ],
            env={"ZONE": "asia-east1-a"},
        )

        assert result.exit_code == 0
        assert "us-east1-b" in result.output
        assert "asia-east1-a" not in result.output
        assert "file-project" in result.output

    def test_environment_beats_file(self, runner: CliRunner, temp_config_file: Path) -> None:
        result = runner.invoke(
            cli,
            ["--config", str(temp_config_file), "config", "show", "--effective"],
            env={"ZONE": "asia-east1-a"},
        )

        assert result.exit_code == 0
        assert "asia-east1-a" in result.output
        assert "europe-west1-b" not in result.output

    def test_token_masked(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli,
            ["config", "show", "--effective"],
            env={"GITHUB_TOKEN": "ghp_secret"},
        )

        assert result.exit_code == 0
        assert "ghp_secret" not in result.output
        assert "********" in result.output
