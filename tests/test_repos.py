"""Tests for repository detection and syncing."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from cloudagent.core.exceptions import ConfigurationError, RepositorySyncError
from cloudagent.core.repos import (
    detect_current_repo,
    extract_repo_name,
    sync_repositories,
    validate_repo_url,
)
from cloudagent.core.ssh import SSHResult


def completed(returncode: int = 0, stdout: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


class TestRepoNames:
    """Tests for URL validation and name extraction."""

    @pytest.mark.parametrize(
        ("url", "name"),
        [
            ("git@github.com:org/my-repo.git", "my-repo"),
            ("https://github.com/org/my-repo.git", "my-repo"),
            ("https://github.com/org/my-repo", "my-repo"),
            ("https://github.com/org/my-repo/", "my-repo"),
            ("git@github.com:my-repo.git", "my-repo"),
        ],
    )
    def test_extract_repo_name(self, url: str, name: str) -> None:
        assert extract_repo_name(url) == name

    @pytest.mark.parametrize("url", ["git@github.com:o/r.git", "https://x/y", "http://x/y"])
    def test_valid_urls(self, url: str) -> None:
        assert validate_repo_url(url) == url

    @pytest.mark.parametrize("url", ["github.com/o/r", "/local/path", "ftp://x/y"])
    def test_invalid_urls(self, url: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid repository URL"):
            validate_repo_url(url)


class TestDetectCurrentRepo:
    """Tests for detect_current_repo."""

    @patch("cloudagent.core.repos.subprocess.run")
    def test_origin_url(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = [
            completed(stdout="true\n"),
            completed(stdout="git@github.com:org/app.git\n"),
        ]

        assert detect_current_repo() == "git@github.com:org/app.git"

    @patch("cloudagent.core.repos.subprocess.run")
    def test_not_a_repository(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(128)

        with pytest.raises(ConfigurationError, match="Not in a git repository"):
            detect_current_repo()

    @patch("cloudagent.core.repos.subprocess.run")
    def test_no_origin(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = [completed(stdout="true\n"), completed(2)]

        with pytest.raises(ConfigurationError, match="origin"):
            detect_current_repo()


class TestSyncRepositories:
    """Tests for sync_repositories."""

    def test_clone_or_pull_per_repo(self, mock_transport: MagicMock) -> None:
        sync_repositories(
            mock_transport,
            ["git@github.com:org/api.git", "https://github.com/org/web"],
        )

        commands = [c.args[0] for c in mock_transport.run.call_args_list]
        assert commands[0].startswith("sudo chmod 777 /workspace")
        assert commands[1] == (
            "cd /workspace && if [ -d api ]; then cd api && git pull; "
            "else git clone git@github.com:org/api.git api; fi"
        )
        assert "git clone https://github.com/org/web web" in commands[2]

    def test_no_repos(self, mock_transport: MagicMock) -> None:
        sync_repositories(mock_transport, [])

        mock_transport.run.assert_not_called()

    def test_clone_failure(
        self,
        mock_transport: MagicMock,
        ok_result: SSHResult,
        failed_result: SSHResult,
    ) -> None:
        mock_transport.run.side_effect = [ok_result, failed_result]

        with pytest.raises(RepositorySyncError) as exc_info:
            sync_repositories(mock_transport, ["git@github.com:org/api.git"])

        assert exc_info.value.repo == "git@github.com:org/api.git"
        assert "error message" in str(exc_info.value)
