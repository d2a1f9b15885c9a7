"""Tests for the gcloud CLI wrapper."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from cloudagent.core.exceptions import ConfigurationError, VMOperationError
from cloudagent.core.gcloud import GcloudClient, get_configured_project
from cloudagent.models.vm import InstanceStatus


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    result = MagicMock(spec=subprocess.CompletedProcess)
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


@pytest.fixture
def client() -> GcloudClient:
    return GcloudClient("test-project", "us-central1-a")


class TestConfiguredProject:
    """Tests for get_configured_project."""

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_project_set(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(stdout="my-project\n")

        assert get_configured_project() == "my-project"

    @pytest.mark.parametrize("stdout", ["", "(unset)\n"])
    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_project_unset(self, mock_run: MagicMock, stdout: str) -> None:
        mock_run.return_value = completed(stdout=stdout)

        assert get_configured_project() is None

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_gcloud_missing(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError()

        with pytest.raises(ConfigurationError, match="gcloud CLI not found"):
            get_configured_project()


class TestGcloudClient:
    """Tests for GcloudClient."""

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_list_instances(
        self,
        mock_run: MagicMock,
        client: GcloudClient,
        gcloud_list_json_output: str,
    ) -> None:
        """Only purpose-labelled VMs are requested and parsed."""
        mock_run.return_value = completed(stdout=gcloud_list_json_output)

        instances = client.list_instances()

        cmd = mock_run.call_args[0][0]
        assert "--filter=labels.purpose=cloud-agent" in cmd
        assert "--project=test-project" in cmd
        assert [i.name for i in instances] == ["jane-doe-cloud-agent", "john-roe-cloud-agent"]

        first, second = instances
        assert first.status == InstanceStatus.RUNNING
        assert first.zone == "us-central1-a"
        assert first.owner == "jane_doe"
        assert first.external_ip == "34.1.2.3"
        assert second.status == InstanceStatus.TERMINATED
        assert second.external_ip is None

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_list_instances_empty(self, mock_run: MagicMock, client: GcloudClient) -> None:
        mock_run.return_value = completed(stdout="[]")

        assert client.list_instances() == []

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_list_instances_failure(self, mock_run: MagicMock, client: GcloudClient) -> None:
        mock_run.return_value = completed(1, stderr="permission denied")

        with pytest.raises(VMOperationError, match="permission denied"):
            client.list_instances()

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_instance_exists(self, mock_run: MagicMock, client: GcloudClient) -> None:
        mock_run.return_value = completed(stdout="jane-doe-cloud-agent\n")

        assert client.instance_exists("jane-doe-cloud-agent") is True
        assert client.instance_exists("jane-cloud-agent") is False

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_external_ip(self, mock_run: MagicMock, client: GcloudClient) -> None:
        mock_run.return_value = completed(stdout="34.1.2.3\n")

        assert client.get_external_ip("jane-doe-cloud-agent") == "34.1.2.3"
        assert "--zone=us-central1-a" in mock_run.call_args[0][0]

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_external_ip_missing(self, mock_run: MagicMock, client: GcloudClient) -> None:
        mock_run.return_value = completed(1, stderr="not found")

        assert client.get_external_ip("jane-doe-cloud-agent") is None

    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_delete_is_unprompted(self, mock_run: MagicMock, client: GcloudClient) -> None:
        mock_run.return_value = completed()

        client.delete("jane-doe-cloud-agent")

        cmd = mock_run.call_args[0][0]
        assert cmd[:5] == ["gcloud", "compute", "instances", "delete", "jane-doe-cloud-agent"]
        assert "--quiet" in cmd

    @pytest.mark.parametrize("verb", ["start", "stop"])
    @patch("cloudagent.core.gcloud.subprocess.run")
    def test_lifecycle_failure(
        self, mock_run: MagicMock, verb: str, client: GcloudClient
    ) -> None:
        mock_run.return_value = completed(1, stderr="boom")

        with pytest.raises(VMOperationError) as exc_info:
            getattr(client, verb)("jane-doe-cloud-agent")

        assert exc_info.value.operation == verb
        assert exc_info.value.vm_name == "jane-doe-cloud-agent"
