"""Thin wrapper around the gcloud CLI.

Every call the tool makes against the GCP control plane goes through
``GcloudClient`` so the rest of the code can be tested with a mock.
"""

from __future__ import annotations

import json
import subprocess

from cloudagent.core.exceptions import ConfigurationError, VMOperationError
from cloudagent.models.vm import Instance
from cloudagent.utils.logging import get_logger

logger = get_logger("gcloud")

PURPOSE_FILTER = "labels.purpose=cloud-agent"


def get_configured_project() -> str | None:
    """Return the project from ``gcloud config get-value project``.

    Returns:
        The project id, or None when gcloud has none configured.

    Raises:
        ConfigurationError: If gcloud is not installed.
    """
    try:
        result = subprocess.run(
            ["gcloud", "config", "get-value", "project"],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise ConfigurationError("gcloud CLI not found. Install the Google Cloud SDK") from e

    project = result.stdout.strip()
    if result.returncode != 0 or not project or project == "(unset)":
        return None
    return project


class GcloudClient:
    """Compute Engine operations for one project and zone.

    Args:
        project_id: GCP project.
        zone: Zone holding the operator's VM.
    """

    def __init__(self, project_id: str, zone: str) -> None:
        self.project_id = project_id
        self.zone = zone

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        """Run a gcloud command scoped to the project.

        Raises:
            ConfigurationError: If gcloud is not installed.
        """
        cmd = ["gcloud", *args, f"--project={self.project_id}"]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            raise ConfigurationError(
                "gcloud CLI not found. Install the Google Cloud SDK"
            ) from e

    def list_instances(self) -> list[Instance]:
        """List every VM labelled ``purpose=cloud-agent`` in the project.

        Raises:
            VMOperationError: If the listing fails.
        """
        result = self._run(
            ["compute", "instances", "list", f"--filter={PURPOSE_FILTER}", "--format=json"]
        )
        if result.returncode != 0:
            raise VMOperationError("cloud-agent", "list", result.stderr.strip())

        try:
            data = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            raise VMOperationError("cloud-agent", "list", f"unreadable gcloud output: {e}") from e

        return [Instance.from_gcloud_output(item) for item in data]

    def instance_exists(self, name: str) -> bool:
        """Check whether an instance with exactly this name exists.

        Raises:
            VMOperationError: If the query itself fails.
        """
        result = self._run(
            [
                "compute",
                "instances",
                "list",
                f"--filter=name={name}",
                "--format=value(name)",
            ]
        )
        if result.returncode != 0:
            raise VMOperationError(name, "query", result.stderr.strip())
        return name in result.stdout.split()

    def _describe(self, name: str, fmt: str) -> str | None:
        result = self._run(
            ["compute", "instances", "describe", name, f"--zone={self.zone}", f"--format={fmt}"]
        )
        if result.returncode != 0:
            logger.debug(f"describe {name} failed: {result.stderr.strip()}")
            return None
        return result.stdout.strip() or None

    def get_external_ip(self, name: str) -> str | None:
        """NAT address of the instance's first interface, if any."""
        return self._describe(name, "value(networkInterfaces[0].accessConfigs[0].natIP)")

    def get_internal_ip(self, name: str) -> str | None:
        """VPC address of the instance's first interface, if any."""
        return self._describe(name, "value(networkInterfaces[0].networkIP)")

    def _lifecycle(self, name: str, verb: str, *extra: str) -> None:
        result = self._run(["compute", "instances", verb, name, f"--zone={self.zone}", *extra])
        if result.returncode != 0:
            raise VMOperationError(name, verb, result.stderr.strip() or "gcloud failed")
        logger.info(f"gcloud {verb} {name} succeeded")

    def start(self, name: str) -> None:
        """Start a stopped instance."""
        self._lifecycle(name, "start")

    def stop(self, name: str) -> None:
        """Stop a running instance."""
        self._lifecycle(name, "stop")

    def delete(self, name: str) -> None:
        """Delete the instance without prompting."""
        self._lifecycle(name, "delete", "--quiet")
