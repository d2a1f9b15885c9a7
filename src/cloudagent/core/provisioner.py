"""Provisioning driver for the operator's VM.

This module decides between creating, reusing and updating the VM and
drives Terraform accordingly:
- Create: render variables, init, apply, resolve the address, wait for boot
- Update: re-render variables and apply against existing state
- Destroy: Terraform destroy when local state manages the VM, otherwise a
  direct provider delete
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from cloudagent.core.config import Settings
from cloudagent.core.exceptions import (
    ConfigurationError,
    NetworkDetectionError,
    VMNotFoundError,
    VMOperationError,
)
from cloudagent.core.gcloud import GcloudClient
from cloudagent.core.permissions import map_permissions
from cloudagent.core.terraform import TerraformRunner
from cloudagent.models.identity import VmConnectionInfo, VmIdentity
from cloudagent.models.network import AllowedIpSet
from cloudagent.models.vm import VmExistenceRecord
from cloudagent.utils.logging import get_logger
from cloudagent.utils.output import create_spinner_progress, print_warning

logger = get_logger("provisioner")

T = TypeVar("T")

EXTERNAL_IP_OUTPUT = "cloud_agent_ip"
INTERNAL_IP_OUTPUT = "cloud_agent_internal_ip"


class ProvisionAction(str, Enum):
    """What the provisioning step will do for this invocation."""

    NEEDS_CREATE = "needs_create"
    REUSE = "reuse"
    UPDATING = "updating"


def decide_action(
    existence: VmExistenceRecord,
    force_create: bool = False,
    skip_create: bool = False,
    vm_name: str = "cloud-agent",
) -> ProvisionAction:
    """Pick create or reuse from operator flags and the existence verdict.

    Raises:
        ConfigurationError: If both flags are set.
        VMNotFoundError: If reuse was requested but no VM exists.
    """
    if force_create and skip_create:
        raise ConfigurationError("--create-vm and --skip-vm cannot be used together")

    if force_create:
        return ProvisionAction.NEEDS_CREATE

    if skip_create and not existence.exists:
        raise VMNotFoundError(vm_name)

    if existence.exists:
        return ProvisionAction.REUSE
    return ProvisionAction.NEEDS_CREATE


def read_public_key(ssh_key_path: str | None) -> str | None:
    """Contents of ``<key>.pub`` next to the private key, if present."""
    if not ssh_key_path:
        return None
    pub_path = Path(f"{ssh_key_path}.pub").expanduser()
    if not pub_path.is_file():
        return None
    return pub_path.read_text().strip() or None


class Provisioner:
    """Drives Terraform and gcloud for one operator's VM.

    Args:
        settings: Invocation settings; ``project_id`` must be resolved.
        terraform: Runner bound to the state directory.
        gcloud: Provider client.
        show_progress: Show spinners during long operations.
        sleep: Blocking wait used for the boot settle delay.
    """

    def __init__(
        self,
        settings: Settings,
        terraform: TerraformRunner,
        gcloud: GcloudClient,
        show_progress: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.terraform = terraform
        self.gcloud = gcloud
        self.show_progress = show_progress
        self._sleep = sleep

    def _with_spinner(self, description: str, func: Callable[[], T]) -> T:
        if not self.show_progress:
            return func()
        progress = create_spinner_progress()
        with progress:
            task = progress.add_task(description, total=None)
            result = func()
            progress.update(task, completed=True)
        return result

    def render_variables(
        self,
        identity: VmIdentity,
        allowed_ips: AllowedIpSet,
        ssh_key_path: str | None = None,
    ) -> dict[str, Any]:
        """Build the Terraform variables for this identity.

        Raises:
            NetworkDetectionError: If the allow-list is empty.
            UnknownPermissionError: If strict permissions reject a name.
        """
        try:
            allowed = allowed_ips.to_terraform()
        except ValueError as e:
            raise NetworkDetectionError("The firewall allow-list is empty") from e

        public_key = read_public_key(ssh_key_path)
        if public_key:
            ssh_username = identity.ssh_username
        else:
            ssh_username = ""
            public_key = ""
            logger.warning("No SSH public key found; SSH hardening parameters left empty")
            print_warning(
                "No SSH public key found next to your private key. "
                "The VM will be created without a hardened SSH login."
            )

        settings = self.settings
        return {
            "project_id": settings.project_id,
            "region": settings.region,
            "zone": settings.zone,
            "machine_type": settings.machine_type,
            "cluster_name": settings.cluster_name or "",
            "cluster_zone": settings.effective_cluster_zone,
            "vm_name": identity.name,
            "owner": identity.owner,
            "skip_deletion": settings.skip_deletion,
            "permissions": map_permissions(settings.permissions, settings.strict_permissions),
            "allowed_ips": allowed,
            "ssh_username": ssh_username,
            "ssh_public_key": public_key,
        }

    def create(
        self,
        identity: VmIdentity,
        allowed_ips: AllowedIpSet,
        ssh_key_path: str | None = None,
    ) -> VmConnectionInfo:
        """Create the VM and wait for it to boot.

        Raises:
            ConfigurationError: If local state manages a different VM.
            ProvisioningError: If Terraform init or apply fails.
        """
        self.check_state_owner(identity)
        self.terraform.write_variables(
            self.render_variables(identity, allowed_ips, ssh_key_path)
        )
        self._with_spinner("Initializing Terraform...", self.terraform.init)
        self._with_spinner(f"Creating {identity.name}...", self.terraform.apply)
        logger.info(f"Created VM {identity.name}")

        connection = self.resolve_connection(identity, ssh_key_path)
        self.wait_for_boot()
        return connection

    def update(
        self,
        identity: VmIdentity,
        allowed_ips: AllowedIpSet,
        ssh_key_path: str | None = None,
    ) -> None:
        """Re-apply configuration to the existing VM without waiting for boot.

        Raises:
            ConfigurationError: If local state does not manage this VM.
            ProvisioningError: If Terraform apply fails.
        """
        self.require_state(identity)
        self.terraform.write_variables(
            self.render_variables(identity, allowed_ips, ssh_key_path)
        )
        self._with_spinner("Initializing Terraform...", self.terraform.init)
        self._with_spinner(f"Updating {identity.name}...", self.terraform.apply)
        logger.info(f"Re-applied configuration for {identity.name}")

    def state_owns(self, identity: VmIdentity) -> bool:
        """True when local Terraform state manages this identity's VM."""
        return self.terraform.managed_vm() == identity.name

    def check_state_owner(self, identity: VmIdentity) -> None:
        """Refuse to apply over state that manages another VM.

        Raises:
            ConfigurationError: If the state records a different VM name.
        """
        self._check_recorded(identity, self.terraform.managed_vm())

    def _check_recorded(self, identity: VmIdentity, recorded: str | None) -> None:
        if recorded and recorded != identity.name:
            raise ConfigurationError(
                f"Local Terraform state manages '{recorded}', not '{identity.name}'. "
                "Use a separate --state-dir for each VM",
                details={"state_dir": str(self.terraform.working_dir), "state_vm": recorded},
            )

    def require_state(self, identity: VmIdentity) -> None:
        """Check that local state exists and manages this identity's VM.

        Raises:
            ConfigurationError: If there is no state or it belongs to another VM.
        """
        recorded = self.terraform.managed_vm()
        self._check_recorded(identity, recorded)
        if recorded is None:
            raise ConfigurationError(
                "No local Terraform state found; nothing to re-apply",
                details={"state_dir": str(self.terraform.working_dir)},
            )

    def wait_for_boot(self) -> None:
        """Give the guest startup script time to finish."""
        seconds = self.settings.boot_wait
        if seconds <= 0:
            return
        logger.info(f"Waiting {seconds}s for the VM to finish booting")
        self._with_spinner(
            f"Waiting {seconds}s for the VM to finish booting...",
            lambda: self._sleep(seconds),
        )

    def resolve_connection(
        self,
        identity: VmIdentity,
        ssh_key_path: str | None = None,
    ) -> VmConnectionInfo:
        """Find the VM's addresses, from Terraform outputs or gcloud.

        Raises:
            VMOperationError: If no external address can be found.
        """
        external_ip = None
        internal_ip = None
        if self.state_owns(identity):
            external_ip = self.terraform.output(EXTERNAL_IP_OUTPUT)
            internal_ip = self.terraform.output(INTERNAL_IP_OUTPUT)

        if not external_ip:
            logger.debug("No address in Terraform outputs, asking gcloud")
            external_ip = self.gcloud.get_external_ip(identity.name)
            internal_ip = internal_ip or self.gcloud.get_internal_ip(identity.name)

        if not external_ip:
            raise VMOperationError(
                identity.name, "connect to", "no external IP address (is the VM running?)"
            )

        return VmConnectionInfo(
            external_ip=external_ip,
            internal_ip=internal_ip,
            ssh_user=identity.ssh_username,
            ssh_key_path=ssh_key_path,
        )

    def destroy(self, identity: VmIdentity) -> str:
        """Delete the VM and, when local Terraform state manages it, its resources.

        Returns:
            ``"terraform"`` or ``"gcloud"``, the tool that performed the delete.

        Raises:
            ProvisioningError: If Terraform destroy fails.
            VMOperationError: If the direct delete fails.
        """
        if self.state_owns(identity):
            self._with_spinner(f"Destroying {identity.name}...", self.terraform.destroy)
            logger.info(f"Destroyed {identity.name} with Terraform")
            return "terraform"

        self._with_spinner(
            f"Deleting {identity.name}...", lambda: self.gcloud.delete(identity.name)
        )
        logger.info(f"Deleted {identity.name} with gcloud")
        return "gcloud"
