"""Decides whether the operator's VM already exists.

Local Terraform state is consulted first because it is authoritative
and needs no network round-trip. When it is absent or names a different
VM, the provider is queried by exact name so VMs created by other means
are still found.

A VM deleted out-of-band after the local state was written is still
reported as existing by the fast path.
"""

from __future__ import annotations

from cloudagent.core.gcloud import GcloudClient
from cloudagent.core.terraform import TerraformRunner
from cloudagent.models.identity import VmIdentity
from cloudagent.models.vm import ExistenceSource, VmExistenceRecord
from cloudagent.utils.logging import get_logger

logger = get_logger("existence")


class ExistenceResolver:
    """Two-tier existence check against local state and the provider.

    Args:
        terraform: Runner for the local state directory.
        gcloud: Provider client.
    """

    def __init__(self, terraform: TerraformRunner, gcloud: GcloudClient) -> None:
        self.terraform = terraform
        self.gcloud = gcloud

    def resolve(self, identity: VmIdentity) -> VmExistenceRecord:
        """Check for the identity's VM.

        Returns:
            Record with the verdict and where it came from.

        Raises:
            VMOperationError: If the provider query fails.
        """
        recorded = self.terraform.managed_vm()
        if recorded == identity.name:
            logger.info(f"VM {identity.name} found in local Terraform state")
            return VmExistenceRecord(exists=True, source=ExistenceSource.LOCAL_STATE)
        if recorded:
            logger.debug(f"Local state names {recorded!r}, not {identity.name}")

        if self.gcloud.instance_exists(identity.name):
            logger.info(f"VM {identity.name} found by provider query")
            return VmExistenceRecord(exists=True, source=ExistenceSource.PROVIDER_QUERY)

        logger.info(f"VM {identity.name} does not exist")
        return VmExistenceRecord(exists=False, source=ExistenceSource.NONE)
