"""Mapping of short permission names to IAM roles for the VM's service account."""

from __future__ import annotations

from cloudagent.core.exceptions import UnknownPermissionError
from cloudagent.utils.logging import get_logger
from cloudagent.utils.output import print_warning

logger = get_logger("permissions")

PERMISSION_ROLES: dict[str, str] = {
    "compute": "roles/compute.admin",
    "gke": "roles/container.admin",
    "storage": "roles/storage.admin",
    "network": "roles/compute.networkAdmin",
    "bigquery": "roles/bigquery.admin",
    "bq": "roles/bigquery.admin",
    "iam": "roles/iam.serviceAccountUser",
    "logging": "roles/logging.admin",
    "pubsub": "roles/pubsub.admin",
    "sql": "roles/cloudsql.admin",
    "secrets": "roles/secretmanager.admin",
    "dns": "roles/dns.admin",
    "run": "roles/run.admin",
    "functions": "roles/cloudfunctions.admin",
}

ADMIN_ROLES: tuple[str, ...] = (
    "roles/compute.admin",
    "roles/container.admin",
    "roles/storage.admin",
    "roles/iam.serviceAccountUser",
)


def parse_permission_names(raw: str | None) -> list[str]:
    """Split a comma-separated list, trimming, lowercasing and de-duplicating."""
    names: list[str] = []
    for part in (raw or "").split(","):
        name = part.strip().lower()
        if name and name not in names:
            names.append(name)
    return names


def map_permissions(raw: str | None, strict: bool = False) -> list[str]:
    """Map short permission names to IAM roles.

    ``admin`` anywhere in the list yields exactly the admin role set.

    Args:
        raw: Comma-separated names such as ``"compute, gke"``.
        strict: Raise on unknown names instead of dropping them.

    Returns:
        IAM roles in first-seen order, without duplicates.

    Raises:
        UnknownPermissionError: If ``strict`` and an unknown name is given.

    Example:
        >>> map_permissions("compute,gke")
        ['roles/compute.admin', 'roles/container.admin']
    """
    names = parse_permission_names(raw)
    unknown = [n for n in names if n != "admin" and n not in PERMISSION_ROLES]

    if unknown:
        if strict:
            raise UnknownPermissionError(unknown)
        logger.warning(f"Ignoring unknown permissions: {', '.join(unknown)}")
        print_warning(f"Ignoring unknown permissions: {', '.join(unknown)}")

    if "admin" in names:
        return list(ADMIN_ROLES)

    roles: list[str] = []
    for name in names:
        role = PERMISSION_ROLES.get(name)
        if role and role not in roles:
            roles.append(role)
    return roles
