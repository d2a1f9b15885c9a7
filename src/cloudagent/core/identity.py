"""Deterministic operator identity.

The VM name and owner label are derived from the operator's name so
that every invocation by the same operator targets the same VM.
"""

from __future__ import annotations

import getpass
import os
import re
from collections.abc import Callable

import click

from cloudagent.core.exceptions import ConfigurationError, MissingIdentityError
from cloudagent.models.identity import VmIdentity
from cloudagent.utils.logging import get_logger

logger = get_logger("identity")

VM_NAME_SUFFIX = "-cloud-agent"
GCE_NAME_PATTERN = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")
GCE_NAME_MAX_LENGTH = 63

NamePrompt = Callable[[str], str]


def normalize_vm_name(value: str) -> str:
    """Lowercase and turn ``_``, ``.`` and whitespace into ``-``."""
    return re.sub(r"[_.\s]", "-", value.lower())


def normalize_owner(value: str) -> str:
    """Lowercase and turn ``.``, ``-`` and whitespace into ``_``."""
    return re.sub(r"[.\-\s]", "_", value.lower())


def split_username(username: str) -> tuple[str, str] | None:
    """Split ``first.last`` (or ``first_last``) into its two parts.

    Returns:
        The two parts, or None when the name is not exactly two
        non-empty parts.
    """
    for separator in (".", "_"):
        parts = username.split(separator)
        if len(parts) == 2 and all(parts):
            return parts[0], parts[1]
    return None


def current_username() -> str:
    """Login name of the operator."""
    return os.environ.get("USER") or getpass.getuser()


def _click_prompt(text: str) -> str:
    return click.prompt(text, default="", show_default=False)


def validate_vm_name(name: str) -> str:
    """Check a name against the Compute Engine naming rule.

    Raises:
        ConfigurationError: If the name is not a valid instance name.
    """
    if len(name) > GCE_NAME_MAX_LENGTH or not GCE_NAME_PATTERN.match(name):
        raise ConfigurationError(
            f"Derived VM name '{name}' is not a valid Compute Engine instance name",
            details={"name": name},
        )
    return name


def derive_identity(
    username_override: str | None = None,
    company: str | None = None,
    username: str | None = None,
    prompt: NamePrompt | None = None,
) -> VmIdentity:
    """Derive the VM name, owner label and guest login for the operator.

    Args:
        username_override: Explicit owner name, used as-is after normalizing.
        company: Organization suffix appended to the owner.
        username: Login name to split into first and last name. Defaults
            to the current user.
        prompt: Asks for a missing first or last name. Defaults to a
            click prompt.

    Returns:
        The derived identity.

    Raises:
        MissingIdentityError: If a prompted name is empty.
        ConfigurationError: If the derived name is not a valid instance name.

    Example:
        >>> derive_identity(username="jane.doe").name
        'jane-doe-cloud-agent'
    """
    if username_override:
        base_owner = normalize_owner(username_override.strip())
    else:
        login = username if username is not None else current_username()
        parts = split_username(login)
        if parts is None:
            ask = prompt or _click_prompt
            first = ask("First name").strip()
            last = ask("Last name").strip()
            if not first or not last:
                raise MissingIdentityError()
            parts = (first, last)
        base_owner = normalize_owner(f"{parts[0]}_{parts[1]}")

    owner = base_owner
    if company and company.strip():
        owner = f"{owner}_{normalize_owner(company.strip())}"

    name = validate_vm_name(normalize_vm_name(owner + VM_NAME_SUFFIX))
    ssh_username = base_owner.replace("_", "-")

    logger.debug(f"Derived identity name={name} owner={owner} ssh_user={ssh_username}")
    return VmIdentity(name=name, owner=owner, ssh_username=ssh_username)
