"""Repository handling: local detection and syncing into /workspace on the VM."""

from __future__ import annotations

import shlex
import subprocess

from cloudagent.core.exceptions import ConfigurationError, RepositorySyncError
from cloudagent.core.ssh import SSHTransport
from cloudagent.utils.logging import get_logger
from cloudagent.utils.output import print_info, print_success

logger = get_logger("repos")

WORKSPACE = "/workspace"
REPO_URL_PREFIXES = ("git@", "https://", "http://")


def detect_current_repo() -> str:
    """Origin URL of the git repository in the current directory.

    Raises:
        ConfigurationError: If not in a git repository or there is no origin.
    """
    try:
        inside = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise ConfigurationError("git not found on PATH") from e

    if inside.returncode != 0:
        raise ConfigurationError(
            "Not in a git repository. Specify a repository URL or run from a git directory."
        )

    origin = subprocess.run(
        ["git", "remote", "get-url", "origin"],
        capture_output=True,
        text=True,
        check=False,
    )
    url = origin.stdout.strip()
    if origin.returncode != 0 or not url:
        raise ConfigurationError("No 'origin' remote found in the current git repository.")

    logger.info(f"Auto-detected repository {url}")
    return url


def validate_repo_url(url: str) -> str:
    """Accept SSH (``git@``) and HTTP(S) repository URLs.

    Raises:
        ConfigurationError: For anything else.
    """
    if not url.startswith(REPO_URL_PREFIXES):
        raise ConfigurationError(
            f"Invalid repository URL: {url}. Use git@... or https://...",
            details={"repo": url},
        )
    return url


def extract_repo_name(url: str) -> str:
    """Directory name a clone of ``url`` gets.

    Example:
        >>> extract_repo_name("git@github.com:org/my-repo.git")
        'my-repo'
    """
    tail = url.rstrip("/").replace(":", "/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    if not tail:
        raise ConfigurationError(f"Cannot determine repository name from {url}")
    return tail


def sync_repositories(transport: SSHTransport, repos: list[str]) -> None:
    """Clone each repository into /workspace, or pull if already cloned.

    Raises:
        RepositorySyncError: If a clone or pull fails.
    """
    if not repos:
        return

    chmod = transport.run(f"sudo chmod 777 {WORKSPACE} 2>/dev/null || true")
    if not chmod.success:
        logger.debug(f"Could not open up {WORKSPACE}: {chmod.stderr}")

    for url in repos:
        name = extract_repo_name(url)
        target = shlex.quote(name)
        command = (
            f"cd {WORKSPACE} && "
            f"if [ -d {target} ]; then cd {target} && git pull; "
            f"else git clone {shlex.quote(url)} {target}; fi"
        )
        print_info(f"Syncing {name}...")
        result = transport.run(command)
        if not result.success:
            raise RepositorySyncError(url, result.stderr or f"exit code {result.exit_code}")
        logger.info(f"Synced {url} into {WORKSPACE}/{name}")

    print_success("All repositories synced")
