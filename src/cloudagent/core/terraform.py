"""Terraform operations for the VM stack.

``TerraformRunner`` runs the terraform binary inside the state directory
and owns the variable file it applies. Variables are written as JSON,
so values are never spliced into HCL text.
"""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cloudagent.core.exceptions import ConfigurationError, ProvisioningError
from cloudagent.utils.logging import get_logger

logger = get_logger("terraform")

VAR_FILE = "terraform.tfvars.json"
STATE_FILE = "terraform.tfstate"
VM_NAME_OUTPUT = "vm_name"


@dataclass
class TerraformResult:
    """Outcome of one terraform invocation."""

    returncode: int
    stdout: str
    stderr: str
    command: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class TerraformRunner:
    """Runs terraform in a fixed working directory.

    Responsibilities:
    - Variable file rendering
    - init / apply / destroy
    - Output queries
    - State presence and ownership checks

    Args:
        working_dir: Directory holding the templates and state.
    """

    def __init__(self, working_dir: Path | str) -> None:
        self.working_dir = Path(working_dir).expanduser()

    @property
    def var_file(self) -> Path:
        return self.working_dir / VAR_FILE

    @property
    def state_file(self) -> Path:
        return self.working_dir / STATE_FILE

    def has_state(self) -> bool:
        """True when a local state file exists."""
        return self.state_file.exists()

    def managed_vm(self) -> str | None:
        """Name of the VM recorded in local state, or None without one.

        A state file left behind by ``destroy`` records no VM.
        """
        if not self.has_state():
            return None
        return self.output(VM_NAME_OUTPUT)

    def _run(self, args: list[str]) -> TerraformResult:
        """Run a terraform subcommand and capture its output.

        Raises:
            ConfigurationError: If terraform is not installed or the
                working directory is missing.
        """
        if not self.working_dir.is_dir():
            raise ConfigurationError(
                f"Terraform directory not found: {self.working_dir}",
                details={"state_dir": str(self.working_dir)},
            )

        cmd = ["terraform", *args]
        cmd_string = " ".join(cmd)
        logger.debug(f"Running in {self.working_dir}: {cmd_string}")

        try:
            result = subprocess.run(
                cmd,
                cwd=self.working_dir,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ConfigurationError("terraform CLI not found. Install Terraform") from e

        return TerraformResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            command=cmd_string,
        )

    def _run_checked(self, operation: str, args: list[str]) -> TerraformResult:
        result = self._run(args)
        if not result.success:
            logger.error(f"terraform {operation} failed with exit code {result.returncode}")
            raise ProvisioningError(operation, result.stderr.strip())
        logger.info(f"terraform {operation} succeeded")
        return result

    def write_variables(self, variables: dict[str, Any]) -> Path:
        """Write the variable file applied by ``apply`` and ``destroy``.

        Returns:
            Path to the written file.
        """
        self.working_dir.mkdir(parents=True, exist_ok=True)
        # Owner-only from creation; an existing file is tightened before writing.
        fd = os.open(self.var_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(variables, f, indent=2)
            f.write("\n")
        logger.debug(f"Wrote {len(variables)} variables to {self.var_file}")
        return self.var_file

    def init(self) -> TerraformResult:
        """Run ``terraform init``.

        Raises:
            ProvisioningError: If init fails.
        """
        return self._run_checked("init", ["init", "-input=false", "-no-color"])

    def apply(self) -> TerraformResult:
        """Run ``terraform apply`` with the rendered variable file.

        Raises:
            ProvisioningError: If apply fails.
        """
        return self._run_checked(
            "apply",
            ["apply", "-auto-approve", "-input=false", "-no-color", f"-var-file={VAR_FILE}"],
        )

    def destroy(self) -> TerraformResult:
        """Run ``terraform destroy``.

        Raises:
            ProvisioningError: If destroy fails.
        """
        args = ["destroy", "-auto-approve", "-input=false", "-no-color"]
        if self.var_file.exists():
            args.append(f"-var-file={VAR_FILE}")
        return self._run_checked("destroy", args)

    def output(self, name: str) -> str | None:
        """Read a single raw output value.

        Returns:
            The value, or None when the output is missing or empty.
        """
        result = self._run(["output", "-raw", name])
        if not result.success:
            logger.debug(f"terraform output {name} unavailable: {result.stderr.strip()}")
            return None
        return result.stdout.strip() or None
