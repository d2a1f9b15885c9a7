"""Configuration management for cloudagent.

This module provides a Pydantic-based configuration system that supports:
- An optional YAML file of operator defaults
- Environment variable and CLI overrides (applied by the CLI layer)
- Default values with validation

The default config location is ~/.cloudagent/config.yaml, which can be
overridden with the CLOUDAGENT_CONFIG environment variable. A single
``Settings`` object is built once per invocation and passed explicitly
to every component.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from cloudagent.core.exceptions import ConfigNotFoundError, ConfigurationError

DEFAULT_AGENT = "auggie"
DEFAULT_REGION = "us-central1"
DEFAULT_ZONE = "us-central1-a"
DEFAULT_MACHINE_TYPE = "n2-standard-4"


def get_default_config_path() -> Path:
    """Get the default configuration file path.

    The path can be overridden by setting the CLOUDAGENT_CONFIG
    environment variable.

    Returns:
        Path to the configuration file.
    """
    env_path = os.environ.get("CLOUDAGENT_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".cloudagent" / "config.yaml"


def get_default_state_dir() -> Path:
    """Directory holding the Terraform templates, variables and state."""
    return Path.home() / ".cloudagent" / "terraform"


def get_default_log_path() -> Path:
    """Get the default log file path."""
    return Path.home() / ".cloudagent" / "logs" / "cloudagent.log"


class LoggingConfig(BaseModel):
    """Logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        file: Path to log file (optional).
    """

    level: str = Field(default="WARNING", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper


class Settings(BaseModel):
    """Everything one invocation needs to know, resolved once at startup.

    Args:
        agent: Agent backend to deploy credentials for.
        project_id: GCP project (falls back to gcloud's configured project).
        region: GCP region.
        zone: GCP zone for the VM.
        machine_type: Compute Engine machine type.
        cluster_name: Optional GKE cluster to configure kubectl for.
        cluster_zone: Zone of that cluster (defaults to ``zone``).
        ssh_key: Private key used for GitHub and for reaching the VM.
        github_token: GitHub personal access token.
        github_token_file: File holding a GitHub personal access token.
        skip_deletion: Value of the ``skip_deletion`` label (yes/no).
        permissions: Comma-separated short permission names.
        strict_permissions: Reject unknown permission names instead of dropping them.
        additional_ip: Extra address allowed through the SSH firewall.
        username: Override for the derived owner.
        company: Organization suffix appended to the owner.
        state_dir: Terraform working directory.
        boot_wait: Seconds to wait for the guest startup script after creation.
        ssh_timeout: Connection timeout for the SSH transport in seconds.
    """

    agent: str = Field(default=DEFAULT_AGENT, description="Agent backend")
    project_id: str | None = Field(default=None, description="GCP project")
    region: str = Field(default=DEFAULT_REGION, description="GCP region")
    zone: str = Field(default=DEFAULT_ZONE, description="GCP zone")
    machine_type: str = Field(default=DEFAULT_MACHINE_TYPE, description="Machine type")
    cluster_name: str | None = Field(default=None, description="GKE cluster")
    cluster_zone: str | None = Field(default=None, description="GKE cluster zone")
    ssh_key: str | None = Field(default=None, description="SSH private key path")
    github_token: str | None = Field(default=None, repr=False, description="GitHub PAT")
    github_token_file: str | None = Field(default=None, description="GitHub PAT file")
    skip_deletion: str = Field(default="yes", description="skip_deletion label")
    permissions: str | None = Field(default=None, description="Permission names")
    strict_permissions: bool = Field(default=False, description="Fail on unknown names")
    additional_ip: str | None = Field(default=None, description="Extra allowed address")
    username: str | None = Field(default=None, description="Owner override")
    company: str | None = Field(default=None, description="Organization suffix")
    state_dir: str = Field(
        default_factory=lambda: str(get_default_state_dir()),
        description="Terraform working directory",
    )
    boot_wait: Annotated[int, Field(ge=0, le=900)] = Field(
        default=90, description="Seconds to wait after creation"
    )
    ssh_timeout: Annotated[int, Field(ge=1, le=300)] = Field(
        default=10, description="SSH connect timeout"
    )

    @field_validator("agent")
    @classmethod
    def normalize_agent(cls, v: str) -> str:
        """Agent names are matched case-insensitively."""
        return v.strip().lower()

    @field_validator("skip_deletion")
    @classmethod
    def normalize_skip_deletion(cls, v: str) -> str:
        """Accept yes/no/true/false and store yes or no."""
        value = v.strip().lower()
        if value in {"yes", "true", "1", "y"}:
            return "yes"
        if value in {"no", "false", "0", "n"}:
            return "no"
        raise ValueError(f"Invalid skip_deletion value: {v}. Use yes or no")

    @field_validator("ssh_key", "github_token_file", "state_dir")
    @classmethod
    def expand_path(cls, v: str | None) -> str | None:
        """Expand ~ in paths."""
        if v:
            return str(Path(v).expanduser())
        return v

    @property
    def effective_cluster_zone(self) -> str:
        """Cluster zone, defaulting to the VM zone."""
        return self.cluster_zone or self.zone

    @property
    def state_path(self) -> Path:
        """Terraform working directory as a Path."""
        return Path(self.state_dir)


class Config(BaseModel):
    """Config file model for cloudagent.

    Example config.yaml:
        ```yaml
        defaults:
          agent: claude
          zone: europe-west1-b
          company: example.com
          permissions: compute,storage

        logging:
          level: INFO
          file: ~/.cloudagent/logs/cloudagent.log
        ```
    """

    defaults: Settings = Field(default_factory=Settings, description="Default settings")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging config")

    def build_settings(self, overrides: dict[str, Any] | None = None) -> Settings:
        """Merge explicit overrides on top of the file defaults.

        ``None`` values in ``overrides`` mean "not given" and keep the default.

        Raises:
            ConfigurationError: If the merged values fail validation.
        """
        data = self.defaults.model_dump()
        data.update({k: v for k, v in (overrides or {}).items() if v is not None})
        try:
            return Settings.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e


class ConfigManager:
    """Manages reading and writing the cloudagent config file.

    Args:
        path: Optional path to config file. Uses default if not specified.

    Attributes:
        path: Path to the configuration file.
        config: The loaded and validated Config object.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        if path is None:
            self.path = get_default_config_path()
        else:
            self.path = Path(path).expanduser()

        self.config = self._load_or_create()

    def _load_or_create(self) -> Config:
        """Load config from file or fall back to defaults."""
        if self.path.exists():
            return self._load()
        return Config()

    def _load(self) -> Config:
        """Load and validate configuration from file.

        Raises:
            ConfigurationError: If the config file is invalid.
            ConfigNotFoundError: If the config file doesn't exist.
        """
        if not self.path.exists():
            raise ConfigNotFoundError(str(self.path))

        try:
            with self.path.open("r") as f:
                data = yaml.safe_load(f) or {}
            return Config.model_validate(data)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in config file: {e}",
                details={"path": str(self.path)},
            ) from e
        except ValidationError as e:
            raise ConfigurationError(
                f"Failed to load config: {e}",
                details={"path": str(self.path)},
            ) from e

    def build_settings(self, overrides: dict[str, Any] | None = None) -> Settings:
        """Build the invocation settings from file defaults plus overrides."""
        return self.config.build_settings(overrides)

    def to_dict(self, mask_secrets: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Args:
            mask_secrets: Replace token values with a placeholder.
        """
        data = self.config.model_dump(exclude_none=True)
        if mask_secrets and data.get("defaults", {}).get("github_token"):
            data["defaults"]["github_token"] = "********"
        return data

    @classmethod
    def create_example_config(cls, path: Path | None = None) -> Path:
        """Create an example configuration file.

        Args:
            path: Optional path for the config. Uses default if not specified.

        Returns:
            Path to the created config file.
        """
        path = get_default_config_path() if path is None else Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)

        example_config = {
            "defaults": {
                "agent": DEFAULT_AGENT,
                "region": DEFAULT_REGION,
                "zone": DEFAULT_ZONE,
                "machine_type": DEFAULT_MACHINE_TYPE,
                "skip_deletion": "yes",
                "ssh_key": "~/.ssh/cloud-agent",
                "state_dir": str(get_default_state_dir()),
                "boot_wait": 90,
            },
            "logging": {
                "level": "WARNING",
                "file": str(get_default_log_path()),
            },
        }

        with path.open("w") as f:
            yaml.safe_dump(example_config, f, default_flow_style=False, sort_keys=False)

        return path
