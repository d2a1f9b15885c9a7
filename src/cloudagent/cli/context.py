"""CLI context for cloudagent.

This module defines the shared context object passed to all CLI commands,
extracted to avoid circular imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from cloudagent.agents import get_agent
from cloudagent.core.config import ConfigManager, Settings
from cloudagent.core.orchestrator import Orchestrator
from cloudagent.utils.logging import configure_logging


class Context:
    """CLI context object passed to all commands.

    Holds shared state including configuration, the per-invocation
    settings and orchestrator, and CLI options like verbosity.

    Attributes:
        config_path: Explicit config file path, if given.
        config: ConfigManager instance.
        overrides: Settings given on the command line or environment.
        settings: Settings built from config defaults plus overrides.
        orchestrator: Orchestrator instance.
        verbose: Verbosity level (0-3).
        debug: Whether to show debug tracebacks.
    """

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.config: ConfigManager | None = None
        self.overrides: dict[str, Any] = {}
        self.settings: Settings | None = None
        self.orchestrator: Orchestrator | None = None
        self.verbose: int = 0
        self.debug: bool = False

    def init_config(self) -> ConfigManager:
        """Load the configuration file and apply its logging section.

        Returns:
            ConfigManager instance.
        """
        if self.config is None:
            self.config = ConfigManager(self.config_path)
            logging_config = self.config.config.logging
            configure_logging(
                verbosity=self.verbose,
                log_file=logging_config.file,
                log_level=logging_config.level,
            )
        return self.config

    def init_settings(self) -> Settings:
        """Build the invocation settings.

        Returns:
            Settings instance.
        """
        if self.settings is None:
            self.settings = self.init_config().build_settings(self.overrides)
        return self.settings

    def init_orchestrator(self) -> Orchestrator:
        """Initialize the orchestrator.

        The agent name is resolved here, before any external call.

        Returns:
            Orchestrator instance.

        Raises:
            UnknownAgentError: If the configured agent is not registered.
        """
        if self.orchestrator is None:
            settings = self.init_settings()
            agent = get_agent(settings.agent)
            self.orchestrator = Orchestrator(settings, agent)
        return self.orchestrator


pass_context = click.make_pass_decorator(Context, ensure=True)
