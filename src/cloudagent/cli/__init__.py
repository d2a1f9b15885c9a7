"""CLI module for cloudagent.

This package contains all Click command definitions for the ca CLI.
"""

from cloudagent.cli.main import cli

__all__ = ["cli"]
