"""Rich terminal output utilities for cloudagent.

This module provides formatted output using the Rich library,
including tables, spinners, panels, and color-coded status.
"""

from __future__ import annotations

import json
from enum import Enum

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

from cloudagent.models.vm import Instance

# Global console instances
console = Console()
error_console = Console(stderr=True)


class OutputFormat(str, Enum):
    """Supported output formats."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class OutputFormatter:
    """Handles formatting and outputting data in various formats.

    Args:
        format_type: Output format to use (table, json, yaml).
        output_console: Rich console instance for output.

    Example:
        >>> formatter = OutputFormatter(OutputFormat.TABLE)
        >>> formatter.print_instances([instance])
    """

    def __init__(
        self,
        format_type: OutputFormat = OutputFormat.TABLE,
        output_console: Console | None = None,
    ) -> None:
        self.format_type = format_type
        self.console = output_console or console

    def print_instances(self, instances: list[Instance]) -> None:
        """Print a list of cloud-agent instances.

        Args:
            instances: List of Instance objects to display.
        """
        if self.format_type == OutputFormat.JSON:
            data = [i.to_dict() for i in instances]
            self.console.print_json(json.dumps(data, indent=2))
        elif self.format_type == OutputFormat.YAML:
            data = [i.to_dict() for i in instances]
            self.console.print(yaml.safe_dump(data, default_flow_style=False))
        else:
            self._print_instances_table(instances)

    def _print_instances_table(self, instances: list[Instance]) -> None:
        """Print instances as a Rich table."""
        table = Table(title="Cloud Agent VMs", show_header=True)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Zone", style="white")
        table.add_column("Status", justify="center")
        table.add_column("Owner", style="yellow")
        table.add_column("Skip Deletion", style="dim")
        table.add_column("External IP", style="green")

        for instance in instances:
            status_text = Text(instance.status_display)
            status_text.stylize(instance.status.color)

            table.add_row(
                instance.name,
                instance.zone or "-",
                status_text,
                instance.owner or "-",
                instance.skip_deletion or "-",
                instance.external_ip or "-",
            )

        self.console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]ℹ[/blue] {message}")


def print_header(title: str, body: str = "") -> None:
    """Print a framed section header.

    Args:
        title: Header title.
        body: Optional text shown inside the frame.
    """
    console.print(Panel(body or f"[bold]{title}[/bold]", title=title if body else None))


def create_spinner_progress() -> Progress:
    """Create a simple spinner progress for indeterminate operations.

    Returns:
        Progress instance with just spinner and description.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
