"""Shared utilities for diskpilot CLI modules."""
from __future__ import annotations

import os
from typing import Iterable, Optional

import typer
from rich.console import Console
from rich.table import Table

from diskpilot.core.config import DiskPilotConfig, load_config, set_config
from diskpilot.core.errors import DiskPilotError
from diskpilot.models.volume import VolumeRecord

# Default settings search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./diskpilot.yml",
    os.path.join(os.path.expanduser("~"), ".diskpilot", "diskpilot.yml"),
]


def find_config(config_path: Optional[str] = None) -> Optional[str]:
    """Locate the settings file, if any."""
    if config_path:
        return config_path

    if env_config := os.environ.get("DISKPILOT_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if os.path.exists(path):
            return path

    return None


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return os.environ.get("DISKPILOT_MOCK") == "1"


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging and console verbosity for CLI commands."""
    from diskpilot.core.logger import set_console_level
    from diskpilot.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)
    set_console_level(verbose)


def load_settings(config_path: Optional[str], console: Console, verbose: bool = False) -> DiskPilotConfig:
    """Load settings (file over environment) and install them globally."""
    try:
        config = load_config(find_config(config_path))
    except (DiskPilotError, FileNotFoundError) as e:
        handle_cli_error(e, console, verbose)
    set_config(config)
    return config


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def inventory_table(inventory: Iterable[VolumeRecord], title: str = "Fixed volumes") -> Table:
    """Rich table of classified volumes."""
    table = Table(title=title)
    table.add_column("Drive", style="bold")
    table.add_column("Label")
    table.add_column("File system")
    table.add_column("Size", justify="right")
    table.add_column("Disk", justify="right")
    table.add_column("Media")
    table.add_column("Resolved by", style="dim")
    table.add_column("Selectable")

    for record in inventory:
        media_style = "cyan" if record.is_valid else "yellow"
        table.add_row(
            f"{record.drive_letter}:",
            record.label or "-",
            record.file_system or "-",
            record.size_human if record.size_bytes else "-",
            str(record.disk_number) if record.disk_number is not None else "-",
            f"[{media_style}]{record.media_type.value}[/{media_style}]",
            record.resolved_by or "-",
            "[green]yes[/green]" if record.is_valid else "[red]no[/red]",
        )
    return table


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    """Print success message with consistent formatting."""
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    """Print error message with consistent formatting."""
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    """Print warning message with consistent formatting."""
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    """Print info message with consistent formatting."""
    console.print(f"[cyan]{prefix}[/cyan] {message}")
