"""Read-only CLI commands - scan, inspect."""
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from diskpilot.artifacts.generator import decode_artifact
from diskpilot.cli_support import handle_cli_error, inventory_table, is_mock, print_error, print_warning
from diskpilot.core.config import get_config
from diskpilot.core.errors import ArtifactFormatError, EnumerationError
from diskpilot.core.logger import get_logger
from diskpilot.discovery.classifier import VolumeClassifier
from diskpilot.models.volume import MediaType

logger = get_logger(__name__)

# Module-level console instance (will be set by register function)
console: Console = Console()


def scan(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the inventory as JSON"),
):
    """List fixed volumes and their detected media type.

    Nothing is selected, written or launched.

    Examples:
        diskpilot scan
        diskpilot scan --json
    """
    obj = ctx.obj or {}
    verbose = bool(obj.get("verbose"))
    classifier = VolumeClassifier(mock=is_mock(), config=obj.get("settings") or get_config())
    try:
        inventory = classifier.enumerate()
    except EnumerationError as e:
        print_error(console, str(e))
        logger.error(f"Volume enumeration failed: {e}")
        if verbose:
            console.print_exception()
        inventory = ()

    if as_json:
        payload = [
            {
                "drive_letter": r.drive_letter,
                "media_type": r.media_type.value,
                "is_valid": r.is_valid,
                "disk_number": r.disk_number,
                "file_system": r.file_system,
                "label": r.label,
                "size_bytes": r.size_bytes,
                "resolved_by": r.resolved_by,
            }
            for r in inventory
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    if not inventory:
        print_warning(console, "No fixed volumes with a drive letter were found.")
        return
    console.print(inventory_table(inventory))


def inspect(
    ctx: typer.Context,
    artifact: Path = typer.Argument(..., help="Generated task file (.py or .ps1)"),
):
    """Decode a generated task and show what it will do."""
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    try:
        task = decode_artifact(artifact)
    except ArtifactFormatError as e:
        handle_cli_error(e, console, verbose)

    table = Table(title=str(artifact))
    table.add_column("Drive", style="bold")
    table.add_column("Media")
    table.add_column("Operation")
    for letter, media in task.selection.pairs():
        operation = "ReTrim" if media is MediaType.SSD else "Defragment"
        table.add_row(f"{letter}:", media.value, operation)
    console.print(table)
    console.print(f"[bold]Shutdown afterwards:[/bold] {'yes' if task.shutdown_after else 'no'}")


def register_inventory_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register read-only commands with the main Typer app."""
    global console
    console = shared_console
    app.command()(scan)
    app.command()(inspect)
