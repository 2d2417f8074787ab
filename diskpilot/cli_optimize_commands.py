"""Interactive optimization flow: inventory, selection, task generation."""
from pathlib import Path
from typing import Optional, Sequence

import typer
from rich.console import Console
from rich.panel import Panel

from diskpilot.artifacts.generator import TaskArtifactGenerator
from diskpilot.artifacts.launcher import is_elevated
from diskpilot.artifacts.renderers import get_renderer
from diskpilot.cli_support import (
    handle_cli_error,
    inventory_table,
    is_mock,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from diskpilot.core.config import DiskPilotConfig
from diskpilot.core.errors import EnumerationError, GenerationError, LaunchError, SelectionError
from diskpilot.core.logger import get_logger
from diskpilot.discovery.classifier import VolumeClassifier
from diskpilot.models.task import TaskConfig
from diskpilot.models.volume import MediaType, VolumeRecord
from diskpilot.selection import parse_drive_selection, parse_shutdown_choice, valid_records

logger = get_logger(__name__)

SELECTION_PROMPT = "Drives to optimize (ALL, or letters separated by spaces/commas)"
SHUTDOWN_PROMPT = "Shut down the computer when finished? (Y/N)"


def load_inventory(console: Console, config: DiskPilotConfig, mock: bool,
                   verbose: bool = False) -> Sequence[VolumeRecord]:
    """Enumerate and classify volumes; an enumeration failure yields an empty inventory."""
    classifier = VolumeClassifier(mock=mock, config=config)
    try:
        with console.status("Detecting fixed volumes and media types..."):
            return classifier.enumerate()
    except EnumerationError as e:
        print_error(console, str(e))
        logger.error(f"Volume enumeration failed: {e}")
        if verbose:
            console.print_exception()
        return ()


def run_interactive(
    console: Console,
    config: DiskPilotConfig,
    output: Optional[Path] = None,
    launch: bool = True,
    verbose: bool = False,
) -> None:
    """Inventory -> operator selection -> task artifact -> elevated launch."""
    mock = is_mock()
    inventory = load_inventory(console, config, mock, verbose)

    if inventory:
        console.print(inventory_table(inventory))

    if not valid_records(inventory):
        print_error(console, "No fixed drives with a known media type (SSD/HDD) were found.")
        raise typer.Exit(1)

    try:
        selection = parse_drive_selection(typer.prompt(SELECTION_PROMPT), inventory)
    except SelectionError as e:
        print_error(console, f"{e}. Nothing to do.")
        raise typer.Exit(1)

    shutdown_after = parse_shutdown_choice(
        typer.prompt(SHUTDOWN_PROMPT, default="N", show_default=False)
    )
    task = TaskConfig(selection, shutdown_after)

    console.print(Panel(
        "\n".join(
            f"[bold]{r.drive_letter}:[/bold] {r.media_type.value} -> "
            f"{'ReTrim' if r.media_type is MediaType.SSD else 'Defragment'}"
            for r in selection
        ) + f"\n\n[bold]Shutdown afterwards:[/bold] {'yes' if shutdown_after else 'no'}",
        title="Optimization task",
        border_style="cyan",
    ))

    generator = TaskArtifactGenerator(
        config=config,
        renderer=get_renderer(config.artifact_format),
        mock=mock,
    )
    try:
        artifact = generator.generate(task, output)
    except GenerationError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, f"Task written to {artifact.path}")

    if not launch:
        print_info(console, "Launch skipped. Run it from an elevated prompt:")
        console.print(f"  [cyan]{' '.join(artifact.launch_command)}[/cyan]")
        return

    if not is_elevated() and not mock:
        print_warning(console, "Windows will ask for administrator approval to start the task.")

    try:
        generator.launch(artifact)
    except LaunchError as e:
        print_error(console, str(e))
        console.print(f"Run it manually as Administrator: [cyan]{artifact.path}[/cyan]")
        raise typer.Exit(1)

    print_success(console, "Optimization task started in a new elevated window.")
