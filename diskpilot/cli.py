#!/usr/bin/env python3
"""diskpilot CLI - SSD/HDD aware volume optimization for Windows."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from diskpilot.cli_inventory_commands import register_inventory_commands
from diskpilot.cli_optimize_commands import run_interactive
from diskpilot.cli_support import handle_cli_error, load_settings, setup_file_logging
from diskpilot.core.config import ARTIFACT_FORMATS
from diskpilot.core.logger import get_logger
from diskpilot.models.config import ConfigValidationError

app = typer.Typer(
    name="diskpilot",
    help="""diskpilot - SSD/HDD aware volume optimization for Windows

Detects fixed volumes, tells SSDs from HDDs, and writes a task that
ReTrims the SSDs, defragments the HDDs and optionally shuts down.

Quick start:
  diskpilot             # Interactive: pick drives, generate and launch the task
  diskpilot scan        # Just show the detected volumes
  diskpilot inspect TASK  # Show what a generated task will do
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

register_inventory_commands(app, console)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the task file"),
    artifact_format: Optional[str] = typer.Option(
        None, "--format", "-f", help=f"Task format: {' or '.join(ARTIFACT_FORMATS)}"
    ),
    no_launch: bool = typer.Option(False, "--no-launch", help="Write the task but do not start it"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file (YAML)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
) -> None:
    """Pick drives, generate the optimization task and launch it elevated."""
    setup_file_logging(log_file=log_file, verbose=verbose)
    settings = load_settings(config, console, verbose)

    if artifact_format:
        try:
            settings = settings.merged_with({"artifact_format": artifact_format})
        except ConfigValidationError as e:
            handle_cli_error(e, console, verbose)

    ctx.obj = {"verbose": verbose, "settings": settings}

    if ctx.invoked_subcommand:
        return

    run_interactive(
        console,
        settings,
        output=output,
        launch=settings.launch and not no_launch,
        verbose=verbose,
    )


if __name__ == "__main__":
    app()
