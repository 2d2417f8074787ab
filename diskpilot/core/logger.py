"""Unified logging for diskpilot with console and file output."""
import logging
import os
import tempfile
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()


def _default_log_dir() -> Path:
    """Per-user log directory (LOCALAPPDATA on Windows, ~/.diskpilot elsewhere)."""
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        return Path(local_app_data) / "diskpilot"
    return Path.home() / ".diskpilot"


LOG_DIR = _default_log_dir()
LOG_FILE = LOG_DIR / "diskpilot.log"

# Track if file logging has been set up
_file_logging_configured = False


def setup_file_logging(log_file: str = None, verbose: bool = False) -> Path:
    """Set up file logging for diskpilot operations.

    Args:
        log_file: Path to log file (defaults to LOG_FILE)
        verbose: Enable debug-level logging

    Returns:
        Path of the log file in use

    Note:
        Creates the log directory if it doesn't exist.
        Falls back to the system temp directory if it is not writable.
    """
    global _file_logging_configured

    root_logger = logging.getLogger("diskpilot")

    if _file_logging_configured:
        for handler in root_logger.handlers:
            if isinstance(handler, logging.FileHandler):
                return Path(handler.baseFilename)

    target_log_file = Path(log_file) if log_file else LOG_FILE

    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target_log_file, encoding="utf-8")
    except OSError:
        target_log_file = Path(tempfile.gettempdir()) / "diskpilot.log"
        file_handler = logging.FileHandler(target_log_file, encoding="utf-8")

    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Detailed format for file logs
    file_formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    _file_logging_configured = True

    root_logger.info(f"diskpilot logging initialized: {target_log_file}")
    return target_log_file


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance with console output.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger with Rich console handler

    Note:
        File logging must be enabled separately via setup_file_logging()
    """
    logger = logging.getLogger(name)

    # Only add console handler if not already present
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.setLevel(logging.WARNING)
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)

    return logger


def set_console_level(verbose: bool) -> None:
    """Switch every diskpilot console handler between WARNING and DEBUG."""
    level = logging.DEBUG if verbose else logging.WARNING
    for name, candidate in logging.Logger.manager.loggerDict.items():
        if not name.startswith("diskpilot") or not isinstance(candidate, logging.Logger):
            continue
        for handler in candidate.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(level)
