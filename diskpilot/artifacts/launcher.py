"""Start a generated task in a new elevated process."""
import ctypes
import subprocess
from pathlib import Path
from typing import Callable, Optional

from diskpilot.core.errors import LaunchError
from diskpilot.core.logger import get_logger
from diskpilot.models.task import GeneratedArtifact

logger = get_logger(__name__)

SW_SHOWNORMAL = 1

# ShellExecuteW(hwnd, verb, file, parameters, directory, show) -> HINSTANCE
ShellExecute = Callable[[Optional[int], str, str, str, Optional[str], int], int]


def is_elevated() -> bool:
    """True when the current process holds administrator rights."""
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except (AttributeError, OSError):
        return False


def _shell_execute(hwnd, verb, file, parameters, directory, show) -> int:
    return ctypes.windll.shell32.ShellExecuteW(hwnd, verb, file, parameters, directory, show)


class ElevatedLauncher:
    """Launches artifacts through ShellExecuteW with the "runas" verb.

    If this process is already elevated the child inherits the token;
    otherwise Windows raises its own UAC prompt.
    """

    def __init__(self, mock: bool = False, shell_execute: Optional[ShellExecute] = None):
        self.mock = mock
        self.shell_execute = shell_execute or _shell_execute

    def launch(self, artifact: GeneratedArtifact) -> None:
        """Start the artifact. Returns once the process has been handed off.

        Raises:
            LaunchError: If the launch is refused or fails
        """
        command = artifact.launch_command
        if not command:
            raise LaunchError("Artifact has no launch command", artifact.path)

        if self.mock:
            logger.info(f"[mock] Would launch elevated: {subprocess.list2cmdline(command)}")
            return

        executable, arguments = command[0], subprocess.list2cmdline(command[1:])
        directory = str(Path(artifact.path).parent)
        logger.info(f"Launching elevated: {executable} {arguments}")

        try:
            result = self.shell_execute(None, "runas", executable, arguments, directory, SW_SHOWNORMAL)
        except (AttributeError, OSError) as e:
            raise LaunchError(f"Elevated launch is not available here: {e}", artifact.path) from e

        # Values <= 32 are error codes (5 = access denied, e.g. UAC declined)
        if result <= 32:
            raise LaunchError(f"Elevated launch failed (ShellExecute code {result})", artifact.path)
