"""PowerShell query runner returning decoded JSON."""
import json
import subprocess
from typing import Any, Callable, Dict, List, Optional

from diskpilot.core.errors import QueryError
from diskpilot.core.logger import get_logger

logger = get_logger(__name__)

RunCmd = Callable[[List[str], int], str]

# Redirected output otherwise uses the OEM code page
UTF8_OUTPUT = "[Console]::OutputEncoding = [Text.Encoding]::UTF8; "


class PowerShellRunner:
    """Runs PowerShell snippets and decodes their ConvertTo-Json output.

    The command runner is injectable so the query surfaces can be exercised
    without Windows: ``run_cmd(argv, timeout) -> stdout``.
    """

    def __init__(self, executable: str = "powershell.exe", timeout: int = 30,
                 run_cmd: Optional[RunCmd] = None):
        self.executable = executable
        self.timeout = timeout
        self.run_cmd = run_cmd or self._run

    def build_command(self, script: str) -> List[str]:
        return [
            self.executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy", "Bypass",
            "-Command", script,
        ]

    def query(self, script: str) -> List[Dict[str, Any]]:
        """Run a pipeline and return its objects as a list of dicts.

        ``| ConvertTo-Json`` is appended to the script. PowerShell emits a
        bare object for a single result and nothing at all for an empty
        pipeline; both are normalized to a list.

        Raises:
            QueryError: If PowerShell fails, times out, is missing, or
                prints something that is not UTF-8 JSON
        """
        full_script = f"{UTF8_OUTPUT}{script} | ConvertTo-Json -Compress -Depth 3"
        try:
            output = self.run_cmd(self.build_command(full_script), self.timeout)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise QueryError(f"PowerShell exited with {e.returncode}: {stderr or script}") from e
        except subprocess.TimeoutExpired as e:
            raise QueryError(f"PowerShell query timed out after {self.timeout}s: {script}") from e
        except FileNotFoundError as e:
            raise QueryError(f"PowerShell not found: {self.executable}") from e
        except UnicodeDecodeError as e:
            raise QueryError(f"Undecodable PowerShell output for {script!r}: {e}") from e

        output = (output or "").strip()
        if not output:
            return []

        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise QueryError(f"Unparseable PowerShell output for {script!r}: {e}") from e

        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        # Scalars (e.g. -ExpandProperty) come back wrapped
        return [{"Value": data}]

    def _run(self, argv: List[str], timeout: int) -> str:
        logger.debug(f"Running: {argv[-1]}")
        result = subprocess.run(
            argv,
            capture_output=True, text=True, check=True, timeout=timeout,
            encoding="utf-8", errors="replace",
        )
        return result.stdout
