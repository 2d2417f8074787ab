"""Artifact renderers: turn a TaskConfig into a standalone script and back.

Both formats share one layout:

    documentation header
    # --- task data ---      (drive records, shutdown flag as a native boolean)
    # --- end task data ---
    debug echo, privilege check, per-drive dispatch, conditional shutdown

Values in the data block go through the target language's own quoting
(repr() for Python, doubled single quotes for PowerShell) and the shutdown
flag is written as the language's boolean literal, never as text.
"""
import ast
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from diskpilot import __version__
from diskpilot.core.errors import ArtifactFormatError
from diskpilot.models.task import SelectionSet, TaskConfig
from diskpilot.models.volume import MediaType, VolumeRecord

DATA_BEGIN = "# --- task data ---"
DATA_END = "# --- end task data ---"

FIELD_DRIVE_LETTER = "DriveLetter"
FIELD_MEDIA_TYPE = "MediaType"


def _summary(config: TaskConfig) -> Tuple[str, str]:
    drives = ", ".join(f"{letter} ({media.value})" for letter, media in config.selection.pairs())
    return drives, "yes" if config.shutdown_after else "no"


def _data_block(text: str) -> str:
    """Text between the data markers."""
    start = text.find(DATA_BEGIN)
    if start < 0:
        raise ArtifactFormatError("Task data block not found")
    start += len(DATA_BEGIN)
    end = text.find(DATA_END, start)
    if end < 0:
        raise ArtifactFormatError("Task data block is not terminated")
    return text[start:end]


def _build_config(drives: List[Tuple[str, str]], shutdown_after) -> TaskConfig:
    if not isinstance(shutdown_after, bool):
        raise ArtifactFormatError(f"Shutdown flag is not a boolean literal: {shutdown_after!r}")
    try:
        records = [VolumeRecord(letter, MediaType.from_text(media)) for letter, media in drives]
        return TaskConfig(SelectionSet(records), shutdown_after)
    except (TypeError, ValueError) as e:
        raise ArtifactFormatError(f"Invalid task data: {e}") from e


class ArtifactRenderer:
    """Base renderer. Subclasses supply the header, data block and body."""

    format = ""
    suffix = ""

    def sections(self, config: TaskConfig, shutdown_delay: int = 10,
                 generated_at: Optional[datetime] = None) -> List[str]:
        """Header, data block and procedure body, in write order."""
        generated_at = generated_at or datetime.now()
        return [
            self.render_header(config, generated_at),
            self.render_data(config, shutdown_delay),
            self.body(),
        ]

    def render(self, config: TaskConfig, shutdown_delay: int = 10,
               generated_at: Optional[datetime] = None) -> str:
        return "".join(self.sections(config, shutdown_delay, generated_at))

    def render_header(self, config: TaskConfig, generated_at: datetime) -> str:
        raise NotImplementedError

    def render_data(self, config: TaskConfig, shutdown_delay: int) -> str:
        raise NotImplementedError

    def body(self) -> str:
        raise NotImplementedError

    def decode(self, text: str) -> TaskConfig:
        """Parse the data block of a rendered artifact back into a TaskConfig.

        Raises:
            ArtifactFormatError: If the block is missing or malformed
        """
        raise NotImplementedError

    def launch_command(self, path) -> List[str]:
        raise NotImplementedError


# -----------------------------
#  Python artifact
# -----------------------------
PYTHON_BODY = '''

POWERSHELL = "powershell.exe"


def is_elevated():
    """True when running with administrator rights."""
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())
    except (AttributeError, OSError):
        return False


def run_command(argv):
    return subprocess.run(argv, check=True)


def optimize_command(drive_letter, media_type):
    mode = "-ReTrim" if media_type == "SSD" else "-Defrag"
    return [
        POWERSHELL, "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command",
        "Optimize-Volume -DriveLetter %s %s -Verbose -ErrorAction Stop" % (drive_letter, mode),
    ]


def optimize(drive):
    letter = drive["DriveLetter"]
    media_type = drive["MediaType"]
    if media_type == "SSD":
        print("Drive %s: SSD, running ReTrim" % letter)
    elif media_type == "HDD":
        print("Drive %s: HDD, running defragmentation" % letter)
    else:
        print("WARNING: drive %s: media type %r unknown, falling back to defragmentation" % (letter, media_type))

    try:
        run_command(optimize_command(letter, media_type))
    except (OSError, subprocess.SubprocessError) as e:
        print("ERROR: optimization of drive %s failed: %s" % (letter, e))
        return False

    print("Drive %s: done" % letter)
    return True


def shutdown():
    try:
        run_command(["shutdown.exe", "/s", "/t", str(SHUTDOWN_DELAY_SECONDS)])
    except (OSError, subprocess.SubprocessError) as e:
        print("ERROR: shutdown failed: %s" % e)
        print("Please shut down the computer manually.")
        return False
    return True


def main():
    print("[debug] DRIVES = %r" % (DRIVES,))
    print("[debug] SHUTDOWN_AFTER = %r" % (SHUTDOWN_AFTER,))

    if not is_elevated():
        print("ERROR: this task must be run as Administrator.", file=sys.stderr)
        return 1

    failures = 0
    for drive in DRIVES:
        if not optimize(drive):
            failures += 1

    if SHUTDOWN_AFTER:
        print("Shutting down in %d seconds..." % SHUTDOWN_DELAY_SECONDS)
        shutdown()

    return 2 if failures else 0


if __name__ == "__main__":
    status = main()
    # Status 1 means nothing ran, so keep the message on screen
    if (status == 1 or not SHUTDOWN_AFTER) and sys.stdin is not None and sys.stdin.isatty():
        input("Press Enter to close...")
    sys.exit(status)
'''


class PythonRenderer(ArtifactRenderer):
    """Renders a .py task run by the Python interpreter."""

    format = "python"
    suffix = ".py"

    def render_header(self, config: TaskConfig, generated_at: datetime) -> str:
        drives, shutdown = _summary(config)
        return (
            "#!/usr/bin/env python3\n"
            '"""diskpilot optimization task.\n'
            "\n"
            f"Generated by diskpilot {__version__} on {generated_at:%Y-%m-%d %H:%M:%S}.\n"
            f"Drives: {drives}\n"
            f"Shutdown after completion: {shutdown}\n"
            "\n"
            "Must run as Administrator. SSD volumes get a ReTrim pass, HDD volumes a\n"
            "defragmentation pass. The task data block below is the whole configuration.\n"
            '"""\n'
            "import ctypes\n"
            "import subprocess\n"
            "import sys\n"
            "\n"
        )

    def render_data(self, config: TaskConfig, shutdown_delay: int) -> str:
        lines = [DATA_BEGIN, "DRIVES = ["]
        for letter, media in config.selection.pairs():
            lines.append(
                f"    {{{FIELD_DRIVE_LETTER!r}: {letter!r}, {FIELD_MEDIA_TYPE!r}: {media.value!r}}},"
            )
        lines.append("]")
        # repr(bool) is the literal True/False
        lines.append(f"SHUTDOWN_AFTER = {config.shutdown_after!r}")
        lines.append(f"SHUTDOWN_DELAY_SECONDS = {int(shutdown_delay)!r}")
        lines.append(DATA_END)
        return "\n".join(lines) + "\n"

    def body(self) -> str:
        return PYTHON_BODY

    def decode(self, text: str) -> TaskConfig:
        block = _data_block(text)
        try:
            tree = ast.parse(block)
        except SyntaxError as e:
            raise ArtifactFormatError(f"Task data block is not valid Python: {e}") from e

        values: Dict[str, object] = {}
        for node in tree.body:
            if not isinstance(node, ast.Assign) or len(node.targets) != 1:
                raise ArtifactFormatError("Task data block may only contain simple assignments")
            target = node.targets[0]
            if not isinstance(target, ast.Name):
                raise ArtifactFormatError("Task data block may only assign plain names")
            try:
                values[target.id] = ast.literal_eval(node.value)
            except ValueError as e:
                raise ArtifactFormatError(f"{target.id} is not a literal") from e

        if "DRIVES" not in values or "SHUTDOWN_AFTER" not in values:
            raise ArtifactFormatError("Task data block lacks DRIVES or SHUTDOWN_AFTER")

        drives = values["DRIVES"]
        if not isinstance(drives, list):
            raise ArtifactFormatError("DRIVES is not a list")
        pairs = []
        for entry in drives:
            if not isinstance(entry, dict) or set(entry) != {FIELD_DRIVE_LETTER, FIELD_MEDIA_TYPE}:
                raise ArtifactFormatError(f"Malformed drive record: {entry!r}")
            pairs.append((entry[FIELD_DRIVE_LETTER], entry[FIELD_MEDIA_TYPE]))
        return _build_config(pairs, values["SHUTDOWN_AFTER"])

    def launch_command(self, path) -> List[str]:
        return [sys.executable, str(path)]


# -----------------------------
#  PowerShell artifact
# -----------------------------
POWERSHELL_BODY = r'''
Write-Host "[debug] Drives: $(($Drives | ForEach-Object { "$($_.DriveLetter)=$($_.MediaType)" }) -join ', ')"
Write-Host "[debug] ShutdownAfter: $ShutdownAfter"

$principal = New-Object Security.Principal.WindowsPrincipal([Security.Principal.WindowsIdentity]::GetCurrent())
if (-not $principal.IsInRole([Security.Principal.WindowsBuiltInRole]::Administrator)) {
    Write-Host "ERROR: this task must be run as Administrator." -ForegroundColor Red
    Read-Host "Press Enter to close"
    exit 1
}

$failures = 0
foreach ($drive in $Drives) {
    $letter = $drive.DriveLetter
    try {
        switch ($drive.MediaType) {
            'SSD' {
                Write-Host "Drive ${letter}: SSD, running ReTrim"
                Optimize-Volume -DriveLetter $letter -ReTrim -Verbose -ErrorAction Stop
            }
            'HDD' {
                Write-Host "Drive ${letter}: HDD, running defragmentation"
                Optimize-Volume -DriveLetter $letter -Defrag -Verbose -ErrorAction Stop
            }
            default {
                Write-Warning "Drive ${letter}: media type '$($drive.MediaType)' unknown, falling back to defragmentation"
                Optimize-Volume -DriveLetter $letter -Defrag -Verbose -ErrorAction Stop
            }
        }
        Write-Host "Drive ${letter}: done" -ForegroundColor Green
    } catch {
        $failures++
        Write-Host "ERROR: optimization of drive ${letter} failed: $($_.Exception.Message)" -ForegroundColor Red
    }
}

if ($ShutdownAfter) {
    Write-Host "Shutting down in $ShutdownDelaySeconds seconds..."
    try {
        & shutdown.exe /s /t $ShutdownDelaySeconds
        if ($LASTEXITCODE -ne 0) { throw "shutdown.exe exited with code $LASTEXITCODE" }
    } catch {
        Write-Host "ERROR: shutdown failed: $_" -ForegroundColor Red
        Write-Host "Please shut down the computer manually."
    }
} else {
    Read-Host "Press Enter to close"
}

if ($failures -gt 0) { exit 2 }
exit 0
'''

# PowerShell accepts typographic single quotes as string delimiters too
_PS_QUOTES = ("'", "‘", "’", "‚", "‛")

_PS_DRIVE_RE = re.compile(
    r"\[PSCustomObject\]@\{\s*DriveLetter\s*=\s*'((?:[^']|'')*)'\s*;"
    r"\s*MediaType\s*=\s*'((?:[^']|'')*)'\s*\}",
    re.IGNORECASE,
)
_PS_SHUTDOWN_RE = re.compile(r"^\s*\$ShutdownAfter\s*=\s*(\S+)\s*$", re.IGNORECASE | re.MULTILINE)
_PS_DRIVES_RE = re.compile(r"^\s*\$Drives\s*=\s*@\(", re.IGNORECASE | re.MULTILINE)
_PS_ENTRY_RE = re.compile(r"@\{")


def ps_quote(value: str) -> str:
    """Single-quoted PowerShell literal; embedded quotes are doubled."""
    for quote in _PS_QUOTES:
        value = value.replace(quote, quote * 2)
    return f"'{value}'"


def ps_bool(value: bool) -> str:
    return "$true" if value else "$false"


class PowerShellRenderer(ArtifactRenderer):
    """Renders a .ps1 task run by Windows PowerShell."""

    format = "powershell"
    suffix = ".ps1"

    def render_header(self, config: TaskConfig, generated_at: datetime) -> str:
        drives, shutdown = _summary(config)
        return (
            "<#\n"
            ".SYNOPSIS\n"
            "    diskpilot optimization task.\n"
            ".DESCRIPTION\n"
            f"    Generated by diskpilot {__version__} on {generated_at:%Y-%m-%d %H:%M:%S}.\n"
            f"    Drives: {drives}\n"
            f"    Shutdown after completion: {shutdown}\n"
            "\n"
            "    Must run as Administrator. SSD volumes get a ReTrim pass, HDD volumes a\n"
            "    defragmentation pass. The task data block below is the whole configuration.\n"
            "#>\n"
            "\n"
        )

    def render_data(self, config: TaskConfig, shutdown_delay: int) -> str:
        lines = [DATA_BEGIN, "$Drives = @("]
        for letter, media in config.selection.pairs():
            lines.append(
                f"    [PSCustomObject]@{{ {FIELD_DRIVE_LETTER} = {ps_quote(letter)}; "
                f"{FIELD_MEDIA_TYPE} = {ps_quote(media.value)} }}"
            )
        lines.append(")")
        lines.append(f"$ShutdownAfter = {ps_bool(config.shutdown_after)}")
        lines.append(f"$ShutdownDelaySeconds = {int(shutdown_delay)}")
        lines.append(DATA_END)
        return "\n".join(lines) + "\n"

    def body(self) -> str:
        return POWERSHELL_BODY

    def decode(self, text: str) -> TaskConfig:
        block = _data_block(text)
        if not _PS_DRIVES_RE.search(block):
            raise ArtifactFormatError("Task data block lacks $Drives")

        pairs = [
            (letter.replace("''", "'"), media.replace("''", "'"))
            for letter, media in _PS_DRIVE_RE.findall(block)
        ]
        entries = len(_PS_ENTRY_RE.findall(block))
        if entries != len(pairs):
            raise ArtifactFormatError(
                f"{entries - len(pairs)} drive record(s) do not have exactly DriveLetter and MediaType"
            )

        match = _PS_SHUTDOWN_RE.search(block)
        if not match:
            raise ArtifactFormatError("Task data block lacks $ShutdownAfter")
        token = match.group(1).lower()
        if token == "$true":
            shutdown_after = True
        elif token == "$false":
            shutdown_after = False
        else:
            raise ArtifactFormatError(f"Shutdown flag is not a boolean literal: {match.group(1)}")

        return _build_config(pairs, shutdown_after)

    def launch_command(self, path) -> List[str]:
        return ["powershell.exe", "-NoProfile", "-ExecutionPolicy", "Bypass", "-File", str(path)]


RENDERERS = {
    PythonRenderer.format: PythonRenderer,
    PowerShellRenderer.format: PowerShellRenderer,
}


def get_renderer(artifact_format: str) -> ArtifactRenderer:
    """Renderer for "python" or "powershell"."""
    try:
        return RENDERERS[artifact_format]()
    except KeyError:
        raise ValueError(
            f"Unsupported artifact format {artifact_format!r} (choose from {', '.join(RENDERERS)})"
        ) from None


def renderer_for_path(path) -> ArtifactRenderer:
    """Pick a renderer by file suffix (.py or .ps1)."""
    suffix = Path(path).suffix.lower()
    for renderer_cls in RENDERERS.values():
        if renderer_cls.suffix == suffix:
            return renderer_cls()
    raise ArtifactFormatError(f"Cannot tell artifact format from file name: {path}")
