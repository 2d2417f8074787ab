"""Task artifact generation: render, write atomically, hand off."""
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from diskpilot.artifacts.launcher import ElevatedLauncher
from diskpilot.artifacts.renderers import ArtifactRenderer, get_renderer, renderer_for_path
from diskpilot.core.config import DiskPilotConfig, get_config
from diskpilot.core.errors import ArtifactFormatError, GenerationError
from diskpilot.core.logger import get_logger
from diskpilot.models.task import GeneratedArtifact, TaskConfig

logger = get_logger(__name__)


class TaskArtifactGenerator:
    """Writes the self-contained optimization task and launches it."""

    def __init__(self, config: Optional[DiskPilotConfig] = None,
                 renderer: Optional[ArtifactRenderer] = None,
                 launcher: Optional[ElevatedLauncher] = None,
                 mock: bool = False):
        self.config = config or get_config()
        self.renderer = renderer or get_renderer(self.config.artifact_format)
        self.launcher = launcher or ElevatedLauncher(mock=mock)

    def generate(self, task: TaskConfig, destination: Optional[Path] = None,
                 generated_at: Optional[datetime] = None) -> GeneratedArtifact:
        """Render task and write it to destination.

        Sections are written header, data, body into a temporary sibling
        file which is renamed over destination only once complete.

        Raises:
            GenerationError: If the artifact cannot be written
        """
        destination = Path(destination) if destination else self._default_destination()
        sections = self.renderer.sections(task, self.config.shutdown_delay, generated_at)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GenerationError(f"Cannot create {destination.parent}: {e}") from e

        content = "".join(sections)
        _atomic_write(destination, sections)
        logger.info(f"Wrote {self.renderer.format} task for {', '.join(task.selection.letters)} to {destination}")

        return GeneratedArtifact(
            path=destination,
            format=self.renderer.format,
            config=task,
            launch_command=self.renderer.launch_command(destination),
            sha256=GeneratedArtifact.digest(content),
        )

    def launch(self, artifact: GeneratedArtifact) -> None:
        """Start the artifact elevated (see ElevatedLauncher)."""
        self.launcher.launch(artifact)

    def _default_destination(self) -> Path:
        return self.config.artifact_dir / f"{self.config.artifact_name}{self.renderer.suffix}"


def _atomic_write(destination: Path, sections) -> None:
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=str(destination.parent)
        )
    except OSError as e:
        raise GenerationError(f"Cannot write task to {destination}: {e}") from e
    tmp_path = Path(tmp_name)
    try:
        # newline="" keeps the bytes identical to what was rendered
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            for section in sections:
                f.write(section)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, destination)
    except OSError as e:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        raise GenerationError(f"Cannot write task to {destination}: {e}") from e


def decode_artifact(path) -> TaskConfig:
    """Read an artifact back into the TaskConfig embedded in it.

    Raises:
        ArtifactFormatError: If the file has no readable data block
    """
    path = Path(path)
    renderer = renderer_for_path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ArtifactFormatError(f"Cannot read {path}: {e}") from e
    return renderer.decode(text)
