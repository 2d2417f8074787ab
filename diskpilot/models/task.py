"""Selection, task configuration and generated artifact models."""
import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from diskpilot.models.volume import MediaType, VolumeRecord


class SelectionSet:
    """Sorted, duplicate-free set of valid volumes chosen for optimization.

    Construction sorts by drive letter. Duplicate letters and records
    without a determined media type are rejected with ValueError.
    """

    def __init__(self, records: Iterable[VolumeRecord] = ()):
        ordered = sorted(records, key=lambda r: r.drive_letter)
        seen = set()
        for record in ordered:
            if not record.is_valid:
                raise ValueError(f"Drive {record.drive_letter}: media type unknown, cannot be selected")
            if record.drive_letter in seen:
                raise ValueError(f"Drive {record.drive_letter} selected twice")
            seen.add(record.drive_letter)
        self._records: Tuple[VolumeRecord, ...] = tuple(ordered)

    @property
    def records(self) -> Tuple[VolumeRecord, ...]:
        return self._records

    @property
    def letters(self) -> List[str]:
        return [r.drive_letter for r in self._records]

    def pairs(self) -> List[Tuple[str, MediaType]]:
        """(drive_letter, media_type) pairs, the data serialized into artifacts."""
        return [(r.drive_letter, r.media_type) for r in self._records]

    def __iter__(self) -> Iterator[VolumeRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SelectionSet):
            return NotImplemented
        return self.pairs() == other.pairs()

    def __repr__(self) -> str:
        inner = ", ".join(f"{letter}/{media.value}" for letter, media in self.pairs())
        return f"SelectionSet([{inner}])"


@dataclass(frozen=True)
class TaskConfig:
    """What the generated task does: which drives, and whether to shut down."""
    selection: SelectionSet
    shutdown_after: bool

    def __post_init__(self):
        if not isinstance(self.selection, SelectionSet):
            raise TypeError("selection must be a SelectionSet")
        if not self.selection:
            raise ValueError("A task needs at least one selected drive")
        if not isinstance(self.shutdown_after, bool):
            raise TypeError(f"shutdown_after must be a bool, got {type(self.shutdown_after).__name__}")


@dataclass(frozen=True)
class GeneratedArtifact:
    """Descriptor for a task artifact written to disk."""
    path: Path
    format: str
    config: TaskConfig
    launch_command: List[str] = field(default_factory=list)
    sha256: str = ""

    @staticmethod
    def digest(content: str) -> str:
        return hashlib.sha256(content.encode("utf-8")).hexdigest()
