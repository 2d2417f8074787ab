"""Volume and media type models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MediaType(Enum):
    """Physical storage technology behind a volume."""
    SSD = "SSD"
    HDD = "HDD"
    UNKNOWN = "Unknown"

    @classmethod
    def from_text(cls, value: str) -> "MediaType":
        """Parse the text literal used in artifacts ("SSD", "HDD", "Unknown")."""
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(f"Unknown media type literal: {value!r}")


@dataclass(frozen=True)
class Volume:
    """A volume as reported by the OS, before classification."""
    drive_letter: Optional[str]
    drive_type: str
    file_system: Optional[str]
    label: str = ""
    size_bytes: int = 0


@dataclass(frozen=True)
class VolumeRecord:
    """A classified volume. Immutable once created."""
    drive_letter: str
    media_type: MediaType
    disk_number: Optional[int] = None
    file_system: str = ""
    label: str = ""
    size_bytes: int = 0
    resolved_by: Optional[str] = None

    def __post_init__(self):
        if not is_drive_letter(self.drive_letter):
            raise ValueError(f"Invalid drive letter: {self.drive_letter!r}")

    @property
    def is_valid(self) -> bool:
        """True when the media type was determined."""
        return self.media_type is not MediaType.UNKNOWN

    @property
    def size_human(self) -> str:
        """Human-readable size."""
        size = self.size_bytes
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if size < 1024:
                return f"{size:.1f}{unit}"
            size /= 1024
        return f"{size:.1f}PB"


def is_drive_letter(value) -> bool:
    """Single uppercase ASCII letter."""
    return isinstance(value, str) and len(value) == 1 and "A" <= value <= "Z"
