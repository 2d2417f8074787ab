"""Volume enumeration and drive-letter to disk-index mapping."""
from typing import Any, Dict, List, Optional

from diskpilot.core.errors import EnumerationError, QueryError
from diskpilot.core.logger import get_logger
from diskpilot.core.powershell import PowerShellRunner
from diskpilot.models.volume import Volume, is_drive_letter

logger = get_logger(__name__)

# Get-Volume reports the name, Win32_LogicalDisk the code
FIXED_DRIVE_TYPES = {"fixed", "3"}
UNRECOGNIZED_FILE_SYSTEMS = {"", "RAW", "UNKNOWN"}

VOLUME_QUERY = (
    "Get-Volume -ErrorAction Stop | Select-Object "
    "@{Name='DriveLetter';Expression={[string]$_.DriveLetter}}, "
    "@{Name='DriveType';Expression={[string]$_.DriveType}}, "
    "@{Name='FileSystem';Expression={[string]$_.FileSystem}}, "
    "FileSystemLabel, Size"
)


def parse_volume(row: Dict[str, Any]) -> Volume:
    """Build a Volume from one Get-Volume row."""
    letter = (row.get("DriveLetter") or "").strip().rstrip(":").upper()
    size = row.get("Size") or 0
    try:
        size = int(size)
    except (TypeError, ValueError):
        size = 0
    return Volume(
        drive_letter=letter or None,
        drive_type=str(row.get("DriveType") or "").strip(),
        file_system=(row.get("FileSystem") or "").strip() or None,
        label=(row.get("FileSystemLabel") or "").strip(),
        size_bytes=size,
    )


def is_eligible(volume: Volume) -> bool:
    """Lettered, fixed, and formatted with a recognized file system."""
    if not is_drive_letter(volume.drive_letter):
        return False
    if volume.drive_type.lower() not in FIXED_DRIVE_TYPES:
        return False
    return (volume.file_system or "").upper() not in UNRECOGNIZED_FILE_SYSTEMS


class VolumeScanner:
    """Lists volumes and maps drive letters to physical disk indexes."""

    def __init__(self, runner: PowerShellRunner):
        self.runner = runner

    def list_volumes(self) -> List[Volume]:
        """All volumes the OS reports, eligible or not.

        Raises:
            EnumerationError: If the volume list cannot be obtained
        """
        try:
            rows = self.runner.query(VOLUME_QUERY)
        except QueryError as e:
            raise EnumerationError(f"Could not list volumes: {e}") from e
        return [parse_volume(row) for row in rows]

    def eligible_volumes(self) -> List[Volume]:
        """Volumes passing is_eligible(), one per drive letter, sorted."""
        by_letter: Dict[str, Volume] = {}
        for volume in self.list_volumes():
            if not is_eligible(volume):
                logger.debug(
                    f"Skipping volume {volume.drive_letter or '(no letter)'}: "
                    f"type={volume.drive_type or '?'} fs={volume.file_system or '?'}"
                )
                continue
            by_letter.setdefault(volume.drive_letter, volume)
        return [by_letter[letter] for letter in sorted(by_letter)]

    def disk_number(self, drive_letter: str) -> Optional[int]:
        """Physical disk index behind a drive letter, or None if unresolvable."""
        script = f"Get-Partition -DriveLetter {drive_letter} -ErrorAction Stop | Select-Object DiskNumber"
        try:
            rows = self.runner.query(script)
        except QueryError as e:
            logger.warning(f"Drive {drive_letter}: could not map to a physical disk: {e}")
            return None

        for row in rows:
            value = row.get("DiskNumber")
            if isinstance(value, bool):
                continue
            try:
                number = int(value)
            except (TypeError, ValueError):
                continue
            if number >= 0:
                return number

        logger.warning(f"Drive {drive_letter}: no partition reports a disk number")
        return None
