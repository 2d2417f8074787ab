"""Volume inventory: enumerate fixed volumes and classify their media."""
from typing import Iterable, Optional, Tuple

from diskpilot.core.config import DiskPilotConfig, get_config
from diskpilot.core.logger import get_logger
from diskpilot.core.powershell import PowerShellRunner
from diskpilot.discovery.media import MediaTypeProbe
from diskpilot.discovery.volumes import VolumeScanner
from diskpilot.models.volume import MediaType, Volume, VolumeRecord

logger = get_logger(__name__)


class VolumeClassifier:
    """Builds the classified volume inventory.

    Only a failure to list volumes raises (EnumerationError). Every other
    failure ends up as MediaType.UNKNOWN on the affected record.
    """

    def __init__(self, runner: Optional[PowerShellRunner] = None, mock: bool = False,
                 config: Optional[DiskPilotConfig] = None):
        self.mock = mock
        config = config or get_config()
        self.runner = runner or PowerShellRunner(
            executable=config.powershell, timeout=config.query_timeout
        )
        self.scanner = VolumeScanner(self.runner)
        self.probe = MediaTypeProbe(self.runner)

    def enumerate(self) -> Tuple[VolumeRecord, ...]:
        """Classify every eligible volume, sorted by drive letter."""
        if self.mock:
            return self._mock_inventory()

        volumes = self.scanner.eligible_volumes()
        inventory = classify_volumes(volumes, self.classify)
        logger.info(
            f"Inventory: {len(inventory)} volume(s), "
            f"{sum(1 for r in inventory if r.is_valid)} with a known media type"
        )
        return inventory

    def classify(self, volume: Volume) -> VolumeRecord:
        """Resolve one volume; never raises for per-volume failures."""
        letter = volume.drive_letter
        disk_number = self.scanner.disk_number(letter)
        if disk_number is None:
            return _record(volume, MediaType.UNKNOWN)

        resolution = self.probe.resolve(disk_number)
        if resolution.media_type is MediaType.UNKNOWN:
            logger.warning(f"Drive {letter} (disk {disk_number}): media type undetermined by all query tiers")
        else:
            logger.info(f"Drive {letter} (disk {disk_number}): {resolution.media_type.value} via {resolution.resolved_by}")

        return _record(volume, resolution.media_type, disk_number, resolution.resolved_by)

    def _mock_inventory(self) -> Tuple[VolumeRecord, ...]:
        """Mock inventory for testing: one SSD, one HDD, one undetermined."""
        return (
            VolumeRecord("C", MediaType.SSD, disk_number=0, file_system="NTFS",
                         label="System", size_bytes=512_110_190_592, resolved_by="storage-subsystem"),
            VolumeRecord("D", MediaType.HDD, disk_number=1, file_system="NTFS",
                         label="Data", size_bytes=2_000_398_934_016, resolved_by="physical-disk"),
            VolumeRecord("E", MediaType.UNKNOWN, disk_number=2, file_system="exFAT",
                         label="Scratch", size_bytes=256_052_966_400),
        )


def classify_volumes(volumes: Iterable[Volume], classify) -> Tuple[VolumeRecord, ...]:
    """Map volumes to records with classify(volume), sorted by drive letter."""
    return tuple(sorted((classify(v) for v in volumes), key=lambda r: r.drive_letter))


def _record(volume: Volume, media_type: MediaType, disk_number: Optional[int] = None,
            resolved_by: Optional[str] = None) -> VolumeRecord:
    return VolumeRecord(
        drive_letter=volume.drive_letter,
        media_type=media_type,
        disk_number=disk_number,
        file_system=volume.file_system or "",
        label=volume.label,
        size_bytes=volume.size_bytes,
        resolved_by=resolved_by,
    )
