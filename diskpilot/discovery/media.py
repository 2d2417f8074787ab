"""Media type resolution over three Windows query surfaces.

Each tier returns a tagged TierOutcome instead of raising, so the fallback
chain in resolve_media_type() is a plain function over outcomes:

1. MSFT_PhysicalDisk (storage subsystem registry)
2. Get-PhysicalDisk (physical disk management cmdlets)
3. Win32_DiskDrive (legacy WMI disk drive class)
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from diskpilot.core.errors import QueryError
from diskpilot.core.logger import get_logger
from diskpilot.core.powershell import PowerShellRunner
from diskpilot.models.volume import MediaType

logger = get_logger(__name__)

# MSFT_PhysicalDisk.MediaType codes
NUMERIC_MEDIA_CODES = {
    3: MediaType.HDD,
    4: MediaType.SSD,
}

STRING_MEDIA_CODES = {
    "SSD": MediaType.SSD,
    "HDD": MediaType.HDD,
}

# Win32_DiskDrive reports this for every non-removable disk, SSD or not
AMBIGUOUS_LEGACY_MEDIA = "fixed hard disk media"

TIER_STORAGE_SUBSYSTEM = "storage-subsystem"
TIER_PHYSICAL_DISK = "physical-disk"
TIER_LEGACY_DISK_DRIVE = "legacy-disk-drive"


class OutcomeKind(Enum):
    DEFINITIVE = "definitive"
    INDETERMINATE = "indeterminate"
    QUERY_FAILED = "query-failed"


@dataclass(frozen=True)
class TierOutcome:
    """Result of one tier: a media type, an unmapped value, or a failed query."""
    kind: OutcomeKind
    media_type: MediaType = MediaType.UNKNOWN
    detail: str = ""

    @classmethod
    def definitive(cls, media_type: MediaType, detail: str = "") -> "TierOutcome":
        if media_type is MediaType.UNKNOWN:
            raise ValueError("A definitive outcome needs SSD or HDD")
        return cls(OutcomeKind.DEFINITIVE, media_type, detail)

    @classmethod
    def indeterminate(cls, detail: str = "") -> "TierOutcome":
        return cls(OutcomeKind.INDETERMINATE, MediaType.UNKNOWN, detail)

    @classmethod
    def failed(cls, detail: str = "") -> "TierOutcome":
        return cls(OutcomeKind.QUERY_FAILED, MediaType.UNKNOWN, detail)

    @property
    def is_definitive(self) -> bool:
        return self.kind is OutcomeKind.DEFINITIVE


@dataclass(frozen=True)
class Resolution:
    """Final media type plus the per-tier trail that led to it."""
    media_type: MediaType
    resolved_by: Optional[str] = None
    outcomes: Tuple[Tuple[str, TierOutcome], ...] = field(default_factory=tuple)


Tier = Tuple[str, Callable[[], TierOutcome]]


def map_media_indicator(value: Any) -> TierOutcome:
    """Map a raw media indicator through the shared code table.

    Numeric codes 3/4 and the strings "HDD"/"SSD" are definitive. Numeric
    strings ("4") count as numeric codes. Everything else, including None,
    is indeterminate.
    """
    if isinstance(value, bool) or value is None:
        return TierOutcome.indeterminate(repr(value))

    if isinstance(value, int):
        media = NUMERIC_MEDIA_CODES.get(value)
        return TierOutcome.definitive(media, str(value)) if media else TierOutcome.indeterminate(str(value))

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return map_media_indicator(int(text))
        media = STRING_MEDIA_CODES.get(text.upper())
        if media:
            return TierOutcome.definitive(media, text)
        return TierOutcome.indeterminate(text)

    return TierOutcome.indeterminate(repr(value))


def map_legacy_media_indicator(value: Any) -> TierOutcome:
    """Shared table plus the ambiguous Win32_DiskDrive literal.

    "Fixed hard disk media" only says the disk is not removable, so it maps
    to indeterminate rather than HDD.
    """
    if isinstance(value, str) and value.strip().lower() == AMBIGUOUS_LEGACY_MEDIA:
        return TierOutcome.indeterminate(value.strip())
    return map_media_indicator(value)


def resolve_media_type(tiers: Sequence[Tier]) -> Resolution:
    """Run tiers in order and stop at the first definitive outcome.

    A tier is called only when every earlier tier was indeterminate or
    failed. A tier callable that raises QueryError counts as a failed query.
    """
    trail: List[Tuple[str, TierOutcome]] = []
    for name, tier in tiers:
        try:
            outcome = tier()
        except QueryError as e:
            outcome = TierOutcome.failed(str(e))
        trail.append((name, outcome))
        if outcome.is_definitive:
            return Resolution(outcome.media_type, name, tuple(trail))
    return Resolution(MediaType.UNKNOWN, None, tuple(trail))


def physical_drive_path(disk_number: int) -> str:
    r"""Device path for a disk index, e.g. \\.\PHYSICALDRIVE0."""
    return f"\\\\.\\PHYSICALDRIVE{disk_number}"


def _wql_quote(value: str) -> str:
    """Quote a value for a WQL filter string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class MediaTypeProbe:
    """Issues the three tier queries for one disk index."""

    def __init__(self, runner: PowerShellRunner):
        self.runner = runner

    def tiers(self, disk_number: int) -> List[Tier]:
        """Tier callables for disk_number in order of trust."""
        return [
            (TIER_STORAGE_SUBSYSTEM, lambda: self.storage_subsystem(disk_number)),
            (TIER_PHYSICAL_DISK, lambda: self.physical_disk(disk_number)),
            (TIER_LEGACY_DISK_DRIVE, lambda: self.legacy_disk_drive(disk_number)),
        ]

    def resolve(self, disk_number: int) -> Resolution:
        resolution = resolve_media_type(self.tiers(disk_number))
        for name, outcome in resolution.outcomes:
            logger.debug(f"Disk {disk_number}: {name} -> {outcome.kind.value} ({outcome.detail})")
        return resolution

    # -----------------------------
    #  Tier 1: storage subsystem
    # -----------------------------
    def storage_subsystem(self, disk_number: int) -> TierOutcome:
        script = (
            "Get-CimInstance -Namespace root\\Microsoft\\Windows\\Storage "
            f"-ClassName MSFT_PhysicalDisk -Filter \"DeviceId={_wql_quote(str(disk_number))}\" "
            "-ErrorAction Stop | Select-Object DeviceId, MediaType, FriendlyName"
        )
        try:
            rows = self.runner.query(script)
        except QueryError as e:
            return TierOutcome.failed(str(e))
        if not rows:
            return TierOutcome.failed(f"no MSFT_PhysicalDisk with DeviceId {disk_number}")
        return map_media_indicator(rows[0].get("MediaType"))

    # -----------------------------
    #  Tier 2: Get-PhysicalDisk
    # -----------------------------
    def physical_disk(self, disk_number: int) -> TierOutcome:
        select = "Select-Object DeviceId, @{Name='MediaType';Expression={[string]$_.MediaType}}"
        attempts = [
            # Storage pipeline from the Disk object
            f"Get-Disk -Number {disk_number} -ErrorAction Stop | Get-PhysicalDisk -ErrorAction Stop | {select}",
            # DeviceId lookup across all physical disks
            f"Get-PhysicalDisk -ErrorAction Stop | Where-Object {{ $_.DeviceId -eq '{disk_number}' }} | {select}",
        ]

        errors = []
        for script in attempts:
            try:
                rows = self.runner.query(script)
            except QueryError as e:
                errors.append(str(e))
                continue
            if not rows:
                return TierOutcome.failed(f"no physical disk with DeviceId {disk_number}")
            value = rows[0].get("MediaType")
            value = value.strip() if isinstance(value, str) else value
            media = STRING_MEDIA_CODES.get(value) if isinstance(value, str) else None
            if media:
                return TierOutcome.definitive(media, value)
            return TierOutcome.indeterminate(str(value))

        return TierOutcome.failed("; ".join(errors))

    # -----------------------------
    #  Tier 3: Win32_DiskDrive
    # -----------------------------
    def legacy_disk_drive(self, disk_number: int) -> TierOutcome:
        device_path = physical_drive_path(disk_number)
        script = (
            f"Get-CimInstance -ClassName Win32_DiskDrive -Filter \"DeviceID={_wql_quote(device_path)}\" "
            "-ErrorAction Stop | Select-Object DeviceID, MediaType, Model"
        )
        try:
            rows = self.runner.query(script)
        except QueryError as e:
            return TierOutcome.failed(str(e))
        if not rows:
            return TierOutcome.failed(f"no Win32_DiskDrive for {device_path}")

        value = rows[0].get("MediaType")
        outcome = map_legacy_media_indicator(value)
        if not outcome.is_definitive and isinstance(value, str) \
                and value.strip().lower() == AMBIGUOUS_LEGACY_MEDIA:
            logger.warning(
                f"Disk {disk_number}: legacy surface reports '{value.strip()}', "
                "media type cannot be determined (not guessing HDD)"
            )
        return outcome
