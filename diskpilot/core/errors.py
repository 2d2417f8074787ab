"""Exception hierarchy for diskpilot.

Only failures at enumeration, selection, generation or launch granularity
are raised to callers. Per-volume and per-drive failures are absorbed and
logged where they happen.
"""


class DiskPilotError(Exception):
    """Base class for errors surfaced to the operator."""
    pass


class QueryError(DiskPilotError):
    """A single OS query (PowerShell/CIM) failed or returned garbage."""
    pass


class EnumerationError(DiskPilotError):
    """Raised when the volume list cannot be obtained at all."""
    pass


class SelectionError(DiskPilotError):
    """Raised when the operator's input yields no usable drives."""
    pass


class GenerationError(DiskPilotError):
    """Raised when the task artifact cannot be written."""
    pass


class ArtifactFormatError(DiskPilotError):
    """Raised when an artifact's data block is missing or malformed."""
    pass


class LaunchError(DiskPilotError):
    """Raised when the elevated launch of an artifact fails."""

    def __init__(self, message: str, artifact_path=None):
        super().__init__(message)
        self.artifact_path = artifact_path
