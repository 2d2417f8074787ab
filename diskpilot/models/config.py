"""Configuration error types."""
from diskpilot.core.errors import DiskPilotError


class ConfigValidationError(DiskPilotError):
    """Raised when a settings file or environment value is invalid."""
    pass
