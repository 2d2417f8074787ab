"""Data models for diskpilot."""
from diskpilot.models.config import ConfigValidationError
from diskpilot.models.task import GeneratedArtifact, SelectionSet, TaskConfig
from diskpilot.models.volume import MediaType, Volume, VolumeRecord, is_drive_letter

__all__ = [
    'ConfigValidationError',
    'GeneratedArtifact',
    'MediaType',
    'SelectionSet',
    'TaskConfig',
    'Volume',
    'VolumeRecord',
    'is_drive_letter',
]
