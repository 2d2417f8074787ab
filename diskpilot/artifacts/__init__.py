"""Task artifact rendering, generation and launch."""
from diskpilot.artifacts.generator import TaskArtifactGenerator, decode_artifact
from diskpilot.artifacts.launcher import ElevatedLauncher, is_elevated
from diskpilot.artifacts.renderers import PowerShellRenderer, PythonRenderer, get_renderer

__all__ = [
    'TaskArtifactGenerator',
    'decode_artifact',
    'ElevatedLauncher',
    'is_elevated',
    'PowerShellRenderer',
    'PythonRenderer',
    'get_renderer',
]
