"""diskpilot runtime configuration and settings."""
import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from diskpilot.models.config import ConfigValidationError

ARTIFACT_FORMATS = ("python", "powershell")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _default_artifact_dir() -> Path:
    return Path(tempfile.gettempdir())


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigValidationError(f"{name}: expected a boolean, got {value!r}")


def _parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigValidationError(f"{name}: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"{name}: expected an integer, got {value!r}") from None


@dataclass
class DiskPilotConfig:
    """Runtime configuration for diskpilot.

    Attributes:
        query_timeout: Timeout in seconds for each PowerShell query (default: 30)
        shutdown_delay: Seconds the generated task waits before shutting down (default: 10)
        artifact_dir: Directory the task artifact is written to (default: system temp dir)
        artifact_name: Artifact file name without suffix (default: diskpilot_task)
        artifact_format: "python" or "powershell" (default: python)
        launch: Start the artifact elevated after writing it (default: True)
        powershell: PowerShell executable used for queries (default: powershell.exe)
    """

    query_timeout: int = 30
    shutdown_delay: int = 10
    artifact_dir: Path = field(default_factory=_default_artifact_dir)
    artifact_name: str = "diskpilot_task"
    artifact_format: str = "python"
    launch: bool = True
    powershell: str = "powershell.exe"

    def __post_init__(self):
        self.artifact_dir = Path(self.artifact_dir)
        self.validate()

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigValidationError: If any value is out of range
        """
        if self.query_timeout <= 0:
            raise ConfigValidationError(f"query_timeout must be positive, got {self.query_timeout}")
        if self.shutdown_delay < 0:
            raise ConfigValidationError(f"shutdown_delay must not be negative, got {self.shutdown_delay}")
        if self.artifact_format not in ARTIFACT_FORMATS:
            raise ConfigValidationError(
                f"artifact_format must be one of {', '.join(ARTIFACT_FORMATS)}, got {self.artifact_format!r}"
            )
        if not self.artifact_name or any(sep in self.artifact_name for sep in ("/", "\\")):
            raise ConfigValidationError(f"artifact_name must be a bare file name, got {self.artifact_name!r}")

    @classmethod
    def from_env(cls) -> "DiskPilotConfig":
        """Create config from environment variables.

        Environment variables:
            DISKPILOT_QUERY_TIMEOUT: Query timeout in seconds
            DISKPILOT_SHUTDOWN_DELAY: Shutdown delay in seconds
            DISKPILOT_ARTIFACT_DIR: Directory for the generated task
            DISKPILOT_ARTIFACT_NAME: File name (without suffix) of the generated task
            DISKPILOT_ARTIFACT_FORMAT: python or powershell
            DISKPILOT_LAUNCH: Launch the task after writing it (1/0)
            DISKPILOT_POWERSHELL: PowerShell executable

        Returns:
            DiskPilotConfig instance with values from environment or defaults
        """
        values: Dict[str, Any] = {}
        env = os.environ
        if "DISKPILOT_QUERY_TIMEOUT" in env:
            values["query_timeout"] = _parse_int("DISKPILOT_QUERY_TIMEOUT", env["DISKPILOT_QUERY_TIMEOUT"])
        if "DISKPILOT_SHUTDOWN_DELAY" in env:
            values["shutdown_delay"] = _parse_int("DISKPILOT_SHUTDOWN_DELAY", env["DISKPILOT_SHUTDOWN_DELAY"])
        if env.get("DISKPILOT_ARTIFACT_DIR"):
            values["artifact_dir"] = Path(env["DISKPILOT_ARTIFACT_DIR"])
        if env.get("DISKPILOT_ARTIFACT_NAME"):
            values["artifact_name"] = env["DISKPILOT_ARTIFACT_NAME"]
        if env.get("DISKPILOT_ARTIFACT_FORMAT"):
            values["artifact_format"] = env["DISKPILOT_ARTIFACT_FORMAT"].strip().lower()
        if "DISKPILOT_LAUNCH" in env:
            values["launch"] = _parse_bool("DISKPILOT_LAUNCH", env["DISKPILOT_LAUNCH"])
        if env.get("DISKPILOT_POWERSHELL"):
            values["powershell"] = env["DISKPILOT_POWERSHELL"]
        return cls(**values)

    def merged_with(self, overrides: Dict[str, Any]) -> "DiskPilotConfig":
        """Return a copy with values from a settings mapping applied."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigValidationError(f"Unknown setting(s): {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key in ("query_timeout", "shutdown_delay"):
                values[key] = _parse_int(key, value)
            elif key == "launch":
                values[key] = _parse_bool(key, value)
            elif key == "artifact_dir":
                values[key] = Path(str(value)).expanduser()
            elif key == "artifact_format":
                values[key] = str(value).strip().lower()
            else:
                if not isinstance(value, str):
                    raise ConfigValidationError(f"{key}: expected a string, got {value!r}")
                values[key] = value
        return replace(self, **values)


def load_config(config_path: Optional[str] = None) -> DiskPilotConfig:
    """Load settings from a YAML file on top of environment defaults.

    Args:
        config_path: Path to a YAML mapping of settings (optional)

    Returns:
        DiskPilotConfig instance

    Raises:
        ConfigValidationError: If the file is not a mapping or holds bad values
        FileNotFoundError: If config_path does not exist
    """
    config = DiskPilotConfig.from_env()
    if not config_path:
        return config

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {path}: {e}") from e

    # Empty file means "no overrides"
    if raw is None:
        return config
    if not isinstance(raw, dict):
        raise ConfigValidationError(f"{path}: expected a mapping of settings")

    return config.merged_with(raw)


# Global config instance (can be overridden)
_config: Optional[DiskPilotConfig] = None


def get_config() -> DiskPilotConfig:
    """Get the global diskpilot configuration.

    Returns:
        DiskPilotConfig instance (creates from environment if not set)
    """
    global _config
    if _config is None:
        _config = DiskPilotConfig.from_env()
    return _config


def set_config(config: Optional[DiskPilotConfig]) -> None:
    """Replace (or with None, reset) the global configuration."""
    global _config
    _config = config
