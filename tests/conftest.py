"""Shared test fixtures for diskpilot tests."""
import json
import subprocess

import pytest

from diskpilot.core.config import DiskPilotConfig, set_config
from diskpilot.core.powershell import PowerShellRunner
from diskpilot.models.volume import MediaType, VolumeRecord


class FakeShell:
    """Stands in for powershell.exe: answers scripts by substring match.

    Responses are checked in the order they were added. Dicts, lists and
    ints are returned as JSON, strings verbatim, exceptions are raised.
    Unmatched scripts fail like a PowerShell error would.
    """

    def __init__(self):
        self.responses = []
        self.calls = []

    def add(self, needle, result):
        self.responses.append((needle, result))
        return self

    def __call__(self, argv, timeout):
        script = argv[-1]
        self.calls.append(script)
        for needle, result in self.responses:
            if needle in script:
                if isinstance(result, BaseException):
                    raise result
                if isinstance(result, str):
                    return result
                return json.dumps(result)
        raise subprocess.CalledProcessError(1, argv, output="", stderr="no canned response")

    def scripts_matching(self, needle):
        return [call for call in self.calls if needle in call]


@pytest.fixture
def fake_shell():
    """Empty FakeShell; add responses per test."""
    return FakeShell()


@pytest.fixture
def runner(fake_shell):
    """PowerShellRunner backed by fake_shell."""
    return PowerShellRunner(executable="powershell.exe", timeout=5, run_cmd=fake_shell)


@pytest.fixture
def settings(tmp_path):
    """Config writing artifacts into a temp directory."""
    config = DiskPilotConfig(artifact_dir=tmp_path / "out", shutdown_delay=10)
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def inventory():
    """C/SSD, D/HDD, E/Unknown."""
    return (
        VolumeRecord("C", MediaType.SSD, disk_number=0, file_system="NTFS"),
        VolumeRecord("D", MediaType.HDD, disk_number=1, file_system="NTFS"),
        VolumeRecord("E", MediaType.UNKNOWN, disk_number=2, file_system="exFAT"),
    )


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep the developer's environment and log directory out of tests."""
    for name in (
        "DISKPILOT_MOCK", "DISKPILOT_CONFIG", "DISKPILOT_QUERY_TIMEOUT",
        "DISKPILOT_SHUTDOWN_DELAY", "DISKPILOT_ARTIFACT_DIR", "DISKPILOT_ARTIFACT_NAME",
        "DISKPILOT_ARTIFACT_FORMAT", "DISKPILOT_LAUNCH", "DISKPILOT_POWERSHELL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("diskpilot.core.logger.LOG_FILE", tmp_path / "logs" / "diskpilot.log")
    yield
    set_config(None)
