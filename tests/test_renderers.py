"""Tests for artifact rendering and data block decoding."""
from datetime import datetime

import pytest

from diskpilot.artifacts.renderers import (
    DATA_BEGIN,
    DATA_END,
    PowerShellRenderer,
    PythonRenderer,
    get_renderer,
    ps_quote,
    renderer_for_path,
)
from diskpilot.core.errors import ArtifactFormatError
from diskpilot.models.task import SelectionSet, TaskConfig
from diskpilot.models.volume import MediaType, VolumeRecord

GENERATED_AT = datetime(2026, 10, 19, 12, 0, 0)
RENDERERS = [PythonRenderer, PowerShellRenderer]


def _task(shutdown_after=True, *pairs):
    pairs = pairs or (("C", MediaType.SSD), ("D", MediaType.HDD))
    return TaskConfig(SelectionSet(VolumeRecord(l, m) for l, m in pairs), shutdown_after)


class TestRoundTrip:
    """Decoding the data block gives back the exact TaskConfig."""

    @pytest.mark.parametrize("renderer_cls", RENDERERS)
    @pytest.mark.parametrize("shutdown_after", [True, False])
    def test_round_trip(self, renderer_cls, shutdown_after):
        renderer = renderer_cls()
        task = _task(shutdown_after)

        decoded = renderer.decode(renderer.render(task, generated_at=GENERATED_AT))

        assert decoded.selection.pairs() == task.selection.pairs()
        assert decoded.shutdown_after is shutdown_after

    @pytest.mark.parametrize("renderer_cls", RENDERERS)
    def test_single_drive(self, renderer_cls):
        renderer = renderer_cls()
        task = _task(False, ("Z", MediaType.HDD))

        assert renderer.decode(renderer.render(task)).selection.pairs() == [("Z", MediaType.HDD)]

    @pytest.mark.parametrize("renderer_cls", RENDERERS)
    def test_rendering_is_deterministic(self, renderer_cls):
        renderer = renderer_cls()
        task = _task()

        first = renderer.render(task, 10, GENERATED_AT)
        second = renderer.render(task, 10, GENERATED_AT)

        assert first == second


class TestPythonRenderer:
    """Python artifact layout and literals."""

    def test_boolean_is_a_literal(self):
        text = PythonRenderer().render(_task(True))

        assert "SHUTDOWN_AFTER = True\n" in text
        assert "SHUTDOWN_AFTER = 'True'" not in text
        assert "SHUTDOWN_AFTER = False" in PythonRenderer().render(_task(False))

    def test_records_have_two_quoted_fields(self):
        text = PythonRenderer().render(_task())

        assert "    {'DriveLetter': 'C', 'MediaType': 'SSD'}," in text
        assert "    {'DriveLetter': 'D', 'MediaType': 'HDD'}," in text

    def test_section_order(self):
        text = PythonRenderer().render(_task(), generated_at=GENERATED_AT)

        header = text.index("diskpilot optimization task")
        data = text.index(DATA_BEGIN)
        debug = text.index("[debug] DRIVES")
        privilege = text.index("if not is_elevated():")
        dispatch = text.index("for drive in DRIVES:")
        shutdown = text.index("if SHUTDOWN_AFTER:")
        assert header < data < text.index(DATA_END) < debug < privilege < dispatch < shutdown

    def test_header_documents_the_task(self):
        text = PythonRenderer().render(_task(True), generated_at=GENERATED_AT)

        assert text.startswith("#!/usr/bin/env python3\n")
        assert "2026-10-19 12:00:00" in text
        assert "Drives: C (SSD), D (HDD)" in text
        assert "Shutdown after completion: yes" in text

    def test_artifact_compiles(self):
        compile(PythonRenderer().render(_task()), "diskpilot_task.py", "exec")

    def test_shutdown_delay_is_embedded(self):
        assert "SHUTDOWN_DELAY_SECONDS = 45" in PythonRenderer().render(_task(), shutdown_delay=45)

    def test_elevation_failure_pauses_even_with_shutdown(self):
        text = PythonRenderer().render(_task(True))

        assert "if (status == 1 or not SHUTDOWN_AFTER) and sys.stdin is not None" in text

    def test_string_flag_is_rejected(self):
        text = f"{DATA_BEGIN}\nDRIVES = [{{'DriveLetter': 'C', 'MediaType': 'SSD'}}]\nSHUTDOWN_AFTER = 'True'\n{DATA_END}\n"

        with pytest.raises(ArtifactFormatError):
            PythonRenderer().decode(text)

    def test_code_in_data_block_is_rejected(self):
        text = f"{DATA_BEGIN}\nimport os\nDRIVES = []\nSHUTDOWN_AFTER = True\n{DATA_END}\n"

        with pytest.raises(ArtifactFormatError):
            PythonRenderer().decode(text)

    def test_non_literal_value_is_rejected(self):
        text = f"{DATA_BEGIN}\nDRIVES = make_drives()\nSHUTDOWN_AFTER = True\n{DATA_END}\n"

        with pytest.raises(ArtifactFormatError):
            PythonRenderer().decode(text)

    def test_extra_record_field_is_rejected(self):
        text = (
            f"{DATA_BEGIN}\n"
            "DRIVES = [{'DriveLetter': 'C', 'MediaType': 'SSD', 'Extra': 1}]\n"
            "SHUTDOWN_AFTER = True\n"
            f"{DATA_END}\n"
        )

        with pytest.raises(ArtifactFormatError):
            PythonRenderer().decode(text)

    def test_missing_block(self):
        with pytest.raises(ArtifactFormatError):
            PythonRenderer().decode("print('hello')\n")


class TestPowerShellRenderer:
    """PowerShell artifact layout and literals."""

    def test_boolean_is_a_literal(self):
        assert "$ShutdownAfter = $true\n" in PowerShellRenderer().render(_task(True))
        assert "$ShutdownAfter = $false\n" in PowerShellRenderer().render(_task(False))

    def test_records(self):
        text = PowerShellRenderer().render(_task())

        assert "[PSCustomObject]@{ DriveLetter = 'C'; MediaType = 'SSD' }" in text
        assert "[PSCustomObject]@{ DriveLetter = 'D'; MediaType = 'HDD' }" in text

    def test_section_order(self):
        text = PowerShellRenderer().render(_task())

        assert (
            text.index(".SYNOPSIS")
            < text.index(DATA_BEGIN)
            < text.index("[debug] Drives")
            < text.index("WindowsBuiltInRole]::Administrator")
            < text.index("foreach ($drive in $Drives)")
            < text.index("if ($ShutdownAfter)")
        )

    def test_dispatch_uses_optimize_volume(self):
        text = PowerShellRenderer().render(_task())

        assert "Optimize-Volume -DriveLetter $letter -ReTrim" in text
        assert "Optimize-Volume -DriveLetter $letter -Defrag" in text
        assert "& shutdown.exe /s /t $ShutdownDelaySeconds" in text

    def test_quoted_flag_is_rejected(self):
        text = (
            f"{DATA_BEGIN}\n$Drives = @(\n"
            "    [PSCustomObject]@{ DriveLetter = 'C'; MediaType = 'SSD' }\n)\n"
            "$ShutdownAfter = 'True'\n"
            f"{DATA_END}\n"
        )

        with pytest.raises(ArtifactFormatError):
            PowerShellRenderer().decode(text)

    def test_elevation_failure_pauses_before_exit(self):
        text = PowerShellRenderer().render(_task())
        check = text[text.index("WindowsBuiltInRole]::Administrator"):text.index("$failures = 0")]

        assert check.index('Read-Host "Press Enter to close"') < check.index("exit 1")

    def test_extra_record_field_is_rejected(self):
        text = (
            f"{DATA_BEGIN}\n$Drives = @(\n"
            "    [PSCustomObject]@{ DriveLetter = 'C'; MediaType = 'SSD' }\n"
            "    [PSCustomObject]@{ DriveLetter = 'D'; MediaType = 'HDD'; Extra = 'x' }\n)\n"
            "$ShutdownAfter = $true\n"
            f"{DATA_END}\n"
        )

        with pytest.raises(ArtifactFormatError, match="1 drive record"):
            PowerShellRenderer().decode(text)

    def test_bare_hashtable_record_is_rejected(self):
        text = (
            f"{DATA_BEGIN}\n$Drives = @(\n"
            "    [PSCustomObject]@{ DriveLetter = 'C'; MediaType = 'SSD' }\n"
            "    @{ MediaType = 'HDD'; DriveLetter = 'D' }\n)\n"
            "$ShutdownAfter = $false\n"
            f"{DATA_END}\n"
        )

        with pytest.raises(ArtifactFormatError):
            PowerShellRenderer().decode(text)

    def test_empty_drive_list_is_rejected(self):
        text = f"{DATA_BEGIN}\n$Drives = @(\n)\n$ShutdownAfter = $false\n{DATA_END}\n"

        with pytest.raises(ArtifactFormatError):
            PowerShellRenderer().decode(text)

    def test_quote_escaping(self):
        assert ps_quote("SSD") == "'SSD'"
        assert ps_quote("it's") == "'it''s'"
        assert ps_quote("a’b") == "'a’’b'"

    def test_escaped_quote_decodes_and_is_rejected_as_media(self):
        text = (
            f"{DATA_BEGIN}\n$Drives = @(\n"
            "    [PSCustomObject]@{ DriveLetter = 'C'; MediaType = 'S''SD' }\n)\n"
            "$ShutdownAfter = $true\n"
            f"{DATA_END}\n"
        )

        with pytest.raises(ArtifactFormatError, match="S'SD"):
            PowerShellRenderer().decode(text)


class TestRendererLookup:
    """Choosing a renderer by name or file suffix."""

    def test_by_name(self):
        assert isinstance(get_renderer("python"), PythonRenderer)
        assert isinstance(get_renderer("powershell"), PowerShellRenderer)
        with pytest.raises(ValueError):
            get_renderer("bat")

    def test_by_suffix(self, tmp_path):
        assert isinstance(renderer_for_path(tmp_path / "task.PY"), PythonRenderer)
        assert isinstance(renderer_for_path(tmp_path / "task.ps1"), PowerShellRenderer)
        with pytest.raises(ArtifactFormatError):
            renderer_for_path(tmp_path / "task.cmd")
