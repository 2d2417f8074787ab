"""Tests for volume and task models."""
import dataclasses

import pytest

from diskpilot.models.task import GeneratedArtifact, SelectionSet, TaskConfig
from diskpilot.models.volume import MediaType, VolumeRecord


class TestVolumeRecord:
    """VolumeRecord invariants."""

    @pytest.mark.parametrize("media,valid", [
        (MediaType.SSD, True),
        (MediaType.HDD, True),
        (MediaType.UNKNOWN, False),
    ])
    def test_is_valid_tracks_media_type(self, media, valid):
        assert VolumeRecord("C", media).is_valid is valid

    @pytest.mark.parametrize("letter", ["c", "CD", "", "1", None, "'"])
    def test_rejects_bad_letters(self, letter):
        with pytest.raises(ValueError):
            VolumeRecord(letter, MediaType.SSD)

    def test_immutable(self):
        record = VolumeRecord("C", MediaType.SSD)

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.media_type = MediaType.HDD

    def test_size_human(self):
        assert VolumeRecord("C", MediaType.SSD, size_bytes=1024 ** 3).size_human == "1.0GB"

    def test_media_type_literals(self):
        assert MediaType.from_text("Unknown") is MediaType.UNKNOWN
        with pytest.raises(ValueError):
            MediaType.from_text("ssd")


class TestSelectionSet:
    """SelectionSet ordering and membership rules."""

    def test_sorted_by_letter(self):
        selection = SelectionSet([VolumeRecord("D", MediaType.HDD), VolumeRecord("C", MediaType.SSD)])

        assert selection.letters == ["C", "D"]

    def test_rejects_duplicates(self):
        with pytest.raises(ValueError):
            SelectionSet([VolumeRecord("C", MediaType.SSD), VolumeRecord("C", MediaType.HDD)])

    def test_rejects_unknown_media(self):
        with pytest.raises(ValueError):
            SelectionSet([VolumeRecord("E", MediaType.UNKNOWN)])

    def test_equality_by_pairs(self):
        a = SelectionSet([VolumeRecord("C", MediaType.SSD, disk_number=0)])
        b = SelectionSet([VolumeRecord("C", MediaType.SSD)])

        assert a == b


class TestTaskConfig:
    """TaskConfig construction."""

    def test_empty_selection_is_not_a_config(self):
        with pytest.raises(ValueError):
            TaskConfig(SelectionSet(), False)

    @pytest.mark.parametrize("flag", ["true", 1, None])
    def test_shutdown_flag_must_be_bool(self, flag):
        with pytest.raises(TypeError):
            TaskConfig(SelectionSet([VolumeRecord("C", MediaType.SSD)]), flag)


def test_artifact_digest():
    assert GeneratedArtifact.digest("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
