"""
Tests for the normalized metadata value types.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from types import MappingProxyType

import pytest

from instrumeta.metadata.types import (
    FileDescriptor,
    MicroscopyMetadata,
    NormalizedMetadata,
    declared_extension,
    freeze,
    thaw,
)


class TestFreeze:
    def test_nested_values_become_read_only(self):
        frozen = freeze({"channels": [{"name": "DAPI"}], "size": 3})

        assert isinstance(frozen, MappingProxyType)
        assert isinstance(frozen["channels"], tuple)
        with pytest.raises(TypeError):
            frozen["channels"][0]["name"] = "GFP"

    def test_thaw_restores_plain_types(self):
        value = {"channels": [{"name": "DAPI"}]}
        assert thaw(freeze(value)) == value


class TestNormalizedMetadata:
    def test_fields_include_extractor_and_schema(self):
        metadata = NormalizedMetadata("fastq", "fastq_v1", {"total_reads": 3})

        assert metadata["extractor_name"] == "fastq"
        assert metadata["schema_name"] == "fastq_v1"
        assert "total_reads" in metadata
        assert metadata.get("missing", "default") == "default"

    def test_fields_are_copied(self):
        source = {"format": "CZI"}
        metadata = NormalizedMetadata("zeiss_czi", "zeiss_czi_v1", source)
        source["format"] = "changed"
        assert metadata["format"] == "CZI"

    def test_fields_are_read_only(self):
        metadata = NormalizedMetadata("x", "x_v1", {"format": "X"})
        with pytest.raises(TypeError):
            metadata.fields["format"] = "Y"

    def test_equality_ignores_timestamp(self):
        now = datetime.now(timezone.utc)
        first = NormalizedMetadata("x", "x_v1", {"a": 1}, extracted_at=now)
        second = NormalizedMetadata(
            "x", "x_v1", {"a": 1}, extracted_at=now + timedelta(seconds=5)
        )
        assert first == second

    def test_to_dict(self):
        microscopy = MicroscopyMetadata.from_fields(
            {"image_width": 4, "channels": [{"name": "DAPI", "dye_name": "DAPI"}]}
        )
        metadata = NormalizedMetadata(
            "zeiss_czi", "zeiss_czi_v1",
            {"image_width": 4, "channels": [{"name": "DAPI"}]},
            microscopy=microscopy,
        )

        result = metadata.to_dict()

        assert result["fields"]["channels"] == [{"name": "DAPI"}]
        assert result["microscopy"]["image_width"] == 4
        assert result["microscopy"]["channels"][0]["dye_name"] == "DAPI"
        assert "sequencing" not in result
        datetime.fromisoformat(result["extracted_at"])

    def test_field_map_is_mutable_copy(self):
        metadata = NormalizedMetadata("x", "x_v1", {"tags": ["a"]})
        values = metadata.field_map()
        values["tags"].append("b")
        assert metadata["tags"] == ("a",)


class TestFileDescriptor:
    def test_from_path(self, temp_dir):
        path = temp_dir / "Reads.FASTQ.GZ"
        path.write_bytes(b"payload")

        descriptor = FileDescriptor.from_path(path, chunk_size=3)

        assert descriptor.name == "Reads.FASTQ.GZ"
        assert descriptor.extension == ".fastq.gz"
        assert descriptor.size == 7
        assert descriptor.checksum == (
            "sha256:" + hashlib.sha256(b"payload").hexdigest()
        )

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("a.ome.tif", ".ome.tif"),
            ("a.TIF", ".tif"),
            ("archive.tar.gz", ".tar.gz"),
            ("plain", ""),
        ],
    )
    def test_declared_extension(self, name, expected):
        assert declared_extension(name) == expected
