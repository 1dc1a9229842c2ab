"""
Tests for single-file and batch extraction.
"""

import hashlib
from unittest.mock import patch

import pytest

from instrumeta.core.exceptions import FormatError
from instrumeta.core.registry import ExtractorRegistry
from instrumeta.extract import extract_file, extract_many, validate_record
from instrumeta.schema.loader import InMemorySchemaLoader
from instrumeta.schema.model import Schema
from instrumeta.schema.resolver import SchemaResolver
from instrumeta.validation.validator import SchemaValidator


@pytest.fixture(scope="module")
def registry():
    return ExtractorRegistry.with_defaults()


class TestExtractFile:
    def test_descriptor_and_metadata(self, registry, czi_file, czi_bytes):
        record = extract_file(czi_file, registry)

        assert record.descriptor.name == "experiment.czi"
        assert record.descriptor.extension == ".czi"
        assert record.descriptor.size == len(czi_bytes)
        assert record.descriptor.checksum == (
            "sha256:" + hashlib.sha256(czi_bytes).hexdigest()
        )
        assert record.metadata["instrument_model"] == "LSM 880"

    def test_to_dict(self, registry, fastq_file):
        result = extract_file(fastq_file, registry).to_dict()

        assert result["file_info"]["filename"] == "sample.fastq"
        assert result["file_info"]["checksum"].startswith("sha256:")
        assert result["metadata"]["fields"]["total_reads"] == 3

    def test_directory_format(self, registry, temp_dir):
        store = temp_dir / "plate.zarr"
        store.mkdir()

        record = extract_file(store, registry)

        assert record.metadata.extractor_name == "zarr"
        assert record.descriptor.size == 0
        assert record.descriptor.checksum == ""

    def test_corrupt_file_raises(self, registry, temp_dir):
        path = temp_dir / "broken.czi"
        path.write_bytes(b"not a czi at all")
        with pytest.raises(FormatError):
            extract_file(path, registry)


class TestExtractMany:
    def test_continues_past_failures(self, registry, temp_dir, czi_file, fastq_file):
        broken = temp_dir / "broken.czi"
        broken.write_bytes(b"garbage")

        outcomes = extract_many([czi_file, broken, fastq_file], registry)

        assert [outcome.ok for outcome in outcomes] == [True, False, True]
        assert outcomes[1].record is None
        assert isinstance(outcomes[1].error, FormatError)
        assert outcomes[2].record.metadata.extractor_name == "fastq"

    def test_logs_summary(self, registry, czi_file, caplog):
        with caplog.at_level("INFO", logger="instrumeta"):
            extract_many([czi_file], registry)
        assert "Extracted 1 of 1 files" in caplog.text

    @pytest.mark.parametrize("progress", [True, False])
    def test_progress_flag(self, registry, czi_file, progress):
        with patch("instrumeta.extract.tqdm") as mock_tqdm:
            extract_many([czi_file], registry, progress=progress)

        _, kwargs = mock_tqdm.call_args
        assert kwargs["disable"] is (not progress)
        assert kwargs["total"] == 1


def test_validate_record(registry, czi_file):
    schema = Schema.from_dict(
        {
            "name": "zeiss_czi_v1",
            "required_fields": ["format", "instrument_model", "operator_orcid"],
        }
    )
    validator = SchemaValidator(SchemaResolver(InMemorySchemaLoader([schema])))

    result = validate_record(extract_file(czi_file, registry), validator)

    assert not result.valid
    assert [error.field for error in result.errors] == ["operator_orcid"]
