"""
Tests for projecting metadata onto object storage tags.
"""

import pytest

from instrumeta.metadata.types import NormalizedMetadata
from instrumeta.tagging.tags import (
    MAX_KEY_LENGTH,
    MAX_TAGS,
    MAX_VALUE_LENGTH,
    PRIORITY_FIELDS,
    Tag,
    from_tag_set,
    metadata_to_tags,
    sanitize_key,
    sanitize_value,
    tags_to_fields,
    to_tag_set,
)


class TestMetadataToTags:
    def test_keeps_highest_priority_fields(self):
        fields = {name: f"value {index}" for index, name in enumerate(PRIORITY_FIELDS[:15])}

        tags = metadata_to_tags(fields)

        assert len(tags) == MAX_TAGS
        assert [tag.key for tag in tags] == [
            name.replace("_", "-") for name in PRIORITY_FIELDS[:MAX_TAGS]
        ]

    def test_skips_missing_and_nested_values(self):
        tags = metadata_to_tags(
            {"format": "CZI", "operator": "", "manufacturer": None,
             "instrument_model": ["a"], "channels": [{"name": "DAPI"}]}
        )
        assert tags == [Tag("format", "CZI")]

    def test_from_normalized_metadata(self):
        metadata = NormalizedMetadata(
            "fastq", "fastq_v1",
            {"format": "FASTQ", "is_paired_end": True, "num_channels": 2.0},
        )

        values = {tag.key: tag.value for tag in metadata_to_tags(metadata)}

        assert values["extractor-name"] == "fastq"
        assert values["schema-name"] == "fastq_v1"
        assert values["is-paired-end"] == "true"
        assert values["num-channels"] == "2"

    def test_custom_priority(self):
        tags = metadata_to_tags({"a": 1, "b": 2}, priority_fields=["b", "a"])
        assert [tag.key for tag in tags] == ["b", "a"]


class TestSanitize:
    def test_key(self):
        assert sanitize_key("pixel size (µm)") == "pixelsizem"
        assert sanitize_key("!!!") == "unknown"
        assert len(sanitize_key("k" * 300)) == MAX_KEY_LENGTH

    def test_value(self):
        assert sanitize_value("Jane Doe <jane@example.org>") == "Jane Doe jane@example.org"
        assert sanitize_value("***") == "unknown"
        assert len(sanitize_value("v" * 300)) == MAX_VALUE_LENGTH

    @pytest.mark.parametrize("value", ["2024-01-15T10:30:00+00:00", "LSM 880"])
    def test_value_unchanged(self, value):
        assert sanitize_value(value) == value


class TestTagSets:
    def test_reverse_mapping(self):
        tags = [Tag("instrument-type", "microscopy"), Tag("Format", "CZI")]
        assert tags_to_fields(tags) == {"instrument_type": "microscopy", "format": "CZI"}

    def test_tag_set_shape(self):
        tag_set = to_tag_set([Tag("format", "CZI")])
        assert tag_set == [{"Key": "format", "Value": "CZI"}]
        assert from_tag_set(tag_set) == [Tag("format", "CZI")]

    def test_from_tag_set_skips_incomplete(self):
        assert from_tag_set([{"Key": "a"}, {"Key": "b", "Value": 1}]) == [Tag("b", "1")]
