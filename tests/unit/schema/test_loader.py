"""
Tests for schema loaders.
"""

import json

import pytest

from instrumeta.core.exceptions import SchemaDefinitionError, SchemaNotFoundError
from instrumeta.schema.loader import DirectorySchemaLoader, InMemorySchemaLoader
from instrumeta.schema.model import Schema
from instrumeta.schema.resolver import SchemaResolver
from instrumeta.validation.validator import SchemaValidator

MICROSCOPY_YAML = """
name: microscopy_v1
schema_version: "1.0"
domain: microscopy
description: Common fields for light microscopy
required_fields:
  - format
fields:
  format:
    type: string
  objective_na:
    type: number
    range:
      min: 0
      max: 2
"""


@pytest.fixture
def schema_dir(tmp_path):
    (tmp_path / "microscopy_v1.yaml").write_text(MICROSCOPY_YAML)
    (tmp_path / "fastq_v1.json").write_text(
        json.dumps({"name": "fastq_v1", "domain": "sequencing", "fields": {}})
    )
    (tmp_path / "README.md").write_text("not a schema")
    return tmp_path


class TestDirectorySchemaLoader:
    def test_load_yaml(self, schema_dir):
        schema = DirectorySchemaLoader(schema_dir).load("microscopy_v1")

        assert schema.domain == "microscopy"
        assert schema.required_fields == ["format"]
        assert schema.fields["objective_na"].range.max == 2

    def test_load_json(self, schema_dir):
        assert DirectorySchemaLoader(schema_dir).load("fastq_v1").domain == "sequencing"

    def test_list(self, schema_dir):
        assert DirectorySchemaLoader(schema_dir).list() == ["fastq_v1", "microscopy_v1"]

    def test_search(self, schema_dir):
        matches = DirectorySchemaLoader(schema_dir).search("LIGHT")
        assert [schema.name for schema in matches] == ["microscopy_v1"]

    def test_missing(self, schema_dir):
        with pytest.raises(SchemaNotFoundError):
            DirectorySchemaLoader(schema_dir).load("nope")

    def test_malformed_yaml(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("name: [unclosed")
        with pytest.raises(SchemaDefinitionError):
            DirectorySchemaLoader(tmp_path).load("broken")

    def test_cached(self, schema_dir):
        loader = DirectorySchemaLoader(schema_dir)
        first = loader.load("microscopy_v1")
        (schema_dir / "microscopy_v1.yaml").unlink()
        assert loader.load("microscopy_v1") is first

    def test_first_directory_wins(self, schema_dir, tmp_path_factory):
        override = tmp_path_factory.mktemp("override")
        (override / "microscopy_v1.yaml").write_text(
            "name: microscopy_v1\ndomain: override\n"
        )
        loader = DirectorySchemaLoader([override, schema_dir])
        assert loader.load("microscopy_v1").domain == "override"


class TestInMemorySchemaLoader:
    def test_add_and_load(self):
        loader = InMemorySchemaLoader([Schema(name="b"), Schema(name="a")])
        assert loader.list() == ["a", "b"]
        assert loader.load("a").name == "a"
        with pytest.raises(SchemaNotFoundError):
            loader.load("c")


class TestRangeBounds:
    def test_exponent_bounds_are_numbers(self, tmp_path):
        (tmp_path / "imaging_v1.yaml").write_text(
            "name: imaging_v1\n"
            "fields:\n"
            "  pixel_size_x_um:\n"
            "    type: number\n"
            "    range:\n"
            "      min: 1e-3\n"
            "      max: 1e3\n"
        )
        loader = DirectorySchemaLoader(tmp_path)

        value_range = loader.load("imaging_v1").fields["pixel_size_x_um"].range
        assert value_range.min == 0.001
        assert value_range.max == 1000.0

        validator = SchemaValidator(SchemaResolver(loader))
        assert validator.validate({"pixel_size_x_um": 0.5}, "imaging_v1").valid
        result = validator.validate({"pixel_size_x_um": 5000.0}, "imaging_v1")
        assert [e.kind for e in result.errors] == ["out_of_range"]

    def test_non_numeric_bound(self, tmp_path):
        (tmp_path / "bad_v1.yaml").write_text(
            "name: bad_v1\n"
            "fields:\n"
            "  width:\n"
            "    type: number\n"
            "    range:\n"
            "      min: small\n"
        )
        with pytest.raises(SchemaDefinitionError, match="width.range.min"):
            DirectorySchemaLoader(tmp_path).load("bad_v1")
