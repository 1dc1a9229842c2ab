from instrumeta.core.exceptions import (
    ExtractionError,
    ExtractorNotFoundError,
    FormatError,
    InstrumetaError,
    SchemaDefinitionError,
    SchemaError,
    SchemaNotFoundError,
)


def test_extraction_error_names_file():
    error = FormatError("scan.czi", "not a valid CZI file")
    assert isinstance(error, ExtractionError)
    assert str(error) == "scan.czi: not a valid CZI file"
    assert error.file_name == "scan.czi"
    assert error.detail == "not a valid CZI file"
    assert error.retryable is False


def test_extractor_not_found():
    error = ExtractorNotFoundError("a.xyz")
    assert isinstance(error, ExtractionError)
    assert "no extractor found" in str(error)


def test_schema_errors_share_a_base():
    assert isinstance(SchemaNotFoundError("x"), SchemaError)
    assert isinstance(SchemaDefinitionError("bad"), SchemaError)
    assert isinstance(SchemaNotFoundError("x"), InstrumetaError)
    assert SchemaNotFoundError("x").name == "x"
