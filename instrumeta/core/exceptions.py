# instrumeta/core/exceptions.py
"""Exception hierarchy shared by extractors, schemas and validation."""


class InstrumetaError(Exception):
    """Base class for all instrumeta errors."""

    retryable = False


class ExtractionError(InstrumetaError):
    """Raised when a file cannot be turned into normalized metadata."""

    def __init__(self, file_name: str, detail: str):
        self.file_name = file_name
        self.detail = detail
        super().__init__(f"{file_name}: {detail}")


class FormatError(ExtractionError):
    """The input is structurally not what its extractor expects."""


class ExtractorNotFoundError(ExtractionError):
    """No registered extractor accepts the file."""

    def __init__(self, file_name: str):
        super().__init__(file_name, "no extractor found for file")


class SchemaError(InstrumetaError):
    """Base class for schema problems."""


class SchemaNotFoundError(SchemaError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"schema not found: {name}")


class SchemaDefinitionError(SchemaError):
    """A schema document is malformed or its inheritance chain is broken."""


class RuleEvaluationError(InstrumetaError):
    """A custom validation rule could not be evaluated."""
