"""
instrumeta - normalize scientific instrument metadata.

Extracts acquisition metadata from instrument files (Zeiss CZI, FASTQ,
OME-TIFF and more), validates it against declarative schemas and projects it
onto object-storage tag sets.
"""

from .core.exceptions import (
    ExtractionError,
    ExtractorNotFoundError,
    FormatError,
    InstrumetaError,
    SchemaError,
)
from .core.registry import ExtractorRegistry
from .extract import ExtractionOutcome, ExtractionRecord, extract_file, extract_many
from .metadata.types import FileDescriptor, NormalizedMetadata

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ExtractionError",
    "ExtractionOutcome",
    "ExtractionRecord",
    "ExtractorNotFoundError",
    "ExtractorRegistry",
    "FileDescriptor",
    "FormatError",
    "InstrumetaError",
    "NormalizedMetadata",
    "SchemaError",
    "extract_file",
    "extract_many",
]
