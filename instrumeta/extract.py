# instrumeta/extract.py
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from tqdm import tqdm

from .core.exceptions import ExtractionError
from .core.registry import ExtractorRegistry
from .metadata.types import FileDescriptor, NormalizedMetadata
from .validation.types import ValidationResult
from .validation.validator import SchemaValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionRecord:
    """Extracted metadata together with the identity of its source file."""

    descriptor: FileDescriptor
    metadata: NormalizedMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_info": {
                "filename": self.descriptor.name,
                "path": self.descriptor.path,
                "extension": self.descriptor.extension,
                "size": self.descriptor.size,
                "checksum": self.descriptor.checksum,
            },
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class ExtractionOutcome:
    path: str
    record: Optional[ExtractionRecord] = None
    error: Optional[ExtractionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_file(
    path: Union[str, Path], registry: ExtractorRegistry
) -> ExtractionRecord:
    """
    Extract metadata from one file.

    Args:
        path: File to read
        registry: Registry used to pick the extractor

    Returns:
        ExtractionRecord with the file descriptor and its metadata

    Raises:
        ExtractionError: If the file cannot be read or decoded
    """
    path = Path(path)
    metadata = registry.extract(path)
    if path.is_file():
        try:
            descriptor = FileDescriptor.from_path(path)
        except OSError as e:
            raise ExtractionError(path.name, f"cannot read file: {e}") from e
    else:
        # Directory-backed formats such as Zarr have no single checksum
        descriptor = FileDescriptor(
            path=str(path), name=path.name, extension=path.suffix.lower(),
            size=0, checksum="",
        )
    return ExtractionRecord(descriptor=descriptor, metadata=metadata)


def extract_many(
    paths: Iterable[Union[str, Path]],
    registry: ExtractorRegistry,
    progress: bool = False,
) -> List[ExtractionOutcome]:
    """Extract every path, recording failures instead of stopping at them."""
    paths = [Path(path) for path in paths]
    outcomes: List[ExtractionOutcome] = []
    with tqdm(
        total=len(paths), desc="Extracting metadata", unit="file", disable=not progress
    ) as pbar:
        for path in paths:
            try:
                outcomes.append(
                    ExtractionOutcome(str(path), record=extract_file(path, registry))
                )
            except ExtractionError as e:
                logger.warning(f"Extraction failed for {path}: {e}")
                outcomes.append(ExtractionOutcome(str(path), error=e))
            pbar.update(1)

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    logger.info(f"Extracted {len(outcomes) - failed} of {len(outcomes)} files")
    return outcomes


def validate_record(
    record: ExtractionRecord,
    validator: SchemaValidator,
    schema_name: Optional[str] = None,
) -> ValidationResult:
    return validator.validate_metadata(record.metadata, schema_name)
