# instrumeta/core/base_extractor.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

from ..metadata.types import (
    MicroscopyMetadata,
    NormalizedMetadata,
    SequencingMetadata,
)
from .exceptions import ExtractionError


class BaseExtractor(ABC):
    """Abstract base class for format-specific metadata extractors.

    Extractors hold no per-file state, so one instance can serve many files
    and many threads at once.
    """

    name: str = ""
    schema_name: str = ""

    @abstractmethod
    def supported_formats(self) -> List[str]:
        """Return the lower-case file suffixes this extractor accepts."""
        pass

    @abstractmethod
    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        """
        Extract metadata from an already opened binary stream.

        Args:
            stream: Readable binary stream positioned at the start of the file
            file_name: Name used for format decisions and error messages

        Returns:
            NormalizedMetadata for the file
        """
        pass

    def can_handle(self, file_name: Union[str, Path]) -> bool:
        lowered = str(file_name).lower()
        return any(lowered.endswith(suffix) for suffix in self.supported_formats())

    def extract(self, path: Union[str, Path]) -> NormalizedMetadata:
        """Extract metadata from a file on disk."""
        path = Path(path)
        try:
            with open(path, "rb") as stream:
                return self.extract_from_stream(stream, path.name)
        except OSError as e:
            raise ExtractionError(path.name, f"cannot read file: {e}") from e

    def _build_metadata(
        self,
        fields: Dict[str, Any],
        microscopy: Optional[MicroscopyMetadata] = None,
        sequencing: Optional[SequencingMetadata] = None,
    ) -> NormalizedMetadata:
        return NormalizedMetadata(
            extractor_name=self.name,
            schema_name=self.schema_name,
            fields=fields,
            microscopy=microscopy,
            sequencing=sequencing,
        )
