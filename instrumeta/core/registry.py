# instrumeta/core/registry.py
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import BinaryIO, List, Optional, Tuple, Union

from ..metadata.types import NormalizedMetadata
from .base_extractor import BaseExtractor
from .exceptions import ExtractorNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractorInfo:
    name: str
    formats: Tuple[str, ...]


class ExtractorRegistry:
    """Thread-safe ordered registry; the first extractor that accepts a file wins."""

    def __init__(self):
        self._lock = RLock()
        self._extractors: List[BaseExtractor] = []

    @classmethod
    def with_defaults(cls) -> "ExtractorRegistry":
        registry = cls()
        registry.register_defaults()
        return registry

    def register(self, extractor: BaseExtractor) -> None:
        """Append an extractor; earlier registrations take precedence."""
        with self._lock:
            self._extractors.append(extractor)
            logger.info(
                f"Registered extractor {type(extractor).__name__} "
                f"'{extractor.name}' for {extractor.supported_formats()}"
            )

    def register_defaults(self) -> None:
        """Register the built-in extractors, ending with the generic fallback."""
        from ..metadata.extractors import (
            CziExtractor,
            FastqExtractor,
            GenericExtractor,
            OmeTiffExtractor,
            default_stub_extractors,
        )

        with self._lock:
            # Compound suffixes must be tried before their plain forms
            self.register(OmeTiffExtractor())
            self.register(CziExtractor())
            self.register(FastqExtractor())
            for stub in default_stub_extractors():
                self.register(stub)
            self.register(GenericExtractor())

    def find_extractor(self, file_name: Union[str, Path]) -> Optional[BaseExtractor]:
        with self._lock:
            extractors = list(self._extractors)
        for extractor in extractors:
            if extractor.can_handle(file_name):
                return extractor
        return None

    def get_extractor(self, file_name: Union[str, Path]) -> BaseExtractor:
        """Like :meth:`find_extractor` but raises when nothing matches."""
        extractor = self.find_extractor(file_name)
        if extractor is None:
            raise ExtractorNotFoundError(Path(str(file_name)).name)
        return extractor

    def extract(self, path: Union[str, Path]) -> NormalizedMetadata:
        extractor = self.get_extractor(path)
        logger.debug(f"Extracting {path} with '{extractor.name}'")
        return extractor.extract(path)

    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        extractor = self.get_extractor(file_name)
        logger.debug(f"Extracting stream {file_name} with '{extractor.name}'")
        return extractor.extract_from_stream(stream, file_name)

    def list_extractors(self) -> List[ExtractorInfo]:
        with self._lock:
            return [
                ExtractorInfo(
                    name=extractor.name,
                    formats=tuple(extractor.supported_formats()),
                )
                for extractor in self._extractors
            ]
