# instrumeta/metadata/extractors/generic_extractor.py
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Union

from ...core.base_extractor import BaseExtractor
from ...core.exceptions import ExtractionError
from ..types import NormalizedMetadata


def format_from_name(file_name: str) -> str:
    suffix = Path(file_name).suffix
    return suffix[1:].upper() if suffix else "Unknown"


class GenericExtractor(BaseExtractor):
    """Fallback extractor that accepts any file and reports basic attributes."""

    name = "generic"
    schema_name = "generic_v1"

    def supported_formats(self) -> List[str]:
        return ["*"]

    def can_handle(self, file_name: Union[str, Path]) -> bool:
        return True

    def extract(self, path: Union[str, Path]) -> NormalizedMetadata:
        path = Path(path)
        try:
            stat = path.stat()
        except OSError as e:
            raise ExtractionError(path.name, f"cannot read file: {e}") from e
        fields: Dict[str, Any] = {
            "format": format_from_name(path.name),
            "file_name": path.name,
            "file_size": stat.st_size,
            "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
            .isoformat(),
        }
        return self._build_metadata(fields)

    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        return self._build_metadata(
            {"format": format_from_name(file_name), "file_name": file_name}
        )
