# instrumeta/metadata/extractors/stub_extractor.py
import logging
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, Union

from ...core.base_extractor import BaseExtractor
from ...core.exceptions import ExtractionError
from ..types import NormalizedMetadata

logger = logging.getLogger(__name__)


class FormatStubExtractor(BaseExtractor):
    """
    Recognizes a format by suffix without decoding its contents.

    Used for formats whose deep readers are not implemented yet so that files
    are still classified correctly instead of falling through to the generic
    extractor.
    """

    def __init__(
        self,
        name: str,
        format_name: str,
        suffixes: Sequence[str],
        manufacturer: Optional[str] = None,
        instrument_type: Optional[str] = None,
    ):
        self.name = name
        self.schema_name = f"{name}_v1"
        self.format_name = format_name
        self._suffixes = [suffix.lower() for suffix in suffixes]
        self.manufacturer = manufacturer
        self.instrument_type = instrument_type

    def supported_formats(self) -> List[str]:
        return list(self._suffixes)

    def can_handle(self, file_name: Union[str, Path]) -> bool:
        # Exact final suffix so that ".ome.tif" never lands on plain TIFF
        return Path(str(file_name)).suffix.lower() in self._suffixes

    def extract(self, path: Union[str, Path]) -> NormalizedMetadata:
        path = Path(path)
        try:
            stat = path.stat()
        except OSError as e:
            raise ExtractionError(path.name, f"cannot read file: {e}") from e
        fields = self._base_fields(path.name)
        if path.is_file():
            fields["file_size"] = stat.st_size
        return self._build_metadata(fields)

    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        return self._build_metadata(self._base_fields(file_name))

    def _base_fields(self, file_name: str) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "format": self.format_name,
            "file_name": file_name,
            "extraction_note": (
                f"{self.format_name} format recognized; detailed metadata "
                f"extraction is not implemented"
            ),
        }
        if self.manufacturer:
            fields["manufacturer"] = self.manufacturer
        if self.instrument_type:
            fields["instrument_type"] = self.instrument_type
        return fields


def default_stub_extractors() -> List[FormatStubExtractor]:
    """Stub extractors for every recognized but undecoded format."""
    return [
        FormatStubExtractor("tiff", "TIFF", [".tif", ".tiff"], None, "microscopy"),
        FormatStubExtractor("nikon_nd2", "ND2", [".nd2"], "Nikon", "microscopy"),
        FormatStubExtractor("leica_lif", "LIF", [".lif"], "Leica", "microscopy"),
        FormatStubExtractor("bam", "BAM", [".bam"], None, "sequencing"),
        FormatStubExtractor("mzml", "mzML", [".mzml"], None, "mass_spectrometry"),
        FormatStubExtractor("mgf", "MGF", [".mgf"], None, "mass_spectrometry"),
        FormatStubExtractor("hdf5", "HDF5", [".h5", ".hdf5"]),
        FormatStubExtractor("zarr", "Zarr", [".zarr"]),
        FormatStubExtractor("dicom", "DICOM", [".dcm", ".dicom"], None, "medical_imaging"),
        FormatStubExtractor("fcs", "FCS", [".fcs"], None, "flow_cytometry"),
    ]
