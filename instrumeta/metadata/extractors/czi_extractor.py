# instrumeta/metadata/extractors/czi_extractor.py
import logging
from typing import Any, BinaryIO, Dict, List, Optional

from lxml import etree

from ...core.base_extractor import BaseExtractor
from ...core.exceptions import FormatError
from ...utils.byte_cursor import ByteCursor
from ..types import MicroscopyMetadata, NormalizedMetadata
from .xml_helpers import (
    attr,
    local_name,
    normalize_timestamp,
    safe_parser,
    text,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)

CZI_MAGIC = b"ZISRAWFILE"
FILE_HEADER_SIZE = 16
SEGMENT_ID_SIZE = 16
SEGMENT_HEADER_SIZE = 32
METADATA_SEGMENT_ID = "ZISRAWMETADATA"
# XML size, attachment size and spare bytes in front of the XML payload
METADATA_PAYLOAD_HEADER_SIZE = 256

IMAGE_SIZE_FIELDS = (
    ("SizeX", "image_width"),
    ("SizeY", "image_height"),
    ("SizeZ", "image_depth"),
    ("SizeC", "num_channels"),
    ("SizeT", "num_timepoints"),
    ("ComponentBitCount", "bit_depth"),
)


class CziExtractor(BaseExtractor):
    """Zeiss CZI extractor reading the embedded XML metadata segment.

    Only the segment headers and the metadata segment are interpreted; pixel
    data is never decoded. The whole container is held in memory.
    """

    name = "zeiss_czi"
    schema_name = "zeiss_czi_v1"

    def supported_formats(self) -> List[str]:
        return [".czi"]

    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        return self.extract_from_bytes(stream.read(), file_name)

    def extract_from_bytes(self, data: bytes, file_name: str) -> NormalizedMetadata:
        if len(data) < FILE_HEADER_SIZE or data[: len(CZI_MAGIC)] != CZI_MAGIC:
            raise FormatError(file_name, "not a valid CZI file")

        fields: Dict[str, Any] = {
            "format": "CZI",
            "manufacturer": "Zeiss",
            "file_name": file_name,
            "file_size": len(data),
        }

        xml = self._find_metadata_xml(data, file_name)
        if xml is None:
            fields["extraction_note"] = "No XML metadata segment found in CZI file"
            return self._build_metadata(fields)

        fields.update(self._parse_metadata_xml(xml, file_name))
        return self._build_metadata(
            fields, microscopy=MicroscopyMetadata.from_fields(fields)
        )

    def _find_metadata_xml(self, data: bytes, file_name: str) -> Optional[bytes]:
        """Walk segment headers until the metadata segment is found."""
        cursor = ByteCursor(data, FILE_HEADER_SIZE)
        while cursor.can_read(SEGMENT_HEADER_SIZE):
            segment_offset = cursor.offset
            segment_id = (
                cursor.read(SEGMENT_ID_SIZE)
                .rstrip(b"\x00")
                .decode("ascii", errors="replace")
            )
            allocated_size = cursor.read_u64_le()
            used_size = cursor.read_u64_le()

            if segment_id.startswith(METADATA_SEGMENT_ID):
                if not cursor.can_read(used_size):
                    logger.debug(
                        f"{file_name}: metadata segment at {segment_offset} "
                        f"declares {used_size} bytes past end of file"
                    )
                    return None
                return self._metadata_payload(cursor.read(used_size))

            if not cursor.can_read(allocated_size):
                logger.debug(
                    f"{file_name}: segment {segment_id!r} at {segment_offset} "
                    f"overruns the file, stopping scan"
                )
                return None
            cursor.skip(allocated_size)
        return None

    def _metadata_payload(self, payload: bytes) -> bytes:
        """XML behind the segment's fixed header, or the raw payload if it has none."""
        if len(payload) >= METADATA_PAYLOAD_HEADER_SIZE:
            cursor = ByteCursor(payload)
            xml_size = cursor.read_u32()
            available = len(payload) - METADATA_PAYLOAD_HEADER_SIZE
            if 0 < xml_size <= available:
                xml = cursor.slice(METADATA_PAYLOAD_HEADER_SIZE, xml_size)
                if xml.lstrip()[:1] == b"<":
                    return xml.strip(b"\x00")
        return payload.strip(b"\x00")

    def _parse_metadata_xml(self, xml: bytes, file_name: str) -> Dict[str, Any]:
        try:
            root = etree.fromstring(xml, safe_parser())
        except etree.XMLSyntaxError as e:
            raise FormatError(file_name, f"malformed metadata XML: {e}") from e
        if local_name(root) != "ImageDocument":
            raise FormatError(
                file_name, f"unexpected metadata root element {local_name(root)!r}"
            )

        fields: Dict[str, Any] = {}
        self._extract_instrument(root, fields)
        self._extract_image(root, fields)
        self._extract_scaling(root, fields)
        self._extract_acquisition(root, fields)
        self._extract_channels(root, fields)
        return fields

    def _extract_instrument(self, root, fields: Dict[str, Any]) -> None:
        microscope = root.find(
            "Metadata/Information/Instrument/Microscopes/Microscope"
        )
        system = text(microscope, "System")
        if system:
            fields["instrument_model"] = system
            fields["instrument_type"] = "microscopy"
        microscope_name = attr(microscope, "Name")
        if microscope_name:
            fields["microscope_name"] = microscope_name

        objective = root.find("Metadata/Information/Instrument/Objectives/Objective")
        if objective is None:
            return
        magnification = to_float(
            text(objective, "NominalMagnification"), "objective_magnification"
        )
        if magnification and magnification > 0:
            fields["objective_magnification"] = magnification
        numerical_aperture = to_float(text(objective, "LensNA"), "objective_na")
        if numerical_aperture and numerical_aperture > 0:
            fields["objective_na"] = numerical_aperture
        immersion = text(objective, "Immersion")
        if immersion:
            fields["objective_immersion"] = immersion
        objective_name = attr(objective, "Name")
        if objective_name:
            fields["objective_name"] = objective_name

    def _extract_image(self, root, fields: Dict[str, Any]) -> None:
        image = root.find("Metadata/Information/Image")
        for tag, key in IMAGE_SIZE_FIELDS:
            value = to_int(text(image, tag), key)
            if value and value > 0:
                fields[key] = value

    def _extract_scaling(self, root, fields: Dict[str, Any]) -> None:
        for distance in root.iterfind("Metadata/Scaling/Items/Distance"):
            axis = attr(distance, "Id")
            if axis not in ("X", "Y", "Z"):
                continue
            key = f"pixel_size_{axis.lower()}_um"
            meters = to_float(text(distance, "Value"), key)
            if meters is not None:
                # Scaling is stored in meters
                fields[key] = meters * 1e6

    def _extract_acquisition(self, root, fields: Dict[str, Any]) -> None:
        acquired = self._information_text(
            root, "Image", "AcquisitionDateAndTime"
        ) or self._information_text(root, "Document", "CreationDate")
        if acquired:
            fields["acquisition_date"] = normalize_timestamp(acquired)

        operator = text(root.find("Metadata/Information/User"), "Name")
        if operator:
            fields["operator"] = operator

        software_name = self._information_text(root, "Application", "Name")
        if software_name:
            fields["software_name"] = software_name
        software_version = self._information_text(root, "Application", "Version")
        if software_version:
            fields["software_version"] = software_version

        document_name = self._information_text(root, "Document", "Name")
        if document_name:
            fields["document_name"] = document_name

    def _extract_channels(self, root, fields: Dict[str, Any]) -> None:
        channel_elements = []
        for image in self._information_elements(root, "Image"):
            channel_elements = image.findall("Dimensions/Channels/Channel")
            if channel_elements:
                break
        channels = []
        for channel in channel_elements:
            info: Dict[str, Any] = {
                "id": attr(channel, "Id") or "",
                "name": text(channel, "Name") or attr(channel, "Name") or "",
            }
            emission = to_float(
                text(channel, "EmissionWavelength"), "emission_wavelength_nm"
            )
            if emission and emission > 0:
                info["emission_wavelength_nm"] = emission
            excitation = to_float(
                text(channel, "ExcitationWavelength"), "excitation_wavelength_nm"
            )
            if excitation and excitation > 0:
                info["excitation_wavelength_nm"] = excitation
            dye = text(channel, "DyeName") or text(channel, "Fluor")
            if dye:
                info["dye_name"] = dye
            channels.append(info)
        if channels:
            fields["channels"] = channels

    @staticmethod
    def _information_elements(root, child: str) -> List:
        """Document-level info sits under the root, under Metadata, or both."""
        elements = []
        for base in ("Information", "Metadata/Information"):
            element = root.find(f"{base}/{child}")
            if element is not None:
                elements.append(element)
        return elements

    def _information_text(self, root, child: str, tag: str) -> Optional[str]:
        for element in self._information_elements(root, child):
            value = text(element, tag)
            if value:
                return value
        return None
