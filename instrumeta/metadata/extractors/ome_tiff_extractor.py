# instrumeta/metadata/extractors/ome_tiff_extractor.py
import logging
from typing import Any, BinaryIO, Dict, List, Optional

from lxml import etree

from ...core.base_extractor import BaseExtractor
from ...core.exceptions import FormatError
from ...utils.byte_cursor import ByteCursor, OutOfBoundsError
from ..types import MicroscopyMetadata, NormalizedMetadata
from .xml_helpers import attr, local_name, safe_parser, text, to_float, to_int

logger = logging.getLogger(__name__)

TIFF_MAGIC = 42
BIGTIFF_MAGIC = 43
IMAGE_DESCRIPTION_TAG = 270
IFD_ENTRY_SIZE = 12
ASCII_TYPE = 2

# OME physical sizes default to micrometres
UNIT_TO_MICRONS = {
    "µm": 1.0,
    "um": 1.0,
    "nm": 1e-3,
    "mm": 1e3,
    "cm": 1e4,
    "m": 1e6,
}


class OmeTiffExtractor(BaseExtractor):
    """OME-TIFF extractor reading the OME-XML stored in the first IFD."""

    name = "ome_tiff"
    schema_name = "ome_tiff_v1"

    def supported_formats(self) -> List[str]:
        return [".ome.tif", ".ome.tiff"]

    def extract_from_stream(
        self, stream: BinaryIO, file_name: str
    ) -> NormalizedMetadata:
        data = stream.read()
        fields: Dict[str, Any] = {
            "format": "OME-TIFF",
            "file_name": file_name,
            "file_size": len(data),
        }

        description = self._read_image_description(data, file_name, fields)
        if description is None:
            fields.setdefault(
                "extraction_note", "No OME-XML found in TIFF ImageDescription"
            )
            return self._build_metadata(fields)

        ome_fields = self._parse_ome_xml(description, file_name)
        if ome_fields is None:
            fields["extraction_note"] = "TIFF ImageDescription is not OME-XML"
            return self._build_metadata(fields)

        fields.update(ome_fields)
        return self._build_metadata(
            fields, microscopy=MicroscopyMetadata.from_fields(fields)
        )

    def _read_image_description(
        self, data: bytes, file_name: str, fields: Dict[str, Any]
    ) -> Optional[bytes]:
        cursor = ByteCursor(data)
        if not cursor.can_read(8):
            raise FormatError(file_name, "not a valid TIFF file")
        order_mark = cursor.read(2)
        if order_mark == b"II":
            byteorder = "<"
        elif order_mark == b"MM":
            byteorder = ">"
        else:
            raise FormatError(file_name, "not a valid TIFF file")

        magic = cursor.read_u16(byteorder)
        if magic == BIGTIFF_MAGIC:
            fields["tiff_variant"] = "BigTIFF"
            fields["extraction_note"] = "BigTIFF directories are not read"
            return None
        if magic != TIFF_MAGIC:
            raise FormatError(file_name, f"unexpected TIFF magic number {magic}")

        try:
            cursor.seek(cursor.read_u32(byteorder))
            entry_count = cursor.read_u16(byteorder)
            for _ in range(entry_count):
                tag = cursor.read_u16(byteorder)
                field_type = cursor.read_u16(byteorder)
                count = cursor.read_u32(byteorder)
                value_field = cursor.read(4)
                if tag != IMAGE_DESCRIPTION_TAG or field_type != ASCII_TYPE:
                    continue
                if count <= 4:
                    raw = value_field[:count]
                else:
                    offset = ByteCursor(value_field).read_u32(byteorder)
                    raw = cursor.slice(offset, count)
                return raw.strip(b"\x00")
        except OutOfBoundsError as e:
            logger.debug(f"{file_name}: truncated TIFF directory ({e})")
        return None

    def _parse_ome_xml(self, xml: bytes, file_name: str) -> Optional[Dict[str, Any]]:
        if not xml.lstrip().startswith(b"<"):
            return None
        try:
            root = etree.fromstring(xml, safe_parser())
        except etree.XMLSyntaxError as e:
            raise FormatError(file_name, f"malformed OME-XML: {e}") from e
        if local_name(root) != "OME":
            return None

        fields: Dict[str, Any] = {}
        image = root.find("{*}Image")
        if image is not None:
            self._extract_image(image, fields)
        instrument = root.find("{*}Instrument")
        if instrument is not None:
            self._extract_instrument(instrument, fields)
        experimenter = root.find("{*}Experimenter")
        if experimenter is not None:
            full_name = " ".join(
                part
                for part in (
                    attr(experimenter, "FirstName") or text(experimenter, "{*}FirstName"),
                    attr(experimenter, "LastName") or text(experimenter, "{*}LastName"),
                )
                if part
            )
            if full_name:
                fields["operator"] = full_name
            email = attr(experimenter, "Email") or text(experimenter, "{*}Email")
            if email:
                fields["operator_email"] = email
        return fields

    def _extract_image(self, image, fields: Dict[str, Any]) -> None:
        image_name = attr(image, "Name")
        if image_name:
            fields["image_name"] = image_name
        acquired = text(image, "{*}AcquisitionDate")
        if acquired:
            fields["acquisition_date"] = acquired

        pixels = image.find("{*}Pixels")
        if pixels is None:
            return
        for attribute, key in (
            ("SizeX", "image_width"),
            ("SizeY", "image_height"),
            ("SizeZ", "image_depth"),
            ("SizeC", "num_channels"),
            ("SizeT", "num_timepoints"),
            ("SignificantBits", "bit_depth"),
        ):
            value = to_int(attr(pixels, attribute), key)
            if value and value > 0:
                fields[key] = value
        pixel_type = attr(pixels, "Type")
        if pixel_type:
            fields["pixel_type"] = pixel_type
        dimension_order = attr(pixels, "DimensionOrder")
        if dimension_order:
            fields["dimension_order"] = dimension_order

        for axis in ("X", "Y", "Z"):
            key = f"pixel_size_{axis.lower()}_um"
            size = to_float(attr(pixels, f"PhysicalSize{axis}"), key)
            if not size or size <= 0:
                continue
            unit = attr(pixels, f"PhysicalSize{axis}Unit") or "µm"
            factor = UNIT_TO_MICRONS.get(unit)
            if factor is None:
                logger.warning(f"Unknown OME length unit {unit!r} for {key}")
                continue
            fields[key] = size * factor

        channels = []
        for channel in pixels.iterfind("{*}Channel"):
            info: Dict[str, Any] = {
                "id": attr(channel, "ID") or "",
                "name": attr(channel, "Name") or "",
            }
            emission = to_float(
                attr(channel, "EmissionWavelength"), "emission_wavelength_nm"
            )
            if emission and emission > 0:
                info["emission_wavelength_nm"] = emission
            excitation = to_float(
                attr(channel, "ExcitationWavelength"), "excitation_wavelength_nm"
            )
            if excitation and excitation > 0:
                info["excitation_wavelength_nm"] = excitation
            fluor = attr(channel, "Fluor")
            if fluor:
                info["dye_name"] = fluor
            channels.append(info)
        if channels:
            fields["channels"] = channels

    def _extract_instrument(self, instrument, fields: Dict[str, Any]) -> None:
        fields["instrument_type"] = "microscopy"
        microscope = instrument.find("{*}Microscope")
        if microscope is not None:
            for attribute, key in (
                ("Manufacturer", "manufacturer"),
                ("Model", "instrument_model"),
                ("Type", "microscope_type"),
            ):
                value = attr(microscope, attribute)
                if value:
                    fields[key] = value

        objective = instrument.find("{*}Objective")
        if objective is None:
            return
        magnification = to_float(
            attr(objective, "NominalMagnification"), "objective_magnification"
        )
        if magnification and magnification > 0:
            fields["objective_magnification"] = magnification
        numerical_aperture = to_float(attr(objective, "LensNA"), "objective_na")
        if numerical_aperture and numerical_aperture > 0:
            fields["objective_na"] = numerical_aperture
        immersion = attr(objective, "Immersion")
        if immersion:
            fields["objective_immersion"] = immersion
        model = attr(objective, "Model")
        if model:
            fields["objective_model"] = model
