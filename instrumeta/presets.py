# instrumeta/presets.py
"""Instrument presets: expected metadata per instrument family."""
import copy
import logging
import re
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .core.exceptions import InstrumetaError

logger = logging.getLogger(__name__)


class PresetNotFoundError(InstrumetaError):
    def __init__(self, preset_id: str):
        self.preset_id = preset_id
        super().__init__(f"preset not found: {preset_id}")


@dataclass
class FieldRequirement:
    name: str
    description: str = ""
    type: str = "string"
    format: Optional[str] = None
    pattern: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    enum: List[str] = field(default_factory=list)
    example: Any = None

    def check(self, value: Any) -> Optional[str]:
        """Return a problem description, or None when the value is acceptable."""
        if self.type == "string":
            if not isinstance(value, str):
                return f"expected string, got {type(value).__name__}"
            if self.pattern:
                try:
                    if re.search(self.pattern, value) is None:
                        return f"does not match pattern {self.pattern}"
                except re.error as e:
                    return f"invalid pattern: {e}"
            if self.enum and value not in self.enum:
                return f"must be one of: {self.enum}"
        elif self.type == "number":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f"expected number, got {type(value).__name__}"
            if self.min_value is not None and value < self.min_value:
                return f"must be >= {self.min_value}"
            if self.max_value is not None and value > self.max_value:
                return f"must be <= {self.max_value}"
        elif self.type == "boolean":
            if not isinstance(value, bool):
                return f"expected boolean, got {type(value).__name__}"
        elif self.type == "array":
            if not isinstance(value, (list, tuple)):
                return f"expected array, got {type(value).__name__}"
        elif self.type == "object":
            if not isinstance(value, Mapping):
                return f"expected object, got {type(value).__name__}"
        return None


@dataclass
class PresetValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)

    def quality_score(self) -> float:
        total = len(self.present) + len(self.missing)
        if total == 0:
            return 0.0
        score = len(self.present) / total * 100 - 10.0 * len(self.errors)
        return max(0.0, score)


@dataclass
class InstrumentPreset:
    id: str
    name: str
    manufacturer: str
    instrument_type: str
    models: List[str] = field(default_factory=list)
    description: str = ""
    data_types: List[str] = field(default_factory=list)
    file_formats: List[str] = field(default_factory=list)
    required_fields: List[FieldRequirement] = field(default_factory=list)
    optional_fields: List[FieldRequirement] = field(default_factory=list)
    documentation: str = ""
    references: List[str] = field(default_factory=list)

    def validate(self, fields: Mapping[str, Any]) -> PresetValidationResult:
        """
        Check a field map against this preset.

        Missing or invalid required fields are errors; the same problems on
        optional fields are only warnings.
        """
        result = PresetValidationResult()
        for requirement in self.required_fields:
            if requirement.name not in fields:
                result.is_valid = False
                result.errors.append(f"missing required field: {requirement.name}")
                result.missing.append(requirement.name)
                continue
            result.present.append(requirement.name)
            problem = requirement.check(fields[requirement.name])
            if problem:
                result.is_valid = False
                result.errors.append(f"invalid value for {requirement.name}: {problem}")

        for requirement in self.optional_fields:
            if requirement.name not in fields:
                result.warnings.append(f"missing optional field: {requirement.name}")
                result.missing.append(requirement.name)
                continue
            result.present.append(requirement.name)
            problem = requirement.check(fields[requirement.name])
            if problem:
                result.warnings.append(f"invalid value for {requirement.name}: {problem}")
        return result

    def generate_template(self) -> Dict[str, Any]:
        template: Dict[str, Any] = {}
        for requirement in self.required_fields:
            if requirement.example is not None:
                template[requirement.name] = requirement.example
            else:
                template[requirement.name] = f"<{requirement.description}>"
        for requirement in self.optional_fields:
            if requirement.example is not None:
                template[requirement.name] = requirement.example
        return template


class PresetRegistry:
    def __init__(self):
        self._lock = RLock()
        self._presets: Dict[str, InstrumentPreset] = {}

    @classmethod
    def with_defaults(cls) -> "PresetRegistry":
        registry = cls()
        registry.register_defaults()
        return registry

    def register(self, preset: InstrumentPreset) -> None:
        with self._lock:
            self._presets[preset.id] = preset
            logger.debug(f"Registered preset '{preset.id}'")

    def get(self, preset_id: str) -> InstrumentPreset:
        with self._lock:
            try:
                return self._presets[preset_id]
            except KeyError:
                raise PresetNotFoundError(preset_id) from None

    def list_presets(self) -> List[InstrumentPreset]:
        with self._lock:
            return list(self._presets.values())

    def find_presets(
        self, manufacturer: str = "", instrument_type: str = ""
    ) -> List[InstrumentPreset]:
        """Presets matching both filters case-insensitively; empty filters match all."""
        matches = []
        for preset in self.list_presets():
            if manufacturer and preset.manufacturer.lower() != manufacturer.lower():
                continue
            if (
                instrument_type
                and preset.instrument_type.lower() != instrument_type.lower()
            ):
                continue
            matches.append(preset)
        return matches

    def register_defaults(self) -> None:
        for preset in default_presets():
            self.register(preset)


def _zeiss_lsm(model: str, description: str, reference: str) -> InstrumentPreset:
    return InstrumentPreset(
        id=f"zeiss-lsm-{model}",
        name=f"Zeiss LSM {model}",
        manufacturer="Zeiss",
        instrument_type="microscopy",
        models=[f"LSM {model}"],
        description=description,
        data_types=["image"],
        file_formats=[".czi"],
        required_fields=[
            FieldRequirement("format", "File format", enum=["CZI"], example="CZI"),
            FieldRequirement(
                "manufacturer", "Instrument manufacturer", enum=["Zeiss"],
                example="Zeiss",
            ),
            FieldRequirement("instrument_model", "Microscope model", example=f"LSM {model}"),
            FieldRequirement(
                "image_width", "Image width in pixels", "number", min_value=1,
                example=1024,
            ),
            FieldRequirement(
                "image_height", "Image height in pixels", "number", min_value=1,
                example=1024,
            ),
        ],
        optional_fields=[
            FieldRequirement("acquisition_date", "When data was acquired", format="date-time"),
            FieldRequirement("operator", "Operator name"),
            FieldRequirement(
                "objective_magnification", "Objective magnification", "number",
                example=40.0,
            ),
            FieldRequirement(
                "objective_na", "Objective numerical aperture", "number",
                min_value=0, max_value=2, example=1.3,
            ),
            FieldRequirement(
                "pixel_size_x_um", "Pixel size X in micrometers", "number", min_value=0
            ),
            FieldRequirement(
                "pixel_size_y_um", "Pixel size Y in micrometers", "number", min_value=0
            ),
            FieldRequirement("num_channels", "Number of channels", "number", min_value=1),
            FieldRequirement("channels", "Channel information", "array"),
        ],
        documentation=(
            f"Zeiss LSM {model} is a confocal laser scanning microscope for "
            f"high-resolution fluorescence imaging"
        ),
        references=[reference],
    )


def _illumina(
    preset_id: str, name: str, models: List[str], description: str, reference: str
) -> InstrumentPreset:
    return InstrumentPreset(
        id=preset_id,
        name=name,
        manufacturer="Illumina",
        instrument_type="sequencing",
        models=models,
        description=description,
        data_types=["nucleotide_sequence"],
        file_formats=[".fastq", ".fq", ".fastq.gz", ".fq.gz"],
        required_fields=[
            FieldRequirement("format", "File format", enum=["FASTQ"], example="FASTQ"),
            FieldRequirement(
                "instrument_type", "Instrument type", enum=["sequencing"],
                example="sequencing",
            ),
            FieldRequirement("total_reads", "Total number of reads", "number", min_value=0),
            FieldRequirement(
                "mean_read_length", "Mean read length in bases", "number", min_value=1
            ),
        ],
        optional_fields=[
            FieldRequirement("is_paired_end", "Paired-end sequencing", "boolean", example=True),
            FieldRequirement("read_pair", "Read pair identifier", enum=["R1", "R2", "1", "2"]),
            FieldRequirement(
                "mean_quality_score", "Mean Phred quality score", "number",
                min_value=0, max_value=100,
            ),
            FieldRequirement(
                "gc_content_percent", "GC content percentage", "number",
                min_value=0, max_value=100,
            ),
        ],
        documentation=f"{name} sequencing platform",
        references=[reference],
    )


def default_presets() -> List[InstrumentPreset]:
    novaseq = _illumina(
        "illumina-novaseq",
        "Illumina NovaSeq",
        ["NovaSeq 6000", "NovaSeq X", "NovaSeq X Plus"],
        "Illumina NovaSeq series high-throughput sequencers",
        "https://www.illumina.com/systems/sequencing-platforms/novaseq.html",
    )
    generic_sequencing = InstrumentPreset(
        id="generic-sequencing",
        name="Generic Sequencing",
        manufacturer="Various",
        instrument_type="sequencing",
        description="Generic preset for sequencing instruments",
        data_types=["nucleotide_sequence"],
        file_formats=[".fastq", ".fq", ".fastq.gz", ".fq.gz"],
        required_fields=[
            FieldRequirement("format", "File format", enum=["FASTQ"]),
            FieldRequirement("instrument_type", "Instrument type", enum=["sequencing"]),
            FieldRequirement("total_reads", "Total reads", "number", min_value=0),
        ],
        optional_fields=[
            FieldRequirement("mean_read_length", "Mean read length", "number"),
            FieldRequirement("is_paired_end", "Paired-end sequencing", "boolean"),
            FieldRequirement("mean_quality_score", "Mean quality score", "number"),
            FieldRequirement("gc_content_percent", "GC content percentage", "number"),
        ],
        documentation="Generic preset for sequencing data validation",
    )
    generic_microscopy = InstrumentPreset(
        id="generic-microscopy",
        name="Generic Microscopy",
        manufacturer="Various",
        instrument_type="microscopy",
        description="Generic preset for microscopy instruments",
        data_types=["image"],
        file_formats=[".tif", ".tiff", ".czi", ".nd2", ".lif", ".ome.tif", ".ome.tiff"],
        required_fields=[
            FieldRequirement("format", "File format"),
            FieldRequirement("instrument_type", "Instrument type", enum=["microscopy"]),
            FieldRequirement("image_width", "Image width in pixels", "number", min_value=1),
            FieldRequirement("image_height", "Image height in pixels", "number", min_value=1),
        ],
        optional_fields=[
            FieldRequirement("manufacturer", "Instrument manufacturer"),
            FieldRequirement("instrument_model", "Instrument model"),
            FieldRequirement("acquisition_date", "Acquisition date"),
            FieldRequirement("operator", "Operator name"),
            FieldRequirement("objective_magnification", "Objective magnification", "number"),
        ],
        documentation="Generic preset for microscopy data validation",
    )

    miseq = copy.deepcopy(novaseq)
    miseq.id, miseq.name, miseq.models = "illumina-miseq", "Illumina MiSeq", ["MiSeq"]
    miseq.description = "Illumina MiSeq benchtop sequencer"
    miseq.references = ["https://www.illumina.com/systems/sequencing-platforms/miseq.html"]

    nextseq = copy.deepcopy(novaseq)
    nextseq.id, nextseq.name = "illumina-nextseq", "Illumina NextSeq"
    nextseq.models = ["NextSeq 500", "NextSeq 550", "NextSeq 1000", "NextSeq 2000"]
    nextseq.description = "Illumina NextSeq series mid-throughput sequencers"
    nextseq.references = [
        "https://www.illumina.com/systems/sequencing-platforms/nextseq.html"
    ]

    return [
        _zeiss_lsm(
            "880",
            "Zeiss LSM 880 confocal laser scanning microscope",
            "https://www.zeiss.com/microscopy/us/products/confocal-microscopes/lsm-880.html",
        ),
        _zeiss_lsm(
            "900",
            "Zeiss LSM 900 confocal laser scanning microscope with Airyscan 2",
            "https://www.zeiss.com/microscopy/us/products/confocal-microscopes/lsm-900.html",
        ),
        _zeiss_lsm(
            "980",
            "Zeiss LSM 980 confocal laser scanning microscope",
            "https://www.zeiss.com/microscopy/us/products/confocal-microscopes/lsm-980.html",
        ),
        novaseq,
        miseq,
        nextseq,
        generic_microscopy,
        generic_sequencing,
    ]
