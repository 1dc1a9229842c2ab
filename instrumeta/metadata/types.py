# instrumeta/metadata/types.py
import hashlib
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

COMPOUND_EXTENSIONS = (
    ".fastq.gz",
    ".fq.gz",
    ".ome.tiff",
    ".ome.tif",
    ".tar.gz",
)


def freeze(value: Any) -> Any:
    """Recursively turn dicts into read-only mappings and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`, producing plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def declared_extension(name: str) -> str:
    """Lower-cased extension of ``name``, keeping known compound suffixes."""
    lowered = name.lower()
    for compound in COMPOUND_EXTENSIONS:
        if lowered.endswith(compound):
            return compound
    return Path(lowered).suffix


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileDescriptor:
    """Identity of a source file, computed once when it is first seen."""

    path: str
    name: str
    extension: str
    size: int
    checksum: str

    @classmethod
    def from_path(
        cls, path: Union[str, Path], chunk_size: int = 1024 * 1024
    ) -> "FileDescriptor":
        path = Path(path)
        digest = hashlib.sha256()
        with open(path, "rb") as handle:
            for chunk in iter(lambda: handle.read(chunk_size), b""):
                digest.update(chunk)
        return cls(
            path=str(path),
            name=path.name,
            extension=declared_extension(path.name),
            size=path.stat().st_size,
            checksum=f"sha256:{digest.hexdigest()}",
        )


@dataclass(frozen=True)
class MicroscopyChannel:
    id: Optional[str] = None
    name: Optional[str] = None
    excitation_wavelength_nm: Optional[float] = None
    emission_wavelength_nm: Optional[float] = None
    dye_name: Optional[str] = None


@dataclass(frozen=True)
class MicroscopyMetadata:
    """Typed view of the microscopy fields an extractor produced."""

    instrument_model: Optional[str] = None
    microscope_name: Optional[str] = None
    objective_name: Optional[str] = None
    objective_magnification: Optional[float] = None
    objective_na: Optional[float] = None
    objective_immersion: Optional[str] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    image_depth: Optional[int] = None
    num_channels: Optional[int] = None
    num_timepoints: Optional[int] = None
    bit_depth: Optional[int] = None
    pixel_size_x_um: Optional[float] = None
    pixel_size_y_um: Optional[float] = None
    pixel_size_z_um: Optional[float] = None
    channels: Tuple[MicroscopyChannel, ...] = ()

    @classmethod
    def from_fields(cls, values: Mapping[str, Any]) -> "MicroscopyMetadata":
        kwargs = {
            f.name: values[f.name]
            for f in dataclass_fields(cls)
            if f.name != "channels" and f.name in values
        }
        channels = tuple(
            MicroscopyChannel(
                **{
                    f.name: channel.get(f.name)
                    for f in dataclass_fields(MicroscopyChannel)
                }
            )
            for channel in values.get("channels", ())
        )
        return cls(channels=channels, **kwargs)


@dataclass(frozen=True)
class SequencingMetadata:
    """Typed view of the sequencing statistics an extractor produced."""

    total_reads: int
    total_bases: int
    mean_read_length: float
    min_read_length: int
    max_read_length: int
    gc_content_percent: float
    mean_quality_score: Optional[float] = None
    min_quality_score: Optional[int] = None
    max_quality_score: Optional[int] = None
    is_paired_end: bool = False
    read_pair: Optional[str] = None
    sample_truncated: bool = False

    @classmethod
    def from_fields(cls, values: Mapping[str, Any]) -> "SequencingMetadata":
        return cls(
            total_reads=values["total_reads"],
            total_bases=values["total_bases"],
            mean_read_length=values["mean_read_length"],
            min_read_length=values["min_read_length"],
            max_read_length=values["max_read_length"],
            gc_content_percent=values["gc_content_percent"],
            mean_quality_score=values.get("mean_quality_score"),
            min_quality_score=values.get("min_quality_score"),
            max_quality_score=values.get("max_quality_score"),
            is_paired_end=values.get("is_paired_end", False),
            read_pair=values.get("read_pair"),
            sample_truncated=values.get("read_sample_truncated", False),
        )


@dataclass(frozen=True)
class NormalizedMetadata:
    """
    Result of a single extraction.

    ``fields`` is deep-frozen on construction. ``extracted_at`` does not take
    part in equality, so extracting identical bytes twice yields equal
    objects.
    """

    extractor_name: str
    schema_name: str
    fields: Mapping[str, Any]
    microscopy: Optional[MicroscopyMetadata] = None
    sequencing: Optional[SequencingMetadata] = None
    extracted_at: datetime = field(default_factory=_utcnow, compare=False)

    def __post_init__(self):
        values = dict(self.fields)
        values["extractor_name"] = self.extractor_name
        values["schema_name"] = self.schema_name
        object.__setattr__(self, "fields", freeze(values))

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def field_map(self) -> Dict[str, Any]:
        """Plain mutable copy of the flat field map."""
        return thaw(self.fields)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "extractor_name": self.extractor_name,
            "schema_name": self.schema_name,
            "extracted_at": self.extracted_at.isoformat(),
            "fields": self.field_map(),
        }
        if self.microscopy is not None:
            result["microscopy"] = _dataclass_to_dict(self.microscopy)
        if self.sequencing is not None:
            result["sequencing"] = _dataclass_to_dict(self.sequencing)
        return result


def _dataclass_to_dict(instance: Any) -> Dict[str, Any]:
    result = {}
    for f in dataclass_fields(instance):
        value = getattr(instance, f.name)
        if isinstance(value, tuple):
            value = [_dataclass_to_dict(item) for item in value]
        result[f.name] = value
    return result
